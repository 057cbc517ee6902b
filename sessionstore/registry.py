"""Provider registry.

Maps backend names to provider instances. A registry is an explicit object
handed to Manager construction; each name may be registered once.
"""

import logging
import threading
from typing import Dict, List, Optional

from sessionstore.config import SessionConfig
from sessionstore.errors import (
    DuplicateProviderError,
    InvalidProviderError,
    RegistryError,
    UnknownProviderError,
)
from sessionstore.providers import FileProvider, MemoryProvider, Provider

logger = logging.getLogger(__name__)


class Registry:
    """Name to provider lookup table."""

    def __init__(self) -> None:
        self._providers: Dict[str, Provider] = {}
        self._lock = threading.Lock()

    def register(self, name: str, provider: Optional[Provider]) -> None:
        """Register a provider under a name.

        Args:
            name: Backend name used by Manager.from_registry
            provider: Provider instance

        Raises:
            InvalidProviderError: If provider is None
            DuplicateProviderError: If the name is already registered
        """
        if provider is None:
            raise InvalidProviderError(f"provider registered as {name!r} is None")
        with self._lock:
            if name in self._providers:
                raise DuplicateProviderError(name)
            self._providers[name] = provider
        logger.debug("Registered session provider", extra={"provider": name})

    def must_register(self, name: str, provider: Optional[Provider]) -> None:
        """Register a provider, aborting startup on failure.

        Raises:
            SystemExit: If registration fails
        """
        try:
            self.register(name, provider)
        except RegistryError as e:
            logger.critical("Provider registration failed: %s", e)
            raise SystemExit(f"session provider registration failed: {e}") from e

    def get(self, name: str) -> Provider:
        """Look up a registered provider.

        Raises:
            UnknownProviderError: If the name has not been registered
        """
        with self._lock:
            provider = self._providers.get(name)
        if provider is None:
            raise UnknownProviderError(name)
        return provider

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._providers)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._providers


def build_registry(config: SessionConfig) -> Registry:
    """Create a registry holding the providers the configuration enables.

    The memory provider is always registered; the file provider is
    registered when a file directory is configured.

    Args:
        config: Session store configuration

    Returns:
        Populated Registry
    """
    registry = Registry()
    registry.must_register("memory", MemoryProvider())
    if config.file_dir:
        registry.must_register(
            "file",
            FileProvider(config.file_dir, prefix=config.file_prefix, create_dir=True),
        )
    return registry
