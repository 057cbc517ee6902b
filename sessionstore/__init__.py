"""Pluggable HTTP session store.

This package issues opaque session identifiers, binds them to HTTP-only
cookies and persists small key/value bags across requests through
interchangeable storage providers (in-memory, file-backed).
"""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

from sessionstore.errors import (
    SessionError,
    SessionNotFoundError,
    SessionDecodeError,
    SessionEncodeError,
    InvalidSessionIdError,
    RegistryError,
    InvalidProviderError,
    DuplicateProviderError,
    UnknownProviderError,
)
from sessionstore.session import Session
from sessionstore.providers import Provider, MemoryProvider, FileProvider
from sessionstore.config import SessionOptions, SessionConfig, ConfigurationError, get_config
from sessionstore.registry import Registry, build_registry
from sessionstore.manager import Manager

__all__ = [
    "__version__",
    "SessionError",
    "SessionNotFoundError",
    "SessionDecodeError",
    "SessionEncodeError",
    "InvalidSessionIdError",
    "RegistryError",
    "InvalidProviderError",
    "DuplicateProviderError",
    "UnknownProviderError",
    "Session",
    "Provider",
    "MemoryProvider",
    "FileProvider",
    "SessionOptions",
    "SessionConfig",
    "ConfigurationError",
    "get_config",
    "Registry",
    "build_registry",
    "Manager",
]
