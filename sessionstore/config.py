"""Configuration module with environment variable validation.

This module provides the cookie/session options consumed by the Manager and
the process configuration loaded from environment variables.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


DEFAULT_COOKIE_NAME = "sessionid"
DEFAULT_MAX_AGE = 86400  # 1 day
DEFAULT_ID_LENGTH = 32
SAME_SITE_POLICIES = ("lax", "strict", "none")


class ConfigurationError(Exception):
    """Raised when a configuration variable is missing or invalid."""

    def __init__(self, variable_name: str, message: Optional[str] = None):
        self.variable_name = variable_name
        if message:
            super().__init__(f"{variable_name}: {message}")
        else:
            super().__init__(f"Required environment variable '{variable_name}' is missing or empty")


@dataclass(frozen=True)
class SessionOptions:
    """Options applied when the Manager issues session cookies.

    Attributes:
        cookie_name: Name of the cookie carrying the session id
        path: Cookie path attribute
        max_age: Session lifetime and cookie Max-Age in seconds
        id_length: Number of random bytes in generated session ids
        same_site: Cookie SameSite policy ("lax", "strict" or "none")
        secure: Whether to set the Secure flag on the cookie
    """

    cookie_name: str = DEFAULT_COOKIE_NAME
    path: str = "/"
    max_age: int = DEFAULT_MAX_AGE
    id_length: int = DEFAULT_ID_LENGTH
    same_site: str = "lax"
    secure: bool = False

    def __post_init__(self):
        if not self.cookie_name:
            raise ConfigurationError("cookie_name", "must not be empty")
        if self.id_length < 1:
            raise ConfigurationError("id_length", f"must be positive, got {self.id_length}")
        if self.same_site not in SAME_SITE_POLICIES:
            raise ConfigurationError(
                "same_site",
                f"must be one of {', '.join(SAME_SITE_POLICIES)}, got {self.same_site!r}",
            )


@dataclass(frozen=True)
class SessionConfig:
    """Session store configuration loaded from environment variables.

    Attributes:
        provider: Name of the registered provider the Manager uses
        cookie_name: Name of the session cookie
        path: Cookie path attribute
        max_age: Session lifetime in seconds
        id_length: Random bytes per session id
        same_site: Cookie SameSite policy
        secure: Whether session cookies carry the Secure flag
        file_dir: Directory for the file provider (optional)
        file_prefix: File name prefix for the file provider
        log_level: Logging level for the sessionstore logger
    """

    provider: str = "memory"
    cookie_name: str = DEFAULT_COOKIE_NAME
    path: str = "/"
    max_age: int = DEFAULT_MAX_AGE
    id_length: int = DEFAULT_ID_LENGTH
    same_site: str = "lax"
    secure: bool = False
    file_dir: Optional[str] = None
    file_prefix: str = "sess-"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "SessionConfig":
        """Load configuration from environment variables.

        Returns:
            SessionConfig instance with values from environment

        Raises:
            ConfigurationError: If a variable is invalid, or the file provider
                is selected without SESSION_FILE_DIR
        """
        provider = os.environ.get("SESSION_PROVIDER", "memory").strip() or "memory"

        file_dir = os.environ.get("SESSION_FILE_DIR", "").strip() or None
        if provider == "file" and not file_dir:
            raise ConfigurationError("SESSION_FILE_DIR")

        same_site = os.environ.get("SESSION_SAMESITE", "lax").strip().lower()
        if same_site not in SAME_SITE_POLICIES:
            raise ConfigurationError(
                "SESSION_SAMESITE",
                f"must be one of {', '.join(SAME_SITE_POLICIES)}",
            )

        secure = os.environ.get("SESSION_COOKIE_SECURE", "false").strip().lower()

        return cls(
            provider=provider,
            cookie_name=os.environ.get("SESSION_COOKIE_NAME", DEFAULT_COOKIE_NAME).strip() or DEFAULT_COOKIE_NAME,
            path=os.environ.get("SESSION_COOKIE_PATH", "/").strip() or "/",
            max_age=_int_from_env("SESSION_MAX_AGE", DEFAULT_MAX_AGE),
            id_length=_int_from_env("SESSION_ID_LENGTH", DEFAULT_ID_LENGTH),
            same_site=same_site,
            secure=secure in ("true", "1", "yes"),
            file_dir=file_dir,
            file_prefix=os.environ.get("SESSION_FILE_PREFIX", "sess-").strip(),
            log_level=os.environ.get("LOG_LEVEL", "INFO").strip() or "INFO",
        )

    def options(self) -> SessionOptions:
        """Build the cookie options for the Manager.

        Raises:
            ConfigurationError: If an option is out of range
        """
        return SessionOptions(
            cookie_name=self.cookie_name,
            path=self.path,
            max_age=self.max_age,
            id_length=self.id_length,
            same_site=self.same_site,
            secure=self.secure,
        )


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(name, f"must be an integer, got {raw!r}") from None


@lru_cache(maxsize=1)
def get_config() -> SessionConfig:
    """Get the session store configuration (cached).

    Variables from a .env file are loaded first without overriding the
    process environment.

    Returns:
        SessionConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    load_dotenv()
    return SessionConfig.from_env()
