"""Session storage backends."""

from sessionstore.providers.base import Provider
from sessionstore.providers.memory import MemoryProvider
from sessionstore.providers.file import FileProvider

__all__ = ["Provider", "MemoryProvider", "FileProvider"]
