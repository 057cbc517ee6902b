"""File-backed session provider.

Each session is stored as one file named ``<prefix><session_id>`` directly
inside a configured directory. A MemoryProvider is kept as the index of
live sessions so commit and destroy can find the current in-memory copy
before touching the filesystem.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from sessionstore.errors import (
    InvalidSessionIdError,
    SessionDecodeError,
    SessionError,
    SessionNotFoundError,
)
from sessionstore.locks import RWLock
from sessionstore.providers.base import Provider
from sessionstore.providers.memory import MemoryProvider
from sessionstore.session import Session

logger = logging.getLogger(__name__)

# Owner read/write only
FILE_MODE = 0o600

_TEMP_PREFIX = ".tmp-"

_FORBIDDEN = tuple({"/", "\0", os.sep, os.altsep or "/"})


class FileProvider(Provider):
    """Session provider persisting each session to its own file.

    Filesystem access is guarded by a reader/writer lock: reads may run
    together, writes and removals are exclusive.

    Attributes:
        directory: Directory holding the session files
        prefix: File name prefix prepended to each session id
    """

    def __init__(
        self,
        directory: Union[str, os.PathLike],
        prefix: str = "",
        create_dir: bool = False,
    ):
        """Initialize FileProvider.

        Args:
            directory: Directory holding the session files
            prefix: File name prefix prepended to each session id
            create_dir: Create the directory (not its parents) if missing
        """
        self.directory = Path(directory)
        self.prefix = prefix
        self._index = MemoryProvider()
        self._lock = RWLock()

        if create_dir and not self.directory.is_dir():
            self.directory.mkdir(mode=0o700)

    def init(self, session: Session) -> None:
        """Register a session and write it to disk immediately.

        Raises:
            SessionEncodeError: If a value cannot be serialized
            OSError: If the file cannot be written
        """
        path = self._path(session.session_id)
        self._index.init(session)
        self._save(path, session)

    def read(self, session_id: str) -> Session:
        """Load a session from its file and register it as live.

        If the id is already live, the live instance is returned and kept,
        so mutations pending on it are not replaced by the file's copy.

        Raises:
            SessionNotFoundError: If no file exists for the id
            SessionDecodeError: If the file contents are not a valid session
        """
        path = self._path(session_id)
        with self._lock.read_locked():
            try:
                data = path.read_bytes()
            except FileNotFoundError:
                raise SessionNotFoundError(session_id) from None
            session = Session.from_bytes(session_id, data)
            return self._index.adopt(session)

    def destroy(self, session_id: str) -> None:
        """Remove a live session and its file.

        Raises:
            SessionNotFoundError: If the id is not live
            FileNotFoundError: If the id is live but its file is gone
        """
        path = self._path(session_id)
        # Checked under the write lock so a racing destroy sees NotFound
        with self._lock.write_locked():
            self._index.read(session_id)
            path.unlink()
            self._index.destroy(session_id)
        logger.debug("Removed session file", extra={"session_id": session_id, "path": str(path)})

    def commit(self, session_id: str) -> None:
        """Rewrite the session file from the live in-memory copy.

        Raises:
            SessionNotFoundError: If the id is not live
            SessionEncodeError: If a value cannot be serialized
        """
        path = self._path(session_id)
        session = self._index.read(session_id)
        self._save(path, session)

    def cleanup(self) -> int:
        """Remove every expired session file in the directory.

        Sub-directories are not entered. Files that fail to read or decode
        are skipped, as are sessions that vanish or fail to delete mid-sweep.

        Returns:
            Number of sessions removed
        """
        removed = 0
        with os.scandir(self.directory) as entries:
            names = [
                entry.name
                for entry in entries
                if not entry.is_dir(follow_symlinks=False)
                and entry.name.startswith(self.prefix)
                and not entry.name.startswith(_TEMP_PREFIX)
            ]

        for name in names:
            session_id = name[len(self.prefix):]
            try:
                session = self.read(session_id)
            except SessionDecodeError as e:
                logger.warning(
                    "Skipping undecodable session file",
                    extra={"file": name, "error": str(e)},
                )
                continue
            except SessionError:
                continue
            except OSError as e:
                logger.warning(
                    "Skipping unreadable session file",
                    extra={"file": name, "error": str(e)},
                )
                continue

            if not session.is_expired():
                continue

            try:
                self.destroy(session_id)
                removed += 1
            except (SessionError, OSError) as e:
                logger.warning(
                    "Failed to remove expired session",
                    extra={"session_id": session_id, "error": str(e)},
                )

        if removed:
            logger.info(
                "Removed expired sessions",
                extra={"directory": str(self.directory), "removed": removed},
            )
        return removed

    def is_live(self, session_id: str) -> bool:
        """Check whether the id is registered in the live index."""
        return session_id in self._index

    def path_for(self, session_id: str) -> Path:
        """Path of the file backing a session id."""
        return self._path(session_id)

    def _save(self, path: Path, session: Session) -> None:
        """Encode a session and atomically replace its file.

        Encoding happens before any file is touched, so an encode failure
        leaves the previous file as it was.
        """
        data = session.to_bytes()
        with self._lock.write_locked():
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=_TEMP_PREFIX)
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.chmod(tmp_path, FILE_MODE)
                os.replace(tmp_path, path)
            except BaseException:
                try:
                    os.unlink(tmp_path)
                except FileNotFoundError:
                    pass
                raise

    def _path(self, session_id: str) -> Path:
        if not session_id or session_id in (".", ".."):
            raise InvalidSessionIdError(session_id, "empty or relative name")
        if any(sep in session_id for sep in _FORBIDDEN):
            raise InvalidSessionIdError(session_id, "contains a path separator")
        return self.directory / f"{self.prefix}{session_id}"
