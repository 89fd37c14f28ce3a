import json
import logging
import os
from abc import ABC, abstractmethod

from .errors import SinkError
from .excerpt import MessageExcerpt

logger = logging.getLogger(__name__)


class ExcerptStorage(ABC):
    """Abstract base class for excerpt export destinations"""

    @abstractmethod
    def store_excerpt(self, excerpt: MessageExcerpt) -> None:
        """Durably append one excerpt. Raises SinkError on failure."""

    def close(self) -> None:
        """Release any resources held by the storage"""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class JsonLinesStorage(ExcerptStorage):
    """
    Append-only JSON Lines file, one excerpt per line.

    The file is created with owner-only permissions if it does not exist and
    is never truncated. Every write is flushed and fsynced before
    ``store_excerpt`` returns.
    """

    def __init__(self, path: str):
        self.path = path
        self._file = None
        self.count = 0

    def open(self) -> "JsonLinesStorage":
        if self._file is not None:
            return self
        try:
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
            self._file = os.fdopen(fd, "a", encoding="utf-8")
        except OSError as e:
            raise SinkError(f"Failed to open output file {self.path}: {e}") from e
        logger.debug("Opened output file %s", self.path)
        return self

    def store_excerpt(self, excerpt: MessageExcerpt) -> None:
        if self._file is None:
            self.open()

        line = json.dumps(excerpt.to_dict(), ensure_ascii=False, separators=(",", ":"))
        try:
            self._file.write(line + "\n")
            self._file.flush()
            os.fsync(self._file.fileno())
        except OSError as e:
            raise SinkError(f"Failed to write to output file {self.path}: {e}") from e
        self.count += 1

    def close(self) -> None:
        if self._file is not None:
            try:
                self._file.close()
            finally:
                self._file = None

    def __enter__(self):
        return self.open()
