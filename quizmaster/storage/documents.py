"""Temporary document store for uploads awaiting quiz generation.

Handles are ``<epoch-ms>-<original basename>``. Uniqueness is probabilistic:
two uploads with the same name inside one millisecond share a handle.
Handles are only ever resolved under the store root.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from quizmaster.core.exceptions import CallerInputError, DocumentNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "upload.pdf"


class DocumentStore:
    def __init__(self, root: Path | str):
        self.root = Path(root)

    def ensure_root(self) -> None:
        if not self.root.exists():
            self.root.mkdir(parents=True, exist_ok=True)
            logger.info("Created temporary upload directory at %s", self.root)

    @staticmethod
    def make_handle(filename: str | None) -> str:
        # Only the basename survives; "../../x.pdf" and "C:\\x.pdf" both become "x.pdf"
        name = (filename or "").replace("\\", "/").rsplit("/", 1)[-1].strip()
        if name in ("", ".", ".."):
            name = DEFAULT_FILENAME
        return f"{time.time_ns() // 1_000_000}-{name}"

    def resolve(self, handle: str) -> Path:
        """Map a handle to its path, refusing anything that escapes the root."""
        if not handle or "/" in handle or "\\" in handle or handle in (".", "..") or "\x00" in handle:
            raise CallerInputError("Invalid file name.", details=f"bad document handle: {handle!r}")

        root = self.root.resolve()
        path = (root / handle).resolve()
        if path.parent != root:
            raise CallerInputError("Invalid file name.", details=f"bad document handle: {handle!r}")
        return path

    def save(self, filename: str | None, data: bytes) -> str:
        self.ensure_root()
        handle = self.make_handle(filename)
        self.resolve(handle).write_bytes(data)
        logger.info("File temporarily saved as %s (%d bytes)", handle, len(data))
        return handle

    def exists(self, handle: str) -> bool:
        return self.resolve(handle).is_file()

    def read(self, handle: str) -> bytes:
        path = self.resolve(handle)
        if not path.is_file():
            raise DocumentNotFoundError("File not found. It may have expired. Please upload again.")
        return path.read_bytes()

    def delete(self, handle: str) -> bool:
        """Remove a stored document. Returns False if it was already gone; OS errors are logged."""
        try:
            path = self.resolve(handle)
        except CallerInputError:
            logger.warning("Refusing to delete invalid handle %r", handle)
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error("Failed to clean up file %s: %s", handle, e)
            return False
        logger.info("Cleaned up file %s", handle)
        return True
