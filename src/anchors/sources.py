"""Document text sources: open editor buffers first, the filesystem second."""

import asyncio
import os
from pathlib import Path


def normalize(uri: str | Path) -> Path:
    """Absolute, user-expanded path for a document URI."""
    return Path(os.path.abspath(os.path.expanduser(str(uri))))


def same_file(a: str | Path, b: str | Path) -> bool:
    """True when two paths name the same file, ignoring case and alias differences."""
    a, b = normalize(a), normalize(b)
    if a == b:
        return True
    try:
        if os.path.samefile(a, b):
            return True
    except OSError:
        pass
    return os.path.normcase(os.path.realpath(a)) == os.path.normcase(os.path.realpath(b))


def read_text_sync(path: Path) -> str:
    """Read a file as UTF-8, replacing undecodable bytes."""
    return path.read_text(encoding="utf-8", errors="replace")


class DocumentStore:
    """In-memory buffers of open documents, with filesystem fallback."""

    def __init__(self) -> None:
        self._open: dict[Path, str] = {}

    def open(self, uri: str | Path, text: str) -> Path:
        path = normalize(uri)
        self._open[path] = text
        return path

    def update(self, uri: str | Path, text: str) -> Path:
        return self.open(uri, text)

    def close(self, uri: str | Path) -> None:
        self._open.pop(normalize(uri), None)

    def is_open(self, uri: str | Path) -> bool:
        return normalize(uri) in self._open

    def text(self, uri: str | Path) -> str | None:
        """Buffer text of an open document, or None."""
        return self._open.get(normalize(uri))

    def list_open(self) -> list[tuple[Path, str]]:
        return list(self._open.items())

    async def read(self, uri: str | Path) -> str:
        """Text for uri, preferring the open buffer over the file on disk.

        Raises OSError when the document is not open and cannot be read.
        """
        path = normalize(uri)
        text = self._open.get(path)
        if text is not None:
            return text
        return await asyncio.to_thread(read_text_sync, path)
