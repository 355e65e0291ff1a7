"""Exception hierarchy for Longbox.

Per-file failures (`NoCoverFoundError`, `CorruptArchiveError`, `ComicIOError`
while reading one archive) are absorbed by the scanner. `ScanError` aborts a
whole scan. Fetch-time failures propagate to the HTTP layer.
"""

from __future__ import annotations


class ComicError(Exception):
    """Base class for all Longbox errors."""


class ComicIOError(ComicError):
    """A filesystem read failed (missing file, permissions, I/O error)."""


class InvalidPathError(ComicError):
    """A path component cannot be represented or escapes the library root."""


class ComicNotFoundError(ComicError):
    """An identifier did not resolve to a cataloged comic."""

    def __init__(self, comic_id: str):
        super().__init__(f"Comic not found: {comic_id}")
        self.comic_id = comic_id


class NoCoverFoundError(ComicError):
    """The archive holds no image entry usable as a cover."""


class CorruptArchiveError(ComicError):
    """The archive cannot be parsed or its cover entry cannot be read."""


class ScanError(ComicError):
    """The library root could not be read; the scan produced nothing."""
