"""Archive handling for Longbox.

Opens CBZ (zip) archives from an in-memory buffer and pulls out the cover:
the first image entry in archive-listing order. Only that entry is ever
decompressed.
"""

from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from .errors import ComicIOError, CorruptArchiveError, NoCoverFoundError

COMIC_EXTENSION = ".cbz"
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif")
DEFAULT_COVER_MEDIA_TYPE = "image/jpeg"


def is_image(filename: str) -> bool:
    return filename.lower().endswith(IMAGE_EXTENSIONS)


def is_comic_file(path: Path) -> bool:
    """Return True if the path looks like a CBZ archive."""
    return path.suffix.lower() == COMIC_EXTENSION


class ZipArchiveWrapper:
    def __init__(self, data: bytes):
        # Damaged headers surface as almost any exception type from zipfile
        try:
            self.zf = zipfile.ZipFile(io.BytesIO(data), mode="r")
        except Exception as exc:
            raise CorruptArchiveError(f"Not a readable zip archive: {exc!r}") from exc

    def first_image(self) -> Optional[str]:
        for info in self.zf.infolist():
            if not info.is_dir() and is_image(info.filename):
                return info.filename
        return None

    def read(self, filename: str) -> bytes:
        try:
            return self.zf.read(filename)
        except Exception as exc:
            raise CorruptArchiveError(f"Cannot read entry {filename}: {exc!r}") from exc

    def close(self) -> None:
        self.zf.close()

    def __enter__(self) -> "ZipArchiveWrapper":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def extract_cover(data: bytes) -> bytes:
    """Return the bytes of the first image entry of a CBZ buffer.

    Raises CorruptArchiveError if the buffer is not a zip archive or the
    cover entry cannot be decompressed, NoCoverFoundError if no entry has an
    image extension.
    """
    with ZipArchiveWrapper(data) as archive:
        name = archive.first_image()
        if name is None:
            raise NoCoverFoundError("No image entry in archive")
        return archive.read(name)


def read_archive_bytes(path: Path) -> bytes:
    """Read a whole file, mapping OS failures to ComicIOError."""
    try:
        return path.read_bytes()
    except OSError as exc:
        raise ComicIOError(f"Unable to read {path}: {exc}") from exc


def cover_media_type(data: bytes) -> str:
    """Sniff the image format of cover bytes; JPEG when Pillow cannot tell."""
    try:
        with Image.open(io.BytesIO(data)) as im:
            media_type = Image.MIME.get(im.format or "")
    except (UnidentifiedImageError, OSError, ValueError):
        return DEFAULT_COVER_MEDIA_TYPE
    return media_type or DEFAULT_COVER_MEDIA_TYPE
