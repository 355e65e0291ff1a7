"""Identifier resolution for Longbox.

Clients address comics by file name, sometimes percent-encoded, sometimes
prefixed with a folder hint (`Series/vol1.cbz`). The hint is accepted for
compatibility but never used to locate files: the on-disk path always comes
from the catalog's own record.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional, Tuple
from urllib.parse import unquote

from .errors import ComicNotFoundError, InvalidPathError
from .logging_config import get_logger
from .models import Comic

logger = get_logger(__name__)

SEPARATOR = "/"


def split_identifier(raw_id: str) -> Tuple[Optional[str], str]:
    """Split a raw id into (folder hint, lookup key).

    >>> split_identifier("Marvel/X-Men%201.cbz")
    ('Marvel', 'X-Men%201.cbz')
    >>> split_identifier("hero.cbz")
    (None, 'hero.cbz')
    """
    if SEPARATOR not in raw_id:
        return None, raw_id
    hint, key = raw_id.rsplit(SEPARATOR, 1)
    return hint, key


def resolve(raw_id: str, comics: Mapping[str, Comic]) -> str:
    """Return the canonical catalog key for a raw id.

    The literal key wins over its percent-decoded form, so a file whose real
    name contains `%20` still resolves to itself.
    """
    _, key = split_identifier(raw_id)
    if key in comics:
        return key
    decoded = unquote(key)
    if decoded in comics:
        return decoded
    raise ComicNotFoundError(raw_id)


def _check_component(part: str) -> str:
    if not part or part in (".", "..") or SEPARATOR in part or "\\" in part or "\x00" in part:
        raise InvalidPathError(f"Invalid path component: {part!r}")
    return part


def resolve_location(comic: Comic, library_root: Path, raw_id: str = "") -> Path:
    """Return the absolute path of a cataloged comic under the library root."""
    hint, _ = split_identifier(raw_id)
    if hint is not None and tuple(unquote(hint).split(SEPARATOR)) != comic.folder_path:
        logger.debug(
            f"Ignoring folder hint {hint!r} for {comic.id}; "
            f"cataloged under {SEPARATOR.join(comic.folder_path) or 'root'}"
        )

    parts = [_check_component(part) for part in comic.folder_path]
    parts.append(_check_component(comic.file_name))
    return library_root.joinpath(*parts)
