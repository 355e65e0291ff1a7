"""Filesystem scanner for Longbox.

Walks the library root and builds a fresh `Catalog`:
- every `.cbz` with a readable cover becomes a `Comic` plus cover bytes
- folders are kept only when they hold a comic or a kept subfolder
- files whose cover cannot be extracted are left out entirely

The walk uses an explicit worklist, so depth is bounded only by memory.
"""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional

from .archive import extract_cover, is_comic_file, read_archive_bytes
from .errors import ComicError, InvalidPathError, ScanError
from .logging_config import get_logger
from .models import ROOT_FOLDER_NAME, Catalog, Comic, DroppedFile, FolderNode

logger = get_logger(__name__)


def _should_ignore(name: str, ignore_patterns: Iterable[str]) -> bool:
    """Check if file/folder should be ignored based on patterns or macOS temp files."""
    if name.startswith("._"):
        return True
    return name in ignore_patterns


def _check_name(name: str) -> str:
    try:
        name.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InvalidPathError(f"Undecodable file name {name!r}") from exc
    return name


def _list_directory(directory: Path) -> list[os.DirEntry]:
    with os.scandir(directory) as it:
        return sorted(it, key=lambda entry: entry.name)


@dataclasses.dataclass
class _PendingFolder:
    """A folder whose children are still being collected."""

    name: str
    path: tuple[str, ...]
    parent: Optional["_PendingFolder"]
    comics: list[Comic] = dataclasses.field(default_factory=list)
    subfolders: list[FolderNode] = dataclasses.field(default_factory=list)

    def child_path(self) -> tuple[str, ...]:
        if self.parent is None:
            return ()
        return self.path + (self.name,)

    def freeze(self) -> FolderNode:
        return FolderNode(
            name=self.name,
            path=self.path,
            comics=tuple(self.comics),
            subfolders=tuple(sorted(self.subfolders, key=lambda node: node.name)),
        )


class _CatalogBuilder:
    def __init__(self, root: Path, ignore_patterns: tuple[str, ...]):
        self.root = root
        self.ignore_patterns = ignore_patterns
        self.comics: dict[str, Comic] = {}
        self.covers: dict[str, bytes] = {}
        self.dropped: list[DroppedFile] = []

    def _drop(self, relative: PurePosixPath, reason: str) -> None:
        logger.warning(f"✗ {relative} - {reason}")
        self.dropped.append(DroppedFile(path=str(relative), reason=reason))

    def add_comic(self, folder: _PendingFolder, entry: os.DirEntry) -> None:
        relative = PurePosixPath(*folder.child_path(), entry.name)
        try:
            _check_name(entry.name)
        except InvalidPathError as exc:
            self._drop(relative, str(exc))
            return

        comic = Comic.from_relative_path(relative)

        existing = self.comics.get(comic.id)
        if existing is not None:
            self._drop(relative, f"duplicate file name, already cataloged as {existing.relative_path}")
            return

        try:
            cover = extract_cover(read_archive_bytes(Path(entry.path)))
        except ComicError as exc:
            self._drop(relative, str(exc))
            return

        self.comics[comic.id] = comic
        self.covers[comic.id] = cover
        folder.comics.append(comic)
        logger.debug(f"✓ {relative}")

    def build(self) -> Catalog:
        root_folder = _PendingFolder(name=ROOT_FOLDER_NAME, path=(), parent=None)
        pending = [root_folder]
        worklist: list[tuple[Path, _PendingFolder]] = [(self.root, root_folder)]
        seen_dirs: set[str] = set()

        while worklist:
            directory, folder = worklist.pop()
            real = os.path.realpath(directory)
            if real in seen_dirs:
                logger.warning(f"Skipping {directory}: already scanned through another link")
                continue
            seen_dirs.add(real)

            try:
                entries = _list_directory(directory)
            except OSError as exc:
                if folder is root_folder:
                    raise ScanError(f"Cannot read library root {directory}: {exc}") from exc
                logger.warning(f"✗ {PurePosixPath(*folder.child_path())} - unreadable folder skipped: {exc}")
                continue

            subdirs = []
            for entry in entries:
                if _should_ignore(entry.name, self.ignore_patterns):
                    continue
                if entry.is_dir():
                    subdirs.append(entry)
                elif is_comic_file(Path(entry.name)) and entry.is_file():
                    self.add_comic(folder, entry)

            logger.debug(
                f"[SCAN] {PurePosixPath(*folder.child_path()) if folder.parent else 'root'} "
                f"({len(folder.comics)} comics, {len(subdirs)} folders)"
            )

            # Reversed so the stack pops folders in name order
            for entry in reversed(subdirs):
                try:
                    name = _check_name(entry.name)
                except InvalidPathError as exc:
                    logger.warning(f"✗ {exc}")
                    continue
                child = _PendingFolder(name=name, path=folder.child_path(), parent=folder)
                pending.append(child)
                worklist.append((Path(entry.path), child))

        # Children always come after their parent in `pending`.
        root_node: Optional[FolderNode] = None
        for folder in reversed(pending):
            node = folder.freeze()
            if folder.parent is None:
                root_node = node
            elif not node.is_empty:
                folder.parent.subfolders.append(node)

        return Catalog(
            comics=self.comics,
            covers=self.covers,
            root=root_node,
            dropped=tuple(self.dropped),
        )


def scan_library(root: Path, ignore_patterns: Iterable[str] = ()) -> Catalog:
    """Scan the library root and return a new, unpublished catalog.

    :param root: Library root directory.
    :param ignore_patterns: File/folder names to skip anywhere in the tree.
    :raises ScanError: if the root itself cannot be listed.
    """
    root = Path(root)
    catalog = _CatalogBuilder(root, tuple(ignore_patterns)).build()
    logger.info(
        f"[SCAN] {root}: {len(catalog.comics)} comics in "
        f"{catalog.folder_count()} folders, {len(catalog.dropped)} dropped"
    )
    return catalog
