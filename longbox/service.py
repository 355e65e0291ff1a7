"""Comic service: the data operations behind the HTTP API.

Every read takes one catalog snapshot from the store up front and answers
entirely from it.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .archive import read_archive_bytes
from .logging_config import get_logger
from .models import Catalog, Comic, FolderNode
from .resolver import resolve, resolve_location
from .scanner import scan_library
from .store import CatalogStore

logger = get_logger(__name__)


class ComicService:
    def __init__(
        self,
        library_root: Path,
        store: Optional[CatalogStore] = None,
        ignore_patterns: Iterable[str] = (),
    ):
        self.library_root = Path(library_root)
        self.store = store if store is not None else CatalogStore()
        self.ignore_patterns = tuple(ignore_patterns)
        self._scan_lock = threading.Lock()

    def rescan(self) -> Catalog:
        """Scan the library and publish the result.

        On ScanError the previously published catalog stays in place.
        """
        with self._scan_lock:
            catalog = scan_library(self.library_root, self.ignore_patterns)
            return self.store.replace(catalog)

    def list_all(self) -> List[Comic]:
        comics = self.store.current().comics
        return sorted(comics.values(), key=lambda comic: comic.id)

    def search(self, query: str) -> List[Comic]:
        return [comic for comic in self.list_all() if comic.matches_search(query)]

    def folder_tree(self) -> FolderNode:
        return self.store.current().root

    def get_comic_metadata(self, raw_id: str) -> Comic:
        """Raises ComicNotFoundError."""
        catalog = self.store.current()
        return catalog.comics[resolve(raw_id, catalog.comics)]

    def get_cover_bytes(self, raw_id: str) -> bytes:
        """Raises ComicNotFoundError."""
        catalog = self.store.current()
        return catalog.covers[resolve(raw_id, catalog.comics)]

    def open_comic(self, raw_id: str) -> Tuple[Comic, bytes]:
        """Return the comic record and the archive bytes read from disk.

        Raises ComicNotFoundError when the id does not resolve, and
        ComicIOError when the file disappeared after the last scan.
        """
        comic = self.get_comic_metadata(raw_id)
        path = resolve_location(comic, self.library_root, raw_id)
        logger.debug(f"Reading {comic.id} from {path}")
        return comic, read_archive_bytes(path)

    def get_comic_bytes(self, raw_id: str) -> bytes:
        _, data = self.open_comic(raw_id)
        return data
