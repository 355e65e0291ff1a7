"""Catalog store: the single owner of the published catalog.

Readers grab the current snapshot reference without locking; a scan result is
published by swapping that one reference. Comics, covers and folder tree
always travel together inside one `Catalog`, so a reader can never pair the
comics of one scan with the covers of another.
"""

from __future__ import annotations

import dataclasses
import threading
from typing import Optional

from .logging_config import get_logger
from .models import Catalog

logger = get_logger(__name__)


class CatalogStore:
    def __init__(self, catalog: Optional[Catalog] = None):
        self._catalog = catalog if catalog is not None else Catalog()
        self._write_lock = threading.Lock()

    def current(self) -> Catalog:
        """Return the published snapshot. Never blocks."""
        return self._catalog

    @property
    def generation(self) -> int:
        return self._catalog.generation

    def replace(self, catalog: Catalog) -> Catalog:
        """Publish a new scan result and return it stamped with its generation."""
        with self._write_lock:
            published = dataclasses.replace(
                catalog, generation=self._catalog.generation + 1
            )
            self._catalog = published
        logger.debug(
            f"Published catalog generation {published.generation} "
            f"({len(published.comics)} comics)"
        )
        return published
