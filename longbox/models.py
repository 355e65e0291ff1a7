"""Catalog data models for Longbox.

`Comic` and `FolderNode` are frozen pydantic models so the HTTP layer can
serialize them directly; the wire names (`name`, `path`) are the ones web
clients already read. `Catalog` is the immutable snapshot produced by one
scan.
"""

from __future__ import annotations

import dataclasses
from pathlib import PurePosixPath
from typing import Mapping, Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field

ROOT_FOLDER_NAME = "root"


class _CatalogModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Comic(_CatalogModel):
    id: str
    display_name: str = Field(alias="name")
    file_name: str
    public_path: str = Field(alias="path")
    folder_path: tuple[str, ...] = ()
    series: Optional[str] = None

    @classmethod
    def from_relative_path(cls, relative_path: PurePosixPath) -> "Comic":
        """Build the record for a file given its path relative to the library root."""
        file_name = relative_path.name
        folder_path = tuple(relative_path.parent.parts)
        return cls(
            id=file_name,
            display_name=relative_path.stem,
            file_name=file_name,
            public_path=public_path_for(file_name),
            folder_path=folder_path,
            series=folder_path[-1] if folder_path else None,
        )

    @property
    def relative_path(self) -> PurePosixPath:
        return PurePosixPath(*self.folder_path, self.file_name)

    def matches_search(self, query: str) -> bool:
        """Case-insensitive substring match on name, series, or any folder."""
        needle = query.lower()
        if needle in self.display_name.lower():
            return True
        if self.series is not None and needle in self.series.lower():
            return True
        return any(needle in folder.lower() for folder in self.folder_path)


class FolderNode(_CatalogModel):
    name: str
    path: tuple[str, ...] = ()
    comics: tuple[Comic, ...] = ()
    subfolders: tuple["FolderNode", ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.comics and not self.subfolders

    def find(self, parts: tuple[str, ...]) -> Optional["FolderNode"]:
        """Return the descendant reached by following folder names, if kept."""
        node: FolderNode = self
        for part in parts:
            node = next((sub for sub in node.subfolders if sub.name == part), None)
            if node is None:
                return None
        return node

    def shape(self) -> tuple:
        """Nested (name, comic ids, subfolder shapes) tuple for equality checks."""
        return (
            self.name,
            tuple(comic.id for comic in self.comics),
            tuple(sub.shape() for sub in self.subfolders),
        )


def public_path_for(file_name: str) -> str:
    return "/comics/" + quote(file_name, safe="")


def empty_root() -> FolderNode:
    return FolderNode(name=ROOT_FOLDER_NAME)


@dataclasses.dataclass(frozen=True)
class DroppedFile:
    """A `.cbz` file left out of a catalog, with the reason it was dropped."""

    path: str
    reason: str


@dataclasses.dataclass(frozen=True)
class Catalog:
    """One scan generation: comics, covers and folder tree.

    Instances are never mutated after construction. `generation` is 0 until
    the catalog is published by a `CatalogStore`.
    """

    comics: Mapping[str, Comic] = dataclasses.field(default_factory=dict)
    covers: Mapping[str, bytes] = dataclasses.field(default_factory=dict)
    root: FolderNode = dataclasses.field(default_factory=empty_root)
    dropped: tuple[DroppedFile, ...] = ()
    generation: int = 0

    def folder_count(self) -> int:
        count = 0
        stack = list(self.root.subfolders)
        while stack:
            node = stack.pop()
            count += 1
            stack.extend(node.subfolders)
        return count
