"""Tests for identifier resolution."""

from pathlib import Path, PurePosixPath

import pytest

from longbox.errors import ComicNotFoundError, InvalidPathError
from longbox.models import Comic
from longbox.resolver import resolve, resolve_location, split_identifier


def _comic(relative: str) -> Comic:
    return Comic.from_relative_path(PurePosixPath(relative))


def _catalog(*relatives: str) -> dict:
    comics = [_comic(rel) for rel in relatives]
    return {comic.id: comic for comic in comics}


def test_split_identifier():
    assert split_identifier("hero.cbz") == (None, "hero.cbz")
    assert split_identifier("Marvel/X-Men.cbz") == ("Marvel", "X-Men.cbz")
    assert split_identifier("A/B/c.cbz") == ("A/B", "c.cbz")


def test_resolve_exact_key():
    assert resolve("hero.cbz", _catalog("hero.cbz")) == "hero.cbz"


def test_resolve_falls_back_to_decoded_key():
    assert resolve("my%20hero.cbz", _catalog("my hero.cbz")) == "my hero.cbz"


def test_resolve_prefers_literal_over_decoded():
    comics = _catalog("a%20b.cbz", "a b.cbz")
    assert resolve("a%20b.cbz", comics) == "a%20b.cbz"
    assert resolve("a b.cbz", comics) == "a b.cbz"


def test_resolve_discards_folder_hint():
    comics = _catalog("Series/vol1.cbz")
    assert resolve("Series/vol1.cbz", comics) == "vol1.cbz"
    assert resolve("Somewhere/Else/vol1.cbz", comics) == "vol1.cbz"


def test_resolve_missing_raises():
    with pytest.raises(ComicNotFoundError):
        resolve("missing.cbz", _catalog("hero.cbz"))


def test_location_uses_cataloged_folder_path(tmp_path):
    comic = _comic("Marvel/X-Men/issue1.cbz")
    assert resolve_location(comic, tmp_path) == tmp_path / "Marvel" / "X-Men" / "issue1.cbz"


def test_location_ignores_folder_hint(tmp_path):
    comic = _comic("Marvel/issue1.cbz")
    location = resolve_location(comic, tmp_path, raw_id="DC/issue1.cbz")
    assert location == tmp_path / "Marvel" / "issue1.cbz"


def test_location_at_root(tmp_path):
    assert resolve_location(_comic("hero.cbz"), tmp_path) == tmp_path / "hero.cbz"


@pytest.mark.parametrize("folder_path", [("..",), ("A", ""), ("A/B",)])
def test_location_rejects_escaping_components(tmp_path, folder_path):
    comic = _comic("issue1.cbz").model_copy(update={"folder_path": folder_path})
    with pytest.raises(InvalidPathError):
        resolve_location(comic, Path(tmp_path))
