"""Tests for the comic service operations."""

import threading

import pytest

from longbox.errors import ComicIOError, ComicNotFoundError, ScanError
from longbox.service import ComicService


@pytest.fixture
def service(library, make_cbz):
    make_cbz(library / "hero.cbz")
    make_cbz(library / "SeriesA" / "issue1.cbz")
    make_cbz(library / "Indie" / "Zine Vol 2.cbz")
    svc = ComicService(library)
    svc.rescan()
    return svc


def test_list_all_is_sorted(service):
    assert [c.id for c in service.list_all()] == ["Zine Vol 2.cbz", "hero.cbz", "issue1.cbz"]


def test_search_matches_folder_case_insensitively(service):
    assert [c.id for c in service.search("seriesa")] == ["issue1.cbz"]


def test_search_matches_display_name_and_series(service):
    assert [c.id for c in service.search("HERO")] == ["hero.cbz"]
    assert [c.id for c in service.search("indie")] == ["Zine Vol 2.cbz"]
    assert service.search("nothing-like-this") == []
    assert len(service.search("")) == 3


def test_get_comic_bytes_missing_raises_not_found(service):
    with pytest.raises(ComicNotFoundError):
        service.get_comic_bytes("missing.cbz")


def test_get_comic_bytes_reads_file(service, library):
    data = service.get_comic_bytes("issue1.cbz")
    assert data == (library / "SeriesA" / "issue1.cbz").read_bytes()


def test_get_comic_bytes_accepts_encoded_id_and_folder_hint(service, library):
    expected = (library / "Indie" / "Zine Vol 2.cbz").read_bytes()
    assert service.get_comic_bytes("Zine%20Vol%202.cbz") == expected
    assert service.get_comic_bytes("Wrong%20Folder/Zine%20Vol%202.cbz") == expected


def test_vanished_file_raises_io_error(service, library):
    (library / "hero.cbz").unlink()
    with pytest.raises(ComicIOError):
        service.get_comic_bytes("hero.cbz")
    # Still cataloged until the next scan
    assert service.get_comic_metadata("hero.cbz").id == "hero.cbz"


def test_get_cover_bytes(service, image_bytes):
    assert service.get_cover_bytes("hero.cbz") == image_bytes()
    with pytest.raises(ComicNotFoundError):
        service.get_cover_bytes("missing.cbz")


def test_failed_rescan_keeps_previous_catalog(service, library, tmp_path):
    before = service.store.current()
    library.rename(tmp_path / "moved-away")

    with pytest.raises(ScanError):
        service.rescan()

    assert service.store.current() is before
    assert len(service.list_all()) == 3


def test_rescan_picks_up_changes(service, library, make_cbz):
    make_cbz(library / "new.cbz")
    (library / "hero.cbz").unlink()

    catalog = service.rescan()

    assert catalog.generation == 2
    assert {c.id for c in service.list_all()} == {"new.cbz", "issue1.cbz", "Zine Vol 2.cbz"}


def test_listing_during_rescans_is_consistent(service, library, make_cbz):
    stop = threading.Event()
    failures = []

    def _reader():
        while not stop.is_set():
            catalog = service.store.current()
            if set(catalog.comics) != set(catalog.covers):
                failures.append(catalog.generation)

    reader = threading.Thread(target=_reader)
    reader.start()
    for index in range(10):
        make_cbz(library / "Burst" / f"b{index}.cbz")
        service.rescan()
    stop.set()
    reader.join(5)

    assert failures == []
    assert len(service.list_all()) == 13
