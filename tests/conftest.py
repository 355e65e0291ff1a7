import io
import zipfile
from pathlib import Path

import pytest
from PIL import Image

from longbox.config import LibraryConfig, LongboxConfig, MonitoringConfig, ScannerConfig, ServerConfig


def _image_bytes(fmt: str = "PNG", color: str = "red") -> bytes:
    img = Image.new("RGB", (10, 10), color=color)
    img_bytes = io.BytesIO()
    img.save(img_bytes, format=fmt)
    return img_bytes.getvalue()


@pytest.fixture
def image_bytes():
    """Return a factory producing tiny encoded images (PNG by default)."""
    return _image_bytes


@pytest.fixture
def make_cbz():
    """Write a CBZ at `path` with the given (name, data) entries, in order.

    Without entries, the archive holds a single PNG page.
    """

    def _make(path: Path, entries=None) -> Path:
        if entries is None:
            entries = [("page001.png", _image_bytes())]
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, "w") as zf:
            for name, data in entries:
                zf.writestr(name, data)
        return path

    return _make


@pytest.fixture
def library(tmp_path) -> Path:
    library_path = tmp_path / "comics"
    library_path.mkdir()
    return library_path


@pytest.fixture
def make_config(library):
    def _make(password: str = "", monitoring: bool = False) -> LongboxConfig:
        return LongboxConfig(
            library=LibraryConfig(path=library, name="Test Library"),
            server=ServerConfig(password=password),
            scanner=ScannerConfig(),
            monitoring=MonitoringConfig(enabled=monitoring, debounce_seconds=0.1),
        )

    return _make
