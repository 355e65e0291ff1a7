"""Config management for Longbox.

Reads `config.ini` from DATA_DIR (the project root unless the DATA_DIR env var
says otherwise). `COMICS_DIR` and `SERVER_PASSWORD` env vars override the
library path and the server password, which is how container deployments
configure the server without a config file on a volume.
"""

from __future__ import annotations

import configparser
import dataclasses
import os
import pathlib
import sys
from typing import Optional

from .logging_config import get_logger

logger = get_logger(__name__)


def _get_project_root() -> pathlib.Path:
    if getattr(sys, "frozen", False):
        return pathlib.Path(sys.executable).resolve().parent
    return pathlib.Path(__file__).resolve().parents[1]


PROJECT_ROOT = _get_project_root()

DATA_DIR = pathlib.Path(os.environ.get("DATA_DIR", str(PROJECT_ROOT)))
DEFAULT_CONFIG_PATH = DATA_DIR / "config.ini"

DEFAULT_LIBRARY_PATH = "/comics"
DEFAULT_IGNORE_PATTERNS = ".DS_Store,Thumbs.db,@eaDir"


@dataclasses.dataclass
class LibraryConfig:
    path: pathlib.Path
    name: str = "My Comics"


@dataclasses.dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8000
    password: str = ""


@dataclasses.dataclass
class ScannerConfig:
    ignore_patterns: tuple[str, ...] = (".DS_Store", "Thumbs.db", "@eaDir")


@dataclasses.dataclass
class MonitoringConfig:
    enabled: bool = True
    debounce_seconds: float = 2.0


@dataclasses.dataclass
class LongboxConfig:
    library: LibraryConfig
    server: ServerConfig
    scanner: ScannerConfig
    monitoring: MonitoringConfig

    @property
    def library_path(self) -> pathlib.Path:
        return self.library.path

    @property
    def server_host(self) -> str:
        return self.server.host

    @property
    def server_port(self) -> int:
        return self.server.port

    @property
    def auth_enabled(self) -> bool:
        """Basic auth is required only when a shared password is configured."""
        return bool(self.server.password)


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def load_config(config_path: Optional[pathlib.Path] = None) -> LongboxConfig:
    """Load configuration from config.ini, then apply env overrides.

    Raises FileNotFoundError when the file does not exist.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    parser = configparser.ConfigParser()
    parser.read(path)

    lib_path = os.environ.get("COMICS_DIR") or parser.get(
        "library", "path", fallback=DEFAULT_LIBRARY_PATH
    )
    password = os.environ.get("SERVER_PASSWORD")
    if password is None:
        password = parser.get("server", "password", fallback="")

    return LongboxConfig(
        library=LibraryConfig(
            path=pathlib.Path(lib_path).expanduser(),
            name=parser.get("library", "name", fallback="My Comics"),
        ),
        server=ServerConfig(
            host=parser.get("server", "host", fallback="0.0.0.0"),
            port=parser.getint("server", "port", fallback=8000),
            password=password.strip(),
        ),
        scanner=ScannerConfig(
            ignore_patterns=_split_csv(
                parser.get(
                    "scanner", "ignore_patterns", fallback=DEFAULT_IGNORE_PATTERNS
                )
            ),
        ),
        monitoring=MonitoringConfig(
            enabled=_parse_bool(
                parser.get("monitoring", "enabled", fallback="true"), True
            ),
            debounce_seconds=parser.getfloat(
                "monitoring", "debounce_seconds", fallback=2.0
            ),
        ),
    )


def write_default_config(
    library_path: pathlib.Path,
    library_name: str = "My Comics",
    config_path: Optional[pathlib.Path] = None,
) -> pathlib.Path:
    """Write a config.ini with default settings for the given library."""
    path = config_path or DEFAULT_CONFIG_PATH

    parser = configparser.ConfigParser()
    parser["library"] = {
        "path": str(library_path.expanduser()),
        "name": library_name,
    }
    parser["server"] = {
        "host": "0.0.0.0",
        "port": "8000",
        "password": "",
    }
    parser["scanner"] = {
        "ignore_patterns": DEFAULT_IGNORE_PATTERNS,
    }
    parser["monitoring"] = {
        "enabled": "true",
        "debounce_seconds": "2",
    }

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as handle:
        parser.write(handle)
    logger.debug(f"Wrote config to {path}")
    return path

