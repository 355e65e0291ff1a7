"""FastAPI server for Longbox.

Exposes:
- GET  /auth/check
- GET  /comics?search=          (password protected)
- GET  /folders                 (password protected)
- GET  /comics/{comic_id}       raw CBZ bytes
- GET  /covers/{comic_id}       cover image bytes
- POST /rescan                  (password protected)

Comic and cover downloads stay open because browsers load them through plain
<img>/<a> tags that cannot attach an Authorization header.
"""

from __future__ import annotations

import asyncio
import hmac
import logging
import os
from contextlib import asynccontextmanager
from typing import List, Optional
from urllib.parse import quote

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from starlette.middleware.base import BaseHTTPMiddleware

from .archive import cover_media_type
from .config import LongboxConfig
from .errors import ComicIOError, ComicNotFoundError, InvalidPathError, ScanError
from .logging_config import get_logger
from .models import Comic, FolderNode
from .monitor import MonitorTask, RescanDispatcher
from .service import ComicService

logger = get_logger(__name__)

_basic_auth = HTTPBasic(auto_error=False)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log the first client that connects, with full URL for debugging."""

    async def dispatch(self, request, call_next):
        if not getattr(request.app.state, "logged_first_request", False):
            user_agent = request.headers.get("user-agent", "")
            client_name = user_agent.split("/")[0] if user_agent else "unknown"
            client_ip = request.client.host if request.client else "unknown"
            logging.getLogger("longbox.request").info(
                'client_connected="%s" ip="%s" url="%s %s" ua="%s"'
                % (client_name, client_ip, request.method, str(request.url), user_agent)
            )
            request.app.state.logged_first_request = True
        return await call_next(request)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    async def _print_startup_messages():
        await asyncio.sleep(0.1)
        service: ComicService = app.state.service
        catalog = service.store.current()
        logger.info("Started server process [" + str(os.getpid()) + "]")
        logger.info(
            f"Serving {len(catalog.comics)} comics from {service.library_root}"
        )
        if app.state.dispatcher is not None:
            logger.info("File monitoring enabled")
        if app.state.config.auth_enabled:
            logger.info("Password protection enabled")

    asyncio.create_task(_print_startup_messages())
    yield


def require_password(
    request: Request,
    credentials: Optional[HTTPBasicCredentials] = Depends(_basic_auth),
) -> None:
    """Basic auth guard. Only the password is checked; the username is ignored."""
    config: LongboxConfig = request.app.state.config
    if not config.auth_enabled:
        return
    if credentials is None or not hmac.compare_digest(
        credentials.password.encode("utf-8"),
        config.server.password.encode("utf-8"),
    ):
        raise HTTPException(
            status_code=401,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )


def _content_disposition(filename: str) -> str:
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'


def create_app(
    service: ComicService,
    config: LongboxConfig,
    dispatcher: Optional[RescanDispatcher] = None,
) -> FastAPI:
    """Build the API around an already constructed service."""
    app = FastAPI(title="Longbox", lifespan=_lifespan)
    app.state.service = service
    app.state.config = config
    app.state.dispatcher = dispatcher

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["Content-Length", "Content-Type", "Content-Disposition"],
        max_age=86400,
    )

    @app.exception_handler(ComicNotFoundError)
    async def _not_found(request: Request, exc: ComicNotFoundError):
        return JSONResponse(status_code=404, content={"detail": "Comic not found"})

    @app.exception_handler(InvalidPathError)
    async def _invalid_path(request: Request, exc: InvalidPathError):
        return JSONResponse(status_code=400, content={"detail": "Invalid path"})

    @app.exception_handler(ComicIOError)
    async def _io_error(request: Request, exc: ComicIOError):
        logger.error(f"✗ {request.url.path} - {exc}")
        return JSONResponse(status_code=500, content={"detail": "Unable to read comic"})

    @app.get("/favicon.ico", include_in_schema=False)
    def favicon() -> Response:
        return Response(status_code=204)

    @app.get("/auth/check")
    def check_auth() -> dict:
        return {"requires_password": config.auth_enabled}

    @app.get(
        "/comics",
        response_model=List[Comic],
        dependencies=[Depends(require_password)],
    )
    def list_comics(search: Optional[str] = None):
        if search is None:
            return service.list_all()
        return service.search(search)

    @app.get(
        "/folders",
        response_model=FolderNode,
        dependencies=[Depends(require_password)],
    )
    def get_folders():
        return service.folder_tree()

    @app.get("/comics/{comic_id:path}")
    def get_comic(comic_id: str) -> Response:
        comic, data = service.open_comic(comic_id)
        return Response(
            content=data,
            media_type="application/zip",
            headers={"Content-Disposition": _content_disposition(comic.file_name)},
        )

    @app.get("/covers/{comic_id:path}")
    def get_cover(comic_id: str) -> Response:
        data = service.get_cover_bytes(comic_id)
        return Response(content=data, media_type=cover_media_type(data))

    @app.post("/rescan", dependencies=[Depends(require_password)])
    def rescan():
        if dispatcher is not None:
            dispatcher.request(MonitorTask("requested", service.library_root))
            return JSONResponse(status_code=202, content={"status": "scheduled"})
        try:
            catalog = service.rescan()
        except ScanError as exc:
            logger.error(f"Rescan failed, keeping previous catalog: {exc}")
            raise HTTPException(status_code=503, detail="Library root unreadable")
        return {
            "status": "completed",
            "generation": catalog.generation,
            "comics": len(catalog.comics),
        }

    return app


class _SuccessfulAccessFilter(logging.Filter):
    """Hide access log lines for successful requests; keep 4xx/5xx visible."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            msg = record.getMessage()
        except Exception:
            return True
        return not any(code in msg for code in ('" 200', '" 202', '" 204', '" 304'))


def run_server(app: FastAPI, host: str, port: int) -> None:
    """Run the app with Uvicorn, logging through our own handlers."""
    import uvicorn

    logging.getLogger("uvicorn.access").addFilter(_SuccessfulAccessFilter())

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info",
        log_config=None,
    )
