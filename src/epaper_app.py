"""Web entry point: builds the FastHTML app and serves the e-paper viewer."""

from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

from fasthtml.common import fast_app, serve
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import Response

from epaper_core import __version__
from epaper_core.config_manager import get_config_manager
from epaper_core.logger import get_logger, setup_logging
from epaper_core.services.storage.edition_store import EditionStore
from epaper_ui.routes.api import setup_api_routes
from epaper_ui.routes.editions import setup_editions_routes
from epaper_ui.routes.sitemap import setup_sitemap_routes
from epaper_ui.routes.viewer import setup_viewer_routes

setup_logging()
logger = get_logger(__name__)
config = get_config_manager()


@asynccontextmanager
async def lifespan(app):
    """Create the database schema before the first request."""
    store = EditionStore()
    logger.info(f"🗄️ Edition database: {store.db_path}")
    yield


async def server_error(request: Request, exc: Exception) -> Response:
    """Log unhandled route failures and answer with a generic body."""
    logger.error(f"💥 Unhandled error on [{request.method}] {request.url.path}", exc_info=exc)
    return Response("500 Internal Server Error", status_code=500, media_type="text/plain")


class RequestLogMiddleware(BaseHTTPMiddleware):
    """One log line per request. Page image fetches are logged at DEBUG."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        path = request.url.path or ""
        is_upload = request.method.upper() == "GET" and path.startswith("/uploads/")
        if is_upload:
            logger.debug(f"Upload: [{request.method}] {path}")
        else:
            logger.info(f"🌐 [{request.method}] {path}")
        return await call_next(request)


def _drop_static_route(web_app) -> None:
    # FastHTML's catch-all /{fname:path}.{ext:static} would shadow /index.php,
    # the sitemap and the uploads.
    if web_app.routes and "static_route" in getattr(web_app.routes[0], "name", ""):
        web_app.routes.pop(0)


def _install_middleware(web_app) -> None:
    # Share previews load page images cross-origin; security.allowed_origins narrows it.
    origins = config.data.get("security", {}).get("allowed_origins", ["*"])
    web_app.add_middleware(CORSMiddleware, allow_origins=origins, allow_methods=["GET", "HEAD"], allow_headers=["*"])
    web_app.add_middleware(RequestLogMiddleware)


def _mount_routes(web_app) -> None:
    logger.info("🔧 Registering e-paper routes")
    # uploads and the crop API go before the viewer aliases
    setup_api_routes(web_app)
    setup_viewer_routes(web_app)
    setup_editions_routes(web_app)
    setup_sitemap_routes(web_app)


app, rt = fast_app(pico=False, lifespan=lifespan, exception_handlers={500: server_error})
_drop_static_route(app)
_install_middleware(app)

uploads_root = config.get_public_dir() / "uploads"
uploads_root.mkdir(parents=True, exist_ok=True)
logger.info(f"📂 Uploads directory: {uploads_root}")

_mount_routes(app)


@rt("/health")
def health():
    return {"status": "ok", "version": __version__}


def main():
    """Run the viewer with uvicorn on `server.port`."""
    port = int(config.get_setting("server.port", 8000))
    logger.info(f"🚀 E-Paper viewer on port {port}, public root {config.get_public_dir()}")
    serve(appname="epaper_app", port=port, reload=False)


if __name__ == "__main__":
    main()
