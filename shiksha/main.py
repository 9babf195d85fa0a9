"""
Nabha Shiksha: Main Application
FastAPI app. Mounts routers, CORS/gzip, serves the built web client.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from shiksha import __version__
from shiksha.app_context import AppContext
from shiksha.config import CORS_ORIGINS, ENVIRONMENT, SERVICE_NAME, WEB_DIR, configure_logging
from shiksha.errors import ApiError
from shiksha.routers import ai, content, user, timestamp

logger = logging.getLogger("shiksha")


# ─── Lifespan (startup/shutdown) ─────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info(f"{SERVICE_NAME} v{__version__} ready ({ENVIRONMENT})")
    yield
    logger.info("Shutting down")
    await app.state.ctx.shutdown()


# ─── Error Handlers ──────────────────────────────────────────────────────────

async def _api_error(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.error, "message": exc.message})


async def _http_error(request: Request, exc: StarletteHTTPException):
    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": detail, "message": detail},
        headers=getattr(exc, "headers", None),
    )


async def _unhandled(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    message = str(exc) if ENVIRONMENT == "development" else "Internal server error"
    return JSONResponse(status_code=500, content={"error": "Something went wrong!", "message": message})


# ─── App ─────────────────────────────────────────────────────────────────────

def create_app(context: Optional[AppContext] = None, web_dir: Optional[Path] = None) -> FastAPI:
    app = FastAPI(
        title=SERVICE_NAME,
        description="Punjabi voice-first learning assistant for rural students",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.ctx = context or AppContext.create()

    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ApiError, _api_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(Exception, _unhandled)

    app.include_router(ai.router)
    app.include_router(content.router)
    app.include_router(user.router)

    @app.get("/api/health")
    async def health():
        return {"status": "OK", "timestamp": timestamp(), "service": SERVICE_NAME}

    _mount_web(app, Path(web_dir) if web_dir is not None else WEB_DIR)
    return app


def _mount_web(app: FastAPI, web_dir: Path) -> None:
    """Serve the built client; every non-API path falls through to index.html."""
    index = web_dir / "index.html"
    if not index.exists():
        logger.info(f"No web build at {web_dir}, serving API only")
        return

    static_dir = web_dir / "static"
    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    @app.get("/{full_path:path}", include_in_schema=False)
    async def serve_client(full_path: str):
        if full_path.startswith("api/") or full_path == "api":
            raise ApiError(404, "Not found", "API endpoint does not exist")
        candidate = (web_dir / full_path).resolve()
        if full_path and candidate.is_file() and web_dir.resolve() in candidate.parents:
            return FileResponse(str(candidate))
        return FileResponse(str(index))


app = create_app()
