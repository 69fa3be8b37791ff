"""FastAPI application entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hiremind import __version__
from hiremind.config import app_env, database_url, get_env, get_settings, upload_dir
from hiremind.db import init_db
from hiremind.errors import HireMindError
from hiremind.log import get_logger
from hiremind.orchestrator import ClustererFactory, RecommendationService
from hiremind.resume_parser import parse_resume as default_parse_resume
from hiremind.sources import ListingSource, get_source

log = get_logger(__name__)

_DEFAULT_ORIGINS = "http://localhost:3000,http://localhost:5173"


def _error_body(message: str, details: Any = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "message": message}
    if details is not None and app_env() == "development":
        body["details"] = details
    return body


def create_app(
    settings: dict[str, Any] | None = None,
    source: ListingSource | None = None,
    clusterer_factory: ClustererFactory | None = None,
    db_url: str | None = None,
    parse_resume: Callable[..., dict[str, Any]] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Every collaborator can be swapped out; the defaults read settings.yaml and
    the environment.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db(db_url or database_url())
        upload_dir().mkdir(parents=True, exist_ok=True)
        log.info(
            "HireMind API started (env=%s, source=%s, workers=%d)",
            app_env(), type(app.state.service.source).__name__, settings["max_workers"],
        )
        yield
        log.info("Shutting down HireMind API.")

    app = FastAPI(
        title="HireMind API",
        description="Resume-driven job recommendations aggregated across skill clusters and locations.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.service = RecommendationService(
        source or get_source(settings), settings, clusterer_factory=clusterer_factory
    )
    app.state.parse_resume = parse_resume or default_parse_resume

    origins = [o.strip() for o in get_env("CORS_ORIGINS", _DEFAULT_ORIGINS).split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Error mapping ─────────────────────────────────────────────────────

    @app.exception_handler(HireMindError)
    async def hiremind_error(request: Request, exc: HireMindError):
        if exc.status_code >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.details))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        messages = []
        for err in exc.errors():
            field = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
            messages.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Validation error", "errors": messages},
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        log.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=_error_body("Internal server error", str(exc)))

    # ── Routes ────────────────────────────────────────────────────────────

    from hiremind.api.routes import admin, auth, jobs, resume
    app.include_router(auth.router, prefix="/api")
    app.include_router(resume.router, prefix="/api")
    app.include_router(jobs.router, prefix="/api")
    app.include_router(admin.router, prefix="/api")

    @app.get("/")
    async def root():
        return {
            "name": "HireMind API",
            "version": __version__,
            "docs": "/docs",
            "health": "/api/health",
        }

    @app.get("/api/health")
    async def health():
        return {"success": True, "status": "ok", "env": app_env()}

    return app


# For uvicorn direct run
app = create_app()
