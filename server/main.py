"""
GitRight API Server

Signs developers in with GitHub, analyzes their repositories and writes a
profile README with Gemini (caller-supplied key).

Run with:
    python main.py  (HOST and PORT from the environment)
    uvicorn main:create_app --factory --host 0.0.0.0 --port 8080
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from sqlalchemy.exc import SQLAlchemyError
import uvicorn

from config import Settings, load_settings
from database import build_engine, build_session_factory, init_db
from logging_config import setup_logging
from repositories import cleanup_expired
from routers import auth, github, health, profile, projects
from services.content_generator import ContentGenerator
from services.github_client import GitHubClient

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Content-Security-Policy": "default-src 'self'",
}


# =============================================================================
# BACKGROUND CLEANUP
# =============================================================================

def run_cleanup(session_factory) -> dict[str, int]:
    session = session_factory()
    try:
        return cleanup_expired(session)
    finally:
        session.close()


async def cleanup_loop(app: FastAPI) -> None:
    """Purge expired sessions and caches at startup, then every cleanup_interval seconds."""
    interval = max(app.state.settings.cleanup_interval, 1)
    while True:
        try:
            await asyncio.to_thread(run_cleanup, app.state.session_factory)
        except SQLAlchemyError as e:
            logger.error(f"Expired data cleanup failed: {e}")
        await asyncio.sleep(interval)


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = asyncio.create_task(cleanup_loop(app))
    logger.info("GitRight API started")
    yield
    task.cancel()
    with suppress(asyncio.CancelledError):
        await task
    app.state.engine.dispose()
    logger.info("GitRight API stopped")


# =============================================================================
# APP FACTORY
# =============================================================================

def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    setup_logging(settings.environment, settings.log_level)

    engine = build_engine(settings.database_url)
    init_db(engine)

    app = FastAPI(
        title="GitRight API",
        description="GitHub profile README generator",
        version="1.0.0",
        lifespan=lifespan,
        # Interactive docs only outside production
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        openapi_url=None if settings.is_production else "/openapi.json",
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.github_client = GitHubClient(settings.github)
    app.state.content_generator = ContentGenerator(settings.google_ai)

    # Rate limiting
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[f"{settings.rate_limit_per_minute}/minute"],
    )
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={"detail": "Too many requests. Please try again later."},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        logger.info(f"Invalid request body for {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"detail": "Invalid request body"})

    @app.middleware("http")
    async def security_and_logging(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(elapsed_ms, 1),
            },
        )
        return response

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allowed_origins,
        allow_credentials=True,
        allow_methods=settings.cors.allowed_methods,
        allow_headers=settings.cors.allowed_headers,
    )

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(github.router)
    app.include_router(profile.router)
    app.include_router(projects.router)

    @app.get("/")
    def read_root():
        return {"status": "ok", "message": "GitRight API is running"}

    return app


if __name__ == "__main__":
    settings = load_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
