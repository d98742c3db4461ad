"""FastAPI application entry point for the social feed service."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from socialfeed import __version__
from socialfeed.api import composer_router, social_router
from socialfeed.backend import BackendClient, BackendError, RetryConfig
from socialfeed.composer import ComposerStore
from socialfeed.config import get_settings
from socialfeed.errors import InvalidState, SubmissionFailed, UserNotFound
from socialfeed.observability import configure_audit_logging

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.value),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    current = get_settings()
    logger.info("Starting social-feed v%s", __version__)
    logger.info("Backend URL: %s", current.backend_url)

    configure_audit_logging(current.audit_log_level)

    if not current.backend_api_key:
        logger.warning("No backend API key configured; requests will be anonymous")

    app.state.backend = BackendClient(
        base_url=current.backend_url,
        api_key=current.backend_api_key,
        timeout=current.request_timeout,
        retry_config=RetryConfig(
            max_attempts=current.retry_attempts,
            base_delay_ms=current.retry_backoff_ms,
        ),
        image_bucket=current.image_bucket,
    )
    app.state.composer_store = ComposerStore(
        timeout_minutes=current.composer_timeout_min,
        max_images=current.max_images_per_post,
    )
    logger.info(
        "Composer store initialized (timeout=%d minutes)",
        current.composer_timeout_min,
    )

    yield

    # Cleanup
    if getattr(app.state, "composer_store", None) is not None:
        app.state.composer_store.clear()
    if getattr(app.state, "backend", None) is not None:
        await app.state.backend.close()
    logger.info("Shutting down social-feed")


app = FastAPI(
    title="Social Feed",
    description="Post composer, feed and follow graph over a hosted backend",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(composer_router)
app.include_router(social_router)


@app.exception_handler(InvalidState)
async def invalid_state_handler(request: Request, exc: InvalidState) -> JSONResponse:
    logger.warning("Invalid state on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(SubmissionFailed)
async def submission_failed_handler(request: Request, exc: SubmissionFailed) -> JSONResponse:
    content = {"detail": str(exc)}
    if exc.post_id is not None:
        content["post_id"] = exc.post_id
    return JSONResponse(status_code=502, content=content)


@app.exception_handler(UserNotFound)
async def user_not_found_handler(request: Request, exc: UserNotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.get("/", response_class=JSONResponse)
async def root() -> dict:
    """API metadata endpoint."""
    return {
        "name": "social-feed",
        "version": __version__,
        "description": "Post composer, feed and follow graph over a hosted backend",
    }


@app.get("/health/live", response_class=JSONResponse)
async def liveness() -> dict:
    """Kubernetes liveness probe endpoint."""
    return {"status": "ok"}


@app.get("/health/ready", response_class=JSONResponse)
async def readiness() -> JSONResponse:
    """Kubernetes readiness probe endpoint."""
    if getattr(app.state, "backend", None) is None:
        return JSONResponse(
            status_code=503,
            content={"status": "not ready", "reason": "backend client not initialized"},
        )
    return JSONResponse(content={"status": "ok"})


@app.post("/admin/cleanup-composers", response_class=JSONResponse)
async def cleanup_composers() -> JSONResponse:
    """Drop composer sessions that have been idle past their timeout."""
    store = getattr(app.state, "composer_store", None)
    removed = store.cleanup_expired() if store is not None else 0
    return JSONResponse(content={"status": "ok", "removed": removed})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "socialfeed.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
    )
