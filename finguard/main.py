import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from finguard.config import Settings, settings as default_settings
from finguard.errors import (
    InternalError,
    internal_error_handler,
    request_validation_handler,
)
from finguard.logging import configure_json_logging
from finguard.middleware.request_logging import RequestLogMiddleware
from finguard.providers.google_ai import GoogleAiClient
from finguard.routers import health, insights, intervention, metrics
from finguard.services.narrative import NarrativeRewriter
from finguard.version import __version__

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    s: Settings = app.state.settings
    client = GoogleAiClient.from_settings(s)
    app.state.provider = client
    app.state.narrative = NarrativeRewriter.from_settings(s, client)
    if client is None:
        logger.info("narrative provider not configured; rule-engine only")
    else:
        logger.info("narrative provider enabled model=%s", client.model)
    try:
        yield
    finally:
        if client is not None:
            await client.aclose()
        app.state.provider = None
        app.state.narrative = None


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    s = settings or default_settings
    configure_json_logging(s.LOG_LEVEL, json_output=s.LOG_JSON)

    app = FastAPI(
        title="Finguard",
        version=__version__,
        openapi_url="/openapi.json",
        docs_url="/docs",
        lifespan=lifespan,
    )
    app.state.settings = s

    app.add_middleware(RequestLogMiddleware)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(InternalError, internal_error_handler)

    app.include_router(intervention.router)
    app.include_router(insights.router)
    app.include_router(health.router)
    app.include_router(metrics.router)
    return app


app = create_app()
