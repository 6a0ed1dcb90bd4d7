from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from swatch_proxy.config import ConfigurationError, Settings, get_settings
from swatch_proxy.routers import swatches
from swatch_proxy.routers.swatches import GENERIC_FAILURE_MESSAGE, SwatchCollectionTimeout
from swatch_proxy.shopify_api import ShopifyApiError, ShopifyGraphQLError

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(title="Swatch Proxy", default_response_class=ORJSONResponse)
    app.state.settings = settings

    if settings.CORS_ENABLED:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ALLOW_ORIGINS,
            allow_methods=["GET", "OPTIONS"],
            allow_headers=["Content-Type"],
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(_request: Request, exc: ConfigurationError) -> ORJSONResponse:
        logger.error("swatches.configuration_error", extra={"error": str(exc)})
        return ORJSONResponse(status_code=500, content={"error": str(exc)})

    @app.exception_handler(ShopifyGraphQLError)
    async def graphql_error_handler(_request: Request, exc: ShopifyGraphQLError) -> ORJSONResponse:
        logger.error("swatches.fetch_failed", extra={"errors": exc.errors})
        return ORJSONResponse(status_code=500, content={"error": exc.errors})

    @app.exception_handler(ShopifyApiError)
    async def shopify_api_error_handler(_request: Request, exc: ShopifyApiError) -> ORJSONResponse:
        logger.error(
            "swatches.upstream_failed",
            extra={"error": str(exc), "upstream_status_code": exc.status_code},
        )
        return ORJSONResponse(status_code=500, content={"error": GENERIC_FAILURE_MESSAGE})

    @app.exception_handler(SwatchCollectionTimeout)
    async def collection_timeout_handler(_request: Request, exc: SwatchCollectionTimeout) -> ORJSONResponse:
        logger.error("swatches.deadline_exceeded", extra={"deadline_seconds": exc.deadline_seconds})
        return ORJSONResponse(status_code=500, content={"error": GENERIC_FAILURE_MESSAGE})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception("Unhandled server exception", exc_info=exc)
        return ORJSONResponse(status_code=500, content={"error": GENERIC_FAILURE_MESSAGE})

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    app.include_router(swatches.router)

    return app


app = create_app()
