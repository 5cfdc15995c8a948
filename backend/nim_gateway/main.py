from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nim_gateway.api.internal import health
from nim_gateway.api.v1 import chat, models
from nim_gateway.core.config import Settings, get_settings
from nim_gateway.core.exceptions import GatewayError, gateway_exception_handler
from nim_gateway.core.logging import configure_logging, get_logger
from nim_gateway.gateway.service import TranslationGateway
from nim_gateway.middleware.errors import ErrorEnvelopeMiddleware
from nim_gateway.middleware.request_id import RequestIdMiddleware
from nim_gateway.providers.base import BaseProvider
from nim_gateway.providers.nvidia import NvidiaProvider

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    configure_logging(settings.log_level, json_output=not settings.is_development)

    logger.info("startup", env=settings.app_env, upstream=settings.nvidia_base_url)

    provider = app.state.provider or NvidiaProvider(settings)
    app.state.gateway = TranslationGateway(settings, provider)

    if not provider.configured:
        # The server still starts; completion requests fail until configured
        logger.warning("upstream_credential_missing", env_var="NVIDIA_API_KEY")

    logger.info(
        "components_ready",
        provider=provider.provider_name,
        default_model=settings.default_model,
        stream_chunk_size=settings.stream_chunk_size,
    )

    yield

    await provider.aclose()
    logger.info("shutdown")


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[BaseProvider] = None,
) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="NIM Translation Gateway",
        description="OpenAI-compatible proxy in front of the NVIDIA NIM API",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # Injected here, read by the lifespan and the route dependencies
    app.state.settings = settings
    app.state.provider = provider

    # Last added is outermost: CORS → request id → error envelope → routes
    app.add_middleware(ErrorEnvelopeMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["X-Request-Id"],
    )

    app.add_exception_handler(GatewayError, gateway_exception_handler)

    # Routes: OpenAI-compatible
    app.include_router(models.router, prefix="/v1")
    app.include_router(models.router)
    app.include_router(chat.router)

    # Routes: liveness
    app.include_router(health.router)

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
