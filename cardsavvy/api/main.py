"""FastAPI application factory"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import Response

from cardsavvy.api.dependencies import get_request_id
from cardsavvy.api.middleware import RequestIDMiddleware, MetricsMiddleware
from cardsavvy.api.routes import admin, auth, cards, catalog, chat, profile, recommendations
from cardsavvy.config import Settings, settings as default_settings
from cardsavvy.domain.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    StorageError,
    UpstreamServiceError,
    ValidationError,
)
from cardsavvy.domain.ports import LLMClient, VectorStore
from cardsavvy.infrastructure.clients.llm import OpenAIClient
from cardsavvy.infrastructure.clients.vector_store import PineconeClient
from cardsavvy.infrastructure.observability.logging import setup_logging
from cardsavvy.infrastructure.storage.base import Storage
from cardsavvy.infrastructure.storage.factory import create_storage

# Setup structured logging
setup_logging(default_settings.log_level)


def _register_error_handlers(app: FastAPI) -> None:
    """Map the domain exception taxonomy to HTTP responses"""

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"message": exc.message, "errors": exc.errors})

    @app.exception_handler(AuthenticationError)
    async def authentication_error(request: Request, exc: AuthenticationError):
        return JSONResponse(status_code=401, content={"message": exc.message})

    @app.exception_handler(NotFoundError)
    async def not_found_error(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"message": exc.message})

    @app.exception_handler(ConflictError)
    async def conflict_error(request: Request, exc: ConflictError):
        return JSONResponse(status_code=400, content={"message": exc.message})

    @app.exception_handler(UpstreamServiceError)
    async def upstream_error(request: Request, exc: UpstreamServiceError):
        logging.error(f"Upstream service error: {exc}", extra={"request_id": get_request_id(request)})
        return JSONResponse(status_code=503, content={"message": "Upstream service unavailable"})

    @app.exception_handler(StorageError)
    async def storage_error(request: Request, exc: StorageError):
        logging.error(f"Storage error: {exc}", extra={"request_id": get_request_id(request)})
        return JSONResponse(status_code=500, content={"message": "Internal server error"})

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logging.exception(f"Unexpected error: {exc}", extra={"request_id": get_request_id(request)})
        return JSONResponse(status_code=500, content={"message": "Internal server error"})


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[Storage] = None,
    llm: Optional[LLMClient] = None,
    vector_store: Optional[VectorStore] = None,
) -> FastAPI:
    """Create and configure FastAPI application; collaborators default to configured ones"""
    settings = settings or default_settings

    app = FastAPI(
        title="CardSavvy Gateway",
        description="Credit card recommendations, travel and shopping deals, and card concierge chat",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.storage = storage or create_storage(settings)
    app.state.llm = llm or OpenAIClient(api_key=settings.openai_api_key)
    app.state.vector_store = vector_store or PineconeClient(api_key=settings.pinecone_api_key)

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        max_age=settings.session_max_age_seconds,
        https_only=settings.session_https_only,
        same_site="lax",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    _register_error_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(auth.router, prefix="/api", tags=["auth"])
    app.include_router(cards.router, prefix="/api", tags=["cards"])
    app.include_router(catalog.router, prefix="/api", tags=["catalog"])
    app.include_router(profile.router, prefix="/api", tags=["financial-profile"])
    app.include_router(recommendations.router, prefix="/api", tags=["recommendations"])
    app.include_router(chat.router, prefix="/api", tags=["chat"])
    app.include_router(admin.router, prefix="/api", tags=["admin"])

    return app


app = create_app()
