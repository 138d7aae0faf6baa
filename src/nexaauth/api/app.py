"""
NexaAuth Registration Service - FastAPI Application

Main entry point for the FastAPI application.
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nexaauth.api.dependencies import app_lifespan
from nexaauth.api.exception_handlers import register_exception_handlers
from nexaauth.api.routes import (
    health_router_root,
    registration_router_root,
    test_router_root,
    users_router_root,
)
from nexaauth.config import AppSettings, get_settings


def create_application(settings: Optional[AppSettings] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=app_lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allow_origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    register_exception_handlers(app, debug=settings.debug)

    app.include_router(health_router_root)
    app.include_router(registration_router_root)
    app.include_router(users_router_root)
    if settings.enable_test_routes:
        app.include_router(test_router_root)

    return app


def main() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "nexaauth.api.app:create_application",
        factory=True,
        host="0.0.0.0",
        port=settings.port,
        reload=not settings.is_production and settings.debug,
    )


if __name__ == "__main__":
    main()
