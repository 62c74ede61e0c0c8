import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sitecms.config import settings
from sitecms.database import engine, init_models
from sitecms.exception_handlers import register_exception_handlers
from sitecms.middleware.admin_gate import AdminGateMiddleware
from sitecms.middleware.logging import StructuredLoggingMiddleware, setup_structured_logging
from sitecms.middleware.rate_limit import configure_rate_limiting
from sitecms.middleware.security_headers import SecurityHeadersMiddleware
from sitecms.routes import (
    admin,
    auth,
    content,
    content_types,
    form_submissions,
    health,
    media,
    users,
    webhooks,
    website,
)

setup_structured_logging(log_level=settings.log_level, json_format=settings.json_logs)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant headless CMS backend",
        debug=settings.debug,
        version=settings.app_version,
    )

    # Last added is outermost
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(AdminGateMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(StructuredLoggingMiddleware)

    register_exception_handlers(app)
    configure_rate_limiting(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(content_types.router)
    app.include_router(content.router)
    app.include_router(form_submissions.router)
    app.include_router(media.router)
    app.include_router(users.router)
    app.include_router(webhooks.router)
    app.include_router(website.router)
    app.include_router(admin.router)

    if settings.debug:
        logger.info(f"Running in {settings.environment} mode")
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

    @app.on_event("startup")
    async def startup_event():
        logger.info("Starting up the application...")
        # Postgres schemas are managed by Alembic
        if settings.is_sqlite:
            await init_models()
            logger.info("Database tables created (if not existing).")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Shutting down the application...")
        await engine.dispose()

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.debug)
