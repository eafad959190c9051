"""
Careers Portal - Main Application

FastAPI backend with:
- PostgreSQL for applications, attachments stored as BYTEA blobs
- Schema reconciliation on startup
- HTTP Basic authentication for the admin surface

Run: uvicorn app.main:app --reload
 or: python -m app.main
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from app import __version__
from app.api.routes import api_router
from app.core.config import get_settings
from app.core.exceptions import register_exception_handlers
from app.core.logging import setup_logging
from app.db.postgres import Database
from app.services.application_repository import ApplicationRepository

settings = get_settings()
setup_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the store handle, reconcile the schema, dispose on shutdown."""
    db = Database.from_settings(settings)
    app.state.db = db
    app.state.repository = ApplicationRepository(db)

    logger.info("Database: %s@%s:%s/%s", settings.db_user, settings.db_host, settings.db_port, settings.db_name)
    # Never fatal: the app serves whatever schema exists
    report = await run_in_threadpool(db.reconcile)
    if not report.ok:
        logger.warning("Schema reconciliation incomplete: %s", report.as_dict())

    yield

    db.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Careers Portal",
        description="""
        Job application intake and admin review.

        ## Features
        - **Submissions**: public multipart/JSON endpoint with CV and cover letter uploads
        - **Admin**: list, inspect, update status, delete (HTTP Basic)
        - **Files**: download or preview stored attachments
        - **Health**: liveness and database checks
        """,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.port)
