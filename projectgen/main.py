import logging
import time
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from sqlalchemy import text
from alembic.config import Config
from alembic import command
from projectgen.core.config import settings
from projectgen.core.logging import configure_logging
from projectgen.core.sandbox import build_deployer
from projectgen.api.routes import router as api_router
from projectgen.db.gateway import build_gateway
from projectgen.db.session import engine
from projectgen.tasks.jobs import GenerationService

configure_logging()
log = logging.getLogger(__name__)


def wait_for_database(max_retries: int = 30, retry_delay: float = 1.0) -> None:
    """Wait for the database to be available."""
    for attempt in range(max_retries):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            log.info("Database connection successful")
            return
        except Exception as e:
            if attempt < max_retries - 1:
                log.warning("Database not ready, retrying in %s seconds (attempt %d/%d): %s",
                            retry_delay, attempt + 1, max_retries, e)
                time.sleep(retry_delay)
            else:
                log.error("Database connection failed after %d attempts", max_retries)
                raise


def run_migrations() -> None:
    """Run Alembic migrations to head."""
    try:
        log.info("Running database migrations...")
        alembic_cfg = Config("alembic.ini")
        command.upgrade(alembic_cfg, "head")
        log.info("Database migrations completed successfully")
    except Exception as e:
        log.error("Database migration failed: %s", e, exc_info=True)
        raise


def build_service() -> GenerationService:
    return GenerationService(
        gateway=build_gateway(settings.storage_backend),
        deployer=build_deployer(),
    )


def create_app(service: Optional[GenerationService] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        log.info("Starting API server...")
        try:
            if service is None and settings.storage_backend == "sql":
                wait_for_database()
                run_migrations()
            app.state.service = service or build_service()
            log.info("API server startup complete (storage=%s)", settings.storage_backend)
        except Exception as e:
            log.error("API startup failed: %s", e, exc_info=True)
            raise
        yield
        log.info("Shutting down API server...")
        await app.state.service.shutdown()

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        lifespan=lifespan
    )
    app.include_router(api_router, prefix="/v1")
    return app


app = create_app()
