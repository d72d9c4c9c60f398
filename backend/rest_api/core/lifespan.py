"""
Startup and shutdown of the REST API process.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from shared.config.settings import settings
from shared.config.logging import setup_logging, rest_api_logger as logger
from shared.infrastructure.db import engine, get_db_context
from shared.infrastructure.redis_client import close_redis_sync_client
from rest_api.models import Base
from rest_api.seed import seed_demo


def check_configuration() -> None:
    """
    Log every configuration problem; refuse to start in production if any.
    """
    problems = settings.validate_production_secrets()
    for problem in problems:
        logger.error("Configuration error", error=problem)
    if problems and settings.environment == "production":
        raise RuntimeError("Refusing to start: " + "; ".join(problems))


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    check_configuration()

    # Schema is created in place; there is no migration tool
    Base.metadata.create_all(bind=engine)
    logger.info(
        "REST API started",
        port=settings.rest_api_port,
        env=settings.environment,
        database=engine.url.get_backend_name(),
    )

    if settings.seed_demo_data:
        with get_db_context() as db:
            seed_demo(db)

    yield

    close_redis_sync_client()
    logger.info("REST API stopped")
