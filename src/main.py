"""FastAPI application entry point for the transaction gate."""

import contextlib
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from src.api.middleware.error_handler import global_exception_handler
from src.api.middleware.logging import StructuredLoggingMiddleware
from src.api.routes.aml import router as aml_router
from src.api.routes.fraud import router as fraud_router
from src.api.routes.gate import router as gate_router
from src.api.routes.health import router as health_router
from src.api.routes.limits import router as limits_router
from src.api.routes.pin import router as pin_router
from src.api.routes.risk import router as risk_router
from src.api.routes.sca import router as sca_router
from src.config import settings
from src.db.database import dispose_db, init_db
from src.domains.sca.delivery import KafkaCodeDelivery
from src.shared.audit import AuditEmitter
from src.shared.errors import GateError
from src.shared.kafka_utils import create_producer, stop_producer
from src.shared.logging import setup_logging

logger = structlog.get_logger()

# Track app start time for uptime calculation
APP_START_TIME: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown logic."""
    global APP_START_TIME
    APP_START_TIME = time.time()
    setup_logging(settings.log_level, json_output=settings.log_json)

    logger.info(
        "gate_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
    )

    await init_db()

    # Audit events always go to the log; Kafka publishing is optional
    producer = None
    if settings.audit_publish_enabled:
        try:
            producer = await create_producer(
                settings.kafka_bootstrap_servers, client_id=settings.app_name
            )
        except Exception:
            logger.warning("kafka_producer_failed_to_start", exc_info=True)
            producer = None

    app.state.audit = AuditEmitter(producer=producer, topic=settings.audit_topic)
    app.state.code_delivery = (
        KafkaCodeDelivery(producer, settings.sca_delivery_topic) if producer is not None else None
    )

    yield

    with contextlib.suppress(Exception):
        await stop_producer(producer)
    await dispose_db()
    logger.info("gate_shutting_down")


app = FastAPI(
    title="Transaction Gate",
    description="Risk scoring, AML monitoring, limits and step-up authorization for money movement",
    version=settings.app_version,
    lifespan=lifespan,
)

# Structured logging middleware
app.add_middleware(StructuredLoggingMiddleware)

# Known error types are mapped to status codes; anything else becomes a 500
app.add_exception_handler(GateError, global_exception_handler)
app.add_exception_handler(ValueError, global_exception_handler)
app.add_exception_handler(SQLAlchemyError, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# Register routers
app.include_router(health_router)
app.include_router(gate_router)
app.include_router(fraud_router)
app.include_router(aml_router)
app.include_router(limits_router)
app.include_router(risk_router)
app.include_router(sca_router)
app.include_router(pin_router)


def get_uptime() -> int:
    """Get application uptime in seconds."""
    if APP_START_TIME == 0.0:
        return 0
    return int(time.time() - APP_START_TIME)
