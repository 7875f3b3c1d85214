"""Audit event emission.

The gate does not own audit storage. Events are written to the structured
log and, when a Kafka producer is configured, published to the audit topic
for the audit-log service to persist. Emission failures never fail the
operation that produced the event.
"""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger()


class AuditEventType(StrEnum):
    FRAUD_EVENT = "fraud_event"
    COMPLIANCE_EVENT = "compliance_event"
    SECURITY_EVENT = "security_event"
    ADMIN_ACTION = "admin_action"


class AuditEvent(BaseModel):
    event_type: AuditEventType
    actor_id: str | None
    actor_role: str | None = None
    target_table: str | None = None
    target_id: str | None = None
    action: str
    details: dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class AuditEmitter:
    """Sends audit events to the log and, optionally, to Kafka."""

    def __init__(self, producer=None, topic: str = "gate.audit.events") -> None:
        self._producer = producer
        self._topic = topic

    @property
    def publishing(self) -> bool:
        return self._producer is not None

    async def emit(self, event: AuditEvent) -> None:
        logger.info(
            "audit_event",
            event_type=event.event_type.value,
            actor_id=event.actor_id,
            actor_role=event.actor_role,
            target_table=event.target_table,
            target_id=event.target_id,
            action=event.action,
            details=event.details,
        )

        if self._producer is None:
            return

        try:
            await self._producer.send_and_wait(
                self._topic,
                value=event.model_dump(mode="json"),
                key=(event.actor_id or "").encode("utf-8"),
            )
        except Exception:
            logger.exception("audit_publish_failed", action=event.action, topic=self._topic)
