"""Unit tests for audit event emission."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.shared.audit import AuditEmitter, AuditEvent, AuditEventType


def _event() -> AuditEvent:
    return AuditEvent(
        event_type=AuditEventType.FRAUD_EVENT,
        actor_id="user-1",
        actor_role="customer",
        target_table="transactions",
        target_id="txn-1",
        action="transaction_blocked",
        details={"score": 75},
    )


class TestAuditEmitter:
    @pytest.mark.asyncio
    async def test_without_producer_only_logs(self):
        await AuditEmitter().emit(_event())

    @pytest.mark.asyncio
    async def test_publishes_to_topic(self):
        producer = MagicMock()
        producer.send_and_wait = AsyncMock()
        await AuditEmitter(producer=producer, topic="audit").emit(_event())

        args, kwargs = producer.send_and_wait.await_args
        assert args == ("audit",)
        assert kwargs["key"] == b"user-1"
        assert kwargs["value"]["action"] == "transaction_blocked"
        assert kwargs["value"]["event_type"] == "fraud_event"
        assert isinstance(kwargs["value"]["occurred_at"], str)

    @pytest.mark.asyncio
    async def test_publish_failure_does_not_raise(self):
        producer = MagicMock()
        producer.send_and_wait = AsyncMock(side_effect=ConnectionError("broker down"))
        await AuditEmitter(producer=producer).emit(_event())
        producer.send_and_wait.assert_awaited_once()
