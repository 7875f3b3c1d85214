"""Human review of fraud scores and the fraud case lifecycle."""

from datetime import UTC, datetime

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models import FraudCaseDB, FraudScoreDB
from src.shared.audit import AuditEmitter, AuditEvent, AuditEventType
from src.shared.errors import NotFoundError, TerminalStateError

from .models import (
    CaseUpdateRequest,
    FraudCase,
    FraudCasePriority,
    FraudCaseStatus,
    ReviewRequest,
)

logger = structlog.get_logger()

CASE_TRANSITIONS: dict[FraudCaseStatus, frozenset[FraudCaseStatus]] = {
    FraudCaseStatus.OPEN: frozenset(
        {FraudCaseStatus.INVESTIGATING, FraudCaseStatus.FALSE_POSITIVE, FraudCaseStatus.CLOSED}
    ),
    FraudCaseStatus.INVESTIGATING: frozenset(
        {
            FraudCaseStatus.CONFIRMED_FRAUD,
            FraudCaseStatus.FALSE_POSITIVE,
            FraudCaseStatus.CLOSED,
        }
    ),
    FraudCaseStatus.CONFIRMED_FRAUD: frozenset({FraudCaseStatus.CLOSED}),
    FraudCaseStatus.FALSE_POSITIVE: frozenset({FraudCaseStatus.CLOSED}),
    FraudCaseStatus.CLOSED: frozenset(),
}


def can_transition(current: FraudCaseStatus, target: FraudCaseStatus) -> bool:
    return target in CASE_TRANSITIONS[current]


def _to_model(row: FraudCaseDB) -> FraudCase:
    return FraudCase(
        case_id=row.case_id,
        fraud_score_id=row.fraud_score_id,
        user_id=row.user_id,
        status=FraudCaseStatus(row.status),
        priority=FraudCasePriority(row.priority),
        assigned_to=row.assigned_to,
        description=row.description,
        resolution=row.resolution,
        amount_at_risk=row.amount_at_risk,
        amount_recovered=row.amount_recovered,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


async def record_review(
    session: AsyncSession,
    score_id: str,
    review: ReviewRequest,
    audit: AuditEmitter | None = None,
) -> None:
    """Attach a reviewer's outcome to a stored fraud score.

    The score itself is never changed; review fields can be set only once.
    """
    result = await session.execute(select(FraudScoreDB).where(FraudScoreDB.score_id == score_id))
    row = result.scalar_one_or_none()
    if row is None:
        raise NotFoundError("Fraud score not found")
    if row.review_decision is not None:
        raise TerminalStateError("Fraud score has already been reviewed")

    row.reviewed_by = review.reviewer_id
    row.review_decision = review.decision.value
    row.review_notes = review.notes.strip() if review.notes else None
    row.reviewed_at = datetime.now(UTC)
    await session.commit()

    await (audit or AuditEmitter()).emit(
        AuditEvent(
            event_type=AuditEventType.FRAUD_EVENT,
            actor_id=review.reviewer_id,
            actor_role="admin",
            target_table="fraud_scores",
            target_id=score_id,
            action="fraud_score_reviewed",
            details={"review_decision": review.decision.value},
        )
    )
    logger.info("fraud_score_reviewed", score_id=score_id, decision=review.decision.value)


async def update_case_status(
    session: AsyncSession,
    case_id: str,
    update: CaseUpdateRequest,
    audit: AuditEmitter | None = None,
) -> FraudCase:
    result = await session.execute(select(FraudCaseDB).where(FraudCaseDB.case_id == case_id))
    row = result.scalar_one_or_none()
    if row is None:
        raise NotFoundError("Fraud case not found")

    current = FraudCaseStatus(row.status)
    if not can_transition(current, update.status):
        raise TerminalStateError(
            f"Fraud case cannot move from {current.value} to {update.status.value}"
        )

    row.status = update.status.value
    row.assigned_to = update.actor_id
    row.updated_at = datetime.now(UTC)
    if update.resolution and update.resolution.strip():
        row.resolution = update.resolution.strip()
    if update.amount_recovered is not None:
        row.amount_recovered = update.amount_recovered
    await session.commit()

    await (audit or AuditEmitter()).emit(
        AuditEvent(
            event_type=AuditEventType.FRAUD_EVENT,
            actor_id=update.actor_id,
            actor_role="admin",
            target_table="fraud_cases",
            target_id=case_id,
            action="fraud_case_updated",
            details={"previous_status": current.value, "new_status": update.status.value},
        )
    )
    logger.info(
        "fraud_case_updated",
        case_id=case_id,
        previous_status=current.value,
        new_status=update.status.value,
    )
    return _to_model(row)
