"""Fraud scoring and fraud case management endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_audit, get_fraud_scorer
from src.db.database import get_session
from src.domains.fraud.cases import record_review, update_case_status
from src.domains.fraud.models import (
    CaseUpdateRequest,
    FraudCase,
    FraudScoreRequest,
    FraudScoreResult,
    ReviewRequest,
)
from src.domains.fraud.scorer import FraudScorer
from src.shared.audit import AuditEmitter

router = APIRouter(prefix="/api/v1/fraud", tags=["fraud"])


@router.post("/score")
async def score_fraud(
    request: FraudScoreRequest,
    session: AsyncSession = Depends(get_session),  # noqa: B008
    scorer: FraudScorer = Depends(get_fraud_scorer),  # noqa: B008
) -> FraudScoreResult:
    return await scorer.score_transaction(request, session)


@router.post("/scores/{score_id}/review")
async def review_score(
    score_id: str,
    review: ReviewRequest,
    session: AsyncSession = Depends(get_session),  # noqa: B008
    audit: AuditEmitter = Depends(get_audit),  # noqa: B008
) -> dict:
    await record_review(session, score_id, review, audit)
    return {"success": True}


@router.patch("/cases/{case_id}")
async def update_case(
    case_id: str,
    update: CaseUpdateRequest,
    session: AsyncSession = Depends(get_session),  # noqa: B008
    audit: AuditEmitter = Depends(get_audit),  # noqa: B008
) -> FraudCase:
    return await update_case_status(session, case_id, update, audit)
