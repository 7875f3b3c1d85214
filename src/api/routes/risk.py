"""Customer risk rating endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.database import get_session
from src.domains.compliance.models import RiskFactors, RiskRatingResult
from src.domains.compliance.risk_scoring import compute_risk_rating, rate_customer

router = APIRouter(prefix="/api/v1/risk", tags=["risk"])


@router.post("/rating")
async def rate_factors(factors: RiskFactors) -> RiskRatingResult:
    return compute_risk_rating(factors)


@router.get("/customers/{customer_id}")
async def rate_stored_customer(
    customer_id: str,
    session: AsyncSession = Depends(get_session),  # noqa: B008
) -> RiskRatingResult:
    return await rate_customer(session, customer_id)
