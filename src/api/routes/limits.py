"""Transaction limit and payee cooling period endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_limits_config
from src.db.database import get_session
from src.domains.limits.config import LimitsConfig
from src.domains.limits.cooling import check_cooling_period, mark_payee_first_used
from src.domains.limits.enforcement import check_limits, get_kyc_tier
from src.domains.limits.models import (
    CoolingCheckRequest,
    CoolingCheckResult,
    LimitCheckRequest,
    LimitCheckResult,
)

router = APIRouter(prefix="/api/v1/limits", tags=["limits"])


@router.post("/check")
async def check_transaction_limits(
    request: LimitCheckRequest,
    session: AsyncSession = Depends(get_session),  # noqa: B008
    config: LimitsConfig = Depends(get_limits_config),  # noqa: B008
) -> LimitCheckResult:
    tier = request.kyc_tier or await get_kyc_tier(session, request.customer_id, config)
    return await check_limits(
        session, request.customer_id, request.amount, kyc_tier=tier, config=config
    )


@router.post("/cooling")
async def check_payee_cooling(
    request: CoolingCheckRequest,
    session: AsyncSession = Depends(get_session),  # noqa: B008
) -> CoolingCheckResult:
    return await check_cooling_period(session, request.payee_id, request.rail)


@router.post("/cooling/{payee_id}/used")
async def record_payee_used(
    payee_id: str,
    session: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict:
    """Called by the payment handler once the first payment has completed."""
    await mark_payee_first_used(session, payee_id)
    return {"success": True}
