"""Strong Customer Authentication (step-up challenge) endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_sca_service
from src.db.database import get_session
from src.domains.sca.models import (
    ChallengeCreated,
    ChallengeStatus,
    CreateChallengeRequest,
    StepUpRequest,
    VerifyChallengeRequest,
    VerifyResult,
)
from src.domains.sca.service import ScaService
from src.shared.errors import NotFoundError

router = APIRouter(prefix="/api/v1/sca", tags=["sca"])


@router.post("/requires")
async def requires_step_up(
    request: StepUpRequest,
    sca: ScaService = Depends(get_sca_service),  # noqa: B008
) -> dict:
    return {"required": sca.requires_step_up(amount=request.amount, action=request.action)}


@router.post("/challenges")
async def create_challenge(
    request: CreateChallengeRequest,
    session: AsyncSession = Depends(get_session),  # noqa: B008
    sca: ScaService = Depends(get_sca_service),  # noqa: B008
) -> ChallengeCreated:
    return await sca.create_challenge(
        session, request.customer_id, request.action, request.metadata
    )


@router.post("/challenges/{challenge_id}/verify")
async def verify_challenge(
    challenge_id: str,
    request: VerifyChallengeRequest,
    session: AsyncSession = Depends(get_session),  # noqa: B008
    sca: ScaService = Depends(get_sca_service),  # noqa: B008
) -> VerifyResult:
    return await sca.verify_challenge(session, challenge_id, request.code)


@router.get("/challenges/{challenge_id}")
async def challenge_status(
    challenge_id: str,
    session: AsyncSession = Depends(get_session),  # noqa: B008
    sca: ScaService = Depends(get_sca_service),  # noqa: B008
) -> ChallengeStatus:
    status = await sca.get_status(session, challenge_id)
    if status is None:
        raise NotFoundError("Challenge not found")
    return status


@router.get("/challenges/{challenge_id}/verified")
async def challenge_verified(
    challenge_id: str,
    session: AsyncSession = Depends(get_session),  # noqa: B008
    sca: ScaService = Depends(get_sca_service),  # noqa: B008
) -> dict:
    """Server-side check before executing the guarded action.

    Unlike the status view, a verified challenge stops counting once it
    has expired.
    """
    return {"verified": await sca.is_challenge_verified(session, challenge_id)}
