"""Transfer PIN endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_pin_service
from src.db.database import get_session
from src.domains.pin.models import PinRequest, SetPinResult, VerifyPinResult
from src.domains.pin.service import PinService

router = APIRouter(prefix="/api/v1/pin", tags=["pin"])


@router.get("/{customer_id}")
async def has_pin(
    customer_id: str,
    session: AsyncSession = Depends(get_session),  # noqa: B008
    pins: PinService = Depends(get_pin_service),  # noqa: B008
) -> dict:
    return {"has_pin": await pins.has_pin(session, customer_id)}


@router.put("/{customer_id}")
async def set_pin(
    customer_id: str,
    request: PinRequest,
    session: AsyncSession = Depends(get_session),  # noqa: B008
    pins: PinService = Depends(get_pin_service),  # noqa: B008
) -> SetPinResult:
    return await pins.set_pin(session, customer_id, request.pin)


@router.post("/{customer_id}/verify")
async def verify_pin(
    customer_id: str,
    request: PinRequest,
    session: AsyncSession = Depends(get_session),  # noqa: B008
    pins: PinService = Depends(get_pin_service),  # noqa: B008
) -> VerifyPinResult:
    return await pins.verify_pin(session, customer_id, request.pin)
