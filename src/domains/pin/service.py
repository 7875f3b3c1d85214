"""Transfer PIN set / verify with transparent hash upgrade.

Key stretching is CPU bound and runs in a worker thread so that the event
loop keeps serving other requests.
"""

import asyncio
import re

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.accessor import RuleStore

from .hashing import PinHashScheme
from .models import SetPinResult, VerifyPinResult

logger = structlog.get_logger()

PIN_PATTERN = re.compile(r"[0-9]{4}")

INVALID_FORMAT = "PIN must be exactly 4 digits"
NOT_SET = "No transfer PIN set"
INCORRECT = "Incorrect PIN"


def is_valid_pin(pin: str | None) -> bool:
    return bool(pin) and PIN_PATTERN.fullmatch(pin) is not None


class PinService:
    def __init__(self, scheme: PinHashScheme | None = None) -> None:
        self._scheme = scheme or PinHashScheme()

    async def has_pin(self, session: AsyncSession, customer_id: str) -> bool:
        profile = await RuleStore(session).customer_profile(customer_id)
        return bool(profile and profile.transfer_pin_hash)

    async def set_pin(self, session: AsyncSession, customer_id: str, pin: str) -> SetPinResult:
        if not is_valid_pin(pin):
            return SetPinResult(success=False, error=INVALID_FORMAT)

        pin_hash = await asyncio.to_thread(self._scheme.hash, pin, customer_id)
        stored = await RuleStore(session).set_pin_hash(customer_id, pin_hash)
        if not stored:
            logger.warning("pin_set_failed", customer_id=customer_id)
            return SetPinResult(success=False, error="Failed to save PIN")

        logger.info("pin_set", customer_id=customer_id, scheme=self._scheme.current.name)
        return SetPinResult(success=True)

    async def verify_pin(
        self, session: AsyncSession, customer_id: str, pin: str
    ) -> VerifyPinResult:
        if not is_valid_pin(pin):
            return VerifyPinResult(verified=False, error=INVALID_FORMAT)

        store = RuleStore(session)
        profile = await store.customer_profile(customer_id)
        if profile is None or not profile.transfer_pin_hash:
            return VerifyPinResult(verified=False, error=NOT_SET)

        outcome = await asyncio.to_thread(
            self._scheme.verify, pin, customer_id, profile.transfer_pin_hash
        )
        if not outcome.matched:
            logger.info("pin_verification_failed", customer_id=customer_id)
            return VerifyPinResult(verified=False, error=INCORRECT)

        if outcome.upgraded_hash is not None:
            await store.set_pin_hash(customer_id, outcome.upgraded_hash)
            logger.info(
                "pin_hash_upgraded",
                customer_id=customer_id,
                scheme=self._scheme.current.name,
            )

        return VerifyPinResult(verified=True)

    async def validate_pin_for_user(
        self, session: AsyncSession, customer_id: str, pin: str
    ) -> bool:
        """Boolean form of ``verify_pin`` for use inside transfer handlers."""
        return (await self.verify_pin(session, customer_id, pin)).verified
