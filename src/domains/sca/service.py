"""Step-up challenge state machine.

    pending --(correct code)--> verified
    pending --(now >= expires_at)--> expired
    pending --(attempts == max_attempts)--> exhausted

Each verification consumes an attempt through a single conditional UPDATE
that only matches while the challenge is unverified, unexpired and has
attempts left. The code is compared only when that update matched, so
concurrent guesses can never exceed ``max_attempts`` in total.
"""

import hashlib
import hmac
import re
import secrets
import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models import ScaChallengeDB
from src.shared.errors import GateValidationError

from .config import ScaConfig
from .delivery import CodeDelivery
from .models import (
    ChallengeCreated,
    ChallengeState,
    ChallengeStatus,
    VerifyErrorCode,
    VerifyResult,
)

logger = structlog.get_logger()

CODE_PATTERN = re.compile(r"[0-9]{6}")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def generate_code() -> str:
    """Six-digit code from the OS CSPRNG, never starting with 0."""
    return str(100_000 + secrets.randbelow(900_000))


def hash_code(challenge_id: str, code: str) -> str:
    return hashlib.sha256(f"{challenge_id}:{code}".encode()).hexdigest()


def requires_step_up(config: ScaConfig, amount: float | None = None, action: str | None = None) -> bool:
    """Whether an action or amount must be confirmed with a challenge."""
    if not config.enabled:
        return False
    if action and action in config.sensitive_actions:
        return True
    return amount is not None and amount > config.amount_threshold


def challenge_state(row: ScaChallengeDB, now: datetime) -> ChallengeState:
    if row.verified:
        return ChallengeState.VERIFIED
    if now >= _aware(row.expires_at):
        return ChallengeState.EXPIRED
    if row.attempts >= row.max_attempts:
        return ChallengeState.EXHAUSTED
    return ChallengeState.PENDING


class ScaService:
    """Issues and verifies one-time step-up codes."""

    def __init__(
        self,
        config: ScaConfig,
        delivery: CodeDelivery | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._delivery = delivery
        self._clock = clock

    @property
    def config(self) -> ScaConfig:
        return self._config

    def requires_step_up(self, amount: float | None = None, action: str | None = None) -> bool:
        return requires_step_up(self._config, amount, action)

    async def create_challenge(
        self,
        session: AsyncSession,
        customer_id: str,
        action: str,
        metadata: dict | None = None,
    ) -> ChallengeCreated:
        if not customer_id or not action:
            raise GateValidationError("A customer and an action are required")

        now = self._clock()
        challenge_id = str(uuid.uuid4())
        code = generate_code()
        expires_at = now + timedelta(seconds=self._config.expiry_seconds)

        session.add(
            ScaChallengeDB(
                challenge_id=challenge_id,
                user_id=customer_id,
                code_hash=hash_code(challenge_id, code),
                action=action,
                challenge_metadata=metadata or {},
                attempts=0,
                max_attempts=self._config.max_attempts,
                verified=False,
                expires_at=expires_at,
                created_at=now,
            )
        )
        await session.commit()

        if self._delivery is not None:
            await self._delivery.send(customer_id, challenge_id, action, code)
        else:
            logger.warning("sca_code_delivery_unconfigured", challenge_id=challenge_id)

        logger.info(
            "sca_challenge_created",
            challenge_id=challenge_id,
            customer_id=customer_id,
            action=action,
            expires_at=expires_at.isoformat(),
        )
        return ChallengeCreated(challenge_id=challenge_id, expires_at=expires_at)

    async def verify_challenge(
        self,
        session: AsyncSession,
        challenge_id: str,
        code: str,
    ) -> VerifyResult:
        if not code or not CODE_PATTERN.fullmatch(code):
            return VerifyResult(
                verified=False,
                error="Code must be exactly 6 digits",
                error_code=VerifyErrorCode.INVALID_FORMAT,
            )

        now = self._clock()

        # Consume one attempt, only while the challenge is still pending
        stmt = (
            update(ScaChallengeDB)
            .where(
                ScaChallengeDB.challenge_id == challenge_id,
                ScaChallengeDB.verified.is_(False),
                ScaChallengeDB.attempts < ScaChallengeDB.max_attempts,
                ScaChallengeDB.expires_at > now,
            )
            .values(attempts=ScaChallengeDB.attempts + 1)
            .returning(
                ScaChallengeDB.attempts,
                ScaChallengeDB.max_attempts,
                ScaChallengeDB.code_hash,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        consumed = result.one_or_none()
        await session.commit()

        if consumed is None:
            return await self._not_pending(session, challenge_id, now)

        attempts, max_attempts, code_hash = consumed
        if not hmac.compare_digest(hash_code(challenge_id, code), code_hash):
            remaining = max(max_attempts - attempts, 0)
            logger.info(
                "sca_challenge_incorrect_code",
                challenge_id=challenge_id,
                attempts=attempts,
                attempts_remaining=remaining,
            )
            plural = "s" if remaining != 1 else ""
            return VerifyResult(
                verified=False,
                error=f"Incorrect code. {remaining} attempt{plural} remaining.",
                error_code=VerifyErrorCode.INCORRECT_CODE,
                attempts_remaining=remaining,
            )

        await session.execute(
            update(ScaChallengeDB)
            .where(
                ScaChallengeDB.challenge_id == challenge_id,
                ScaChallengeDB.verified.is_(False),
            )
            .values(verified=True, verified_at=now)
            .execution_options(synchronize_session=False)
        )
        await session.commit()

        logger.info("sca_challenge_verified", challenge_id=challenge_id, attempts=attempts)
        return VerifyResult(verified=True)

    async def _not_pending(
        self, session: AsyncSession, challenge_id: str, now: datetime
    ) -> VerifyResult:
        """Explain why no attempt could be consumed."""
        row = await self._load(session, challenge_id)
        if row is None:
            return VerifyResult(
                verified=False,
                error="Challenge not found",
                error_code=VerifyErrorCode.NOT_FOUND,
            )

        state = challenge_state(row, now)
        if state == ChallengeState.VERIFIED:
            return VerifyResult(verified=True)
        if state == ChallengeState.EXPIRED:
            logger.info("sca_challenge_expired", challenge_id=challenge_id)
            return VerifyResult(
                verified=False,
                error="Challenge has expired. Please request a new code.",
                error_code=VerifyErrorCode.EXPIRED,
                attempts_remaining=0,
            )

        # Exhausted, or another request used the last attempt in between
        logger.warning("sca_challenge_exhausted", challenge_id=challenge_id)
        return VerifyResult(
            verified=False,
            error="Too many attempts. Please request a new code.",
            error_code=VerifyErrorCode.EXHAUSTED,
            attempts_remaining=0,
        )

    async def get_status(self, session: AsyncSession, challenge_id: str) -> ChallengeStatus | None:
        row = await self._load(session, challenge_id)
        if row is None:
            return None
        state = challenge_state(row, self._clock())
        return ChallengeStatus(
            challenge_id=challenge_id,
            state=state,
            verified=state == ChallengeState.VERIFIED,
        )

    async def is_challenge_verified(self, session: AsyncSession, challenge_id: str) -> bool:
        """True only for a verified challenge that has not yet expired."""
        row = await self._load(session, challenge_id)
        if row is None:
            return False
        if self._clock() >= _aware(row.expires_at):
            return False
        return row.verified is True

    async def _load(self, session: AsyncSession, challenge_id: str) -> ScaChallengeDB | None:
        result = await session.execute(
            select(ScaChallengeDB).where(ScaChallengeDB.challenge_id == challenge_id)
        )
        return result.scalar_one_or_none()
