"""New-payee cooling period (authorised push payment fraud control).

A payee that has never been paid must wait the rail's configured cooling
hours after creation before its first payment.
"""

import math
from datetime import UTC, datetime, timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.accessor import RuleStore

from .models import CoolingCheckResult

logger = structlog.get_logger()


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


async def check_cooling_period(
    session: AsyncSession,
    payee_id: str,
    rail: str = "fps",
    now: datetime | None = None,
) -> CoolingCheckResult:
    now = now or datetime.now(UTC)
    store = RuleStore(session)

    config = await store.cooling_period_config(rail)
    if config is None or not config.is_active or config.cooling_hours == 0:
        return CoolingCheckResult(allowed=True)

    payee = await store.payee(payee_id)
    if payee is None:
        return CoolingCheckResult(allowed=False, reason="Payee not found")

    if payee.first_used_at is not None:
        return CoolingCheckResult(allowed=True)

    cooling_end = _aware(payee.created_at) + timedelta(hours=config.cooling_hours)
    if now >= cooling_end:
        return CoolingCheckResult(allowed=True)

    hours_remaining = math.ceil((cooling_end - now).total_seconds() / 3600)
    plural = "s" if hours_remaining != 1 else ""
    logger.info(
        "payee_cooling_period_active",
        payee_id=payee_id,
        rail=rail,
        hours_remaining=hours_remaining,
    )
    return CoolingCheckResult(
        allowed=False,
        reason=(
            f"For your protection, new payees have a {config.cooling_hours}-hour cooling "
            f"period before the first payment. Please try again in "
            f"{hours_remaining} hour{plural}."
        ),
        hours_remaining=hours_remaining,
    )


async def mark_payee_first_used(
    session: AsyncSession,
    payee_id: str,
    now: datetime | None = None,
) -> None:
    """Record the first successful payment to a payee; later calls are no-ops."""
    await RuleStore(session).mark_payee_first_used(payee_id, now or datetime.now(UTC))
