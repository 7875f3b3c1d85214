"""KYC-tier transaction limit enforcement.

Checks, in order, stopping at the first failure:

  1. single-transaction cap (no history needed)
  2. completed debits since 00:00 UTC today + amount <= daily cap
  3. completed debits since 00:00 UTC on the 1st + amount <= monthly cap

Read only. Rolling sums are a snapshot; concurrent debits from the same
customer can let one extra transaction through before the next check.
"""

from datetime import UTC, datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.accessor import RuleStore

from .config import LimitsConfig, default_config
from .models import LimitCheckResult, TransactionLimit

logger = structlog.get_logger()


def day_start(now: datetime) -> datetime:
    return now.astimezone(UTC).replace(hour=0, minute=0, second=0, microsecond=0)


def month_start(now: datetime) -> datetime:
    return day_start(now).replace(day=1)


def evaluate_limits(
    amount: float,
    limit: TransactionLimit,
    daily_used: float,
    monthly_used: float,
) -> LimitCheckResult:
    """Apply the caps to already-computed usage. Pure."""
    common = {
        "daily_used": daily_used,
        "daily_limit": limit.daily_limit,
        "monthly_used": monthly_used,
        "monthly_limit": limit.monthly_limit,
        "single_limit": limit.single_transaction_limit,
    }

    if amount > limit.single_transaction_limit:
        return LimitCheckResult(
            allowed=False,
            reason=(
                f"This transaction exceeds your single payment limit of "
                f"£{limit.single_transaction_limit:,.2f}. "
                f"Please contact us to increase your limits."
            ),
            **common,
        )

    if daily_used + amount > limit.daily_limit:
        return LimitCheckResult(
            allowed=False,
            reason=(
                f"This transaction would exceed your daily limit of "
                f"£{limit.daily_limit:,.2f}. You have used £{daily_used:,.2f} today."
            ),
            **common,
        )

    if monthly_used + amount > limit.monthly_limit:
        return LimitCheckResult(
            allowed=False,
            reason=(
                f"This transaction would exceed your monthly limit of "
                f"£{limit.monthly_limit:,.2f}. You have used £{monthly_used:,.2f} this month."
            ),
            **common,
        )

    return LimitCheckResult(allowed=True, **common)


async def get_kyc_tier(
    session: AsyncSession,
    customer_id: str,
    config: LimitsConfig = default_config,
) -> str:
    """Resolve the customer's KYC tier, falling back to the default tier."""
    profile = await RuleStore(session).customer_profile(customer_id)
    if profile is None or not profile.kyc_tier:
        return config.default_tier
    return profile.kyc_tier


async def check_limits(
    session: AsyncSession,
    customer_id: str,
    amount: float,
    kyc_tier: str | None = None,
    now: datetime | None = None,
    config: LimitsConfig = default_config,
) -> LimitCheckResult:
    """Check a proposed debit against the customer's tier caps."""
    now = now or datetime.now(UTC)
    tier = kyc_tier or config.default_tier
    store = RuleStore(session)

    limit = await store.transaction_limit(tier)
    if limit is None:
        cap = config.unlimited_cap
        if config.fail_closed_when_unconfigured:
            logger.warning("transaction_limits_unconfigured_fail_closed", kyc_tier=tier)
            return LimitCheckResult(
                allowed=False,
                reason="Transaction limits are not available for your account. Please contact us.",
                daily_limit=0.0,
                monthly_limit=0.0,
                single_limit=0.0,
            )
        logger.warning("transaction_limits_unconfigured", kyc_tier=tier)
        return LimitCheckResult(
            allowed=True, daily_limit=cap, monthly_limit=cap, single_limit=cap
        )

    # Single cap needs no history
    if amount > limit.single_transaction_limit:
        result = evaluate_limits(amount, limit, 0.0, 0.0)
    else:
        account_ids = await store.account_ids(customer_id)
        daily_used = await store.completed_debit_total(account_ids, day_start(now))
        monthly_used = await store.completed_debit_total(account_ids, month_start(now))
        result = evaluate_limits(amount, limit, daily_used, monthly_used)

    logger.info(
        "limits_checked",
        customer_id=customer_id,
        kyc_tier=tier,
        allowed=result.allowed,
        daily_used=result.daily_used,
        monthly_used=result.monthly_used,
    )
    return result
