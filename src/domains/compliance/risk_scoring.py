"""Customer risk rating for KYC tiering and due diligence.

Additive point scoring over customer-level factors (not the transaction):

  PEP status                         +30
  30-day volume >£100k / >£50k / >£20k  +25 / +15 / +10
  Largest single transaction >£10k / >£5k  +20 / +10
  High-net-worth category            +10
  Account younger than 90 days       +10
  Unverified identity / address      +15 / +10
  Suspicious activity incidents      +15 each, at most +45

Ratings: low (0-25), medium (26-50), high (51-75), very_high (76-100).

Regulatory basis: JMLSG Guidance Part I, ch. 5; MLR 2017 reg. 33-35
(enhanced due diligence for PEPs and higher-risk relationships).
"""

from datetime import UTC, datetime, timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.accessor import RuleStore
from src.shared.errors import NotFoundError

from .config import RiskRatingConfig, default_rating_config
from .models import RiskFactorDetail, RiskFactors, RiskRating, RiskRatingResult

logger = structlog.get_logger()

HIGH_NET_WORTH = "high_net_worth"


def _band_points(
    value: float, bands: tuple[tuple[float, int], ...]
) -> tuple[int, float, int] | None:
    """Return (band index, lower bound, points) of the first band exceeded."""
    for index, (lower_bound, points) in enumerate(bands):
        if value > lower_bound:
            return index, lower_bound, points
    return None


def classify_rating(score: int, config: RiskRatingConfig = default_rating_config) -> RiskRating:
    if score >= config.very_high_min:
        return RiskRating.VERY_HIGH
    if score >= config.high_min:
        return RiskRating.HIGH
    if score >= config.medium_min:
        return RiskRating.MEDIUM
    return RiskRating.LOW


def compute_risk_rating(
    factors: RiskFactors,
    config: RiskRatingConfig = default_rating_config,
) -> RiskRatingResult:
    """Score a customer. Pure and deterministic."""
    details: list[RiskFactorDetail] = []

    if factors.is_pep:
        details.append(
            RiskFactorDetail(
                factor="pep_status",
                points=config.pep_points,
                description="Politically Exposed Person",
            )
        )

    volume_names = ("high_volume", "elevated_volume", "moderate_volume")
    if band := _band_points(factors.transaction_volume_30d, config.volume_bands):
        index, lower_bound, points = band
        name = volume_names[min(index, len(volume_names) - 1)]
        details.append(
            RiskFactorDetail(
                factor=name,
                points=points,
                description=f"Transaction volume >£{lower_bound:,.0f} in 30 days",
            )
        )

    txn_names = ("large_transaction", "elevated_transaction")
    if band := _band_points(factors.largest_single_transaction, config.largest_transaction_bands):
        index, lower_bound, points = band
        name = txn_names[min(index, len(txn_names) - 1)]
        details.append(
            RiskFactorDetail(
                factor=name,
                points=points,
                description=f"Single transaction >£{lower_bound:,.0f}",
            )
        )

    if factors.customer_category == HIGH_NET_WORTH:
        details.append(
            RiskFactorDetail(
                factor="hnw_customer",
                points=config.high_net_worth_points,
                description="High net worth customer category",
            )
        )

    if factors.account_age_days < config.new_account_days:
        details.append(
            RiskFactorDetail(
                factor="new_account",
                points=config.new_account_points,
                description=f"Account less than {config.new_account_days} days old",
            )
        )

    if not factors.has_verified_identity:
        details.append(
            RiskFactorDetail(
                factor="unverified_identity",
                points=config.unverified_identity_points,
                description="Identity not verified",
            )
        )

    if not factors.has_verified_address:
        details.append(
            RiskFactorDetail(
                factor="unverified_address",
                points=config.unverified_address_points,
                description="Address not verified",
            )
        )

    if factors.suspicious_activity_count > 0:
        points = min(
            factors.suspicious_activity_count * config.suspicious_activity_points,
            config.suspicious_activity_cap,
        )
        details.append(
            RiskFactorDetail(
                factor="suspicious_activity",
                points=points,
                description=f"{factors.suspicious_activity_count} suspicious activity flag(s)",
            )
        )

    score = min(sum(d.points for d in details), config.max_score)
    return RiskRatingResult(
        rating=classify_rating(score, config),
        score=score,
        factors=details,
    )


async def rate_customer(
    session: AsyncSession,
    customer_id: str,
    now: datetime | None = None,
    config: RiskRatingConfig = default_rating_config,
) -> RiskRatingResult:
    """Build risk factors from the stored profile and history, then rate."""
    now = now or datetime.now(UTC)
    store = RuleStore(session)

    profile = await store.customer_profile(customer_id)
    if profile is None:
        raise NotFoundError("Customer profile not found")

    account_ids = await store.account_ids(customer_id)
    since = now - timedelta(days=30)
    volume = await store.completed_debit_total(account_ids, since)
    largest = await store.largest_completed_debit(account_ids, since)

    opened = profile.account_opened_at
    if opened.tzinfo is None:
        opened = opened.replace(tzinfo=UTC)

    factors = RiskFactors(
        transaction_volume_30d=volume,
        largest_single_transaction=largest,
        is_pep=profile.is_pep,
        customer_category=profile.customer_category,
        account_age_days=max((now - opened).days, 0),
        has_verified_identity=profile.identity_verified,
        has_verified_address=profile.address_verified,
        suspicious_activity_count=profile.suspicious_activity_count,
    )
    result = compute_risk_rating(factors, config)

    logger.info(
        "customer_risk_rated",
        customer_id=customer_id,
        score=result.score,
        rating=result.rating.value,
        factor_count=len(result.factors),
    )
    return result
