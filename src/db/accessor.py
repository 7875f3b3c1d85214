"""Read access to rule configuration and customer history.

Every decision engine reads the persistent store through ``RuleStore`` so
that the queries (and the account fan-out they share) live in one place.
Nothing here writes except ``set_pin_hash`` and ``mark_payee_first_used``,
which update customer-owned credentials on behalf of the PIN and cooling
period services.
"""

from datetime import datetime

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models import (
    Account,
    CoolingPeriodConfigDB,
    CustomerProfile,
    FraudRuleDB,
    Payee,
    ScaConfigDB,
    Transaction,
    TransactionLimitDB,
)
from src.domains.fraud.models import FraudRuleDefinition
from src.domains.fraud.rules.parsing import parse_rule
from src.domains.limits.models import TransactionLimit

logger = structlog.get_logger()


class RuleStore:
    """Async query facade over a single request-scoped session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    async def active_fraud_rules(self) -> list[FraudRuleDefinition]:
        stmt = select(FraudRuleDB).where(FraudRuleDB.is_active.is_(True))
        result = await self.session.execute(stmt)
        rules: list[FraudRuleDefinition] = []
        for row in result.scalars().all():
            rules.extend(
                parse_rule(
                    rule_id=row.rule_id,
                    name=row.name,
                    kind=row.kind,
                    conditions=row.conditions or {},
                    weight=row.weight,
                )
            )
        return rules

    async def transaction_limit(self, kyc_tier: str) -> TransactionLimit | None:
        stmt = select(TransactionLimitDB).where(
            TransactionLimitDB.kyc_tier == kyc_tier,
            TransactionLimitDB.is_active.is_(True),
        )
        result = await self.session.execute(stmt)
        row = result.scalars().first()
        if row is None:
            return None
        return TransactionLimit(
            kyc_tier=row.kyc_tier,
            daily_limit=row.daily_limit,
            monthly_limit=row.monthly_limit,
            single_transaction_limit=row.single_transaction_limit,
        )

    async def sca_config_values(self) -> dict:
        """Return ``{config_key: value}`` from the sca_config rows."""
        result = await self.session.execute(select(ScaConfigDB))
        values: dict = {}
        for row in result.scalars().all():
            value = row.config_value
            if isinstance(value, dict):
                value = value.get("value")
            values[row.config_key] = value
        return values

    async def cooling_period_config(self, rail: str) -> CoolingPeriodConfigDB | None:
        stmt = select(CoolingPeriodConfigDB).where(CoolingPeriodConfigDB.payment_rail == rail)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Customer data
    # ------------------------------------------------------------------

    async def customer_profile(self, user_id: str) -> CustomerProfile | None:
        stmt = select(CustomerProfile).where(CustomerProfile.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def account_ids(self, user_id: str) -> list[str]:
        stmt = select(Account.account_id).where(Account.user_id == user_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def payee(self, payee_id: str) -> Payee | None:
        stmt = select(Payee).where(Payee.payee_id == payee_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Transaction history
    # ------------------------------------------------------------------

    async def count_transactions(
        self,
        account_ids: list[str],
        since: datetime,
        min_amount: float | None = None,
        max_amount: float | None = None,
    ) -> int:
        """Count transactions on the accounts since ``since``.

        ``min_amount`` is inclusive and ``max_amount`` exclusive.
        """
        if not account_ids:
            return 0
        stmt = select(func.count()).where(
            Transaction.account_id.in_(account_ids),
            Transaction.created_at >= since,
        )
        if min_amount is not None:
            stmt = stmt.where(Transaction.amount >= min_amount)
        if max_amount is not None:
            stmt = stmt.where(Transaction.amount < max_amount)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def recent_debit_amounts(self, account_ids: list[str], limit: int) -> list[float]:
        if not account_ids:
            return []
        stmt = (
            select(Transaction.amount)
            .where(Transaction.account_id.in_(account_ids), Transaction.type == "debit")
            .order_by(Transaction.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [abs(float(a)) for a in result.scalars().all()]

    async def completed_debit_total(self, account_ids: list[str], since: datetime) -> float:
        if not account_ids:
            return 0.0
        stmt = select(func.coalesce(func.sum(func.abs(Transaction.amount)), 0)).where(
            Transaction.account_id.in_(account_ids),
            Transaction.type == "debit",
            Transaction.status == "completed",
            Transaction.created_at >= since,
        )
        result = await self.session.execute(stmt)
        return float(result.scalar_one())

    async def largest_completed_debit(self, account_ids: list[str], since: datetime) -> float:
        if not account_ids:
            return 0.0
        stmt = select(func.coalesce(func.max(func.abs(Transaction.amount)), 0)).where(
            Transaction.account_id.in_(account_ids),
            Transaction.type == "debit",
            Transaction.status == "completed",
            Transaction.created_at >= since,
        )
        result = await self.session.execute(stmt)
        return float(result.scalar_one())

    # ------------------------------------------------------------------
    # Writes on customer-owned records
    # ------------------------------------------------------------------

    async def set_pin_hash(self, user_id: str, pin_hash: str) -> bool:
        """Replace the stored PIN hash. Returns False when no profile exists."""
        stmt = (
            update(CustomerProfile)
            .where(CustomerProfile.user_id == user_id)
            .values(transfer_pin_hash=pin_hash)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount > 0

    async def mark_payee_first_used(self, payee_id: str, when: datetime) -> None:
        stmt = (
            update(Payee)
            .where(Payee.payee_id == payee_id, Payee.first_used_at.is_(None))
            .values(first_used_at=when)
        )
        await self.session.execute(stmt)
        await self.session.commit()
