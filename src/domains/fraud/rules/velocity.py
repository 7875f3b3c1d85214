"""Velocity and time-of-day fraud rules."""

from datetime import UTC, timedelta

from ..models import FraudFactor, TimeBasedRule, VelocityRule
from .base import RuleContext, RuleEvaluator


class VelocityEvaluator(RuleEvaluator):
    """Triggers when the customer's recent transaction count reaches the cap."""

    variant = "velocity"

    async def evaluate(self, rule: VelocityRule, context: RuleContext) -> FraudFactor | None:
        if not context.account_ids:
            return None

        since = context.now - timedelta(minutes=rule.window_minutes)
        count = await context.store.count_transactions(context.account_ids, since)
        if count < rule.max_transactions:
            return None

        return self._triggered(
            rule,
            f"{count + 1} transactions in {rule.window_minutes} minutes "
            f"(limit: {rule.max_transactions})",
        )


class TimeBasedEvaluator(RuleEvaluator):
    """Triggers for transactions inside the configured unusual-hours window (UTC)."""

    variant = "time_based"

    async def evaluate(self, rule: TimeBasedRule, context: RuleContext) -> FraudFactor | None:
        now = context.now.astimezone(UTC) if context.now.tzinfo else context.now
        hour = now.hour
        if not rule.contains(hour):
            return None

        return self._triggered(rule, f"Transaction at unusual hour ({hour}:00 UTC)")
