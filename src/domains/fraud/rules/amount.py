"""Amount-based fraud rules."""

from ..models import AmountMultiplierRule, AmountThresholdRule, FraudFactor
from .base import RuleContext, RuleEvaluator


class AmountThresholdEvaluator(RuleEvaluator):
    """Triggers when the amount reaches a fixed threshold."""

    variant = "amount_threshold"

    async def evaluate(
        self, rule: AmountThresholdRule, context: RuleContext
    ) -> FraudFactor | None:
        amount = context.request.amount
        if amount < rule.threshold:
            return None

        return self._triggered(
            rule,
            f"Amount £{amount:,.2f} exceeds £{rule.threshold:,.2f} threshold",
        )


class AmountMultiplierEvaluator(RuleEvaluator):
    """Triggers when the amount is a multiple of the customer's average debit."""

    variant = "amount_multiplier"

    async def evaluate(
        self, rule: AmountMultiplierRule, context: RuleContext
    ) -> FraudFactor | None:
        if not context.account_ids:
            return None

        history = await context.store.recent_debit_amounts(context.account_ids, rule.lookback)
        if not history:
            return None

        average = sum(history) / len(history)
        if average <= 0:
            return None

        amount = context.request.amount
        if amount <= average * rule.multiplier:
            return None

        return self._triggered(
            rule,
            f"Amount £{amount:,.2f} is {amount / average:.1f}x average (£{average:,.0f})",
        )
