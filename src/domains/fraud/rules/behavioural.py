"""Behavioural fraud rules: payee novelty."""

from ..models import BehaviouralRule, FraudFactor
from .base import RuleContext, RuleEvaluator


class BehaviouralEvaluator(RuleEvaluator):
    """Triggers for a large payment to a payee the customer has never paid."""

    variant = "behavioural"

    async def evaluate(self, rule: BehaviouralRule, context: RuleContext) -> FraudFactor | None:
        request = context.request
        if not request.is_new_payee or request.amount < rule.amount_threshold:
            return None

        return self._triggered(rule, f"Large payment of £{request.amount:,.2f} to new payee")
