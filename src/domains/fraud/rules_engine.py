"""Additive rule evaluation for fraud scoring."""

import structlog

from .config import FraudConfig, default_config
from .models import FraudDecision, FraudFactor, FraudRuleDefinition
from .rules import EVALUATORS, RuleContext

logger = structlog.get_logger()


def classify_decision(score: int, config: FraudConfig = default_config) -> FraudDecision:
    if score >= config.thresholds.block_min:
        return FraudDecision.BLOCK
    if score >= config.thresholds.review_min:
        return FraudDecision.REVIEW
    return FraudDecision.ALLOW


class RulesEngine:
    """Evaluates a transaction against a set of typed fraud rules.

    Scoring is additive: every triggered rule contributes its full weight,
    the total is clamped to [0, max_score], and the decision follows from
    fixed thresholds. Adding a triggered rule can never lower the score.
    """

    def __init__(self, config: FraudConfig | None = None) -> None:
        self._config = config or default_config

    async def evaluate(
        self,
        rules: list[FraudRuleDefinition],
        context: RuleContext,
    ) -> tuple[int, FraudDecision, list[FraudFactor]]:
        factors: list[FraudFactor] = []

        for rule in rules:
            evaluator = EVALUATORS[rule.variant]
            factor = await evaluator.evaluate(rule, context)
            if factor is not None:
                factors.append(factor)

        total = sum(f.points for f in factors)
        score = max(0, min(total, self._config.thresholds.max_score))
        decision = classify_decision(score, self._config)

        logger.info(
            "rules_evaluated",
            customer_id=context.request.customer_id,
            transaction_id=context.request.transaction_id,
            rule_count=len(rules),
            triggered_count=len(factors),
            score=score,
            decision=decision.value,
        )

        return score, decision, factors
