"""Abstract base class for fraud rule evaluators."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from ..models import FraudFactor, FraudScoreRequest

if TYPE_CHECKING:
    from src.db.accessor import RuleStore


@dataclass
class RuleContext:
    """Everything an evaluator may look at for one transaction."""

    request: FraudScoreRequest
    now: datetime
    account_ids: list[str]
    store: "RuleStore"


class RuleEvaluator(ABC):
    """Evaluates one rule variant.

    Evaluators are stateless; the rule definition carries the parameters and
    the weight, the context carries the transaction and history access.
    """

    variant: str

    @abstractmethod
    async def evaluate(self, rule, context: RuleContext) -> FraudFactor | None:
        """Return a factor when the rule triggers, otherwise None."""
        ...

    def _triggered(self, rule, description: str) -> FraudFactor:
        return FraudFactor(rule=rule.name, points=rule.weight, description=description)
