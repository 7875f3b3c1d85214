"""Fraud rule evaluators.

Exports EVALUATORS (variant -> evaluator instance) and ``parse_rule`` for
turning stored rule rows into typed definitions.
"""

from .amount import AmountMultiplierEvaluator, AmountThresholdEvaluator
from .base import RuleContext, RuleEvaluator
from .behavioural import BehaviouralEvaluator
from .geo import DeviceEvaluator, GeographicEvaluator
from .parsing import parse_rule
from .velocity import TimeBasedEvaluator, VelocityEvaluator

EVALUATORS: dict[str, RuleEvaluator] = {
    evaluator.variant: evaluator
    for evaluator in (
        VelocityEvaluator(),
        AmountThresholdEvaluator(),
        AmountMultiplierEvaluator(),
        BehaviouralEvaluator(),
        TimeBasedEvaluator(),
        GeographicEvaluator(),
        DeviceEvaluator(),
    )
}

__all__ = [
    "EVALUATORS",
    "RuleContext",
    "RuleEvaluator",
    "parse_rule",
    "AmountMultiplierEvaluator",
    "AmountThresholdEvaluator",
    "BehaviouralEvaluator",
    "DeviceEvaluator",
    "GeographicEvaluator",
    "TimeBasedEvaluator",
    "VelocityEvaluator",
]
