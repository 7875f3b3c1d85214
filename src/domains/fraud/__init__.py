"""Fraud scoring domain."""

from .models import (
    FraudCase,
    FraudCaseStatus,
    FraudDecision,
    FraudFactor,
    FraudRuleDefinition,
    FraudScoreRequest,
    FraudScoreResult,
)
from .rules import EVALUATORS, parse_rule
from .rules_engine import RulesEngine, classify_decision

__all__ = [
    "EVALUATORS",
    "FraudCase",
    "FraudCaseStatus",
    "FraudDecision",
    "FraudFactor",
    "FraudRuleDefinition",
    "FraudScoreRequest",
    "FraudScoreResult",
    "RulesEngine",
    "classify_decision",
    "parse_rule",
]
