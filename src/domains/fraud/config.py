"""Fraud scoring configuration with sensible defaults."""

import os
from dataclasses import dataclass, field


@dataclass
class DecisionThresholds:
    # Scores are integers in [0, 100]
    block_min: int = 61
    review_min: int = 31
    critical_case_min: int = 80
    max_score: int = 100


@dataclass
class FraudConfig:
    thresholds: DecisionThresholds = field(default_factory=DecisionThresholds)
    model_version: str = "rules-v1"

    # With no active rules the engine allows everything unless this is set,
    # in which case the transaction is sent to review.
    fail_closed_when_unconfigured: bool = False

    @classmethod
    def from_env(cls) -> "FraudConfig":
        """Load config with env var overrides. Env vars use FRAUD_ prefix."""
        config = cls()

        if v := os.getenv("FRAUD_BLOCK_MIN"):
            config.thresholds.block_min = int(v)
        if v := os.getenv("FRAUD_REVIEW_MIN"):
            config.thresholds.review_min = int(v)
        if v := os.getenv("FRAUD_CRITICAL_CASE_MIN"):
            config.thresholds.critical_case_min = int(v)
        if v := os.getenv("FRAUD_FAIL_CLOSED"):
            config.fail_closed_when_unconfigured = v.lower() in ("true", "1", "yes")

        return config


# Module-level default instance
default_config = FraudConfig()
