"""AML monitoring and customer risk rating configuration.

Thresholds follow UK practice for a retail bank: £10,000 is the reporting
threshold for large cash-equivalent transactions, and the structuring band
sits immediately below it.

References:
- Money Laundering Regulations 2017, reg. 27 (cash transactions of EUR 10,000+)
- Proceeds of Crime Act 2002, s.330 (failure to disclose)
- JMLSG Guidance Part I, ch. 5 (risk-based approach, customer risk assessment)
"""

import os
from dataclasses import dataclass, field


@dataclass
class LargeTransactionConfig:
    """Single transactions at or above the reporting threshold."""

    threshold: float = 10_000.0
    # At or above this the alert is critical and the transaction is held
    critical_threshold: float = 50_000.0


@dataclass
class VelocityConfig:
    """Burst of transactions across all of a customer's accounts."""

    window_minutes: int = 60
    # Prior transactions in the window at which the current one alerts
    max_transactions: int = 5


@dataclass
class StructuringConfig:
    """Repeated transactions just under the reporting threshold."""

    band_low: float = 8_000.0
    band_high: float = 10_000.0  # exclusive
    window_hours: int = 24
    # Other in-band transactions in the window required to alert
    min_prior_in_band: int = 2


@dataclass
class AmlConfig:
    large_transaction: LargeTransactionConfig = field(default_factory=LargeTransactionConfig)
    velocity: VelocityConfig = field(default_factory=VelocityConfig)
    structuring: StructuringConfig = field(default_factory=StructuringConfig)

    @classmethod
    def from_env(cls) -> "AmlConfig":
        """Load config with env var overrides (AML_ prefix)."""
        config = cls()

        if v := os.getenv("AML_LARGE_TRANSACTION_THRESHOLD"):
            config.large_transaction.threshold = float(v)
        if v := os.getenv("AML_CRITICAL_THRESHOLD"):
            config.large_transaction.critical_threshold = float(v)
        if v := os.getenv("AML_VELOCITY_MAX_TRANSACTIONS"):
            config.velocity.max_transactions = int(v)
        if v := os.getenv("AML_VELOCITY_WINDOW_MINUTES"):
            config.velocity.window_minutes = int(v)
        if v := os.getenv("AML_STRUCTURING_WINDOW_HOURS"):
            config.structuring.window_hours = int(v)

        return config


@dataclass
class RiskRatingConfig:
    """Additive customer risk scoring (JMLSG Part I, 5.3).

    Points per factor; the total is capped at ``max_score`` and mapped to a
    rating tier by the lower bounds below.
    """

    pep_points: int = 30

    # (exclusive lower bound, points), highest first; only the first match counts
    volume_bands: tuple[tuple[float, int], ...] = (
        (100_000.0, 25),
        (50_000.0, 15),
        (20_000.0, 10),
    )
    largest_transaction_bands: tuple[tuple[float, int], ...] = (
        (10_000.0, 20),
        (5_000.0, 10),
    )

    high_net_worth_points: int = 10
    new_account_days: int = 90
    new_account_points: int = 10
    unverified_identity_points: int = 15
    unverified_address_points: int = 10
    suspicious_activity_points: int = 15
    suspicious_activity_cap: int = 45

    max_score: int = 100
    very_high_min: int = 76
    high_min: int = 51
    medium_min: int = 26


# Module-level default instances
default_config = AmlConfig()
default_rating_config = RiskRatingConfig()
