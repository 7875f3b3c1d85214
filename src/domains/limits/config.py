"""Limit enforcement configuration."""

import os
from dataclasses import dataclass


@dataclass
class LimitsConfig:
    default_tier: str = "basic"
    # Reported as the caps when a tier has no configured limits
    unlimited_cap: float = 999_999.0
    # Reject instead of allowing when a tier has no configured limits
    fail_closed_when_unconfigured: bool = False

    @classmethod
    def from_env(cls) -> "LimitsConfig":
        """Load config with env var overrides (LIMITS_ prefix)."""
        config = cls()

        if v := os.getenv("LIMITS_DEFAULT_TIER"):
            config.default_tier = v
        if v := os.getenv("LIMITS_FAIL_CLOSED"):
            config.fail_closed_when_unconfigured = v.lower() in ("true", "1", "yes")

        return config


# Module-level default instance
default_config = LimitsConfig()
