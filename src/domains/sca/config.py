"""Strong Customer Authentication configuration.

Defaults apply to any key missing from the ``sca_config`` table. The config
is loaded by the caller and handed to ``ScaService``; reloading is a matter
of calling ``load_sca_config`` again.
"""

from dataclasses import dataclass, field

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.accessor import RuleStore

logger = structlog.get_logger()

DEFAULT_SENSITIVE_ACTIONS = ("change_password", "toggle_2fa", "add_payee", "large_payment")


@dataclass(frozen=True)
class ScaConfig:
    amount_threshold: float = 25.0
    enabled: bool = True
    max_attempts: int = 3
    expiry_seconds: int = 300
    sensitive_actions: frozenset[str] = field(
        default_factory=lambda: frozenset(DEFAULT_SENSITIVE_ACTIONS)
    )

    @classmethod
    def from_values(cls, values: dict) -> "ScaConfig":
        """Merge stored values over the defaults, ignoring unusable ones."""
        defaults = cls()
        kwargs: dict = {}

        if (v := values.get("amount_threshold")) is not None:
            kwargs["amount_threshold"] = _positive(v, float, defaults.amount_threshold)
        if "enabled" in values:
            # Only an explicit false disables SCA
            kwargs["enabled"] = values["enabled"] is not False
        if (v := values.get("max_attempts")) is not None:
            kwargs["max_attempts"] = _positive(v, int, defaults.max_attempts)
        if (v := values.get("expiry_seconds")) is not None:
            kwargs["expiry_seconds"] = _positive(v, int, defaults.expiry_seconds)
        if "sensitive_actions" in values:
            actions = values["sensitive_actions"] or []
            kwargs["sensitive_actions"] = frozenset(str(a) for a in actions)

        return cls(**kwargs)


def _positive(value, cast, default):
    try:
        parsed = cast(value)
    except (TypeError, ValueError):
        logger.warning("sca_config_value_invalid", value=value)
        return default
    return parsed if parsed > 0 else default


async def load_sca_config(session: AsyncSession) -> ScaConfig:
    values = await RuleStore(session).sca_config_values()
    return ScaConfig.from_values(values)
