"""Geography and device fraud rules."""

from ..models import DeviceRule, FraudFactor, GeographicRule
from .base import RuleContext, RuleEvaluator


class GeographicEvaluator(RuleEvaluator):
    """Triggers when the transaction originates from a high-risk country."""

    variant = "geographic"

    async def evaluate(self, rule: GeographicRule, context: RuleContext) -> FraudFactor | None:
        country = context.request.country
        if not country or country.upper() not in rule.high_risk_countries:
            return None

        return self._triggered(rule, f"Transaction from high-risk country {country.upper()}")


class DeviceEvaluator(RuleEvaluator):
    """Triggers when a new device initiates a payment at or above the threshold."""

    variant = "device"

    async def evaluate(self, rule: DeviceRule, context: RuleContext) -> FraudFactor | None:
        request = context.request
        if not request.is_new_device or request.amount < rule.amount_threshold:
            return None

        return self._triggered(rule, "Payment initiated from an unrecognised device")
