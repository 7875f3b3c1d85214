"""Convert stored fraud rule rows into typed rule definitions."""

from pydantic import TypeAdapter, ValidationError

from src.shared.errors import RuleConfigurationError

from ..models import FraudRuleDefinition, FraudRuleKind

_adapter: TypeAdapter[FraudRuleDefinition] = TypeAdapter(FraudRuleDefinition)


def _variants(kind: FraudRuleKind, conditions: dict) -> list[tuple[str, dict]]:
    if kind == FraudRuleKind.AMOUNT:
        # One stored amount rule may carry both forms
        variants = []
        if conditions.get("threshold") is not None:
            variants.append(("amount_threshold", {"threshold": conditions["threshold"]}))
        if conditions.get("multiplier") is not None:
            params = {"multiplier": conditions["multiplier"]}
            if conditions.get("lookback") is not None:
                params["lookback"] = conditions["lookback"]
            variants.append(("amount_multiplier", params))
        return variants

    if kind == FraudRuleKind.GEOGRAPHIC:
        countries = conditions.get("high_risk_countries") or conditions.get("countries") or []
        return [("geographic", {"high_risk_countries": {c.upper() for c in countries}})]

    return [(kind.value, dict(conditions))]


def parse_rule(
    rule_id: str,
    name: str,
    kind: str,
    conditions: dict,
    weight: int,
) -> list[FraudRuleDefinition]:
    """Parse one stored rule.

    Raises RuleConfigurationError when the kind is unknown or the conditions
    do not fit the kind, so that a misconfigured rule is never silently
    skipped.
    """
    try:
        rule_kind = FraudRuleKind(kind)
    except ValueError as exc:
        raise RuleConfigurationError(f"Fraud rule {rule_id} has unknown kind {kind!r}") from exc

    variants = _variants(rule_kind, conditions)
    if not variants:
        raise RuleConfigurationError(
            f"Fraud rule {rule_id} ({kind}) has no usable conditions"
        )

    parsed: list[FraudRuleDefinition] = []
    for variant, params in variants:
        try:
            parsed.append(
                _adapter.validate_python(
                    {
                        "variant": variant,
                        "rule_id": rule_id,
                        "name": name,
                        "weight": weight,
                        **params,
                    }
                )
            )
        except ValidationError as exc:
            raise RuleConfigurationError(
                f"Fraud rule {rule_id} ({kind}) has invalid conditions: {exc.error_count()} error(s)"
            ) from exc
    return parsed
