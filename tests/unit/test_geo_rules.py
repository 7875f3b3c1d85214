"""Unit tests for geographic and device fraud rules."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from src.domains.fraud.models import DeviceRule, FraudScoreRequest, GeographicRule
from src.domains.fraud.rules import RuleContext
from src.domains.fraud.rules.geo import DeviceEvaluator, GeographicEvaluator


def _context(**kwargs) -> RuleContext:
    defaults = {"customer_id": "user-1", "amount": 200.0}
    defaults.update(kwargs)
    return RuleContext(
        request=FraudScoreRequest(**defaults),
        now=datetime(2026, 1, 15, 14, 0, tzinfo=UTC),
        account_ids=["acc-1"],
        store=MagicMock(),
    )


class TestGeographicEvaluator:
    evaluator = GeographicEvaluator()
    rule = GeographicRule(
        rule_id="r-geo", name="High-risk country", weight=30, high_risk_countries={"KP", "IR"}
    )

    @pytest.mark.asyncio
    async def test_high_risk_country(self):
        factor = await self.evaluator.evaluate(self.rule, _context(country="ir"))
        assert factor is not None
        assert factor.points == 30
        assert factor.description.endswith("IR")

    @pytest.mark.asyncio
    async def test_other_country(self):
        assert await self.evaluator.evaluate(self.rule, _context(country="GB")) is None

    @pytest.mark.asyncio
    async def test_unknown_country(self):
        assert await self.evaluator.evaluate(self.rule, _context()) is None


class TestDeviceEvaluator:
    evaluator = DeviceEvaluator()

    @pytest.mark.asyncio
    async def test_new_device_any_amount_by_default(self):
        rule = DeviceRule(rule_id="r-dev", name="New device", weight=10)
        factor = await self.evaluator.evaluate(rule, _context(is_new_device=True))
        assert factor is not None

    @pytest.mark.asyncio
    async def test_new_device_below_threshold(self):
        rule = DeviceRule(rule_id="r-dev", name="New device", weight=10, amount_threshold=500)
        assert await self.evaluator.evaluate(rule, _context(is_new_device=True)) is None

    @pytest.mark.asyncio
    async def test_known_device(self):
        rule = DeviceRule(rule_id="r-dev", name="New device", weight=10)
        assert await self.evaluator.evaluate(rule, _context()) is None
