"""Tests for the new-payee cooling period."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.domains.limits.cooling import check_cooling_period, mark_payee_first_used

NOW = datetime(2026, 3, 17, 15, 0, tzinfo=UTC)


def _store(cooling_hours=24, is_active=True, payee=None, config_missing=False):
    store = MagicMock()
    config = None if config_missing else MagicMock(cooling_hours=cooling_hours, is_active=is_active)
    store.cooling_period_config = AsyncMock(return_value=config)
    store.payee = AsyncMock(return_value=payee)
    store.mark_payee_first_used = AsyncMock()
    return store


def _payee(created_hours_ago: float, first_used_at=None):
    return MagicMock(created_at=NOW - timedelta(hours=created_hours_ago), first_used_at=first_used_at)


async def _check(store, payee_id="payee-1"):
    with patch("src.domains.limits.cooling.RuleStore", return_value=store):
        return await check_cooling_period(AsyncMock(), payee_id, "fps", now=NOW)


class TestCoolingPeriod:
    @pytest.mark.asyncio
    async def test_no_config_allows(self):
        assert (await _check(_store(config_missing=True))).allowed

    @pytest.mark.asyncio
    async def test_inactive_config_allows(self):
        assert (await _check(_store(is_active=False, payee=_payee(1)))).allowed

    @pytest.mark.asyncio
    async def test_inside_window_blocks_with_hours_remaining(self):
        result = await _check(_store(payee=_payee(20.5)))
        assert result.allowed is False
        assert result.hours_remaining == 4
        assert "24-hour cooling period" in result.reason
        assert "4 hours." in result.reason

    @pytest.mark.asyncio
    async def test_single_hour_remaining(self):
        result = await _check(_store(payee=_payee(23.5)))
        assert result.hours_remaining == 1
        assert result.reason.endswith("1 hour.")

    @pytest.mark.asyncio
    async def test_window_elapsed(self):
        assert (await _check(_store(payee=_payee(24)))).allowed

    @pytest.mark.asyncio
    async def test_already_used_payee(self):
        payee = _payee(1, first_used_at=NOW - timedelta(minutes=5))
        assert (await _check(_store(payee=payee))).allowed

    @pytest.mark.asyncio
    async def test_unknown_payee(self):
        result = await _check(_store(payee=None))
        assert result.allowed is False
        assert result.reason == "Payee not found"

    @pytest.mark.asyncio
    async def test_mark_first_used(self):
        store = _store()
        with patch("src.domains.limits.cooling.RuleStore", return_value=store):
            await mark_payee_first_used(AsyncMock(), "payee-1", now=NOW)
        store.mark_payee_first_used.assert_awaited_once_with("payee-1", NOW)
