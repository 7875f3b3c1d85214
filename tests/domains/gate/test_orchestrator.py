"""Tests for the combined transaction gate."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.domains.compliance.models import AlertSeverity, AlertType, AmlCheckResult, AmlFinding
from src.domains.fraud.models import FraudDecision, FraudScoreResult
from src.domains.gate.models import GateRequest, GateStage
from src.domains.gate.orchestrator import TransactionGate
from src.domains.limits.models import LimitCheckResult
from src.domains.sca.models import ChallengeCreated

ALLOWED = LimitCheckResult(allowed=True, daily_limit=1_000, monthly_limit=5_000, single_limit=500)
REJECTED = LimitCheckResult(
    allowed=False,
    reason="This transaction exceeds your single payment limit of £500.00.",
    daily_limit=1_000,
    monthly_limit=5_000,
    single_limit=500,
)
CLEAN_AML = AmlCheckResult(passed=True)
CRITICAL_AML = AmlCheckResult(
    passed=False,
    alerts=[
        AmlFinding(
            type=AlertType.LARGE_TRANSACTION, severity=AlertSeverity.CRITICAL, reason="large"
        )
    ],
)


def _fraud(decision=FraudDecision.ALLOW, score=0) -> FraudScoreResult:
    return FraudScoreResult(score_id="score-1", score=score, decision=decision)


def _gate(fraud=None, aml=CLEAN_AML, step_up=False):
    scorer = MagicMock()
    scorer.score_transaction = AsyncMock(return_value=fraud or _fraud())
    monitor = MagicMock()
    monitor.check_transaction = AsyncMock(return_value=aml)
    sca = MagicMock()
    sca.requires_step_up = MagicMock(return_value=step_up)
    sca.create_challenge = AsyncMock(
        return_value=ChallengeCreated(
            challenge_id="ch-1", expires_at=datetime.now(UTC) + timedelta(minutes=5)
        )
    )
    return TransactionGate(scorer, monitor, sca), scorer, monitor, sca


def _request(**kwargs) -> GateRequest:
    defaults = {"customer_id": "user-1", "amount": 100.0, "transaction_id": "txn-1"}
    defaults.update(kwargs)
    return GateRequest(**defaults)


def _patched_limits(result=ALLOWED):
    check = AsyncMock(return_value=result)
    tier = AsyncMock(return_value="basic")
    return (
        patch("src.domains.gate.orchestrator.check_limits", check),
        patch("src.domains.gate.orchestrator.get_kyc_tier", tier),
        check,
        tier,
    )


async def _evaluate(gate, request=None, limits=ALLOWED):
    limits_patch, tier_patch, check, tier = _patched_limits(limits)
    with limits_patch, tier_patch:
        result = await gate.evaluate(request or _request(), AsyncMock())
    return result, check, tier


class TestTransactionGate:
    @pytest.mark.asyncio
    async def test_limits_rejection_skips_scoring(self):
        gate, scorer, monitor, sca = _gate()
        result, _, _ = await _evaluate(gate, limits=REJECTED)

        assert result.allowed is False
        assert result.stage == GateStage.LIMITS
        assert result.reason == REJECTED.reason
        scorer.score_transaction.assert_not_awaited()
        monitor.check_transaction.assert_not_awaited()
        sca.create_challenge.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_clean_transaction_below_step_up(self):
        gate, _, _, sca = _gate()
        result, _, _ = await _evaluate(gate)

        assert result.allowed is True
        assert result.stage == GateStage.CLEARED
        assert result.step_up_required is False
        assert result.review_required is False
        assert result.challenge is None
        sca.create_challenge.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_step_up_issues_challenge(self):
        gate, _, _, sca = _gate(step_up=True)
        result, _, _ = await _evaluate(gate, _request(amount=300, action="large_payment"))

        assert result.allowed is True
        assert result.step_up_required is True
        assert result.challenge.challenge_id == "ch-1"
        sca.requires_step_up.assert_called_once_with(amount=300, action="large_payment")
        assert sca.create_challenge.await_args.kwargs["metadata"] == {
            "amount": 300,
            "transaction_id": "txn-1",
        }

    @pytest.mark.asyncio
    async def test_fraud_block(self):
        gate, _, monitor, sca = _gate(fraud=_fraud(FraudDecision.BLOCK, 75))
        result, _, _ = await _evaluate(gate)

        assert result.allowed is False
        assert result.stage == GateStage.FRAUD
        assert result.fraud.score == 75
        # AML still runs so its findings are recorded
        monitor.check_transaction.assert_awaited_once()
        sca.create_challenge.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fraud_block_reported_before_aml(self):
        gate, _, _, _ = _gate(fraud=_fraud(FraudDecision.BLOCK, 90), aml=CRITICAL_AML)
        result, _, _ = await _evaluate(gate)
        assert result.stage == GateStage.FRAUD

    @pytest.mark.asyncio
    async def test_critical_aml(self):
        gate, _, _, _ = _gate(aml=CRITICAL_AML)
        result, _, _ = await _evaluate(gate)
        assert result.allowed is False
        assert result.stage == GateStage.AML

    @pytest.mark.asyncio
    async def test_review_decision_clears_but_flags(self):
        gate, _, _, _ = _gate(fraud=_fraud(FraudDecision.REVIEW, 45))
        result, _, _ = await _evaluate(gate)
        assert result.allowed is True
        assert result.review_required is True

    @pytest.mark.asyncio
    async def test_explicit_tier_skips_profile_lookup(self):
        gate, _, _, _ = _gate()
        _, check, tier = await _evaluate(gate, _request(kyc_tier="enhanced"))
        tier.assert_not_awaited()
        assert check.await_args.kwargs["kyc_tier"] == "enhanced"
