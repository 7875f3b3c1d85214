"""Unit tests for the fraud scorer pipeline."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.db.models import FraudCaseDB, FraudScoreDB
from src.domains.fraud.config import FraudConfig
from src.domains.fraud.models import (
    AmountThresholdRule,
    FraudDecision,
    FraudScoreRequest,
    VelocityRule,
)
from src.domains.fraud.scorer import FraudScorer
from src.shared.errors import RuleConfigurationError

NOW = datetime(2026, 1, 15, 14, 0, tzinfo=UTC)


@pytest.fixture
def mock_session():
    session = AsyncMock()
    session.add = MagicMock()
    session.commit = AsyncMock()
    return session


def _make_request(**kwargs) -> FraudScoreRequest:
    defaults = {
        "transaction_id": "txn-test-1",
        "customer_id": "user-test-1",
        "amount": 5000.0,
        "initiated_at": NOW,
    }
    defaults.update(kwargs)
    return FraudScoreRequest(**defaults)


def _patched_store(rules, count=0):
    store = MagicMock()
    store.active_fraud_rules = AsyncMock(return_value=rules)
    store.account_ids = AsyncMock(return_value=["acc-1"])
    store.count_transactions = AsyncMock(return_value=count)
    return patch("src.domains.fraud.scorer.RuleStore", return_value=store)


def _added(session, model):
    return [c.args[0] for c in session.add.call_args_list if isinstance(c.args[0], model)]


def _threshold_rule(weight: int, threshold: float = 1000.0) -> AmountThresholdRule:
    return AmountThresholdRule(
        rule_id=f"amt-{weight}", name=f"Amount {weight}", weight=weight, threshold=threshold
    )


class TestFraudScorer:
    @pytest.mark.asyncio
    async def test_allow_persists_score_without_case_or_audit(self, mock_session, mock_audit):
        scorer = FraudScorer(config=FraudConfig(), audit=mock_audit)
        with _patched_store([_threshold_rule(20, threshold=10_000)]):
            result = await scorer.score_transaction(_make_request(), mock_session)

        assert result.decision == FraudDecision.ALLOW
        assert result.score == 0
        assert result.case_id is None
        scores = _added(mock_session, FraudScoreDB)
        assert len(scores) == 1
        assert scores[0].score_id == result.score_id
        assert scores[0].decision == "allow"
        assert _added(mock_session, FraudCaseDB) == []
        mock_session.commit.assert_awaited_once()
        mock_audit.emit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_review_emits_flagged_audit(self, mock_session, mock_audit):
        scorer = FraudScorer(config=FraudConfig(), audit=mock_audit)
        with _patched_store([_threshold_rule(40)]):
            result = await scorer.score_transaction(_make_request(), mock_session)

        assert result.decision == FraudDecision.REVIEW
        event = mock_audit.emit.await_args.args[0]
        assert event.action == "transaction_flagged"
        assert event.details == {
            "score": 40,
            "decision": "review",
            "factor_count": 1,
            "amount": 5000.0,
        }

    @pytest.mark.asyncio
    async def test_block_opens_high_priority_case(self, mock_session, mock_audit):
        scorer = FraudScorer(config=FraudConfig(), audit=mock_audit)
        velocity = VelocityRule(rule_id="vel", name="Velocity", weight=25)
        with _patched_store([_threshold_rule(40), velocity], count=5):
            result = await scorer.score_transaction(_make_request(), mock_session)

        assert result.score == 65
        assert result.decision == FraudDecision.BLOCK
        cases = _added(mock_session, FraudCaseDB)
        assert len(cases) == 1
        case = cases[0]
        assert result.case_id == case.case_id
        assert case.fraud_score_id == result.score_id
        assert case.priority == "high"
        assert case.status == "open"
        assert case.amount_at_risk == 5000.0
        assert "Score: 65/100" in case.description
        assert mock_audit.emit.await_args.args[0].action == "transaction_blocked"

    @pytest.mark.asyncio
    async def test_block_at_80_is_critical(self, mock_session, mock_audit):
        scorer = FraudScorer(config=FraudConfig(), audit=mock_audit)
        with _patched_store([_threshold_rule(50), _threshold_rule(30)]):
            result = await scorer.score_transaction(_make_request(), mock_session)

        assert result.score == 80
        assert _added(mock_session, FraudCaseDB)[0].priority == "critical"

    @pytest.mark.asyncio
    async def test_no_rules_allows_by_default(self, mock_session, mock_audit):
        scorer = FraudScorer(config=FraudConfig(), audit=mock_audit)
        with _patched_store([]):
            result = await scorer.score_transaction(_make_request(), mock_session)

        assert result.score == 0
        assert result.decision == FraudDecision.ALLOW
        assert len(_added(mock_session, FraudScoreDB)) == 1

    @pytest.mark.asyncio
    async def test_no_rules_fail_closed_sends_to_review(self, mock_session, mock_audit):
        scorer = FraudScorer(
            config=FraudConfig(fail_closed_when_unconfigured=True), audit=mock_audit
        )
        with _patched_store([]):
            result = await scorer.score_transaction(_make_request(), mock_session)

        assert result.decision == FraudDecision.REVIEW
        assert [f.rule for f in result.factors] == ["no_active_rules"]

    @pytest.mark.asyncio
    async def test_misconfigured_rule_propagates(self, mock_session, mock_audit):
        scorer = FraudScorer(config=FraudConfig(), audit=mock_audit)
        store = MagicMock()
        store.active_fraud_rules = AsyncMock(side_effect=RuleConfigurationError("bad rule"))
        with (
            patch("src.domains.fraud.scorer.RuleStore", return_value=store),
            pytest.raises(RuleConfigurationError),
        ):
            await scorer.score_transaction(_make_request(), mock_session)

        mock_session.add.assert_not_called()
        mock_session.commit.assert_not_awaited()
