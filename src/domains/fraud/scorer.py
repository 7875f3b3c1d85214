"""Fraud scoring pipeline: rules -> score -> persist -> case -> audit."""

import uuid
from datetime import UTC, datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.accessor import RuleStore
from src.db.models import FraudCaseDB, FraudScoreDB
from src.shared.audit import AuditEmitter, AuditEvent, AuditEventType

from .config import FraudConfig, default_config
from .models import (
    FraudCasePriority,
    FraudCaseStatus,
    FraudDecision,
    FraudFactor,
    FraudScoreRequest,
    FraudScoreResult,
)
from .rules import RuleContext
from .rules_engine import RulesEngine

logger = structlog.get_logger()


class FraudScorer:
    """Orchestrates the full fraud scoring pipeline."""

    def __init__(
        self,
        config: FraudConfig | None = None,
        audit: AuditEmitter | None = None,
    ) -> None:
        self._config = config or default_config
        self._rules_engine = RulesEngine(config=self._config)
        self._audit = audit or AuditEmitter()

    async def score_transaction(
        self,
        request: FraudScoreRequest,
        session: AsyncSession,
    ) -> FraudScoreResult:
        """Score a transaction, persist the result and open a case on block."""
        now = request.initiated_at or datetime.now(UTC)
        store = RuleStore(session)

        # 1. Load rules (raises on a rule that cannot be parsed)
        rules = await store.active_fraud_rules()

        # 2. Evaluate
        if rules:
            account_ids = await store.account_ids(request.customer_id)
            context = RuleContext(
                request=request, now=now, account_ids=account_ids, store=store
            )
            score, decision, factors = await self._rules_engine.evaluate(rules, context)
        else:
            score, decision, factors = self._unconfigured_outcome(request)

        # 3. Persist FraudScore
        score_id = str(uuid.uuid4())
        session.add(
            FraudScoreDB(
                score_id=score_id,
                transaction_id=request.transaction_id,
                user_id=request.customer_id,
                score=score,
                decision=decision.value,
                factors=[f.model_dump() for f in factors],
                model_version=self._config.model_version,
                created_at=now,
            )
        )

        # 4. Open a case for blocked transactions
        case_id = None
        if decision == FraudDecision.BLOCK:
            case_id = str(uuid.uuid4())
            priority = (
                FraudCasePriority.CRITICAL
                if score >= self._config.thresholds.critical_case_min
                else FraudCasePriority.HIGH
            )
            session.add(
                FraudCaseDB(
                    case_id=case_id,
                    fraud_score_id=score_id,
                    user_id=request.customer_id,
                    status=FraudCaseStatus.OPEN.value,
                    priority=priority.value,
                    description=(
                        f"Auto-blocked transaction of £{request.amount:,.2f}. "
                        f"Score: {score}/100."
                    ),
                    amount_at_risk=request.amount,
                    amount_recovered=0.0,
                    created_at=now,
                    updated_at=now,
                )
            )
            logger.warning(
                "fraud_case_opened",
                case_id=case_id,
                customer_id=request.customer_id,
                score=score,
                priority=priority.value,
            )

        await session.commit()

        # 5. Audit non-allow decisions; factor detail stays out of the audit trail
        if decision != FraudDecision.ALLOW:
            await self._audit.emit(
                AuditEvent(
                    event_type=AuditEventType.FRAUD_EVENT,
                    actor_id=request.customer_id,
                    actor_role="customer",
                    target_table="transactions",
                    target_id=request.transaction_id,
                    action=(
                        "transaction_blocked"
                        if decision == FraudDecision.BLOCK
                        else "transaction_flagged"
                    ),
                    details={
                        "score": score,
                        "decision": decision.value,
                        "factor_count": len(factors),
                        "amount": request.amount,
                    },
                )
            )

        logger.info(
            "transaction_scored",
            customer_id=request.customer_id,
            transaction_id=request.transaction_id,
            score=score,
            decision=decision.value,
            triggered_count=len(factors),
            case_created=case_id is not None,
        )

        return FraudScoreResult(
            score_id=score_id,
            score=score,
            decision=decision,
            factors=factors,
            case_id=case_id,
        )

    def _unconfigured_outcome(
        self, request: FraudScoreRequest
    ) -> tuple[int, FraudDecision, list[FraudFactor]]:
        if not self._config.fail_closed_when_unconfigured:
            logger.warning("fraud_rules_unconfigured", customer_id=request.customer_id)
            return 0, FraudDecision.ALLOW, []

        logger.warning(
            "fraud_rules_unconfigured_fail_closed", customer_id=request.customer_id
        )
        return (
            0,
            FraudDecision.REVIEW,
            [
                FraudFactor(
                    rule="no_active_rules",
                    points=0,
                    description="No fraud rules are configured; manual review required",
                )
            ],
        )
