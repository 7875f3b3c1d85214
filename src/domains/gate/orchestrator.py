"""Runs the engines in order for one money-movement request.

    KYC tier -> limits -> fraud + AML -> step-up challenge

Limits run first because they can reject without any scoring. Fraud and
AML are independent; both run before a decision so that every finding is
recorded. A step-up challenge is only issued once the request has cleared.
"""

from datetime import UTC, datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.compliance.models import AmlCheckRequest
from src.domains.compliance.monitor import AmlMonitor
from src.domains.fraud.models import FraudDecision, FraudScoreRequest
from src.domains.fraud.scorer import FraudScorer
from src.domains.limits.config import LimitsConfig
from src.domains.limits.config import default_config as default_limits_config
from src.domains.limits.enforcement import check_limits, get_kyc_tier
from src.domains.sca.service import ScaService

from .models import GateRequest, GateResult, GateStage

logger = structlog.get_logger()


class TransactionGate:
    def __init__(
        self,
        fraud_scorer: FraudScorer,
        aml_monitor: AmlMonitor,
        sca_service: ScaService,
        limits_config: LimitsConfig = default_limits_config,
    ) -> None:
        self._fraud = fraud_scorer
        self._aml = aml_monitor
        self._sca = sca_service
        self._limits_config = limits_config

    async def evaluate(self, request: GateRequest, session: AsyncSession) -> GateResult:
        now = datetime.now(UTC)

        # 1. KYC tier and limits (early exit)
        tier = request.kyc_tier or await get_kyc_tier(
            session, request.customer_id, self._limits_config
        )
        limits = await check_limits(
            session,
            request.customer_id,
            request.amount,
            kyc_tier=tier,
            now=now,
            config=self._limits_config,
        )
        if not limits.allowed:
            return self._rejected(request, GateStage.LIMITS, limits.reason, limits=limits)

        # 2. Fraud and AML
        fraud = await self._fraud.score_transaction(
            FraudScoreRequest(
                customer_id=request.customer_id,
                amount=request.amount,
                transaction_id=request.transaction_id,
                is_new_payee=request.is_new_payee,
                country=request.country,
                is_new_device=request.is_new_device,
                initiated_at=now,
            ),
            session,
        )
        aml = await self._aml.check_transaction(
            AmlCheckRequest(
                customer_id=request.customer_id,
                amount=request.amount,
                type=request.type,
                transaction_id=request.transaction_id,
                counterparty_name=request.counterparty_name,
                initiated_at=now,
            ),
            session,
        )

        if fraud.decision == FraudDecision.BLOCK:
            return self._rejected(
                request,
                GateStage.FRAUD,
                "This payment has been blocked for your protection. Please contact us.",
                limits=limits,
                fraud=fraud,
                aml=aml,
            )
        if not aml.passed:
            return self._rejected(
                request,
                GateStage.AML,
                "This payment requires a compliance review before it can proceed.",
                limits=limits,
                fraud=fraud,
                aml=aml,
            )

        # 3. Step-up
        step_up = self._sca.requires_step_up(amount=request.amount, action=request.action)
        challenge = None
        if step_up:
            challenge = await self._sca.create_challenge(
                session,
                request.customer_id,
                request.action,
                metadata={"amount": request.amount, "transaction_id": request.transaction_id},
            )

        review_required = fraud.decision == FraudDecision.REVIEW or bool(aml.alerts)
        logger.info(
            "gate_cleared",
            customer_id=request.customer_id,
            transaction_id=request.transaction_id,
            fraud_decision=fraud.decision.value,
            aml_alert_count=len(aml.alerts),
            step_up_required=step_up,
            review_required=review_required,
        )
        return GateResult(
            allowed=True,
            stage=GateStage.CLEARED,
            limits=limits,
            fraud=fraud,
            aml=aml,
            review_required=review_required,
            step_up_required=step_up,
            challenge=challenge,
        )

    def _rejected(self, request: GateRequest, stage: GateStage, reason: str | None, **results) -> GateResult:
        logger.warning(
            "gate_rejected",
            customer_id=request.customer_id,
            transaction_id=request.transaction_id,
            stage=stage.value,
        )
        return GateResult(allowed=False, stage=stage, reason=reason, **results)
