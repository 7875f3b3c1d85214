"""Pydantic models for the combined transaction gate."""

from enum import StrEnum

from pydantic import BaseModel, Field

from src.domains.compliance.models import AmlCheckResult, TransactionType
from src.domains.fraud.models import FraudScoreResult
from src.domains.limits.models import LimitCheckResult
from src.domains.sca.models import ChallengeCreated


class GateStage(StrEnum):
    LIMITS = "limits"
    FRAUD = "fraud"
    AML = "aml"
    CLEARED = "cleared"


class GateRequest(BaseModel):
    customer_id: str = Field(min_length=1)
    amount: float = Field(gt=0)
    type: TransactionType = TransactionType.DEBIT
    transaction_id: str | None = None
    action: str = "payment"
    is_new_payee: bool = False
    counterparty_name: str | None = None
    country: str | None = None
    is_new_device: bool = False
    kyc_tier: str | None = None


class GateResult(BaseModel):
    allowed: bool
    stage: GateStage
    reason: str | None = None
    limits: LimitCheckResult
    fraud: FraudScoreResult | None = None
    aml: AmlCheckResult | None = None
    review_required: bool = False
    step_up_required: bool = False
    challenge: ChallengeCreated | None = None
