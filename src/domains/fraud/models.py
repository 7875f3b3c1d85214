"""Pydantic models for the fraud domain."""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, Field, model_validator


class FraudDecision(StrEnum):
    ALLOW = "allow"
    REVIEW = "review"
    BLOCK = "block"


class FraudRuleKind(StrEnum):
    VELOCITY = "velocity"
    AMOUNT = "amount"
    BEHAVIOURAL = "behavioural"
    TIME_BASED = "time_based"
    GEOGRAPHIC = "geographic"
    DEVICE = "device"


class FraudCaseStatus(StrEnum):
    OPEN = "open"
    INVESTIGATING = "investigating"
    CONFIRMED_FRAUD = "confirmed_fraud"
    FALSE_POSITIVE = "false_positive"
    CLOSED = "closed"


class FraudCasePriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ReviewDecision(StrEnum):
    APPROVED = "approved"
    REJECTED = "rejected"
    ESCALATED = "escalated"


# ---------------------------------------------------------------------------
# Rule definitions: one variant per rule kind
# ---------------------------------------------------------------------------


class _RuleBase(BaseModel):
    model_config = {"frozen": True}

    rule_id: str
    name: str
    weight: int = Field(ge=0)


class VelocityRule(_RuleBase):
    variant: Literal["velocity"] = "velocity"
    window_minutes: int = Field(default=60, gt=0)
    max_transactions: int = Field(default=5, gt=0)


class AmountThresholdRule(_RuleBase):
    variant: Literal["amount_threshold"] = "amount_threshold"
    threshold: float = Field(gt=0)


class AmountMultiplierRule(_RuleBase):
    variant: Literal["amount_multiplier"] = "amount_multiplier"
    multiplier: float = Field(gt=0)
    lookback: int = Field(default=50, gt=0)


class BehaviouralRule(_RuleBase):
    variant: Literal["behavioural"] = "behavioural"
    amount_threshold: float = Field(gt=0)


class TimeBasedRule(_RuleBase):
    """Hours are UTC. A window with start_hour > end_hour wraps past midnight."""

    variant: Literal["time_based"] = "time_based"
    start_hour: int = Field(default=1, ge=0, le=23)
    end_hour: int = Field(default=5, ge=1, le=24)

    @model_validator(mode="after")
    def _non_empty_window(self) -> "TimeBasedRule":
        if self.start_hour == self.end_hour:
            raise ValueError("start_hour and end_hour must differ")
        return self

    def contains(self, hour: int) -> bool:
        if self.start_hour < self.end_hour:
            return self.start_hour <= hour < self.end_hour
        return hour >= self.start_hour or hour < self.end_hour


class GeographicRule(_RuleBase):
    variant: Literal["geographic"] = "geographic"
    high_risk_countries: frozenset[str] = Field(min_length=1)


class DeviceRule(_RuleBase):
    variant: Literal["device"] = "device"
    amount_threshold: float = Field(default=0.0, ge=0)


FraudRuleDefinition = Annotated[
    VelocityRule
    | AmountThresholdRule
    | AmountMultiplierRule
    | BehaviouralRule
    | TimeBasedRule
    | GeographicRule
    | DeviceRule,
    Field(discriminator="variant"),
]


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


class FraudScoreRequest(BaseModel):
    customer_id: str = Field(min_length=1)
    amount: float = Field(gt=0)
    transaction_id: str | None = None
    is_new_payee: bool = False
    # Optional context for geographic / device rules
    country: str | None = None
    is_new_device: bool = False
    initiated_at: datetime | None = None


class FraudFactor(BaseModel):
    rule: str
    points: int
    description: str


class FraudScoreResult(BaseModel):
    score_id: str
    score: int = Field(ge=0, le=100)
    decision: FraudDecision
    factors: list[FraudFactor] = []
    case_id: str | None = None


class ReviewRequest(BaseModel):
    reviewer_id: str
    decision: ReviewDecision
    notes: str | None = None


class CaseUpdateRequest(BaseModel):
    actor_id: str
    status: FraudCaseStatus
    resolution: str | None = None
    amount_recovered: float | None = Field(default=None, ge=0)


class FraudCase(BaseModel):
    case_id: str
    fraud_score_id: str | None = None
    user_id: str
    status: FraudCaseStatus
    priority: FraudCasePriority
    assigned_to: str | None = None
    description: str | None = None
    resolution: str | None = None
    amount_at_risk: float | None = None
    amount_recovered: float = 0.0
    created_at: datetime
    updated_at: datetime
