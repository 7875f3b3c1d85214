"""Pydantic models for the compliance domain."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class AlertSeverity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AlertType(StrEnum):
    LARGE_TRANSACTION = "large_transaction"
    VELOCITY = "velocity"
    STRUCTURING = "structuring"


class AlertStatus(StrEnum):
    NEW = "new"
    INVESTIGATING = "investigating"
    ESCALATED = "escalated"
    DISMISSED = "dismissed"
    REPORTED = "reported"


class TransactionType(StrEnum):
    CREDIT = "credit"
    DEBIT = "debit"


class RiskRating(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


# ---------------------------------------------------------------------------
# AML monitoring
# ---------------------------------------------------------------------------


class AmlCheckRequest(BaseModel):
    customer_id: str = Field(min_length=1)
    amount: float = Field(gt=0)
    type: TransactionType
    transaction_id: str | None = None
    counterparty_name: str | None = None
    initiated_at: datetime | None = None


class AmlFinding(BaseModel):
    type: AlertType
    severity: AlertSeverity
    reason: str


class AmlCheckResult(BaseModel):
    passed: bool
    alerts: list[AmlFinding] = []
    alert_ids: list[str] = []


class AlertUpdateRequest(BaseModel):
    actor_id: str
    status: AlertStatus
    notes: str | None = None


# ---------------------------------------------------------------------------
# Customer risk rating
# ---------------------------------------------------------------------------


class RiskFactors(BaseModel):
    """Customer-level inputs to the risk rating. All amounts in GBP."""

    transaction_volume_30d: float = Field(ge=0)
    largest_single_transaction: float = Field(ge=0)
    is_pep: bool = False
    customer_category: str = "standard"
    account_age_days: int = Field(ge=0)
    has_verified_identity: bool = False
    has_verified_address: bool = False
    suspicious_activity_count: int = Field(default=0, ge=0)


class RiskFactorDetail(BaseModel):
    factor: str
    points: int
    description: str


class RiskRatingResult(BaseModel):
    rating: RiskRating
    score: int = Field(ge=0, le=100)
    factors: list[RiskFactorDetail] = []
