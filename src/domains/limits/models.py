"""Pydantic models for KYC-tier transaction limits."""

from enum import StrEnum

from pydantic import BaseModel, Field


class KycTier(StrEnum):
    BASIC = "basic"
    STANDARD = "standard"
    ENHANCED = "enhanced"


class TransactionLimit(BaseModel):
    kyc_tier: str
    daily_limit: float = Field(ge=0)
    monthly_limit: float = Field(ge=0)
    single_transaction_limit: float = Field(ge=0)


class LimitCheckRequest(BaseModel):
    customer_id: str = Field(min_length=1)
    amount: float = Field(gt=0)
    kyc_tier: str | None = None


class LimitCheckResult(BaseModel):
    allowed: bool
    reason: str | None = None
    daily_used: float = 0.0
    daily_limit: float
    monthly_used: float = 0.0
    monthly_limit: float
    single_limit: float


class CoolingCheckRequest(BaseModel):
    payee_id: str = Field(min_length=1)
    rail: str = "fps"


class CoolingCheckResult(BaseModel):
    allowed: bool
    reason: str | None = None
    hours_remaining: int | None = None
