"""Pydantic models for step-up challenges."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ChallengeState(StrEnum):
    PENDING = "pending"
    VERIFIED = "verified"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"


class VerifyErrorCode(StrEnum):
    INVALID_FORMAT = "invalid_format"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    INCORRECT_CODE = "incorrect_code"


class StepUpRequest(BaseModel):
    amount: float | None = Field(default=None, ge=0)
    action: str | None = None


class CreateChallengeRequest(BaseModel):
    customer_id: str = Field(min_length=1)
    action: str = Field(min_length=1)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ChallengeCreated(BaseModel):
    challenge_id: str
    expires_at: datetime


class VerifyChallengeRequest(BaseModel):
    code: str


class VerifyResult(BaseModel):
    verified: bool
    error: str | None = None
    error_code: VerifyErrorCode | None = None
    attempts_remaining: int | None = None


class ChallengeStatus(BaseModel):
    challenge_id: str
    state: ChallengeState
    verified: bool
