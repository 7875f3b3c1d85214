"""Pydantic models for transfer PIN operations."""

from pydantic import BaseModel


class PinRequest(BaseModel):
    pin: str


class SetPinResult(BaseModel):
    success: bool
    error: str | None = None


class VerifyPinResult(BaseModel):
    verified: bool
    error: str | None = None
