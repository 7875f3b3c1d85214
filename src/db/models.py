"""SQLAlchemy ORM models for the transaction gate.

Accounts, transactions, payees and customer profiles are owned by the core
banking store; the gate only reads them. Rule and configuration tables are
maintained by the admin tooling. Scores, cases, alerts and challenges are
written by the gate.
"""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Float, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# Core banking data (read only)
# ---------------------------------------------------------------------------


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    account_id: Mapped[str] = mapped_column(String, unique=True, index=True)
    user_id: Mapped[str] = mapped_column(String, index=True)


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    transaction_id: Mapped[str] = mapped_column(String, unique=True, index=True)
    account_id: Mapped[str] = mapped_column(String, index=True)
    type: Mapped[str] = mapped_column(String)  # credit | debit
    status: Mapped[str] = mapped_column(String, default="completed")
    amount: Mapped[float] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )


class CustomerProfile(Base):
    __tablename__ = "customer_profiles"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, unique=True, index=True)
    kyc_tier: Mapped[str | None] = mapped_column(String, nullable=True)
    is_pep: Mapped[bool] = mapped_column(Boolean, default=False)
    customer_category: Mapped[str] = mapped_column(String, default="standard")
    account_opened_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    identity_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    address_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    suspicious_activity_count: Mapped[int] = mapped_column(Integer, default=0)
    transfer_pin_hash: Mapped[str | None] = mapped_column(String, nullable=True)


class Payee(Base):
    __tablename__ = "payees"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    payee_id: Mapped[str] = mapped_column(String, unique=True, index=True)
    user_id: Mapped[str] = mapped_column(String, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    first_used_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


# ---------------------------------------------------------------------------
# Configuration (maintained by admin tooling)
# ---------------------------------------------------------------------------


class FraudRuleDB(Base):
    __tablename__ = "fraud_rules"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    rule_id: Mapped[str] = mapped_column(String, unique=True, index=True)
    name: Mapped[str] = mapped_column(String)
    kind: Mapped[str] = mapped_column(String)
    conditions: Mapped[dict] = mapped_column(JSONB, default=dict)
    weight: Mapped[int] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)


class TransactionLimitDB(Base):
    __tablename__ = "transaction_limits"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    kyc_tier: Mapped[str] = mapped_column(String, index=True)
    daily_limit: Mapped[float] = mapped_column(Float)
    monthly_limit: Mapped[float] = mapped_column(Float)
    single_transaction_limit: Mapped[float] = mapped_column(Float)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class ScaConfigDB(Base):
    __tablename__ = "sca_config"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    config_key: Mapped[str] = mapped_column(String, unique=True)
    config_value: Mapped[dict] = mapped_column(JSONB, default=dict)


class CoolingPeriodConfigDB(Base):
    __tablename__ = "cooling_period_config"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    payment_rail: Mapped[str] = mapped_column(String, unique=True)
    cooling_hours: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


# ---------------------------------------------------------------------------
# Gate output
# ---------------------------------------------------------------------------


class FraudScoreDB(Base):
    __tablename__ = "fraud_scores"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    score_id: Mapped[str] = mapped_column(String, unique=True, index=True)
    transaction_id: Mapped[str | None] = mapped_column(String, index=True, nullable=True)
    user_id: Mapped[str] = mapped_column(String, index=True)
    score: Mapped[int] = mapped_column(Integer)
    decision: Mapped[str] = mapped_column(String, index=True)
    factors: Mapped[dict] = mapped_column(JSONB, default=list)
    model_version: Mapped[str] = mapped_column(String, default="rules-v1")
    reviewed_by: Mapped[str | None] = mapped_column(String, nullable=True)
    review_decision: Mapped[str | None] = mapped_column(String, nullable=True)
    review_notes: Mapped[str | None] = mapped_column(String, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class FraudCaseDB(Base):
    __tablename__ = "fraud_cases"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    case_id: Mapped[str] = mapped_column(String, unique=True, index=True)
    fraud_score_id: Mapped[str | None] = mapped_column(String, index=True, nullable=True)
    user_id: Mapped[str] = mapped_column(String, index=True)
    status: Mapped[str] = mapped_column(String, default="open", index=True)
    priority: Mapped[str] = mapped_column(String)
    assigned_to: Mapped[str | None] = mapped_column(String, nullable=True)
    description: Mapped[str | None] = mapped_column(String, nullable=True)
    resolution: Mapped[str | None] = mapped_column(String, nullable=True)
    amount_at_risk: Mapped[float | None] = mapped_column(Float, nullable=True)
    amount_recovered: Mapped[float] = mapped_column(Float, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class AmlAlertDB(Base):
    __tablename__ = "aml_alerts"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    alert_id: Mapped[str] = mapped_column(String, unique=True, index=True)
    user_id: Mapped[str] = mapped_column(String, index=True)
    transaction_id: Mapped[str | None] = mapped_column(String, nullable=True)
    alert_type: Mapped[str] = mapped_column(String, index=True)
    severity: Mapped[str] = mapped_column(String)
    trigger_amount: Mapped[float] = mapped_column(Float)
    trigger_data: Mapped[dict] = mapped_column(JSONB, default=dict)
    status: Mapped[str] = mapped_column(String, default="new", index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ScaChallengeDB(Base):
    __tablename__ = "sca_challenges"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    challenge_id: Mapped[str] = mapped_column(String, unique=True, index=True)
    user_id: Mapped[str] = mapped_column(String, index=True)
    code_hash: Mapped[str] = mapped_column(String)
    action: Mapped[str] = mapped_column(String)
    challenge_metadata: Mapped[dict] = mapped_column("metadata", JSONB, default=dict)
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    max_attempts: Mapped[int] = mapped_column(Integer)
    verified: Mapped[bool] = mapped_column(Boolean, default=False)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
