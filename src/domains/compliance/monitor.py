"""AML transaction monitoring run before payments and transfers.

Three independent checks; a transaction may trigger any combination:

  1. Large transaction: at or above the £10,000 reporting threshold
     (critical at £50,000 and above).
  2. Velocity: the customer already made 5+ transactions across all
     accounts in the trailing hour.
  3. Structuring: amount in [£8,000, £10,000) with 2+ other transactions
     in the same band in the trailing 24 hours.

Every finding is persisted as an AML alert for case management. Only a
critical alert fails the check; the rest are advisory.
"""

import uuid
from datetime import UTC, datetime, timedelta

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.accessor import RuleStore
from src.db.models import AmlAlertDB
from src.shared.audit import AuditEmitter, AuditEvent, AuditEventType
from src.shared.errors import NotFoundError, TerminalStateError

from .config import AmlConfig, default_config
from .models import (
    AlertSeverity,
    AlertStatus,
    AlertType,
    AlertUpdateRequest,
    AmlCheckRequest,
    AmlCheckResult,
    AmlFinding,
)

logger = structlog.get_logger()

ALERT_TRANSITIONS: dict[AlertStatus, frozenset[AlertStatus]] = {
    AlertStatus.NEW: frozenset({AlertStatus.INVESTIGATING, AlertStatus.ESCALATED}),
    AlertStatus.INVESTIGATING: frozenset(
        {AlertStatus.ESCALATED, AlertStatus.DISMISSED, AlertStatus.REPORTED}
    ),
    AlertStatus.ESCALATED: frozenset({AlertStatus.DISMISSED, AlertStatus.REPORTED}),
    AlertStatus.DISMISSED: frozenset(),
    AlertStatus.REPORTED: frozenset(),
}


def check_large_transaction(amount: float, config: AmlConfig = default_config) -> AmlFinding | None:
    cfg = config.large_transaction
    if amount < cfg.threshold:
        return None
    return AmlFinding(
        type=AlertType.LARGE_TRANSACTION,
        severity=(
            AlertSeverity.CRITICAL if amount >= cfg.critical_threshold else AlertSeverity.HIGH
        ),
        reason=(
            f"Transaction of £{amount:,.2f} exceeds £{cfg.threshold:,.0f} reporting threshold"
        ),
    )


class AmlMonitor:
    """Runs the AML checks for one transaction and records the findings."""

    def __init__(
        self,
        config: AmlConfig | None = None,
        audit: AuditEmitter | None = None,
    ) -> None:
        self._config = config or default_config
        self._audit = audit or AuditEmitter()

    async def check_transaction(
        self,
        request: AmlCheckRequest,
        session: AsyncSession,
    ) -> AmlCheckResult:
        now = request.initiated_at or datetime.now(UTC)
        store = RuleStore(session)
        findings: list[AmlFinding] = []

        # 1. Large transaction (no history needed)
        if finding := check_large_transaction(request.amount, self._config):
            findings.append(finding)

        account_ids = await store.account_ids(request.customer_id)

        # 2. Velocity
        if account_ids:
            findings.extend(await self._check_velocity(store, account_ids, now))

        # 3. Structuring
        if account_ids:
            findings.extend(
                await self._check_structuring(store, account_ids, request.amount, now)
            )

        alert_ids: list[str] = []
        if findings:
            for finding in findings:
                alert_id = str(uuid.uuid4())
                alert_ids.append(alert_id)
                session.add(
                    AmlAlertDB(
                        alert_id=alert_id,
                        user_id=request.customer_id,
                        transaction_id=request.transaction_id,
                        alert_type=finding.type.value,
                        severity=finding.severity.value,
                        trigger_amount=request.amount,
                        trigger_data={
                            "counterparty": request.counterparty_name,
                            "type": request.type.value,
                            "reason": finding.reason,
                        },
                        status=AlertStatus.NEW.value,
                        created_at=now,
                    )
                )
            await session.commit()

            await self._audit.emit(
                AuditEvent(
                    event_type=AuditEventType.COMPLIANCE_EVENT,
                    actor_id=request.customer_id,
                    actor_role="customer",
                    target_table="aml_alerts",
                    target_id=request.transaction_id,
                    action="aml_alerts_triggered",
                    details={
                        "alert_count": len(findings),
                        "amount": request.amount,
                        "types": [f.type.value for f in findings],
                    },
                )
            )

        passed = not any(f.severity == AlertSeverity.CRITICAL for f in findings)

        log = logger.warning if findings else logger.info
        log(
            "aml_check_completed",
            customer_id=request.customer_id,
            transaction_id=request.transaction_id,
            passed=passed,
            alert_count=len(findings),
            types=[f.type.value for f in findings],
        )

        return AmlCheckResult(passed=passed, alerts=findings, alert_ids=alert_ids)

    async def _check_velocity(
        self, store: RuleStore, account_ids: list[str], now: datetime
    ) -> list[AmlFinding]:
        cfg = self._config.velocity
        since = now - timedelta(minutes=cfg.window_minutes)
        count = await store.count_transactions(account_ids, since)
        if count < cfg.max_transactions:
            return []
        return [
            AmlFinding(
                type=AlertType.VELOCITY,
                severity=AlertSeverity.MEDIUM,
                reason=(
                    f"{count + 1} transactions in the last {cfg.window_minutes} minutes "
                    f"(threshold: {cfg.max_transactions})"
                ),
            )
        ]

    async def _check_structuring(
        self, store: RuleStore, account_ids: list[str], amount: float, now: datetime
    ) -> list[AmlFinding]:
        cfg = self._config.structuring
        if not (cfg.band_low <= amount < cfg.band_high):
            return []

        since = now - timedelta(hours=cfg.window_hours)
        count = await store.count_transactions(
            account_ids, since, min_amount=cfg.band_low, max_amount=cfg.band_high
        )
        if count < cfg.min_prior_in_band:
            return []
        return [
            AmlFinding(
                type=AlertType.STRUCTURING,
                severity=AlertSeverity.HIGH,
                reason=(
                    f"Possible structuring: {count + 1} transactions between "
                    f"£{cfg.band_low:,.0f} and £{cfg.band_high:,.0f} in {cfg.window_hours} hours"
                ),
            )
        ]


async def update_alert_status(
    session: AsyncSession,
    alert_id: str,
    update: AlertUpdateRequest,
    audit: AuditEmitter | None = None,
) -> AlertStatus:
    """Move an AML alert through its review lifecycle."""
    result = await session.execute(select(AmlAlertDB).where(AmlAlertDB.alert_id == alert_id))
    row = result.scalar_one_or_none()
    if row is None:
        raise NotFoundError("AML alert not found")

    current = AlertStatus(row.status)
    if update.status not in ALERT_TRANSITIONS[current]:
        raise TerminalStateError(
            f"AML alert cannot move from {current.value} to {update.status.value}"
        )

    row.status = update.status.value
    row.updated_at = datetime.now(UTC)
    await session.commit()

    await (audit or AuditEmitter()).emit(
        AuditEvent(
            event_type=AuditEventType.COMPLIANCE_EVENT,
            actor_id=update.actor_id,
            actor_role="admin",
            target_table="aml_alerts",
            target_id=alert_id,
            action="aml_alert_updated",
            details={
                "previous_status": current.value,
                "new_status": update.status.value,
                "notes": update.notes,
            },
        )
    )
    logger.info(
        "aml_alert_updated",
        alert_id=alert_id,
        previous_status=current.value,
        new_status=update.status.value,
    )
    return update.status
