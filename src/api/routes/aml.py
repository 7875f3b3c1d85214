"""AML monitoring endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_aml_monitor, get_audit
from src.db.database import get_session
from src.domains.compliance.models import AlertUpdateRequest, AmlCheckRequest, AmlCheckResult
from src.domains.compliance.monitor import AmlMonitor, update_alert_status
from src.shared.audit import AuditEmitter

router = APIRouter(prefix="/api/v1/aml", tags=["aml"])


@router.post("/check")
async def check_aml(
    request: AmlCheckRequest,
    session: AsyncSession = Depends(get_session),  # noqa: B008
    monitor: AmlMonitor = Depends(get_aml_monitor),  # noqa: B008
) -> AmlCheckResult:
    return await monitor.check_transaction(request, session)


@router.patch("/alerts/{alert_id}")
async def update_alert(
    alert_id: str,
    update: AlertUpdateRequest,
    session: AsyncSession = Depends(get_session),  # noqa: B008
    audit: AuditEmitter = Depends(get_audit),  # noqa: B008
) -> dict:
    status = await update_alert_status(session, alert_id, update, audit)
    return {"alert_id": alert_id, "status": status.value}
