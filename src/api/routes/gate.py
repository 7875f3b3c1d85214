"""Combined gate endpoint for money-movement handlers."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_transaction_gate
from src.db.database import get_session
from src.domains.gate.models import GateRequest, GateResult
from src.domains.gate.orchestrator import TransactionGate

router = APIRouter(prefix="/api/v1/gate", tags=["gate"])


@router.post("/evaluate")
async def evaluate_transaction(
    request: GateRequest,
    session: AsyncSession = Depends(get_session),  # noqa: B008
    gate: TransactionGate = Depends(get_transaction_gate),  # noqa: B008
) -> GateResult:
    return await gate.evaluate(request, session)
