"""FastAPI dependencies that assemble the engines for one request.

Long-lived collaborators (the audit emitter and its Kafka producer, code
delivery) are attached to ``app.state`` at startup. Thresholds come from
the env-backed configs; SCA configuration is read from the store on every
request so admin changes apply without a restart.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.db.database import get_session
from src.domains.compliance.config import AmlConfig
from src.domains.compliance.monitor import AmlMonitor
from src.domains.fraud.config import FraudConfig
from src.domains.fraud.scorer import FraudScorer
from src.domains.gate.orchestrator import TransactionGate
from src.domains.limits.config import LimitsConfig
from src.domains.pin.hashing import Pbkdf2PinHasher, PinHashScheme
from src.domains.pin.service import PinService
from src.domains.sca.config import load_sca_config
from src.domains.sca.service import ScaService
from src.shared.audit import AuditEmitter


def get_audit(request: Request) -> AuditEmitter:
    return getattr(request.app.state, "audit", None) or AuditEmitter(topic=settings.audit_topic)


def get_fraud_config(request: Request) -> FraudConfig:
    return getattr(request.app.state, "fraud_config", None) or FraudConfig.from_env()


def get_aml_config(request: Request) -> AmlConfig:
    return getattr(request.app.state, "aml_config", None) or AmlConfig.from_env()


def get_limits_config(request: Request) -> LimitsConfig:
    return getattr(request.app.state, "limits_config", None) or LimitsConfig.from_env()


def get_fraud_scorer(
    config: FraudConfig = Depends(get_fraud_config),  # noqa: B008
    audit: AuditEmitter = Depends(get_audit),  # noqa: B008
) -> FraudScorer:
    return FraudScorer(config=config, audit=audit)


def get_aml_monitor(
    config: AmlConfig = Depends(get_aml_config),  # noqa: B008
    audit: AuditEmitter = Depends(get_audit),  # noqa: B008
) -> AmlMonitor:
    return AmlMonitor(config=config, audit=audit)


async def get_sca_service(
    request: Request,
    session: AsyncSession = Depends(get_session),  # noqa: B008
) -> ScaService:
    config = await load_sca_config(session)
    return ScaService(config=config, delivery=getattr(request.app.state, "code_delivery", None))


def get_pin_service() -> PinService:
    return PinService(
        PinHashScheme(current=Pbkdf2PinHasher(iterations=settings.pin_hash_iterations))
    )


def get_transaction_gate(
    scorer: FraudScorer = Depends(get_fraud_scorer),  # noqa: B008
    monitor: AmlMonitor = Depends(get_aml_monitor),  # noqa: B008
    sca: ScaService = Depends(get_sca_service),  # noqa: B008
    limits_config: LimitsConfig = Depends(get_limits_config),  # noqa: B008
) -> TransactionGate:
    return TransactionGate(scorer, monitor, sca, limits_config)
