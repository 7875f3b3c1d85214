"""Kafka producer used for audit events and challenge code hand-off."""

import json

import structlog
from aiokafka import AIOKafkaProducer

logger = structlog.get_logger()


def _serialize(value: dict) -> bytes:
    return json.dumps(value, default=str).encode("utf-8")


async def create_producer(bootstrap_servers: str, client_id: str = "transaction-gate") -> AIOKafkaProducer:
    """Start a producer that waits for all in-sync replicas on every send."""
    producer = AIOKafkaProducer(
        bootstrap_servers=bootstrap_servers,
        client_id=client_id,
        acks="all",
        enable_idempotence=True,
        value_serializer=_serialize,
    )
    await producer.start()
    logger.info("kafka_producer_started", bootstrap_servers=bootstrap_servers, client_id=client_id)
    return producer


async def stop_producer(producer: AIOKafkaProducer | None) -> None:
    if producer is None:
        return
    await producer.stop()
    logger.info("kafka_producer_stopped")
