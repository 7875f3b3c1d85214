"""Out-of-band delivery of challenge codes.

Delivery (SMS, email, push) belongs to the notification service. The gate
only hands the code over; it never returns, stores, or logs it in clear.
"""

from abc import ABC, abstractmethod


class CodeDelivery(ABC):
    @abstractmethod
    async def send(self, customer_id: str, challenge_id: str, action: str, code: str) -> None:
        """Deliver ``code`` to the customer. Errors propagate to the caller."""
        ...


class KafkaCodeDelivery(CodeDelivery):
    """Publishes the code to the notification service's topic."""

    def __init__(self, producer, topic: str) -> None:
        self._producer = producer
        self._topic = topic

    async def send(self, customer_id: str, challenge_id: str, action: str, code: str) -> None:
        await self._producer.send_and_wait(
            self._topic,
            value={
                "type": "sca_code",
                "customer_id": customer_id,
                "challenge_id": challenge_id,
                "action": action,
                "code": code,
            },
            key=customer_id.encode("utf-8"),
        )
