"""
Kafka Producer for event publishing.

Publishes customer lifecycle events to Kafka.
"""
import json
from typing import Optional

from aiokafka import AIOKafkaProducer
from aiokafka.errors import KafkaError

from internal.domain.customer import Customer, CustomerEvent
from internal.domain.errors import EventPublishError
from internal.domain.value_objects import CustomerEventType
from internal.infrastructure.metrics import CUSTOMER_EVENTS_PUBLISHED
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


class KafkaProducer:
    """
    Kafka producer for publishing JSON messages.

    Handles serialization and acknowledged delivery.
    """

    def __init__(
        self,
        bootstrap_servers: str,
        client_id: str = "customer-service",
    ) -> None:
        """
        Initialize the Kafka producer.

        Args:
            bootstrap_servers: Comma-separated list of Kafka brokers.
            client_id: Client identifier for the producer.
        """
        self._bootstrap_servers = bootstrap_servers
        self._client_id = client_id
        self._producer: Optional[AIOKafkaProducer] = None

    @property
    def started(self) -> bool:
        return self._producer is not None

    async def start(self) -> None:
        """Start the Kafka producer."""
        self._producer = AIOKafkaProducer(
            bootstrap_servers=self._bootstrap_servers,
            client_id=self._client_id,
            value_serializer=lambda v: json.dumps(v, default=str).encode("utf-8"),
            key_serializer=lambda k: k.encode("utf-8") if k else None,
            acks="all",
        )
        await self._producer.start()
        logger.info("Kafka producer started", bootstrap_servers=self._bootstrap_servers)

    async def stop(self) -> None:
        """Stop the Kafka producer."""
        if self._producer:
            await self._producer.stop()
            self._producer = None
            logger.info("Kafka producer stopped")

    async def publish_message(
        self,
        topic: str,
        key: Optional[str],
        value: dict,
    ) -> None:
        """
        Publish a message and wait for the broker acknowledgement.

        Args:
            topic: The Kafka topic to publish to.
            key: Message key.
            value: Message value as dictionary.

        Raises:
            EventPublishError: If the producer is not started or the send fails.
        """
        event_type = str(value.get("eventType", "message"))
        if not self._producer:
            raise EventPublishError(event_type, "producer not started")

        try:
            await self._producer.send_and_wait(
                topic=topic,
                key=key,
                value=value,
            )
        except KafkaError as e:
            raise EventPublishError(event_type, str(e)) from e

        logger.debug("Message published to Kafka", topic=topic, key=key)


class CustomerEventPublisher:
    """
    Event Emitter for customer lifecycle events.

    Publishing is best effort: failures are logged and counted, never
    raised to the caller.
    """

    def __init__(
        self,
        producer: KafkaProducer,
        topic: str = "customer-events",
    ) -> None:
        """
        Initialize the publisher.

        Args:
            producer: Kafka producer instance.
            topic: Topic for customer lifecycle events.
        """
        self._producer = producer
        self._topic = topic

    async def publish(self, event_type: CustomerEventType, customer: Customer) -> bool:
        """
        Publish a lifecycle event keyed by customer id.

        Args:
            event_type: CREATED, UPDATED or DELETED.
            customer: Customer snapshot to embed.

        Returns:
            True if the broker acknowledged the event.
        """
        event = CustomerEvent(event_type=event_type, customer=customer.copy())
        try:
            await self._producer.publish_message(
                topic=self._topic,
                key=customer.id,
                value=event.to_dict(),
            )
        except Exception as e:
            CUSTOMER_EVENTS_PUBLISHED.labels(event_type=event_type.value, status="error").inc()
            logger.error(
                "Failed to send customer event",
                event_type=event_type.value,
                customer_id=customer.id,
                error=str(e),
            )
            return False

        CUSTOMER_EVENTS_PUBLISHED.labels(event_type=event_type.value, status="success").inc()
        logger.debug(
            "Customer event sent successfully",
            event_type=event_type.value,
            customer_id=customer.id,
        )
        return True
