"""
Kafka Consumer for customer lifecycle events.

Consumes the customer-events topic and dispatches by event type.
"""
import json
from typing import Any, Awaitable, Callable, Optional

from aiokafka import AIOKafkaConsumer
from aiokafka.errors import KafkaError

from internal.domain.customer import CustomerEvent
from internal.domain.errors import DomainValidationError
from internal.domain.value_objects import CustomerEventType
from internal.infrastructure.metrics import CUSTOMER_EVENTS_CONSUMED
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


EventHandler = Callable[[CustomerEvent], Awaitable[None]]


def _deserialize(raw: Optional[bytes]) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None


class CustomerEventConsumer:
    """
    Kafka consumer for customer lifecycle events.

    Offsets are committed manually after a message is handled. Malformed
    messages are logged and skipped; handler failures leave the offset
    uncommitted so the message is redelivered.
    """

    def __init__(
        self,
        bootstrap_servers: str,
        group_id: str,
        topic: str = "customer-events",
        client_id: str = "customer-service-consumer",
    ) -> None:
        """
        Initialize the Kafka consumer.

        Args:
            bootstrap_servers: Comma-separated list of Kafka brokers.
            group_id: Consumer group identifier.
            topic: Customer events topic.
            client_id: Client identifier for the consumer.
        """
        self._bootstrap_servers = bootstrap_servers
        self._group_id = group_id
        self._topic = topic
        self._client_id = client_id
        self._consumer: Optional[AIOKafkaConsumer] = None
        self._handlers: dict[CustomerEventType, EventHandler] = {}
        self._running = False

    def register_handler(
        self,
        event_type: CustomerEventType,
        handler: EventHandler,
    ) -> None:
        """
        Register a handler for a specific event type.

        Args:
            event_type: The event type to handle.
            handler: Async function receiving the parsed event.
        """
        self._handlers[event_type] = handler
        logger.info("Registered handler for event type", event_type=event_type.value)

    async def start(self) -> None:
        """Start the Kafka consumer."""
        self._consumer = AIOKafkaConsumer(
            self._topic,
            bootstrap_servers=self._bootstrap_servers,
            group_id=self._group_id,
            client_id=self._client_id,
            value_deserializer=_deserialize,
            auto_offset_reset="earliest",
            enable_auto_commit=False,
        )
        await self._consumer.start()
        self._running = True
        logger.info(
            "Kafka consumer started",
            topic=self._topic,
            group_id=self._group_id,
        )

    async def stop(self) -> None:
        """Stop the Kafka consumer."""
        self._running = False
        if self._consumer:
            await self._consumer.stop()
            logger.info("Kafka consumer stopped")

    async def consume(self) -> None:
        """
        Consume messages until stop() is called.

        Raises:
            RuntimeError: If the consumer was not started.
        """
        if not self._consumer:
            raise RuntimeError("Consumer not started")

        try:
            async for msg in self._consumer:
                if not self._running:
                    break

                try:
                    await self.handle_message(msg.value)
                    await self._consumer.commit()
                except Exception as e:
                    logger.error(
                        "Error processing message",
                        topic=msg.topic,
                        partition=msg.partition,
                        offset=msg.offset,
                        error=str(e),
                    )
        except KafkaError as e:
            logger.error("Kafka consumer error", error=str(e))
            raise

    async def handle_message(self, value: Any) -> bool:
        """
        Parse and dispatch one message value.

        Args:
            value: Deserialized JSON payload.

        Returns:
            True if a handler ran, False if the message was skipped.
        """
        if not isinstance(value, dict):
            logger.warning("Skipping non-JSON customer event")
            CUSTOMER_EVENTS_CONSUMED.labels(event_type="unknown", status="skipped").inc()
            return False

        try:
            event = CustomerEvent.from_dict(value)
        except DomainValidationError as e:
            logger.warning("Skipping malformed customer event", error=e.message)
            CUSTOMER_EVENTS_CONSUMED.labels(event_type="unknown", status="skipped").inc()
            return False

        handler = self._handlers.get(event.event_type)
        if handler is None:
            logger.warning(
                "No handler registered for event type",
                event_type=event.event_type.value,
            )
            CUSTOMER_EVENTS_CONSUMED.labels(event_type=event.event_type.value, status="skipped").inc()
            return False

        try:
            await handler(event)
        except Exception:
            CUSTOMER_EVENTS_CONSUMED.labels(event_type=event.event_type.value, status="error").inc()
            raise
        CUSTOMER_EVENTS_CONSUMED.labels(event_type=event.event_type.value, status="success").inc()
        return True


async def log_customer_event(event: CustomerEvent) -> None:
    """Default handler: record the event in the service log."""
    logger.info(
        "Received customer event",
        event_type=event.event_type.value,
        customer_id=event.customer.id,
        timestamp=event.timestamp.isoformat(),
    )
