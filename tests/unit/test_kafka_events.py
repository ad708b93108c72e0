"""
Unit tests for customer event publishing and consumption.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiokafka.errors import KafkaError

from internal.domain.customer import CustomerEvent
from internal.domain.errors import EventPublishError
from internal.domain.value_objects import CustomerEventType
from internal.infrastructure.kafka import (
    CustomerEventConsumer,
    CustomerEventPublisher,
    KafkaProducer,
)


@pytest.fixture
def producer():
    producer = MagicMock(spec=KafkaProducer)
    producer.publish_message = AsyncMock(return_value=None)
    return producer


class TestKafkaProducer:
    """Tests for the raw producer wrapper."""

    @pytest.mark.asyncio
    async def test_publish_before_start_raises(self):
        producer = KafkaProducer("localhost:9092")
        with pytest.raises(EventPublishError) as exc_info:
            await producer.publish_message("customer-events", "c-1", {"eventType": "CREATED"})
        assert exc_info.value.event_type == "CREATED"

    @pytest.mark.asyncio
    async def test_kafka_error_is_wrapped(self):
        producer = KafkaProducer("localhost:9092")
        producer._producer = MagicMock()
        producer._producer.send_and_wait = AsyncMock(side_effect=KafkaError("no leader"))

        with pytest.raises(EventPublishError):
            await producer.publish_message("customer-events", "c-1", {"eventType": "UPDATED"})


class TestCustomerEventPublisher:
    """Tests for the best-effort event emitter."""

    @pytest.mark.asyncio
    async def test_publishes_keyed_by_customer_id(self, producer, personal_customer):
        publisher = CustomerEventPublisher(producer, topic="customer-events")

        assert await publisher.publish(CustomerEventType.CREATED, personal_customer) is True

        kwargs = producer.publish_message.await_args.kwargs
        assert kwargs["topic"] == "customer-events"
        assert kwargs["key"] == "c-1"
        assert kwargs["value"]["eventType"] == "CREATED"
        assert kwargs["value"]["customer"]["dni"] == "12345678"
        assert "timestamp" in kwargs["value"]

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self, producer, personal_customer):
        producer.publish_message.side_effect = EventPublishError("DELETED", "broker down")
        publisher = CustomerEventPublisher(producer)

        assert await publisher.publish(CustomerEventType.DELETED, personal_customer) is False


class TestCustomerEventConsumer:
    """Tests for message dispatch."""

    @pytest.fixture
    def consumer(self) -> CustomerEventConsumer:
        return CustomerEventConsumer("localhost:9092", group_id="test")

    @pytest.mark.asyncio
    async def test_dispatches_to_registered_handler(self, consumer, personal_customer):
        handler = AsyncMock()
        consumer.register_handler(CustomerEventType.UPDATED, handler)
        payload = CustomerEvent(CustomerEventType.UPDATED, personal_customer).to_dict()

        assert await consumer.handle_message(payload) is True

        event = handler.await_args.args[0]
        assert event.event_type == CustomerEventType.UPDATED
        assert event.customer.id == "c-1"

    @pytest.mark.asyncio
    async def test_unregistered_type_is_skipped(self, consumer, personal_customer):
        payload = CustomerEvent(CustomerEventType.DELETED, personal_customer).to_dict()
        assert await consumer.handle_message(payload) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [None, "text", {"eventType": "CREATED"}, {"eventType": "RENAMED", "customer": {}}])
    async def test_malformed_messages_are_skipped(self, consumer, value):
        handler = AsyncMock()
        for event_type in CustomerEventType:
            consumer.register_handler(event_type, handler)

        assert await consumer.handle_message(value) is False
        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_handler_failure_propagates(self, consumer, personal_customer):
        consumer.register_handler(CustomerEventType.CREATED, AsyncMock(side_effect=RuntimeError("boom")))
        payload = CustomerEvent(CustomerEventType.CREATED, personal_customer).to_dict()

        with pytest.raises(RuntimeError):
            await consumer.handle_message(payload)

    @pytest.mark.asyncio
    async def test_consume_requires_start(self, consumer):
        with pytest.raises(RuntimeError):
            await consumer.consume()
