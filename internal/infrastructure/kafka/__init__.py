"""
Kafka infrastructure package.
"""

from .consumer import CustomerEventConsumer, log_customer_event
from .producer import CustomerEventPublisher, KafkaProducer

__all__ = [
    "KafkaProducer",
    "CustomerEventPublisher",
    "CustomerEventConsumer",
    "log_customer_event",
]
