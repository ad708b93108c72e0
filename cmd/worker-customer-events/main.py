"""
Customer Events Worker Entry Point.

Consumes customer lifecycle events and dispatches them by event type.
"""
import asyncio
import signal
from typing import Optional

from dotenv import load_dotenv

from config.settings import get_settings
from internal.domain.value_objects import CustomerEventType
from internal.infrastructure.kafka import CustomerEventConsumer, log_customer_event
from pkg.logger.logger import get_logger, setup_logging


# Load environment variables
load_dotenv()

settings = get_settings()

# Setup logging
setup_logging(
    level=settings.log_level,
    json_format=settings.log_format == "json",
    service=f"{settings.app_name}-events-worker",
)

logger = get_logger(__name__)


class CustomerEventsWorker:
    """
    Worker for customer lifecycle events.

    Every event type is handled by the logging handler.
    """

    def __init__(self) -> None:
        """Initialize the worker."""
        self._consumer: Optional[CustomerEventConsumer] = None

    async def start(self) -> None:
        """Start the worker and consume until stopped."""
        logger.info("Starting Customer Events Worker...")

        self._consumer = CustomerEventConsumer(
            bootstrap_servers=settings.kafka_bootstrap_servers,
            group_id=settings.kafka_consumer_group,
            topic=settings.kafka_customer_events_topic,
            client_id=f"{settings.kafka_client_id}-consumer",
        )

        for event_type in CustomerEventType:
            self._consumer.register_handler(event_type, log_customer_event)

        await self._consumer.start()
        logger.info("Customer Events Worker started successfully")

        try:
            await self._consumer.consume()
        except asyncio.CancelledError:
            logger.info("Worker consumption cancelled")

    async def stop(self) -> None:
        """Stop the worker."""
        logger.info("Stopping Customer Events Worker...")
        if self._consumer:
            await self._consumer.stop()
        logger.info("Customer Events Worker stopped")


async def main() -> None:
    """Main entry point."""
    worker = CustomerEventsWorker()

    # Handle shutdown signals
    loop = asyncio.get_running_loop()

    def signal_handler() -> None:
        logger.info("Received shutdown signal")
        asyncio.create_task(worker.stop())

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, signal_handler)

    try:
        await worker.start()
    except Exception as e:
        logger.error("Worker failed", error=str(e))
        await worker.stop()
        raise


if __name__ == "__main__":
    asyncio.run(main())
