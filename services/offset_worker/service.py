# Offset Worker Service - processes one message at a time and commits offset + 1
import asyncio
import time
from typing import Optional

from core.config.settings import Settings
from core.logging import get_logger
from core.schemas.messages import ConsumedMessage, ProcessingResult
from core.streaming.infrastructure.message_consumer import MessageConsumer
from core.utils.exceptions import ProcessingError
from .processor import MessageProcessor
from .state import PartitionStateTracker


class OffsetWorkerService:
    """At-least-once worker with manual offset acknowledgment.

    Each message is logged, processed and only then committed. The next
    message is not fetched until the current one's commit has completed, so
    a crash before the commit means the message is delivered again.
    """

    def __init__(self, settings: Settings, consumer: MessageConsumer,
                 processor: MessageProcessor,
                 shutdown_event: Optional[asyncio.Event] = None):
        self.settings = settings
        self.consumer = consumer
        self.processor = processor
        self.shutdown_event = shutdown_event or asyncio.Event()
        self.tracker = PartitionStateTracker()
        self.logger = get_logger("offset_worker", component="worker")

        self.processed_count = 0
        self.last_processed_time: Optional[float] = None

    async def start(self) -> None:
        """Connect and subscribe. Broker and subscription errors propagate."""
        self.logger.info(
            "Starting offset worker",
            topic=self.consumer.topic,
            group_id=self.consumer.group_id,
            from_beginning=self.consumer.from_beginning,
            bootstrap_servers=self.settings.redpanda.bootstrap_servers,
        )
        await self.consumer.start()

    async def stop(self) -> None:
        await self.consumer.stop()
        self.logger.info("Offset worker stopped", processed_count=self.processed_count)

    async def run(self) -> None:
        """Fetch and handle messages until shutdown is requested or an error occurs."""
        while not self.shutdown_event.is_set():
            message = await self._next_message()
            if message is None:
                break
            await self.process_one(message)

    async def process_one(self, message: ConsumedMessage) -> ProcessingResult:
        """Log, process and commit a single message."""
        topic, partition = message.topic, message.partition
        self.tracker.delivered(topic, partition, message.offset)
        self.logger.info("Message received", **message.log_fields())

        started = time.perf_counter()
        self.tracker.processing(topic, partition)
        try:
            await self.processor.process(message)
        except Exception as e:
            self.tracker.terminated(topic, partition)
            if isinstance(e, ProcessingError):
                raise
            raise ProcessingError(
                f"Processing failed for {topic}[{partition}]@{message.offset}: {e}",
                topic=topic,
                partition=partition,
                offset=message.offset,
            ) from e
        self.tracker.processed(topic, partition)
        self.logger.info("processing done", partition=partition, offset=message.offset)

        try:
            committed_offset = await self.consumer.commit(topic, partition, message.offset)
        except Exception:
            self.tracker.terminated(topic, partition)
            raise
        self.tracker.committed(topic, partition, committed_offset)

        duration = time.perf_counter() - started
        self.processed_count += 1
        self.last_processed_time = time.time()
        self.logger.debug(
            "Offset committed",
            partition=partition,
            committed_offset=committed_offset,
            duration_seconds=round(duration, 6),
        )
        return ProcessingResult(
            topic=topic,
            partition=partition,
            offset=message.offset,
            committed_offset=committed_offset,
            duration_seconds=duration,
        )

    async def _next_message(self) -> Optional[ConsumedMessage]:
        """Wait for the next message, or return None once shutdown is requested."""
        fetch = asyncio.ensure_future(self.consumer.getone())
        shutdown = asyncio.ensure_future(self.shutdown_event.wait())
        try:
            done, _ = await asyncio.wait({fetch, shutdown}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            shutdown.cancel()
            if not fetch.done():
                fetch.cancel()

        if fetch in done:
            return fetch.result()

        try:
            await fetch
        except asyncio.CancelledError:
            pass
        self.logger.info("Shutdown requested, stopping fetch loop")
        return None

    def get_status(self) -> dict:
        return {
            "topic": self.consumer.topic,
            "group_id": self.consumer.group_id,
            "running": self.consumer.is_running,
            "processed_count": self.processed_count,
            "last_processed_time": self.last_processed_time,
            "partitions": self.tracker.snapshot(),
        }
