from typing import Iterable, List, Optional
from aiokafka import AIOKafkaConsumer
from aiokafka.errors import (
    GroupAuthorizationFailedError,
    KafkaConnectionError,
    KafkaError,
    TopicAuthorizationFailedError,
)
from aiokafka.structs import TopicPartition
from core.config.settings import RedpandaSettings
from core.logging import get_logger
from core.schemas.messages import CommitRequest, ConsumedMessage
from core.utils.exceptions import (
    BrokerConnectionError,
    CommitError,
    SubscriptionError,
)

logger = get_logger(__name__, component="streaming")


class MessageConsumer:
    """Single-topic consumer group member with manual offset commits only."""

    def __init__(self, config: RedpandaSettings, topic: str, group_id: str,
                 from_beginning: bool = True):
        self.config = config
        self.topic = topic
        self.group_id = group_id
        self.from_beginning = from_beginning
        self._consumer: Optional[AIOKafkaConsumer] = None
        self._running = False

    @property
    def auto_offset_reset(self) -> str:
        """Where a group with no committed cursor starts reading."""
        return "earliest" if self.from_beginning else "latest"

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Connect to the broker and subscribe to the topic."""
        if self._running:
            return

        self._consumer = AIOKafkaConsumer(
            bootstrap_servers=self.config.broker_addresses,
            client_id=self.config.client_id,
            group_id=self.group_id,
            auto_offset_reset=self.auto_offset_reset,
            enable_auto_commit=False,  # Manual commits only
            session_timeout_ms=self.config.session_timeout_ms,
            heartbeat_interval_ms=self.config.heartbeat_interval_ms,
            request_timeout_ms=self.config.request_timeout_ms,
            max_poll_interval_ms=self.config.max_poll_interval_ms,
        )

        try:
            await self._consumer.start()
        except KafkaError as e:
            await self._discard_consumer()
            raise BrokerConnectionError(
                f"Cannot reach broker at {self.config.bootstrap_servers}: {e}",
                bootstrap_servers=self.config.bootstrap_servers,
            ) from e

        try:
            self._consumer.subscribe(topics=[self.topic])
        except (KafkaError, ValueError, TypeError) as e:
            await self._discard_consumer()
            raise SubscriptionError(
                f"Failed to subscribe group '{self.group_id}' to topic '{self.topic}': {e}",
                topic=self.topic,
                group_id=self.group_id,
            ) from e

        self._running = True
        logger.info(
            "Message consumer started",
            topic=self.topic,
            group_id=self.group_id,
            auto_offset_reset=self.auto_offset_reset,
            client_id=self.config.client_id,
        )

    async def stop(self) -> None:
        """Stop the Kafka consumer."""
        if not self._running or not self._consumer:
            return

        await self._consumer.stop()
        self._consumer = None
        self._running = False
        logger.info("Message consumer stopped", topic=self.topic, group_id=self.group_id)

    async def getone(self) -> ConsumedMessage:
        """Wait for and return the next delivered message."""
        consumer = self._require_consumer()
        try:
            record = await consumer.getone()
        except KafkaConnectionError as e:
            raise BrokerConnectionError(
                f"Lost connection to broker while fetching: {e}",
                bootstrap_servers=self.config.bootstrap_servers,
            ) from e
        except (TopicAuthorizationFailedError, GroupAuthorizationFailedError) as e:
            # subscribe() is local; the broker rejects the group or topic on first fetch
            raise SubscriptionError(
                f"Broker refused group '{self.group_id}' access to topic '{self.topic}': {e}",
                topic=self.topic,
                group_id=self.group_id,
            ) from e
        return ConsumedMessage.from_record(record)

    async def commit(self, topic: str, partition: int, offset: int) -> int:
        """Mark ``offset`` as processed by storing ``offset + 1`` for the group.

        Returns the committed next-delivery position.
        """
        request = CommitRequest(topic=topic, partition=partition, offset=offset + 1)
        await self.commit_offsets([request])
        return request.offset

    async def commit_offsets(self, requests: Iterable[CommitRequest]) -> None:
        """Commit next-delivery positions as given; no arithmetic is applied."""
        consumer = self._require_consumer()
        requests = list(requests)
        if not requests:
            return

        offsets = {TopicPartition(r.topic, r.partition): r.offset for r in requests}
        try:
            await consumer.commit(offsets)
        except KafkaError as e:
            first = requests[0]
            raise CommitError(
                f"Failed to commit offsets: {e}",
                topic=first.topic,
                partition=first.partition,
                offset=first.offset,
                details={"requests": [r.model_dump() for r in requests]},
            ) from e

        logger.debug("Committed offsets", offsets=[r.model_dump() for r in requests])

    async def committed(self, partition: int) -> Optional[int]:
        """Last committed next-delivery position for a partition of the topic."""
        consumer = self._require_consumer()
        return await consumer.committed(TopicPartition(self.topic, partition))

    def assignment(self) -> List[int]:
        """Partitions of the topic currently assigned to this member."""
        consumer = self._require_consumer()
        return sorted(tp.partition for tp in consumer.assignment() if tp.topic == self.topic)

    def _require_consumer(self) -> AIOKafkaConsumer:
        if not self._running or not self._consumer:
            raise RuntimeError("Consumer not started")
        return self._consumer

    async def _discard_consumer(self) -> None:
        consumer, self._consumer = self._consumer, None
        if consumer is None:
            return
        try:
            await consumer.stop()
        except KafkaError as e:
            logger.warning("Error closing consumer after failed start", error=str(e))
