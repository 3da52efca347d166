"""
Pytest configuration and shared fixtures for offset worker tests.
"""
import pytest
import pytest_asyncio

from core.config.settings import (
    Environment,
    ConsumerSettings,
    LoggingSettings,
    ProcessingSettings,
    RedpandaSettings,
    Settings,
)
from core.logging import reset_logging_configuration
from core.streaming.infrastructure import message_consumer as message_consumer_module
from core.streaming.infrastructure.message_consumer import MessageConsumer
from services.offset_worker.service import OffsetWorkerService
from tests.mocks.mock_broker import MockBroker, RecordingProcessor, TEST_GROUP, TEST_TOPIC


@pytest.fixture
def test_settings():
    """Test settings configuration."""
    return Settings(
        environment=Environment.TESTING,
        redpanda=RedpandaSettings(
            bootstrap_servers="localhost:9092",
            client_id="test-worker",
        ),
        consumer=ConsumerSettings(
            topic=TEST_TOPIC,
            group_id=TEST_GROUP,
            from_beginning=True,
        ),
        processing=ProcessingSettings(delay_seconds=0.0),
        logging=LoggingSettings(level="DEBUG", json_format=True),
    )


@pytest.fixture
def mock_broker(monkeypatch):
    """In-memory broker patched in place of AIOKafkaConsumer."""
    broker = MockBroker()
    broker.create_topic(TEST_TOPIC, partitions=1)
    monkeypatch.setattr(message_consumer_module, "AIOKafkaConsumer", broker.consumer_factory)
    return broker


@pytest_asyncio.fixture
async def start_worker(test_settings, mock_broker):
    """Build and start workers against the in-memory broker; all are stopped on teardown."""
    workers = []

    async def _start(group_id=None, from_beginning=None, processor=None, shutdown_event=None):
        consumer = MessageConsumer(
            test_settings.redpanda,
            topic=test_settings.consumer.topic,
            group_id=group_id or test_settings.consumer.group_id,
            from_beginning=(test_settings.consumer.from_beginning
                            if from_beginning is None else from_beginning),
        )
        worker = OffsetWorkerService(
            settings=test_settings,
            consumer=consumer,
            processor=processor or RecordingProcessor(mock_broker),
            shutdown_event=shutdown_event,
        )
        workers.append(worker)
        await worker.start()
        return worker

    yield _start

    for worker in workers:
        await worker.stop()


@pytest.fixture(autouse=True)
def reset_logging():
    """Let each test configure logging from scratch."""
    yield
    reset_logging_configuration()
