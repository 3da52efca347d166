import pytest
from aiokafka.errors import GroupAuthorizationFailedError, TopicAuthorizationFailedError

from core.config.settings import RedpandaSettings
from core.schemas.messages import CommitRequest
from core.streaming.infrastructure.message_consumer import MessageConsumer
from core.utils.exceptions import BrokerConnectionError, CommitError, SubscriptionError
from tests.mocks.mock_broker import TEST_GROUP, TEST_TOPIC


def make_consumer(from_beginning: bool = True, group_id: str = TEST_GROUP) -> MessageConsumer:
    cfg = RedpandaSettings(bootstrap_servers="broker-a:9092, broker-b:9092", client_id="worker")
    return MessageConsumer(cfg, topic=TEST_TOPIC, group_id=group_id, from_beginning=from_beginning)


@pytest.mark.asyncio
async def test_start_configures_manual_commits_and_subscribes(mock_broker):
    consumer = make_consumer()
    await consumer.start()

    fake = mock_broker.consumers[0]
    assert fake.started is True
    assert fake.subscription == {TEST_TOPIC}
    assert fake.config["enable_auto_commit"] is False
    assert fake.config["group_id"] == TEST_GROUP
    assert fake.config["client_id"] == "worker"
    assert fake.config["bootstrap_servers"] == ["broker-a:9092", "broker-b:9092"]
    assert consumer.is_running


@pytest.mark.asyncio
@pytest.mark.parametrize("from_beginning, expected", [(True, "earliest"), (False, "latest")])
async def test_from_beginning_maps_to_offset_reset(mock_broker, from_beginning, expected):
    consumer = make_consumer(from_beginning=from_beginning)
    await consumer.start()

    assert mock_broker.consumers[0].config["auto_offset_reset"] == expected


@pytest.mark.asyncio
async def test_start_is_idempotent(mock_broker):
    consumer = make_consumer()
    await consumer.start()
    await consumer.start()

    assert len(mock_broker.consumers) == 1


@pytest.mark.asyncio
async def test_unreachable_broker_raises_connection_error(mock_broker):
    mock_broker.reachable = False
    consumer = make_consumer()

    with pytest.raises(BrokerConnectionError) as exc_info:
        await consumer.start()

    assert exc_info.value.bootstrap_servers == "broker-a:9092, broker-b:9092"
    assert not consumer.is_running
    assert mock_broker.consumers[0].stopped is True


@pytest.mark.asyncio
async def test_rejected_subscription_raises_subscription_error(mock_broker):
    mock_broker.reject_subscriptions = True
    consumer = make_consumer()

    with pytest.raises(SubscriptionError) as exc_info:
        await consumer.start()

    assert exc_info.value.topic == TEST_TOPIC
    assert exc_info.value.group_id == TEST_GROUP
    assert not consumer.is_running


@pytest.mark.asyncio
async def test_getone_converts_record(mock_broker):
    mock_broker.produce(TEST_TOPIC, b"hello", key=b"k")
    consumer = make_consumer()
    await consumer.start()

    message = await consumer.getone()

    assert message.topic == TEST_TOPIC
    assert message.partition == 0
    assert message.offset == 0
    assert message.payload == b"hello"
    assert message.key == b"k"
    assert message.value_text() == "hello"


@pytest.mark.asyncio
async def test_commit_stores_next_offset(mock_broker):
    consumer = make_consumer()
    await consumer.start()

    committed = await consumer.commit(TEST_TOPIC, 0, 5)

    assert committed == 6
    assert mock_broker.committed_position(TEST_GROUP, TEST_TOPIC, 0) == 6
    assert await consumer.committed(0) == 6


@pytest.mark.asyncio
async def test_commit_offsets_applies_positions_as_given(mock_broker):
    mock_broker.create_topic(TEST_TOPIC, partitions=2)
    consumer = make_consumer()
    await consumer.start()

    await consumer.commit_offsets([
        CommitRequest(topic=TEST_TOPIC, partition=0, offset=3),
        CommitRequest(topic=TEST_TOPIC, partition=1, offset=9),
    ])

    assert mock_broker.committed_position(TEST_GROUP, TEST_TOPIC, 0) == 3
    assert mock_broker.committed_position(TEST_GROUP, TEST_TOPIC, 1) == 9
    assert consumer.assignment() == [0, 1]


@pytest.mark.asyncio
async def test_commit_failure_raises_commit_error(mock_broker):
    mock_broker.reject_commits = True
    consumer = make_consumer()
    await consumer.start()

    with pytest.raises(CommitError) as exc_info:
        await consumer.commit(TEST_TOPIC, 0, 7)

    assert exc_info.value.partition == 0
    assert exc_info.value.offset == 8
    assert mock_broker.committed_position(TEST_GROUP, TEST_TOPIC, 0) is None


@pytest.mark.asyncio
async def test_commit_requires_started_consumer():
    consumer = make_consumer()

    with pytest.raises(RuntimeError):
        await consumer.commit(TEST_TOPIC, 0, 1)


@pytest.mark.asyncio
async def test_stop_closes_consumer(mock_broker):
    consumer = make_consumer()
    await consumer.start()
    await consumer.stop()
    await consumer.stop()

    assert mock_broker.consumers[0].stopped is True
    assert not consumer.is_running


@pytest.mark.asyncio
@pytest.mark.parametrize("error_cls", [TopicAuthorizationFailedError, GroupAuthorizationFailedError])
async def test_authorization_failure_on_fetch_raises_subscription_error(mock_broker, error_cls):
    consumer = make_consumer()
    await consumer.start()
    mock_broker.fetch_error = error_cls()

    try:
        with pytest.raises(SubscriptionError) as exc_info:
            await consumer.getone()
    finally:
        await consumer.stop()

    assert exc_info.value.topic == TEST_TOPIC
    assert exc_info.value.group_id == TEST_GROUP
    assert isinstance(exc_info.value.__cause__, error_cls)
