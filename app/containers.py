# Dependency injection container for the offset worker
from dependency_injector import containers, providers
import asyncio
from core.config.settings import Settings
from core.streaming.infrastructure.message_consumer import MessageConsumer
from services.offset_worker.processor import DelayedProcessor
from services.offset_worker.service import OffsetWorkerService


class AppContainer(containers.DeclarativeContainer):
    """Application dependency injection container"""

    # Configuration
    settings = providers.Singleton(Settings)

    # Shutdown event for graceful worker shutdown
    shutdown_event = providers.Singleton(asyncio.Event)

    # Broker adapter, owned by the worker for its lifetime
    message_consumer = providers.Singleton(
        MessageConsumer,
        config=settings.provided.redpanda,
        topic=settings.provided.consumer.topic,
        group_id=settings.provided.consumer.group_id,
        from_beginning=settings.provided.consumer.from_beginning,
    )

    message_processor = providers.Singleton(
        DelayedProcessor,
        delay_seconds=settings.provided.processing.delay_seconds,
    )

    offset_worker = providers.Singleton(
        OffsetWorkerService,
        settings=settings,
        consumer=message_consumer,
        processor=message_processor,
        shutdown_event=shutdown_event,
    )
