# Message processing step of the offset worker
import asyncio
from typing import Protocol, runtime_checkable

from core.schemas.messages import ConsumedMessage


@runtime_checkable
class MessageProcessor(Protocol):
    """Opaque, possibly slow work done for each message before it is committed."""

    async def process(self, message: ConsumedMessage) -> None:
        ...


class DelayedProcessor:
    """Simulates processing time with a fixed delay."""

    def __init__(self, delay_seconds: float = 1.0):
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        self.delay_seconds = delay_seconds

    async def process(self, message: ConsumedMessage) -> None:
        await asyncio.sleep(self.delay_seconds)
