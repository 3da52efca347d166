# Message, commit and processing result models shared by the worker and the broker adapter

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional


class WorkerBaseModel(BaseModel):
    """Base model for worker schemas; instances are immutable once built."""

    model_config = ConfigDict(frozen=True)


class ConsumedMessage(WorkerBaseModel):
    """A message delivered by the broker, identified by (topic, partition, offset)"""
    topic: str
    partition: int = Field(..., ge=0)
    offset: int = Field(..., ge=0, description="Position within the partition, assigned by the broker")
    payload: Optional[bytes] = None
    key: Optional[bytes] = None
    timestamp: Optional[int] = Field(None, description="Broker timestamp in milliseconds")

    @classmethod
    def from_record(cls, record: Any) -> "ConsumedMessage":
        """Build from an aiokafka ConsumerRecord (or anything shaped like one)."""
        return cls(
            topic=record.topic,
            partition=record.partition,
            offset=record.offset,
            payload=record.value,
            key=record.key,
            timestamp=getattr(record, "timestamp", None),
        )

    @property
    def next_offset(self) -> int:
        """Cursor value that marks this message as done for the group."""
        return self.offset + 1

    def value_text(self) -> Optional[str]:
        """Payload as text; None when the message carries no payload."""
        if self.payload is None:
            return None
        return self.payload.decode("utf-8", errors="replace")

    def log_fields(self) -> Dict[str, Any]:
        return {
            "partition": self.partition,
            "offset": self.offset,
            "value": self.value_text(),
        }


class CommitRequest(WorkerBaseModel):
    """Next-delivery position to store for a (topic, partition) of the consumer group"""
    topic: str
    partition: int = Field(..., ge=0)
    offset: int = Field(..., ge=0, description="Next offset to deliver, i.e. last processed + 1")

    @classmethod
    def after(cls, message: ConsumedMessage) -> "CommitRequest":
        return cls(topic=message.topic, partition=message.partition, offset=message.next_offset)


class ProcessingResult(WorkerBaseModel):
    """Outcome of handling one message end to end"""
    topic: str
    partition: int
    offset: int
    committed_offset: int
    duration_seconds: float
