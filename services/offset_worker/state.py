# Per-partition delivery state tracking for the offset worker
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from core.utils.exceptions import InvalidStateTransitionError


class PartitionState(str, Enum):
    IDLE = "idle"
    DELIVERED = "delivered"
    PROCESSING = "processing"
    COMMITTING = "committing"
    TERMINATED = "terminated"


# TERMINATED is final; failures while processing or committing end the worker
_TRANSITIONS = {
    PartitionState.IDLE: {PartitionState.DELIVERED},
    PartitionState.DELIVERED: {PartitionState.PROCESSING, PartitionState.TERMINATED},
    PartitionState.PROCESSING: {PartitionState.COMMITTING, PartitionState.TERMINATED},
    PartitionState.COMMITTING: {PartitionState.IDLE, PartitionState.TERMINATED},
    PartitionState.TERMINATED: set(),
}


@dataclass
class PartitionProgress:
    """Where one partition stands from the worker's point of view."""
    topic: str
    partition: int
    state: PartitionState = PartitionState.IDLE
    in_flight_offset: Optional[int] = None
    last_processed_offset: Optional[int] = None
    last_committed_offset: Optional[int] = None

    def transition(self, new_state: PartitionState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise InvalidStateTransitionError(
                f"Illegal transition {self.state.value} -> {new_state.value} "
                f"for {self.topic}[{self.partition}]",
                current_state=self.state.value,
                requested_state=new_state.value,
            )
        self.state = new_state


class PartitionStateTracker:
    """Drives IDLE -> DELIVERED -> PROCESSING -> COMMITTING -> IDLE per partition.

    Only one message may be in flight per partition, and a commit is only
    accepted for the offset whose processing just finished.
    """

    def __init__(self):
        self._partitions: Dict[Tuple[str, int], PartitionProgress] = {}

    def get(self, topic: str, partition: int) -> PartitionProgress:
        key = (topic, partition)
        if key not in self._partitions:
            self._partitions[key] = PartitionProgress(topic=topic, partition=partition)
        return self._partitions[key]

    def delivered(self, topic: str, partition: int, offset: int) -> None:
        progress = self.get(topic, partition)
        progress.transition(PartitionState.DELIVERED)
        progress.in_flight_offset = offset

    def processing(self, topic: str, partition: int) -> None:
        self.get(topic, partition).transition(PartitionState.PROCESSING)

    def processed(self, topic: str, partition: int) -> None:
        progress = self.get(topic, partition)
        progress.transition(PartitionState.COMMITTING)
        progress.last_processed_offset = progress.in_flight_offset

    def committed(self, topic: str, partition: int, next_offset: int) -> None:
        progress = self.get(topic, partition)
        if progress.state is PartitionState.COMMITTING and next_offset != progress.last_processed_offset + 1:
            raise InvalidStateTransitionError(
                f"Commit of {next_offset} does not follow processed offset "
                f"{progress.last_processed_offset} for {topic}[{partition}]",
                current_state=progress.state.value,
                requested_state=PartitionState.IDLE.value,
            )
        progress.transition(PartitionState.IDLE)
        progress.last_committed_offset = next_offset
        progress.in_flight_offset = None

    def terminated(self, topic: str, partition: int) -> None:
        progress = self.get(topic, partition)
        if progress.state is not PartitionState.TERMINATED:
            progress.transition(PartitionState.TERMINATED)

    def snapshot(self) -> Dict[str, Dict[str, object]]:
        """Plain-dict view of every tracked partition, keyed ``topic[partition]``."""
        return {
            f"{p.topic}[{p.partition}]": {
                "state": p.state.value,
                "in_flight_offset": p.in_flight_offset,
                "last_processed_offset": p.last_processed_offset,
                "last_committed_offset": p.last_committed_offset,
            }
            for p in self._partitions.values()
        }
