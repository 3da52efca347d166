from .processor import DelayedProcessor, MessageProcessor
from .service import OffsetWorkerService
from .state import PartitionState, PartitionStateTracker

__all__ = [
    "DelayedProcessor",
    "MessageProcessor",
    "OffsetWorkerService",
    "PartitionState",
    "PartitionStateTracker",
]
