# Structured exception hierarchy for the offset worker

from typing import Dict, Any, Optional
from datetime import datetime, timezone


class WorkerException(Exception):
    """Base exception for all worker specific errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)


# Broker Errors
class BrokerConnectionError(WorkerException):
    """Broker unreachable at startup or during operation - fatal"""

    def __init__(self, message: str, bootstrap_servers: str, **kwargs):
        super().__init__(message, **kwargs)
        self.bootstrap_servers = bootstrap_servers


class SubscriptionError(WorkerException):
    """Topic or consumer group setup failed - fatal"""

    def __init__(self, message: str, topic: str, group_id: str, **kwargs):
        super().__init__(message, **kwargs)
        self.topic = topic
        self.group_id = group_id


# Message Errors
class MessageError(WorkerException):
    """Base class for errors tied to one delivered message"""

    def __init__(self, message: str, topic: str, partition: int, offset: int, **kwargs):
        super().__init__(message, **kwargs)
        self.topic = topic
        self.partition = partition
        self.offset = offset


class ProcessingError(MessageError):
    """Handler logic failed - no commit is issued, message is redelivered on restart"""
    pass


class CommitError(MessageError):
    """Broker rejected or failed to record an offset update"""
    pass


class InvalidStateTransitionError(WorkerException):
    """Partition state machine received an illegal transition"""

    def __init__(self, message: str, current_state: str, requested_state: str, **kwargs):
        super().__init__(message, **kwargs)
        self.current_state = current_state
        self.requested_state = requested_state


# Configuration Errors
class ConfigurationError(WorkerException):
    """Configuration validation errors"""

    def __init__(self, message: str, config_field: str, config_value: Any,
                 **kwargs):
        super().__init__(message, **kwargs)
        self.config_field = config_field
        self.config_value = config_value


def create_error_context(error: Exception, operation: str,
                        additional_context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Create structured error context for logging

    Args:
        error: The exception that occurred
        operation: The operation that failed
        additional_context: Additional context information

    Returns:
        Structured error context dictionary
    """
    context = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "operation": operation,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if isinstance(error, WorkerException):
        if error.details:
            context["error_details"] = error.details

        if isinstance(error, MessageError):
            context["topic"] = error.topic
            context["partition"] = error.partition
            context["offset"] = error.offset

        if isinstance(error, SubscriptionError):
            context["topic"] = error.topic
            context["group_id"] = error.group_id

        if isinstance(error, BrokerConnectionError):
            context["bootstrap_servers"] = error.bootstrap_servers

        if isinstance(error, ConfigurationError):
            context["config_field"] = error.config_field
            context["config_value"] = error.config_value

    # Underlying library error, if any
    cause = error.__cause__
    if cause is not None:
        context["cause"] = f"{type(cause).__name__}: {cause}"

    if additional_context:
        context.update(additional_context)

    return context
