"""Infrastructure components for streaming services.

Broker-facing adapters used by the worker services.
"""

from .message_consumer import MessageConsumer

__all__ = ['MessageConsumer']
