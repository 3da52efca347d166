"""Streaming module namespace.

This __init__ does not eagerly import submodules so that importing
``core.streaming`` never pulls in aiokafka.

Import required components directly from subpackages, e.g.:
  - from core.streaming.infrastructure import MessageConsumer
"""

__all__ = []
