"""Payload serialization used by checkpoints."""

from .deserializer import PayloadDeserializer
from .serializer import PayloadSerializer

__all__ = ["PayloadSerializer", "PayloadDeserializer"]
