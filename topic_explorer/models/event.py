"""
Event data model.

Represents one sample delivered by the transport, already converted to
display-ready text.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Union


class EventKind(Enum):
    """Kind of sample, as shown in the table view."""
    PUT = "PUT"
    DEL = "DEL"
    OTHER = "OTHER"


@dataclass
class Event:
    """
    A sample received on a topic.

    The registry only uses topic, payload and timestamp; kind is kept for
    the presentation layer.
    """
    topic: str  # Full topic string, e.g. "sensor/temp"
    payload: str
    kind: EventKind = EventKind.PUT
    timestamp: datetime = field(default_factory=lambda: datetime.now().astimezone())


def decode_payload(raw: Union[str, bytes, bytearray, memoryview]) -> str:
    """
    Convert a raw payload into display text.

    Bytes that are not valid UTF-8 are replaced by a placeholder describing
    the decode failure, so the sample is still recorded.

    Args:
        raw: Payload as received from the transport

    Returns:
        Payload text, or "(invalid UTF-8: ...)" when decoding fails
    """
    if isinstance(raw, str):
        return raw

    try:
        return bytes(raw).decode("utf-8")
    except UnicodeDecodeError as e:
        return f"(invalid UTF-8: {e})"
