"""
Wire protocol shared by the browser client and the server.

Every frame is a JSON object whose ``type`` field selects the variant; the
remaining fields are the payload.
"""

import json
from enum import Enum


class ProtocolError(ValueError):
    """Raised for frames that cannot be decoded into a known message."""


class MessageType(str, Enum):
    # Server -> client
    STATUS = "STATUS"
    PAIR_FOUND = "PAIR_FOUND"
    DISCONNECTED = "DISCONNECTED"
    ENABLE_VIDEO = "ENABLE_VIDEO"
    # Client -> server
    CONNECT = "CONNECT"
    DISCONNECT = "DISCONNECT"
    # Both directions
    SIGNAL = "SIGNAL"


INBOUND_TYPES = frozenset({MessageType.CONNECT, MessageType.DISCONNECT, MessageType.SIGNAL})


class Mode(str, Enum):
    VOICE = "voice"
    VIDEO = "video"

    @classmethod
    def parse(cls, value, default=None):
        """Returns the matching mode, or ``default`` (voice) for anything else."""
        try:
            return cls(value)
        except ValueError:
            return default or cls.VOICE


def encode(message_type, **payload):
    """Serializes an outbound frame."""
    return json.dumps({"type": MessageType(message_type).value, **payload})


def decode(frame):
    """
    Parses an inbound text frame.

    Returns ``(MessageType, data)`` where ``data`` is the full decoded object.
    Raises ProtocolError for binary frames, invalid JSON, non-object JSON and
    unknown or server-only types.
    """
    if not isinstance(frame, str):
        raise ProtocolError("text frames only")
    try:
        data = json.loads(frame)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"invalid json: {e.msg}") from e
    if not isinstance(data, dict):
        raise ProtocolError("frame is not a JSON object")
    try:
        message_type = MessageType(data.get("type"))
    except ValueError:
        raise ProtocolError(f"unknown type: {data.get('type')!r}") from None
    if message_type not in INBOUND_TYPES:
        raise ProtocolError(f"unexpected inbound type: {message_type.value}")
    return message_type, data
