"""
Message parsing and classification for Bison streams.

Every inbound frame is turned into exactly one ClassifiedMessage before any
typed access happens.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from bison_client.base_models import BisonStreamError, StreamParseError, StreamProtocolError

CONTROL_TYPES = frozenset({"ping", "pong"})
ERROR_TYPE = "error"


class MessageKind(str, Enum):
    CONTROL = "control"
    DATA = "data"
    PROTOCOL_ERROR = "protocol_error"
    UNRECOGNIZED = "unrecognized"
    PARSE_ERROR = "parse_error"


@dataclass(frozen=True)
class ClassifiedMessage:
    kind: MessageKind
    payload: Any = None
    error: Optional[BisonStreamError] = None

    @property
    def is_error(self) -> bool:
        return self.kind in (MessageKind.PROTOCOL_ERROR, MessageKind.PARSE_ERROR)


def classify(raw: Union[str, bytes, bytearray], discriminator: str) -> ClassifiedMessage:
    """
    Classify a raw frame for a channel keyed on ``discriminator``.

    Args:
        raw: Frame text (bytes are decoded as UTF-8)
        discriminator: Field that marks a data frame on this channel
            ("type" for account events and order books, "market_ticker"
            for tickers)

    Returns:
        CONTROL for ping/pong on any channel, PROTOCOL_ERROR for
        ``{"type": "error"}`` frames, DATA when the discriminator is present,
        UNRECOGNIZED otherwise, PARSE_ERROR when the frame is not JSON.
    """
    try:
        text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
        data = json.loads(text)
    except (UnicodeDecodeError, ValueError, TypeError) as exc:
        error = StreamParseError(f"Failed to parse WebSocket message: {exc}")
        error.__cause__ = exc
        return ClassifiedMessage(MessageKind.PARSE_ERROR, error=error)

    if not isinstance(data, dict):
        return ClassifiedMessage(MessageKind.UNRECOGNIZED, payload=data)

    message_type = data.get("type")
    if message_type in CONTROL_TYPES:
        return ClassifiedMessage(MessageKind.CONTROL, payload=data)

    if message_type == ERROR_TYPE:
        message = data.get("message") or data.get("error") or "Server reported an error"
        return ClassifiedMessage(
            MessageKind.PROTOCOL_ERROR,
            payload=data,
            error=StreamProtocolError(str(message), payload=data),
        )

    if discriminator not in data:
        return ClassifiedMessage(MessageKind.UNRECOGNIZED, payload=data)

    return ClassifiedMessage(MessageKind.DATA, payload=data)
