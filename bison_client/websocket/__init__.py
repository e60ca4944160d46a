"""Streaming core: reconnecting, heart-beating subscriptions to Bison feeds."""

from .backoff import ReconnectPolicy, reconnect_delay
from .channels import ACCOUNT_EVENTS, MARKET_TICKER, ORDERBOOK, ChannelDescriptor, ws_base_url
from .connection import ConnectionSession, ConnectionState, connect_websocket
from .heartbeat import HEARTBEAT_INTERVAL, PING_FRAME, HeartbeatDriver
from .manager import StreamCallbacks, StreamSubscription, SubscriptionHandle, subscribe
from .message_handler import ClassifiedMessage, MessageKind, classify

__all__ = [
    "ACCOUNT_EVENTS",
    "MARKET_TICKER",
    "ORDERBOOK",
    "ChannelDescriptor",
    "ClassifiedMessage",
    "ConnectionSession",
    "ConnectionState",
    "HEARTBEAT_INTERVAL",
    "HeartbeatDriver",
    "MessageKind",
    "PING_FRAME",
    "ReconnectPolicy",
    "StreamCallbacks",
    "StreamSubscription",
    "SubscriptionHandle",
    "classify",
    "connect_websocket",
    "reconnect_delay",
    "subscribe",
    "ws_base_url",
]
