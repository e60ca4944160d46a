"""
Bison Client Library

Python client for the Bison trading venue: REST calls, signed order flows,
and reconnecting real-time subscriptions (account events, market ticker,
order book).

Modules:
    - client: BisonClient (REST + listen_* + order flows)
    - websocket: streaming core (sessions, heartbeat, reconnect supervision)
    - base_models: errors and stream payload shapes
    - amounts: µUSDC and fixed-point helpers
"""

from .amounts import (
    BIGINT_FIELDS,
    fixed_point_to_quantity,
    format_uusdc_display,
    parse_bigint,
    parse_bigint_fields,
    quantity_to_fixed_point,
    usdc_to_uusdc,
    uusdc_to_usdc,
)
from .base_models import (
    BisonAPIError,
    BisonEvent,
    BisonStreamError,
    KalshiTickerUpdate,
    OrderbookUpdate,
    StreamParseError,
    StreamProtocolError,
    StreamTransportError,
)
from .caching import InfoCache
from .client import BisonClient, OrderFlowResult, create_bison_client
from .config import BisonSettings, load_settings
from .models import CancelOrderRequest, PlaceOrderRequest, TokenAuthorization, TokenAuthorizationRequest
from .websocket import ConnectionState, ReconnectPolicy, SubscriptionHandle

__all__ = [
    "BIGINT_FIELDS",
    "BisonAPIError",
    "BisonClient",
    "BisonEvent",
    "BisonSettings",
    "BisonStreamError",
    "CancelOrderRequest",
    "ConnectionState",
    "InfoCache",
    "KalshiTickerUpdate",
    "OrderFlowResult",
    "OrderbookUpdate",
    "PlaceOrderRequest",
    "ReconnectPolicy",
    "StreamParseError",
    "StreamProtocolError",
    "StreamTransportError",
    "SubscriptionHandle",
    "TokenAuthorization",
    "TokenAuthorizationRequest",
    "create_bison_client",
    "fixed_point_to_quantity",
    "format_uusdc_display",
    "load_settings",
    "parse_bigint",
    "parse_bigint_fields",
    "quantity_to_fixed_point",
    "usdc_to_uusdc",
    "uusdc_to_usdc",
]

__version__ = "1.0.0"
