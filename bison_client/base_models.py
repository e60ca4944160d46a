"""
Shared data structures and exceptions for the Bison client.

Stream payloads are TypedDicts: the server's JSON shape is trusted once a
frame passes the discriminator check, so nothing here validates at runtime.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, TypedDict, Union


# ============================================================================
# ERRORS
# ============================================================================


class BisonAPIError(Exception):
    """
    Raised when a request/response call fails.

    Attributes:
        message: Human readable message
        code: Optional machine-readable error code (e.g. "network_error")
        status: Optional HTTP status
        details: Optional structured details returned by the server
    """

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status: Optional[int] = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.details = details

    @classmethod
    def from_payload(cls, payload: Any, *, status: Optional[int], default_message: str) -> "BisonAPIError":
        """Build an error from a server error body (JSON object or plain text)."""
        if isinstance(payload, dict):
            message = payload.get("error") or payload.get("message") or default_message
            code = payload.get("code")
            return cls(
                str(message),
                code=str(code) if code is not None else None,
                status=status,
                details=payload.get("details"),
            )
        if isinstance(payload, str) and payload.strip():
            return cls(f"{default_message}: {payload.strip()}", status=status)
        return cls(default_message, status=status)

    def __repr__(self) -> str:
        return f"BisonAPIError(message={self.message!r}, code={self.code!r}, status={self.status!r})"


class BisonStreamError(Exception):
    """Base class for errors reported through a subscription's on_error callback."""


class StreamParseError(BisonStreamError):
    """Inbound frame was not valid JSON (or not valid UTF-8)."""


class StreamProtocolError(BisonStreamError):
    """Server sent an explicit error frame."""

    def __init__(self, message: str, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.payload = payload or {}


class StreamTransportError(BisonStreamError):
    """Low-level connection failure; always followed by a disconnect."""


# ============================================================================
# STREAM PAYLOADS
# ============================================================================

Side = Literal["yes", "no"]
Action = Literal["buy", "sell"]


class BisonOrderEvent(TypedDict):
    type: Literal["order_placed", "order_filled", "order_cancelled"]
    orderId: str
    marketId: str
    action: Action
    side: Side
    number: int
    priceMyrs: int


class BisonMarketEvent(TypedDict, total=False):
    type: Literal["market_settled", "market_closed", "market_opened"]
    marketId: str
    result: Side


class BisonUSDCEvent(TypedDict):
    type: Literal["usdc_deposited", "usdc_withdrawn"]
    userAddress: str
    myrsAmount: int


class BisonPositionEvent(TypedDict):
    type: Literal["position_minted", "position_burned"]
    userAddress: str
    marketId: str
    side: Side
    number: int


BisonEvent = Union[BisonOrderEvent, BisonMarketEvent, BisonUSDCEvent, BisonPositionEvent]


class KalshiTickerUpdate(TypedDict, total=False):
    market_ticker: str
    yes_bid_myrs: int
    yes_ask_myrs: int
    no_bid_myrs: int
    no_ask_myrs: int
    last_price_myrs: int
    volume: int
    open_interest: int


class OrderbookUpdate(TypedDict, total=False):
    """Order-book snapshot or delta; ``type`` tells which."""

    type: Literal["orderbook_snapshot", "orderbook_delta"]
    market_ticker: str
    seq: int
    yes: List[List[int]]
    no: List[List[int]]
    price: int
    delta: int
    side: Side


__all__ = [
    "BisonAPIError",
    "BisonStreamError",
    "StreamParseError",
    "StreamProtocolError",
    "StreamTransportError",
    "BisonOrderEvent",
    "BisonMarketEvent",
    "BisonUSDCEvent",
    "BisonPositionEvent",
    "BisonEvent",
    "KalshiTickerUpdate",
    "OrderbookUpdate",
]
