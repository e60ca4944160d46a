"""
Stream channel descriptors.

The three Bison feeds share one lifecycle; they differ only in where they
live and which field marks a data frame.
"""

import re
from dataclasses import dataclass
from typing import Generic, TypeVar

from bison_client.base_models import BisonEvent, KalshiTickerUpdate, OrderbookUpdate

T = TypeVar("T")

_HTTP_SCHEME = re.compile(r"^http")


def ws_base_url(base_url: str) -> str:
    """Map an http(s) base URL onto its ws(s) counterpart."""
    return _HTTP_SCHEME.sub("ws", base_url.rstrip("/"), count=1)


@dataclass(frozen=True)
class ChannelDescriptor(Generic[T]):
    """
    Everything channel-specific about a subscription.

    Attributes:
        name: Short channel name used in logs
        path_template: Path appended to the ws base URL; ``{key}`` is the
            address or ticker being followed
        discriminator: Field whose presence marks a data frame
    """

    name: str
    path_template: str
    discriminator: str

    def build_url(self, base_url: str, key: str) -> str:
        if not key:
            raise ValueError(f"{self.name} subscription requires a non-empty key")
        return f"{ws_base_url(base_url)}{self.path_template.format(key=key)}"


ACCOUNT_EVENTS: ChannelDescriptor[BisonEvent] = ChannelDescriptor(
    name="account_events",
    path_template="/ws/evm/{key}",
    discriminator="type",
)

MARKET_TICKER: ChannelDescriptor[KalshiTickerUpdate] = ChannelDescriptor(
    name="market_ticker",
    path_template="/ws/kalshi/event/{key}",
    discriminator="market_ticker",
)

ORDERBOOK: ChannelDescriptor[OrderbookUpdate] = ChannelDescriptor(
    name="orderbook",
    path_template="/ws/kalshi/orderbook/{key}",
    discriminator="type",
)
