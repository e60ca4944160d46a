"""
Bison API client.

Request/response calls over aiohttp, reconnecting real-time subscriptions,
and the signed order flows that combine the two.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import aiohttp

from helpers.unified_logger import get_client_logger, get_stream_logger

from .base_models import BisonAPIError, BisonEvent, BisonStreamError, KalshiTickerUpdate, OrderbookUpdate
from .caching import InfoCache
from .config import BisonSettings, load_settings
from .models import (
    CancelOrderRequest,
    PlaceOrderRequest,
    TokenAuthorization,
    TokenAuthorizationRequest,
)
from .signing import Signer, build_order_authorization, resolve_signer, sign_order_authorization
from .websocket.channels import ACCOUNT_EVENTS, MARKET_TICKER, ORDERBOOK, ChannelDescriptor
from .websocket.connection import Connector, connect_websocket
from .websocket.manager import StreamCallbacks, SubscriptionHandle, subscribe


@dataclass
class OrderFlowResult:
    """Outcome of a buy/sell flow: the placed order and the live event feed."""

    order: Dict[str, Any]
    handle: SubscriptionHandle
    tx_hash: Optional[str] = None

    def disconnect(self) -> None:
        self.handle.dispose()


class BisonClient:
    """
    Client for the Bison trading venue.

    Usage:
        ```python
        async with BisonClient("https://api.bison.example") as client:
            info = await client.get_info()
            handle = client.listen_to_market_ticker("KXBTC-25", print)
            ...
            handle.dispose()
        ```
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        settings: Optional[BisonSettings] = None,
        session: Optional[aiohttp.ClientSession] = None,
        info_cache: Optional[InfoCache] = None,
        connector: Connector = connect_websocket,
        logger: Optional[Any] = None,
    ):
        """
        Args:
            base_url: HTTP(S) API root; overrides settings.base_url
            settings: Client settings (defaults to BISON_* environment)
            session: Externally owned aiohttp session (not closed by the client)
            info_cache: Cache for /info responses; without one every call fetches
            connector: WebSocket transport factory for subscriptions
            logger: Logger instance (unified_logger style)
        """
        if settings is None:
            settings = load_settings(base_url)
        elif base_url is not None:
            settings = BisonSettings(**{**settings.model_dump(), "base_url": base_url})

        self.settings = settings
        self.base_url = settings.base_url
        self.info_cache = info_cache
        self.logger = logger or get_client_logger(log_level=settings.log_level)
        # A caller-supplied logger is shared with every subscription
        self._stream_logger = logger
        self._connector = connector
        self._session = session
        self._owns_session = session is None

    def _log(self, message: str, level: str = "INFO"):
        if self.logger and hasattr(self.logger, "log"):
            self.logger.log(message, level)

    # ========================================================================
    # HTTP SESSION MANAGEMENT
    # ========================================================================

    async def get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session used for requests."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.settings.request_timeout)
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "BisonClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ========================================================================
    # HTTP REQUEST UTILITIES
    # ========================================================================

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        operation: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Make one HTTP request and return the decoded JSON body.

        Args:
            method: HTTP method
            endpoint: API path (appended to base_url)
            operation: Human name used in error messages
            params: Query parameters
            json_data: JSON body

        Raises:
            BisonAPIError: On HTTP >= 400, network failure, timeout or empty body
        """
        session = await self.get_session()
        url = f"{self.base_url}{endpoint}"
        default_message = f"Failed to {operation}"

        try:
            async with session.request(method, url, params=params, json=json_data) as response:
                text = await response.text()
                payload = _decode_body(text)
                if response.status >= 400:
                    error = BisonAPIError.from_payload(
                        payload, status=response.status, default_message=default_message
                    )
                    self._log(f"{method} {endpoint} -> {response.status}: {error.message}", "WARNING")
                    raise error
        except asyncio.TimeoutError as exc:
            raise BisonAPIError(f"{default_message}: request timed out", code="timeout") from exc
        except aiohttp.ClientError as exc:
            raise BisonAPIError(f"{default_message}: {exc}", code="network_error") from exc

        if payload is None or payload == "":
            raise BisonAPIError(f"No data returned from {operation}", status=response.status)
        return payload

    # ========================================================================
    # REST ENDPOINTS
    # ========================================================================

    async def get_token_authorization(self, request: TokenAuthorizationRequest) -> TokenAuthorization:
        data = await self._request(
            "POST",
            "/get-token-authorization",
            operation="get token authorization",
            json_data=request.to_wire(),
        )
        return TokenAuthorization.model_validate(data)

    async def place_order(self, request: PlaceOrderRequest) -> Dict[str, Any]:
        return await self._request(
            "POST", "/kalshi/order/limit", operation="place order", json_data=request.to_wire()
        )

    async def cancel_order(self, request: CancelOrderRequest) -> Dict[str, Any]:
        """
        Cancel a resting order.

        Note: the ``/kalshi/order/cancel`` route is unverified. No published
        API description defines it yet; check it against the deployed server.
        """
        return await self._request(
            "POST", "/kalshi/order/cancel", operation="cancel order", json_data=request.to_wire()
        )

    async def get_event(self, event_ticker: str) -> Dict[str, Any]:
        return await self._request(
            "GET", "/get-event", operation="get event", params={"event_ticker": event_ticker}
        )

    async def get_event_metadata(self, event_ticker: str) -> Dict[str, Any]:
        return await self._request(
            "GET",
            "/get-event-metadata",
            operation="get event metadata",
            params={"event_ticker": event_ticker},
        )

    async def get_info(self, use_cache: bool = True) -> Dict[str, Any]:
        """System info (chain, vault and token addresses). Served from info_cache when present."""
        if use_cache and self.info_cache is not None:
            cached = self.info_cache.get()
            if cached is not None:
                return cached

        info = await self._request("GET", "/info", operation="get system info")
        if self.info_cache is not None:
            self.info_cache.set(info)
        return info

    async def get_deposited_usdc_balance(self, user_address: str) -> Any:
        return await self._request(
            "GET",
            "/deposited-balance",
            operation="get deposited USDC balance",
            params={"userAddress": user_address},
        )

    async def get_user_orders(self, user_id: str) -> Any:
        return await self._request(
            "GET", "/kalshi/orders", operation="get user orders", params={"userId": user_id}
        )

    async def get_user_positions(self, user_id: str) -> Any:
        return await self._request(
            "GET", "/kalshi/positions", operation="get user positions", params={"userId": user_id}
        )

    # ========================================================================
    # STREAMING SUBSCRIPTIONS
    # ========================================================================

    def listen_to_account_events(
        self,
        address: str,
        on_event: Callable[[BisonEvent], Any],
        *,
        on_error: Optional[Callable[[BisonStreamError], Any]] = None,
        on_connect: Optional[Callable[[], Any]] = None,
        on_disconnect: Optional[Callable[[], Any]] = None,
        reconnect: bool = True,
        heartbeat: Optional[bool] = None,
    ) -> SubscriptionHandle:
        """
        Follow order, market, USDC and position events for a wallet address.

        Must be called from a running event loop. Returns immediately; the
        connection is opened in the background. Without ``on_error`` stream
        errors are only logged.
        """
        callbacks = StreamCallbacks(
            on_error=on_error,
            on_connect=on_connect,
            on_disconnect=on_disconnect,
            reconnect=reconnect,
            heartbeat=heartbeat,
        )
        return self._listen(ACCOUNT_EVENTS, address, on_event, callbacks)

    def listen_to_market_ticker(
        self,
        ticker: str,
        on_ticker: Callable[[KalshiTickerUpdate], Any],
        *,
        on_error: Optional[Callable[[BisonStreamError], Any]] = None,
        on_connect: Optional[Callable[[], Any]] = None,
        on_disconnect: Optional[Callable[[], Any]] = None,
        reconnect: bool = True,
        heartbeat: Optional[bool] = None,
    ) -> SubscriptionHandle:
        """Follow ticker updates for every market of an event."""
        callbacks = StreamCallbacks(
            on_error=on_error,
            on_connect=on_connect,
            on_disconnect=on_disconnect,
            reconnect=reconnect,
            heartbeat=heartbeat,
        )
        return self._listen(MARKET_TICKER, ticker, on_ticker, callbacks)

    def listen_to_orderbook(
        self,
        ticker: str,
        on_update: Callable[[OrderbookUpdate], Any],
        *,
        on_error: Optional[Callable[[BisonStreamError], Any]] = None,
        on_connect: Optional[Callable[[], Any]] = None,
        on_disconnect: Optional[Callable[[], Any]] = None,
        reconnect: bool = True,
        heartbeat: Optional[bool] = None,
    ) -> SubscriptionHandle:
        """Follow order-book snapshots and deltas for a market."""
        callbacks = StreamCallbacks(
            on_error=on_error,
            on_connect=on_connect,
            on_disconnect=on_disconnect,
            reconnect=reconnect,
            heartbeat=heartbeat,
        )
        return self._listen(ORDERBOOK, ticker, on_update, callbacks)

    def _listen(
        self,
        channel: ChannelDescriptor,
        key: str,
        on_data: Callable[[Any], Any],
        callbacks: StreamCallbacks,
    ) -> SubscriptionHandle:
        return subscribe(
            channel,
            self.base_url,
            key,
            on_data,
            callbacks=callbacks,
            policy=self.settings.reconnect_policy(),
            heartbeat_interval=self.settings.heartbeat_interval,
            connector=self._connector,
            logger=self._stream_logger
            or get_stream_logger(channel.name, log_level=self.settings.log_level, key=key),
        )

    # ========================================================================
    # ORDER FLOWS
    # ========================================================================

    async def execute_buy_flow(self, **params: Any) -> OrderFlowResult:
        """Sign and place a buy order, then follow the signer's account events."""
        return await self._execute_order_flow("buy", **params)

    async def execute_sell_flow(self, **params: Any) -> OrderFlowResult:
        """Sign and place a sell order, then follow the signer's account events."""
        return await self._execute_order_flow("sell", **params)

    async def _execute_order_flow(
        self,
        action: str,
        *,
        signer: Signer,
        chain: str,
        chain_id: int,
        vault_address: str,
        market_id: str,
        side: str,
        number: int,
        price_myrs: int,
        on_event: Optional[Callable[[BisonEvent], Any]] = None,
        on_error: Optional[Callable[[BisonStreamError], Any]] = None,
    ) -> OrderFlowResult:
        account = resolve_signer(signer)
        user_address = account.address
        expiry = int(time.time()) + self.settings.order_authorization_ttl

        typed_data = build_order_authorization(
            chain_id=chain_id,
            vault_address=vault_address,
            market_id=market_id,
            action=action,
            side=side,
            number=number,
            price_myrs=price_myrs,
            expiry=expiry,
        )
        signature = sign_order_authorization(account, typed_data)

        order = await self.place_order(
            PlaceOrderRequest(
                chain=chain,
                market_id=market_id,
                number=number,
                price_myrs=price_myrs,
                action=action,
                side=side,
                user_address=user_address,
                signature=signature,
                expiry=expiry,
            )
        )
        self._log(f"✓ Order placed ({action} {number} {side} @ {price_myrs} on {market_id}): {order}", "INFO")

        def forward(event: BisonEvent) -> Any:
            self._log(f"{action.capitalize()} flow event: {event}", "DEBUG")
            if on_event is not None:
                return on_event(event)
            return None

        handle = self.listen_to_account_events(user_address, forward, on_error=on_error, reconnect=True)
        return OrderFlowResult(order=order, handle=handle)


def _decode_body(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


def create_bison_client(base_url: Optional[str] = None, **kwargs: Any) -> BisonClient:
    return BisonClient(base_url, **kwargs)
