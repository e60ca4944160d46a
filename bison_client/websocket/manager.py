"""
Reconnecting stream subscriptions.

StreamSubscription strings a sequence of ConnectionSessions together for one
logical feed: it classifies frames, fans them out to the caller's callbacks,
and on an unexpected close schedules the next session with exponential
backoff until the attempt budget runs out or the caller disposes.
"""

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

from bison_client.base_models import BisonStreamError
from helpers.unified_logger import get_stream_logger

from .backoff import ReconnectPolicy
from .channels import ChannelDescriptor
from .connection import ConnectionSession, ConnectionState, Connector, connect_websocket
from .heartbeat import HEARTBEAT_INTERVAL
from .message_handler import MessageKind, classify

T = TypeVar("T")

Callback = Callable[..., Union[None, Awaitable[None]]]


@dataclass
class StreamCallbacks:
    """
    Optional caller hooks shared by every channel.

    Errors are opt-in: without ``on_error`` parse, protocol and transport
    errors are only logged.

    Attributes:
        on_error: Called with a BisonStreamError
        on_connect: Called after each successful open
        on_disconnect: Called after each close, before any reconnect
        reconnect: Reconnect automatically after an unexpected close
        heartbeat: Send periodic pings; None follows ``reconnect``
    """

    on_error: Optional[Callable[[BisonStreamError], Any]] = None
    on_connect: Optional[Callable[[], Any]] = None
    on_disconnect: Optional[Callable[[], Any]] = None
    reconnect: bool = True
    heartbeat: Optional[bool] = None

    @property
    def heartbeat_enabled(self) -> bool:
        return self.reconnect if self.heartbeat is None else self.heartbeat


class StreamSubscription(Generic[T]):
    """One caller subscription and the sessions that back it over time."""

    def __init__(
        self,
        channel: ChannelDescriptor[T],
        url: str,
        on_data: Callable[[T], Any],
        *,
        callbacks: Optional[StreamCallbacks] = None,
        policy: Optional[ReconnectPolicy] = None,
        heartbeat_interval: float = HEARTBEAT_INTERVAL,
        connector: Connector = connect_websocket,
        logger: Optional[Any] = None,
    ):
        """
        Args:
            channel: Channel descriptor (discriminator and naming)
            url: Fully built stream URL
            on_data: Receives every data frame, in arrival order
            callbacks: Optional error/connect/disconnect hooks and flags
            policy: Reconnect attempt budget and backoff
            heartbeat_interval: Ping period in seconds
            connector: Transport factory
            logger: Logger instance; defaults to a stream logger for the channel

        Raises:
            RuntimeError: If there is no running event loop
        """
        self.channel = channel
        self.url = url
        self.callbacks = callbacks or StreamCallbacks()
        self.policy = policy or ReconnectPolicy()
        self.logger = logger or get_stream_logger(channel.name)
        self._loop = asyncio.get_running_loop()
        self._on_data = on_data
        self._heartbeat_interval = heartbeat_interval
        self._connector = connector

        self._session: Optional[ConnectionSession] = None
        self._attempts = 0
        self._reconnect_handle: Optional[asyncio.TimerHandle] = None
        self._disposed = False
        self._exhausted = False

    def _log(self, message: str, level: str = "INFO"):
        if self.logger and hasattr(self.logger, "log"):
            self.logger.log(message, level)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def exhausted(self) -> bool:
        """True once the attempt budget ran out and the feed went dormant."""
        return self._exhausted

    @property
    def state(self) -> ConnectionState:
        if self._session is None:
            return ConnectionState.CLOSED if self._disposed else ConnectionState.IDLE
        return self._session.state

    @property
    def session(self) -> Optional[ConnectionSession]:
        return self._session

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        self._connect()

    def _connect(self) -> None:
        """Open a new session unless one is already connecting or open."""
        self._reconnect_handle = None
        if self._disposed:
            return
        current = self._session
        if current is not None and current.active:
            self._log(f"[{self.channel.name}] Session already {current.state.value}; skipping connect", "DEBUG")
            return

        heartbeat_interval = self._heartbeat_interval if self.callbacks.heartbeat_enabled else None
        session = ConnectionSession(
            self.url,
            self,
            connector=self._connector,
            heartbeat_interval=heartbeat_interval,
            logger=self.logger,
        )
        self._session = session
        session.open()

    def dispose(self) -> None:
        """Tear down for good. Idempotent and safe from inside any callback."""
        if self._disposed:
            return
        self._disposed = True

        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

        session = self._session
        self._session = None
        if session is not None:
            session.close()
        self._log(f"[{self.channel.name}] Subscription disposed", "DEBUG")

    def _schedule_reconnect(self) -> None:
        if not self.callbacks.reconnect:
            return
        if self._attempts >= self.policy.max_attempts:
            self._exhausted = True
            self._log(
                f"[{self.channel.name}] Giving up after {self._attempts} reconnect attempts",
                "WARNING",
            )
            return

        self._attempts += 1
        delay = self.policy.delay(self._attempts)
        self._log(
            f"[{self.channel.name}] Reconnecting in {delay:.1f}s "
            f"(attempt {self._attempts}/{self.policy.max_attempts})",
            "WARNING",
        )
        self._reconnect_handle = self._loop.call_later(delay, self._connect)

    # ------------------------------------------------------------------
    # Session handlers
    # ------------------------------------------------------------------

    def _is_live(self, session: ConnectionSession) -> bool:
        return not self._disposed and session is self._session

    async def on_open(self, session: ConnectionSession) -> None:
        if not self._is_live(session):
            return
        self._attempts = 0
        self._exhausted = False
        await self._invoke(self.callbacks.on_connect)

    async def on_message(self, session: ConnectionSession, raw: Any) -> None:
        if not self._is_live(session):
            return
        message = classify(raw, self.channel.discriminator)

        if message.kind is MessageKind.DATA:
            await self._invoke(self._on_data, message.payload)
        elif message.is_error:
            await self._report_error(message.error)
        elif message.kind is MessageKind.UNRECOGNIZED:
            self._log(f"[{self.channel.name}] Dropping unrecognized message: {message.payload}", "DEBUG")

    async def on_error(self, session: ConnectionSession, error: BisonStreamError) -> None:
        if not self._is_live(session):
            return
        await self._report_error(error)

    async def on_close(self, session: ConnectionSession) -> None:
        if not self._is_live(session):
            return
        self._log(f"[{self.channel.name}] WebSocket disconnected", "INFO")
        await self._invoke(self.callbacks.on_disconnect)
        # on_disconnect may have disposed us
        if self._is_live(session):
            self._schedule_reconnect()

    async def _report_error(self, error: Optional[BisonStreamError]) -> None:
        if error is None:
            return
        self._log(f"[{self.channel.name}] {error}", "DEBUG")
        await self._invoke(self.callbacks.on_error, error)

    async def _invoke(self, callback: Optional[Callback], *args: Any) -> None:
        """Run a caller callback; its exceptions are logged, never propagated."""
        if callback is None or self._disposed:
            return
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._log(f"[{self.channel.name}] Callback {getattr(callback, '__name__', callback)!s} raised: {exc}", "ERROR")


class SubscriptionHandle:
    """
    What ``listen_*`` returns. Call it (or ``dispose()``) to stop the feed.

    Disposal is idempotent and irreversible; afterwards no callback fires.
    """

    __slots__ = ("_subscription",)

    def __init__(self, subscription: StreamSubscription):
        self._subscription = subscription

    def __call__(self) -> None:
        self.dispose()

    def dispose(self) -> None:
        self._subscription.dispose()

    @property
    def disposed(self) -> bool:
        return self._subscription.disposed

    @property
    def state(self) -> ConnectionState:
        return self._subscription.state

    @property
    def attempts(self) -> int:
        return self._subscription.attempts

    @property
    def exhausted(self) -> bool:
        return self._subscription.exhausted

    @property
    def url(self) -> str:
        return self._subscription.url

    def __repr__(self) -> str:
        return (
            f"<SubscriptionHandle channel={self._subscription.channel.name} "
            f"state={self.state.value} disposed={self.disposed}>"
        )


def subscribe(
    channel: ChannelDescriptor[T],
    base_url: str,
    key: str,
    on_data: Callable[[T], Any],
    **kwargs: Any,
) -> SubscriptionHandle:
    """Build, start and wrap a subscription for ``key`` on ``channel``."""
    subscription = StreamSubscription(channel, channel.build_url(base_url, key), on_data, **kwargs)
    subscription.start()
    return SubscriptionHandle(subscription)
