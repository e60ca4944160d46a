"""
WebSocket connection management for Bison streams.

A ConnectionSession owns exactly one physical connection: it connects,
pumps frames to its handlers, runs the heartbeat and tears everything down.
Reconnect decisions belong to the owner (see manager.py).
"""

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedError

from bison_client.base_models import BisonStreamError, StreamTransportError

from .heartbeat import HEARTBEAT_INTERVAL, HeartbeatDriver


class ConnectionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class Transport(Protocol):
    """What a session needs from a websocket connection."""

    async def send(self, message: str) -> Any: ...

    async def close(self) -> Any: ...

    def __aiter__(self) -> Any: ...


Connector = Callable[[str], Awaitable[Transport]]


class SessionHandlers(Protocol):
    """Transport events, in the order a session reports them."""

    async def on_open(self, session: "ConnectionSession") -> None: ...

    async def on_message(self, session: "ConnectionSession", raw: Any) -> None: ...

    async def on_error(self, session: "ConnectionSession", error: BisonStreamError) -> None: ...

    async def on_close(self, session: "ConnectionSession") -> None: ...


async def connect_websocket(url: str, **connect_kwargs: Any) -> Transport:
    """Default connector: a plain ``websockets`` client connection."""
    return await websockets.connect(url, **connect_kwargs)


def _transport_error(exc: BaseException) -> StreamTransportError:
    error = StreamTransportError(f"WebSocket error: {exc}")
    error.__cause__ = exc
    return error


class ConnectionSession:
    """Lifecycle of one streaming connection."""

    def __init__(
        self,
        url: str,
        handlers: SessionHandlers,
        *,
        connector: Connector = connect_websocket,
        heartbeat_interval: Optional[float] = HEARTBEAT_INTERVAL,
        logger: Optional[Any] = None,
    ):
        """
        Args:
            url: Full ws:// or wss:// address
            handlers: Receiver of open/message/error/close events
            connector: Awaitable factory producing the transport
            heartbeat_interval: Ping period in seconds, or None to disable
            logger: Logger instance (unified_logger style)
        """
        self.url = url
        self.logger = logger
        self.state = ConnectionState.IDLE
        self._handlers = handlers
        self._connector = connector
        self._heartbeat_interval = heartbeat_interval
        self._transport: Optional[Transport] = None
        self._heartbeat: Optional[HeartbeatDriver] = None
        self._task: Optional[asyncio.Task] = None
        self._closing = False

    def _log(self, message: str, level: str = "INFO"):
        if self.logger and hasattr(self.logger, "log"):
            self.logger.log(message, level)

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    @property
    def active(self) -> bool:
        """True while connecting or open."""
        return self.state in (ConnectionState.CONNECTING, ConnectionState.OPEN)

    @property
    def heartbeat_running(self) -> bool:
        return self._heartbeat is not None and self._heartbeat.running

    def open(self) -> None:
        """Start connecting in the background. Only an idle session can be opened."""
        if self.state is not ConnectionState.IDLE:
            return
        self.state = ConnectionState.CONNECTING
        self._task = asyncio.get_running_loop().create_task(self._run())
        self._task.add_done_callback(self._on_task_done)

    def close(self) -> None:
        """
        Caller-initiated teardown.

        Stops the heartbeat and the reader, closes the transport in the
        background and silences every handler, so no close event follows.
        """
        if self._closing or self.state is ConnectionState.CLOSED:
            return
        self._closing = True
        self._stop_heartbeat()
        self.state = ConnectionState.CLOSING

        task = self._task
        if task is None:
            self.state = ConnectionState.CLOSED
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # From inside a handler the reader loop notices _closing and exits itself
        if task is not current and not task.done():
            task.cancel()

    async def send(self, message: str) -> None:
        if self._transport is None or not self.is_open:
            raise StreamTransportError("WebSocket is not open")
        await self._transport.send(message)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _start_heartbeat(self) -> None:
        if self._heartbeat_interval is None:
            return
        self._heartbeat = HeartbeatDriver(
            send=self.send,
            is_open=lambda: self.is_open,
            interval=self._heartbeat_interval,
            logger=self.logger,
        )
        self._heartbeat.start()

    def _stop_heartbeat(self) -> None:
        heartbeat = self._heartbeat
        self._heartbeat = None
        if heartbeat is not None:
            heartbeat.stop()

    async def _run(self) -> None:
        try:
            try:
                transport = await self._connector(self.url)
            except Exception as exc:
                self._log(f"Failed to connect to {self.url}: {exc}", "WARNING")
                await self._handlers.on_error(self, _transport_error(exc))
                return

            self._transport = transport
            if self._closing:
                return

            self.state = ConnectionState.OPEN
            self._log(f"🔗 Connected to {self.url}", "INFO")
            await self._handlers.on_open(self)
            if self._closing:
                return

            self._start_heartbeat()
            await self._receive_loop(transport)
        except asyncio.CancelledError:
            self._closing = True
            raise
        finally:
            self._stop_heartbeat()
            self.state = ConnectionState.CLOSED
            await self._close_transport()
            if not self._closing:
                await self._handlers.on_close(self)

    async def _receive_loop(self, transport: Transport) -> None:
        try:
            async for raw in transport:
                await self._handlers.on_message(self, raw)
                if self._closing:
                    break
        except ConnectionClosedError as exc:
            self._log(f"WebSocket closed abnormally: {exc}", "WARNING")
            await self._handlers.on_error(self, _transport_error(exc))
        except ConnectionClosed as exc:
            self._log(f"WebSocket closed: {exc}", "DEBUG")
        except Exception as exc:
            self._log(f"WebSocket listen error: {exc}", "ERROR")
            await self._handlers.on_error(self, _transport_error(exc))

    async def _close_transport(self) -> None:
        transport = self._transport
        self._transport = None
        if transport is None:
            return
        try:
            await transport.close()
        except Exception as exc:
            self._log(f"Error closing websocket: {exc}", "DEBUG")

    def _on_task_done(self, task: asyncio.Task) -> None:
        self.state = ConnectionState.CLOSED
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._log(f"Session task failed: {exc}", "ERROR")
