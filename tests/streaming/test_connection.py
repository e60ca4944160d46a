"""Tests for a single streaming connection session and its heartbeat."""

import asyncio

import pytest

from bison_client.base_models import StreamTransportError
from bison_client.websocket.connection import ConnectionSession, ConnectionState
from bison_client.websocket.heartbeat import PING_FRAME, HeartbeatDriver


class RecordingHandlers:
    """Session handlers that record every event in order."""

    def __init__(self):
        self.events = []
        self.messages = []
        self.errors = []

    async def on_open(self, session):
        self.events.append("open")

    async def on_message(self, session, raw):
        self.events.append("message")
        self.messages.append(raw)

    async def on_error(self, session, error):
        self.events.append("error")
        self.errors.append(error)

    async def on_close(self, session):
        self.events.append("close")


class TestConnectionSession:
    """Lifecycle of one physical connection."""

    @pytest.mark.asyncio
    async def test_delivers_frames_in_order_then_reports_close(self, connector, wait_for):
        handlers = RecordingHandlers()
        session = ConnectionSession("ws://test/ws/evm/0xabc", handlers, connector=connector, heartbeat_interval=None)

        session.open()
        await wait_for(lambda: session.is_open)
        transport = connector.latest
        for n in range(3):
            transport.feed(f'{{"type":"order_placed","n":{n}}}')
        transport.drop()

        await wait_for(lambda: "close" in handlers.events)
        assert handlers.events == ["open", "message", "message", "message", "close"]
        assert handlers.messages[0].endswith('"n":0}')
        assert session.state is ConnectionState.CLOSED
        assert connector.calls == ["ws://test/ws/evm/0xabc"]

    @pytest.mark.asyncio
    async def test_connect_failure_reports_error_then_close(self, connector, wait_for):
        connector.fail_with = OSError("connection refused")
        handlers = RecordingHandlers()
        session = ConnectionSession("ws://test/x", handlers, connector=connector, heartbeat_interval=None)

        session.open()
        await wait_for(lambda: "close" in handlers.events)

        assert handlers.events == ["error", "close"]
        assert isinstance(handlers.errors[0], StreamTransportError)
        assert isinstance(handlers.errors[0].__cause__, OSError)

    @pytest.mark.asyncio
    async def test_read_failure_reports_error_then_close(self, connector, wait_for):
        handlers = RecordingHandlers()
        session = ConnectionSession("ws://test/x", handlers, connector=connector, heartbeat_interval=None)

        session.open()
        await wait_for(lambda: session.is_open)
        connector.latest.fail(RuntimeError("socket reset"))

        await wait_for(lambda: "close" in handlers.events)
        assert handlers.events == ["open", "error", "close"]
        assert isinstance(handlers.errors[0], StreamTransportError)

    @pytest.mark.asyncio
    async def test_caller_close_is_silent(self, connector, wait_for):
        handlers = RecordingHandlers()
        session = ConnectionSession("ws://test/x", handlers, connector=connector, heartbeat_interval=None)

        session.open()
        await wait_for(lambda: session.is_open)
        transport = connector.latest

        session.close()
        await wait_for(lambda: session.state is ConnectionState.CLOSED)
        await asyncio.sleep(0.01)

        assert handlers.events == ["open"]
        assert transport.closed

    @pytest.mark.asyncio
    async def test_open_twice_creates_one_transport(self, connector, wait_for):
        session = ConnectionSession("ws://test/x", RecordingHandlers(), connector=connector, heartbeat_interval=None)

        session.open()
        session.open()
        await wait_for(lambda: session.is_open)
        session.open()
        await asyncio.sleep(0.01)

        assert len(connector.calls) == 1
        session.close()

    @pytest.mark.asyncio
    async def test_send_requires_open_connection(self, connector):
        session = ConnectionSession("ws://test/x", RecordingHandlers(), connector=connector)

        with pytest.raises(StreamTransportError):
            await session.send(PING_FRAME)


class TestHeartbeat:
    """Application-level ping."""

    def test_ping_frame_is_compact(self):
        assert PING_FRAME == '{"type":"ping"}'

    @pytest.mark.asyncio
    async def test_session_pings_while_open_and_stops_on_close(self, connector, wait_for):
        session = ConnectionSession("ws://test/x", RecordingHandlers(), connector=connector, heartbeat_interval=0.01)

        session.open()
        await wait_for(lambda: session.is_open)
        transport = connector.latest
        await wait_for(lambda: len(transport.sent) >= 2)

        assert set(transport.sent) == {PING_FRAME}
        assert session.heartbeat_running

        session.close()
        await wait_for(lambda: session.state is ConnectionState.CLOSED)
        sent_at_close = len(transport.sent)
        await asyncio.sleep(0.05)

        assert not session.heartbeat_running
        assert len(transport.sent) == sent_at_close

    @pytest.mark.asyncio
    async def test_heartbeat_stopped_before_close_on_server_drop(self, connector, wait_for):
        class HeartbeatAtClose(RecordingHandlers):
            def __init__(self):
                super().__init__()
                self.heartbeat_at_close = None
                self.state_at_close = None

            async def on_close(self, session):
                self.heartbeat_at_close = session.heartbeat_running
                self.state_at_close = session.state
                await super().on_close(session)

        handlers = HeartbeatAtClose()
        session = ConnectionSession("ws://test/x", handlers, connector=connector, heartbeat_interval=0.01)

        session.open()
        await wait_for(lambda: session.is_open)
        transport = connector.latest
        await wait_for(lambda: PING_FRAME in transport.sent)
        assert session.heartbeat_running

        transport.drop()
        await wait_for(lambda: "close" in handlers.events)

        assert handlers.heartbeat_at_close is False
        assert handlers.state_at_close is ConnectionState.CLOSED
        sent_at_close = len(transport.sent)
        await asyncio.sleep(0.05)
        assert len(transport.sent) == sent_at_close

    @pytest.mark.asyncio
    async def test_no_heartbeat_when_disabled(self, connector, wait_for):
        session = ConnectionSession("ws://test/x", RecordingHandlers(), connector=connector, heartbeat_interval=None)

        session.open()
        await wait_for(lambda: session.is_open)
        await asyncio.sleep(0.03)

        assert not session.heartbeat_running
        assert connector.latest.sent == []
        session.close()

    @pytest.mark.asyncio
    async def test_driver_skips_ticks_while_closed(self):
        sent = []
        is_open = False

        async def send(frame):
            sent.append(frame)

        driver = HeartbeatDriver(send, lambda: is_open, interval=0.005)
        driver.start()
        await asyncio.sleep(0.03)
        assert sent == []

        is_open = True
        await asyncio.sleep(0.03)
        driver.stop()
        driver.stop()

        assert sent and set(sent) == {PING_FRAME}
        assert not driver.running

    @pytest.mark.asyncio
    async def test_driver_survives_send_failure(self, silent_logger):
        calls = []

        async def send(frame):
            calls.append(frame)
            raise ConnectionError("closed under us")

        driver = HeartbeatDriver(send, lambda: True, interval=0.005, logger=silent_logger)
        driver.start()
        await asyncio.sleep(0.03)

        assert driver.running
        assert len(calls) >= 2
        assert silent_logger.messages("DEBUG")
        driver.stop()
