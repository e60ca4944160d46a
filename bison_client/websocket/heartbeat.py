"""
Application-level keep-alive for one streaming connection.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Optional

HEARTBEAT_INTERVAL = 30.0  # seconds

# Compact separators: the server expects exactly {"type":"ping"}
PING_FRAME = json.dumps({"type": "ping"}, separators=(",", ":"))


class HeartbeatDriver:
    """Sends a ping frame every ``interval`` seconds while the connection is open."""

    def __init__(
        self,
        send: Callable[[str], Awaitable[Any]],
        is_open: Callable[[], bool],
        interval: float = HEARTBEAT_INTERVAL,
        logger: Optional[Any] = None,
    ):
        self.interval = interval
        self.logger = logger
        self._send = send
        self._is_open = is_open
        self._task: Optional[asyncio.Task] = None

    def _log(self, message: str, level: str = "INFO"):
        if self.logger and hasattr(self.logger, "log"):
            self.logger.log(message, level)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking. Calling start on a running driver does nothing."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        """Cancel the timer. Safe to call repeatedly."""
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            if not self._is_open():
                continue
            try:
                await self._send(PING_FRAME)
                self._log("Heartbeat ping sent", "DEBUG")
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                # The transport's close event handles recovery
                self._log(f"Heartbeat send failed: {exc}", "DEBUG")
