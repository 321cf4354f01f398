import asyncio
import itertools
import logging
from typing import Callable, Optional

from ..const import ACK_WINDOW

_LOGGER = logging.getLogger(__name__)


class PendingAck:
    """One outstanding set-power acknowledgment."""

    def __init__(self, token, future, callback, handle=None):
        self.token = token
        self.future = future
        self.callback = callback
        self.handle = handle

    def __repr__(self):
        return f"PendingAck(token={self.token}, done={self.future.done()})"


class AckTimer:
    """Keeps at most one pending acknowledgment per device.

    Scheduling a new one cancels the previous timer, so bursts of set-power
    requests produce exactly one acknowledgment: the latest one.
    """

    def __init__(self, window: float = ACK_WINDOW, name: str = "AckTimer"):
        self.window = window
        self.name = name
        self._pending: Optional[PendingAck] = None
        self._tokens = itertools.count(1)
        self.fired = 0
        self.superseded = 0

    @property
    def pending(self) -> Optional[PendingAck]:
        return self._pending

    def schedule(
        self, callback: Callable = None, future: asyncio.Future = None
    ) -> asyncio.Future:
        """Replace any pending ack with a new one firing after `window` seconds."""
        loop = asyncio.get_running_loop()
        self.cancel(superseded=True)

        pending = PendingAck(
            next(self._tokens),
            future if future is not None else loop.create_future(),
            callback,
        )
        pending.handle = loop.call_later(self.window, self._fire, pending.token)
        self._pending = pending
        _LOGGER.debug(f"{self.name}: ack {pending.token} due in {self.window}s")
        return pending.future

    def cancel(self, superseded: bool = False):
        """Drop the pending ack without acknowledging it."""
        pending = self._pending
        if pending is None:
            return
        self._pending = None
        if pending.handle:
            pending.handle.cancel()
        if not pending.future.done():
            pending.future.cancel()
        if superseded:
            self.superseded += 1
            _LOGGER.debug(f"{self.name}: ack {pending.token} superseded")

    def _fire(self, token):
        pending = self._pending
        # a superseded timer must never acknowledge
        if pending is None or pending.token != token:
            return
        self._pending = None
        self.fired += 1
        _LOGGER.debug(f"{self.name}: ack {token} fired")

        if not pending.future.done():
            pending.future.set_result(None)
        if pending.callback:
            try:
                pending.callback(None)
            except Exception as e:
                _LOGGER.error(f"{self.name}: ack callback failed: {e}")
