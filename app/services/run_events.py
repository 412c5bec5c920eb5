"""
Live fan-out of run messages to attached observers (SSE streams, tests).

Each run gets a channel when it is created. Observers attach with a snapshot
callable; the `init` message is built from it while the channel lock is held,
so nothing persisted-and-broadcast under `hold()` can be missed or doubled.
After `complete` the channel lingers for a grace period, then teardown closes
every observer and drops the channel.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager, nullcontext
from functools import lru_cache
from queue import Empty, Full, Queue
from typing import Any, Callable, Iterator, Protocol

logger = logging.getLogger(__name__)

MESSAGE_TYPES = ("event", "friction", "complete", "error")

_CLOSED = object()


class Observer(Protocol):
    def send(self, message: dict[str, Any]) -> None: ...

    def close(self) -> None: ...


class QueueObserver:
    """Observer backed by a bounded queue. A full queue counts as a failed write."""

    def __init__(self, maxsize: int = 1000) -> None:
        self._queue: Queue[Any] = Queue(maxsize=maxsize)
        self.closed = False

    def send(self, message: dict[str, Any]) -> None:
        if self.closed:
            raise RuntimeError("observer closed")
        self._queue.put_nowait(message)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self._queue.put_nowait(_CLOSED)
        except Full:
            pass

    def messages(self, *, poll_s: float = 1.0) -> Iterator[dict[str, Any]]:
        """Drain messages until the observer is closed."""
        while True:
            try:
                item = self._queue.get(timeout=poll_s)
            except Empty:
                if self.closed:
                    return
                continue
            if item is _CLOSED:
                return
            yield item


class _Channel:
    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.observers: list[Observer] = []
        self.closed = False
        self.timer: threading.Timer | None = None


class RunBroadcastHub:
    def __init__(self, *, teardown_grace_s: float = 5.0) -> None:
        self.teardown_grace_s = teardown_grace_s
        self._channels: dict[str, _Channel] = {}
        self._lock = threading.Lock()

    def _channel(self, run_id: Any) -> _Channel | None:
        with self._lock:
            return self._channels.get(str(run_id))

    def open(self, run_id: Any) -> None:
        with self._lock:
            self._channels.setdefault(str(run_id), _Channel())

    def has_channel(self, run_id: Any) -> bool:
        return self._channel(run_id) is not None

    def observer_count(self, run_id: Any) -> int:
        channel = self._channel(run_id)
        if channel is None:
            return 0
        with channel.lock:
            return len(channel.observers)

    @contextmanager
    def hold(self, run_id: Any) -> Iterator[None]:
        """Serialize a persist-then-broadcast section against attach."""
        channel = self._channel(run_id)
        with channel.lock if channel is not None else nullcontext():
            yield

    def attach(
        self,
        run_id: Any,
        observer: Observer,
        snapshot: Callable[[], dict[str, Any]],
    ) -> bool:
        """
        Deliver `init` to `observer` and register it for live messages.

        Returns False when the channel is gone or closed; the observer then
        gets `init` only and is closed.
        """
        channel = self._channel(run_id)
        if channel is None:
            self._send_init(observer, snapshot)
            observer.close()
            return False

        with channel.lock:
            if not self._send_init(observer, snapshot):
                return False
            if channel.closed:
                observer.close()
                return False
            channel.observers.append(observer)
        logger.debug("Observer attached run_id=%s", run_id)
        return True

    def detach(self, run_id: Any, observer: Observer) -> None:
        channel = self._channel(run_id)
        if channel is None:
            return
        with channel.lock:
            if observer in channel.observers:
                channel.observers.remove(observer)

    def broadcast(self, run_id: Any, message_type: str, data: Any) -> None:
        if message_type not in MESSAGE_TYPES:
            raise ValueError(f"unknown message type {message_type!r}")
        channel = self._channel(run_id)
        if channel is None:
            return
        message = {"type": message_type, "data": data}
        with channel.lock:
            for observer in list(channel.observers):
                try:
                    observer.send(message)
                except Exception as e:
                    logger.debug("Dropping observer run_id=%s: %s", run_id, e)
                    channel.observers.remove(observer)

    def schedule_teardown(self, run_id: Any, delay_s: float | None = None) -> None:
        channel = self._channel(run_id)
        if channel is None:
            return
        delay = self.teardown_grace_s if delay_s is None else delay_s
        timer = threading.Timer(delay, self.teardown, args=(run_id,))
        timer.daemon = True
        with channel.lock:
            if channel.timer is not None:
                channel.timer.cancel()
            channel.timer = timer
        timer.start()

    def teardown(self, run_id: Any) -> None:
        with self._lock:
            channel = self._channels.pop(str(run_id), None)
        if channel is None:
            return
        with channel.lock:
            channel.closed = True
            observers, channel.observers = channel.observers, []
        for observer in observers:
            try:
                observer.close()
            except Exception as e:
                logger.debug("Observer close failed run_id=%s: %s", run_id, e)
        logger.info("Broadcast channel closed run_id=%s observers=%s", run_id, len(observers))

    def _send_init(self, observer: Observer, snapshot: Callable[[], dict[str, Any]]) -> bool:
        try:
            observer.send({"type": "init", **snapshot()})
            return True
        except Exception as e:
            logger.warning("Failed to deliver init: %s", e)
            observer.close()
            return False


@lru_cache
def get_hub() -> RunBroadcastHub:
    from app.config import get_settings

    return RunBroadcastHub(teardown_grace_s=get_settings().stream_teardown_grace_s)
