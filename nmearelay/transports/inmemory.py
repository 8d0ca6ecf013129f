from __future__ import annotations
from queue import Queue
from typing import Dict, Optional, Set, Tuple
import logging
import threading
import time

from ..exceptions import TransportError
from ..transport import ReceiveCallback, Transport

log = logging.getLogger(__name__)


class InMemoryHub:
    """
    In-process pub/sub bus. One dispatcher thread delivers every frame, in
    publish order, to all transports subscribed to its topic (the publisher
    included, like a real broker).
    """

    def __init__(self):
        self._queue: "Queue[Optional[Tuple[str, bytes]]]" = Queue()
        self._subs: Dict[str, Set["InMemoryTransport"]] = {}
        self._lock = threading.Lock()
        self._idle = threading.Condition()
        self._pending = 0
        self._thread = threading.Thread(target=self._loop, name="inmemory-hub", daemon=True)
        self._thread.start()

    def subscribe(self, transport: "InMemoryTransport", topic: str) -> None:
        with self._lock:
            self._subs.setdefault(topic, set()).add(transport)

    def unsubscribe(self, transport: "InMemoryTransport", topic: str) -> None:
        with self._lock:
            self._subs.get(topic, set()).discard(transport)

    def subscribers(self, topic: str) -> int:
        with self._lock:
            return len(self._subs.get(topic, ()))

    def publish(self, topic: str, frame: bytes) -> None:
        with self._idle:
            self._pending += 1
        self._queue.put((topic, frame))

    def drain(self, timeout: float = 2.0) -> bool:
        """Wait until every published frame has been dispatched."""
        deadline = time.monotonic() + timeout
        with self._idle:
            while self._pending:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._idle.wait(remaining)
        return True

    def close(self) -> None:
        self._queue.put(None)
        self._thread.join(timeout=1)

    def _loop(self) -> None:
        while True:
            item = self._queue.get()
            if item is None:
                return
            topic, frame = item
            try:
                with self._lock:
                    targets = list(self._subs.get(topic, ()))
                for t in targets:
                    t._deliver(topic, frame)
            finally:
                with self._idle:
                    self._pending -= 1
                    self._idle.notify_all()


class InMemoryTransport(Transport):

    def __init__(self, hub: InMemoryHub, peer_id: str = ""):
        self.hub = hub
        self.peer_id = peer_id
        self._cb: Optional[ReceiveCallback] = None
        self._topics: Set[str] = set()
        self._running = False

    def start(self) -> None:
        self._running = True

    def stop(self) -> None:
        for topic in list(self._topics):
            self.unsubscribe(topic)
        self._running = False

    def subscribe(self, topic: str) -> None:
        self._topics.add(topic)
        self.hub.subscribe(self, topic)

    def unsubscribe(self, topic: str) -> None:
        self._topics.discard(topic)
        self.hub.unsubscribe(self, topic)

    def publish(self, topic: str, frame: bytes) -> None:
        if not self._running:
            raise TransportError("transport not started")
        self.hub.publish(topic, frame)

    def on_receive(self, cb: ReceiveCallback) -> None:
        self._cb = cb

    def _deliver(self, topic: str, frame: bytes) -> None:
        if not self._running or self._cb is None:
            return
        try:
            self._cb(topic, frame)
        except Exception:
            log.exception("Receive callback failed for topic %s", topic)
