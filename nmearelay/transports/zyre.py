from __future__ import annotations
import logging
import threading
from typing import Dict, Optional, Set

from ..exceptions import TransportError
from ..transport import ReceiveCallback, Transport

log = logging.getLogger(__name__)


class ZyreTransport(Transport):
    """Transport over Zyre.

    Mapping:
    - the relay endpoint is the gossip hub every node connects to
    - publish -> SHOUT to a group named by the topic
    - subscribe -> JOIN the group

    SHOUT frames carry one part: the encoded envelope (or the raw origin id
    on the retransmit topic).
    """

    def __init__(self, peer_id: Optional[str] = None, endpoint: Optional[str] = None, **kwargs):
        self.peer_id = peer_id or ""
        self.endpoint = endpoint
        self.node = None
        self._cb: Optional[ReceiveCallback] = None
        self._groups: Set[str] = set()
        self._running = False
        self._rx_thread: Optional[threading.Thread] = None
        self._peers_by_uuid: Dict[str, str] = {}

    def start(self) -> None:
        try:
            from zyre import Zyre
        except ImportError as e:
            raise TransportError("Zyre Python bindings are required. Error: %r" % (e,)) from e

        self.node = Zyre(None)
        if self.peer_id:
            self.node.set_name(self.peer_id)
        if self.endpoint:
            self.node.gossip_connect("%s", self.endpoint)
        if self.node.start() != 0:
            self.node = None
            raise TransportError("Zyre node failed to start")
        self._running = True
        self._rx_thread = threading.Thread(target=self._rx_loop, name="zyre-rx", daemon=True)
        self._rx_thread.start()

    def stop(self) -> None:
        self._running = False
        if self.node is None:
            return
        for group in list(self._groups):
            self.unsubscribe(group)
        self.node.stop()
        self.node = None

    def subscribe(self, topic: str) -> None:
        self._require_node().join(topic)
        self._groups.add(topic)

    def unsubscribe(self, topic: str) -> None:
        self._groups.discard(topic)
        if self.node is not None:
            self.node.leave(topic)

    def publish(self, topic: str, frame: bytes) -> None:
        self._require_node().shout(topic, [frame])

    def on_receive(self, cb: ReceiveCallback) -> None:
        self._cb = cb

    def _require_node(self):
        if self.node is None:
            raise TransportError("transport not started")
        return self.node

    def _rx_loop(self):
        from zyre import ZyreEvent

        while self._running:
            node = self.node
            if node is None:
                return
            try:
                event = ZyreEvent(node)
            except Exception:
                log.debug("Zyre event read failed", exc_info=True)
                continue
            if not event:
                continue
            etype = _text(event.type())

            if etype == "ENTER":
                self._peers_by_uuid[_text(event.peer_uuid())] = _text(event.peer_name())
                continue

            if etype == "EXIT":
                self._peers_by_uuid.pop(_text(event.peer_uuid()), None)
                continue

            if etype == "SHOUT":
                group = _text(event.group())
                if group not in self._groups:
                    continue
                frame = self._first_frame(event.msg())
                if frame is None:
                    log.warning("Empty SHOUT from %s on %s", self._peers_by_uuid.get(_text(event.peer_uuid())), group)
                    continue
                if self._cb is not None:
                    try:
                        self._cb(group, frame)
                    except Exception:
                        log.exception("Receive callback failed for topic %s", group)

    @staticmethod
    def _first_frame(zmsg) -> Optional[bytes]:
        try:
            data = zmsg.popmem()
        except AttributeError:
            data = zmsg.pop()
        if not data:
            return None
        if not isinstance(data, (bytes, bytearray)):
            data = bytes(data)
        return bytes(data)


def _text(value) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", "replace")
    return "" if value is None else str(value)
