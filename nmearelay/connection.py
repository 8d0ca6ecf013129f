from __future__ import annotations
from enum import StrEnum
from typing import Callable, Optional
import logging
import threading

from .config import RelayConfig
from .exceptions import ConfigError, ConnectionStateError, TransportError
from .transport import ReceiveCallback, Transport

log = logging.getLogger(__name__)

# Builds a fresh, unstarted transport for one session: (config) -> Transport
TransportFactory = Callable[[RelayConfig], Transport]


class State(StrEnum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING   = "CONNECTING"
    CONNECTED    = "CONNECTED"


class ConnectionManager:

    # Notes:
    # - At most one live transport; a second connect() is a caller bug and raises
    # - Subscribes exactly one topic (config.topic)
    # - Transitions are serialized by a lock; publish() only reads the handle

    def __init__(self, config: RelayConfig, transport_factory: TransportFactory,
                 on_frame: ReceiveCallback):
        self.config = config
        self._factory = transport_factory
        self._on_frame = on_frame
        self._transport: Optional[Transport] = None
        self._state = State.DISCONNECTED
        self._lock = threading.Lock()

    @property
    def state(self) -> State:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == State.CONNECTED

    def connect(self) -> bool:
        with self._lock:
            if self._state != State.DISCONNECTED:
                raise ConnectionStateError(f"connect() while {self._state}")
            try:
                self.config.validate()
            except ConfigError as e:
                log.error("Not possible to connect to %r: %s", self.config.server, e)
                return False

            self._state = State.CONNECTING
            try:
                transport = self._open()
            except TransportError as e:
                log.error("Not possible to connect to %s: %s", self.config.server, e)
                self._state = State.DISCONNECTED
                return False
            except BaseException:
                self._state = State.DISCONNECTED
                raise

            self._transport = transport
            self._state = State.CONNECTED
            log.info("Connected to %s, subscribed to %s", self.config.server, self.config.topic)
            return True

    def _open(self) -> Transport:
        # A transport that started is stopped again if any later step fails
        transport = self._factory(self.config)
        transport.on_receive(self._on_frame)
        transport.start()
        try:
            transport.subscribe(self.config.topic)
        except BaseException:
            transport.stop()
            raise
        return transport

    def disconnect(self) -> None:
        with self._lock:
            if self._state != State.CONNECTED or self._transport is None:
                raise ConnectionStateError(f"disconnect() while {self._state}")
            transport, self._transport = self._transport, None
            self._state = State.DISCONNECTED
            try:
                transport.unsubscribe(self.config.topic)
            finally:
                transport.stop()
            log.info("Disconnected from %s", self.config.server)

    def publish(self, topic: str, frame: bytes) -> bool:
        transport = self._transport
        if transport is None or self._state != State.CONNECTED:
            return False
        transport.publish(topic, frame)
        return True
