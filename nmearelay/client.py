from __future__ import annotations
from typing import Callable, Optional, Union
import logging
import threading

from . import analytics as _analytics
from . import wire
from .config import RelayConfig
from .connection import ConnectionManager, TransportFactory
from .envelope import Envelope, now_millis, signing_input
from .exceptions import ConnectionStateError, ParseError, SigningError, TransportError
from .signing import Signer
from .wire import Codec

log = logging.getLogger(__name__)

# Called once per accepted inbound sentence, on the transport's receive thread
MessageListener = Callable[[str], None]


class RelayClient:
    """
    Relays NMEA sentences to a shared topic and delivers sentences relayed by
    other devices.

    Outbound: sign(origin_id _ timestamp _ line), publish, count.
    Inbound:  decode -> drop own origin -> verify -> on_message(payload).

    on_message runs on the transport's receive thread and must return quickly;
    hand slow work off to a queue or worker.
    """

    def __init__(self, config: RelayConfig, signer: Signer, on_message: MessageListener, *,
                 transport_factory: TransportFactory,
                 codec: Union[str, Codec] = "json",
                 analytics: Optional[_analytics.Analytics] = None,
                 clock: Callable[[], str] = now_millis):
        if config is None:
            raise ValueError("Configuration can not be None.")
        if on_message is None:
            raise ValueError("Listener can not be None.")
        if signer is None:
            raise ValueError("Signer can not be None.")
        self.config = config
        self.signer = signer
        self.on_message = on_message
        self.codec = wire.get_codec(codec)
        self.analytics = analytics if analytics is not None else _analytics.LoggingAnalytics()
        self._clock = clock
        self._relayed = 0
        self._count_lock = threading.Lock()
        self.connection = ConnectionManager(config, transport_factory, self._on_frame)

    # ---- lifecycle ----
    @property
    def is_connected(self) -> bool:
        return self.connection.is_connected

    @property
    def relayed(self) -> int:
        """Messages published in the current session."""
        with self._count_lock:
            return self._relayed

    def connect(self) -> bool:
        ok = self.connection.connect()
        if ok:
            with self._count_lock:
                self._relayed = 0
        return ok

    def disconnect(self) -> None:
        try:
            self.connection.disconnect()
        except ConnectionStateError:
            raise
        except BaseException:
            # the session is closed even when teardown fails
            self._close_session()
            raise
        self._close_session()

    def _close_session(self) -> None:
        with self._count_lock:
            count, self._relayed = self._relayed, 0
        _analytics.report(self.analytics, _analytics.CATEGORY_NMEA_REPEAT,
                          _analytics.ACTION_MESSAGES_REPEATED, str(count))

    def __enter__(self) -> "RelayClient":
        if not self.connect():
            raise ConnectionError(f"Not possible to connect to {self.config.server}")
        return self

    def __exit__(self, *exc) -> None:
        if self.is_connected:
            self.disconnect()

    # ---- outbound ----
    def send(self, line: str) -> bool:
        """Sign and publish one sentence. False if not connected or unsigned."""
        if not self.is_connected:
            log.error("send: not connected")
            return False
        try:
            env = self._signed(line)
        except SigningError as e:
            log.error("send: %s", e)
            return False
        if not self._publish(self.config.topic, wire.encode(env, self.codec)):
            return False
        with self._count_lock:
            self._relayed += 1
        return True

    def request_cached_messages(self) -> bool:
        """Ask the server to replay what it cached; replays arrive as normal messages."""
        if not self.is_connected:
            log.warning("request_cached_messages: not connected")
            return False
        return self._publish(self.config.retransmit_topic, self.config.origin_id.encode("utf-8"))

    def _signed(self, line: str) -> Envelope:
        origin = self.config.origin_id
        timestamp = self._clock()
        signature = self.signer.sign(signing_input(origin, timestamp, line))
        if signature is None:
            raise SigningError("Not possible to sign data.")
        return Envelope(origin=origin, timestamp=timestamp, payload=line, signature=signature)

    def _publish(self, topic: str, frame: bytes) -> bool:
        try:
            ok = self.connection.publish(topic, frame)
        except TransportError as e:
            log.error("Publish to %s failed: %s", topic, e)
            return False
        if not ok:
            log.error("Publish to %s failed: not connected", topic)
        return ok

    # ---- inbound ----
    def _on_frame(self, topic: str, frame: bytes) -> None:
        try:
            env = wire.decode(frame, self.codec)
        except ParseError as e:
            log.warning("Invalid message received (format): %s", e)
            return

        if env.origin == self.config.origin_id:
            return  # own message echoed back

        if not self.signer.verify(env.signing_input(), env.signature):
            if not self.config.ignore_invalid_signature:
                log.warning("Invalid message received from %s (invalid signature)", env.origin)
                return
            log.debug("Delivering message from %s despite invalid signature", env.origin)

        try:
            self.on_message(env.payload)
        except Exception:
            log.exception("Listener failed for message from %s", env.origin)
