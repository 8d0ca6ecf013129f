from typing import Callable, List, Optional, Tuple

import pytest

from nmearelay import RelayClient, RelayConfig, Transport
from nmearelay.exceptions import TransportError
from nmearelay.transports.inmemory import InMemoryHub


class FakeSigner:
    """Signs text as 'sig:<text>'; verify() accepts exactly that."""

    def __init__(self, fixed: Optional[str] = None, fail: bool = False, valid: Optional[bool] = None) -> None:
        self.fixed = fixed
        self.fail = fail
        self.valid = valid
        self.signed: List[str] = []
        self.verified: List[Tuple[str, Optional[str]]] = []

    def sign(self, text: str) -> Optional[str]:
        self.signed.append(text)
        if self.fail:
            return None
        return self.fixed if self.fixed is not None else f'sig:{text}'

    def verify(self, text: str, signature: Optional[str]) -> bool:
        self.verified.append((text, signature))
        if self.valid is not None:
            return self.valid
        return signature == f'sig:{text}'


class FakeTransport(Transport):
    """Records publishes; tests push inbound frames with deliver()."""

    def __init__(self, fail_start: bool = False, fail_subscribe: bool = False, fail_stop: bool = False) -> None:
        self.fail_start = fail_start
        self.fail_subscribe = fail_subscribe
        self.fail_stop = fail_stop
        self.started = False
        self.stopped = False
        self.topics: List[str] = []
        self.published: List[Tuple[str, bytes]] = []
        self.cb: Optional[Callable[[str, bytes], None]] = None

    def start(self) -> None:
        if self.fail_start:
            raise TransportError('refused')
        self.started = True

    def stop(self) -> None:
        self.stopped = True
        if self.fail_stop:
            raise OSError('socket already closed')

    def subscribe(self, topic: str) -> None:
        if self.fail_subscribe:
            raise TransportError('join refused')
        self.topics.append(topic)

    def unsubscribe(self, topic: str) -> None:
        self.topics.remove(topic)

    def publish(self, topic: str, frame: bytes) -> None:
        self.published.append((topic, frame))

    def on_receive(self, cb: Callable[[str, bytes], None]) -> None:
        self.cb = cb

    def deliver(self, topic: str, frame: bytes) -> None:
        assert self.cb is not None
        self.cb(topic, frame)


class RecordingAnalytics:

    def __init__(self) -> None:
        self.events: List[Tuple[str, str, str]] = []

    def log_event(self, category: str, action: str, label: str) -> None:
        self.events.append((category, action, label))


class TransportFactory:
    """Hands out FakeTransports and remembers them."""

    def __init__(self, **failures: bool) -> None:
        self.failures = failures
        self.created: List[FakeTransport] = []

    def __call__(self, config: RelayConfig) -> FakeTransport:
        transport = FakeTransport(**self.failures)
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


@pytest.fixture
def config() -> RelayConfig:
    return RelayConfig(server='tcp://127.0.0.1:5670', origin_id='dev-A')


@pytest.fixture
def hub():
    hub = InMemoryHub()
    yield hub
    hub.close()


@pytest.fixture
def received() -> List[str]:
    return []


@pytest.fixture
def analytics() -> RecordingAnalytics:
    return RecordingAnalytics()


@pytest.fixture
def factory() -> TransportFactory:
    return TransportFactory()


@pytest.fixture
def signer() -> FakeSigner:
    return FakeSigner()


@pytest.fixture
def client(config, signer, received, factory, analytics) -> RelayClient:
    return RelayClient(config, signer, received.append, transport_factory=factory,
                       analytics=analytics, clock=lambda: '1000')
