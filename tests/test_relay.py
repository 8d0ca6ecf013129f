"""End-to-end relaying between clients sharing an in-memory hub."""
from typing import List

import pytest

from nmearelay import Relay, RelayClient, RelayConfig, RsaSigner
from nmearelay.transports.inmemory import InMemoryHub, InMemoryTransport

SERVER = 'inproc://relay'
SENTENCE = '!AIVDM,1,1,,B,15M67FC000G?ufbE`FepT@3n00Sa,0*5C'


@pytest.fixture(scope='module')
def rsa_signer() -> RsaSigner:
    return RsaSigner.generate()


def _device(hub: InMemoryHub, origin_id: str, signer, received: List[str], **kwargs) -> RelayClient:
    return Relay(RelayConfig(server=SERVER, origin_id=origin_id, **kwargs), signer, received.append,
                 transport='inmemory', hub=hub)


class TestRelay:

    def test_relay_between_devices(self, hub: InMemoryHub, rsa_signer: RsaSigner) -> None:
        got_a: List[str] = []
        got_b: List[str] = []
        a = _device(hub, 'dev-A', rsa_signer, got_a)
        b = _device(hub, 'dev-B', rsa_signer, got_b)
        assert a.is_connected and b.is_connected

        assert a.send(SENTENCE)
        assert b.send('!AIVDM,second')
        assert hub.drain()

        assert got_a == ['!AIVDM,second']
        assert got_b == [SENTENCE]
        assert (a.relayed, b.relayed) == (1, 1)

    def test_foreign_key_rejected(self, hub: InMemoryHub, rsa_signer: RsaSigner) -> None:
        got_b: List[str] = []
        a = _device(hub, 'dev-A', RsaSigner.generate(), [])
        _device(hub, 'dev-B', rsa_signer, got_b)
        assert a.send(SENTENCE)
        assert hub.drain()
        assert got_b == []

    def test_foreign_key_with_bypass(self, hub: InMemoryHub, rsa_signer: RsaSigner) -> None:
        got_b: List[str] = []
        a = _device(hub, 'dev-A', RsaSigner.generate(), [])
        _device(hub, 'dev-B', rsa_signer, got_b, ignore_invalid_signature=True)
        assert a.send(SENTENCE)
        assert hub.drain()
        assert got_b == [SENTENCE]

    def test_verify_only_device_cannot_send(self, hub: InMemoryHub, rsa_signer: RsaSigner) -> None:
        got_a: List[str] = []
        verifier = RsaSigner.from_pem(public_pem=rsa_signer.public_pem())
        a = _device(hub, 'dev-A', rsa_signer, [])
        b = _device(hub, 'dev-B', verifier, got_a)
        assert b.send(SENTENCE) is False
        assert a.send(SENTENCE)
        assert hub.drain()
        assert got_a == [SENTENCE]

    def test_disconnected_device_receives_nothing(self, hub: InMemoryHub, rsa_signer: RsaSigner) -> None:
        got_b: List[str] = []
        a = _device(hub, 'dev-A', rsa_signer, [])
        b = _device(hub, 'dev-B', rsa_signer, got_b)
        b.disconnect()
        assert hub.subscribers('nmea') == 1
        assert a.send(SENTENCE)
        assert hub.drain()
        assert got_b == []

    def test_retransmit_request_reaches_topic(self, hub: InMemoryHub, rsa_signer: RsaSigner) -> None:
        requests: List[bytes] = []
        server = InMemoryTransport(hub, peer_id='server')
        server.on_receive(lambda topic, frame: requests.append(frame))
        server.start()
        server.subscribe('nmea-retransmit')

        a = _device(hub, 'dev-A', rsa_signer, [])
        assert a.request_cached_messages()
        assert hub.drain()
        assert requests == [b'dev-A']

    def test_msgpack_codec(self, hub: InMemoryHub, rsa_signer: RsaSigner) -> None:
        got_b: List[str] = []
        config_a = RelayConfig(server=SERVER, origin_id='dev-A')
        config_b = RelayConfig(server=SERVER, origin_id='dev-B')
        a = Relay(config_a, rsa_signer, print, transport='inmemory', hub=hub, codec='msgpack')
        Relay(config_b, rsa_signer, got_b.append, transport='inmemory', hub=hub, codec='msgpack')
        assert a.send(SENTENCE)
        assert hub.drain()
        assert got_b == [SENTENCE]


class TestFactory:

    def test_unknown_transport(self, rsa_signer: RsaSigner) -> None:
        with pytest.raises(ValueError, match='Unknown transport'):
            Relay(RelayConfig(server=SERVER, origin_id='dev-A'), rsa_signer, print, transport='carrier-pigeon')

    def test_no_auto_connect(self, hub: InMemoryHub, rsa_signer: RsaSigner) -> None:
        client = Relay(RelayConfig(server=SERVER, origin_id='dev-A'), rsa_signer, print,
                       transport='inmemory', hub=hub, auto_connect=False)
        assert not client.is_connected

    def test_malformed_endpoint(self, hub: InMemoryHub, rsa_signer: RsaSigner) -> None:
        client = Relay(RelayConfig(server='relay', origin_id='dev-A'), rsa_signer, print,
                       transport='inmemory', hub=hub)
        assert not client.is_connected

    def test_transport_callable(self, hub: InMemoryHub, rsa_signer: RsaSigner) -> None:
        created = []

        def factory(config: RelayConfig) -> InMemoryTransport:
            created.append(InMemoryTransport(hub, peer_id=config.origin_id))
            return created[-1]

        client = Relay(RelayConfig(server=SERVER, origin_id='dev-A'), rsa_signer, print, transport=factory)
        assert client.is_connected
        assert [t.peer_id for t in created] == ['dev-A']
