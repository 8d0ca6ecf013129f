from __future__ import annotations
from typing import Any, Optional, Union

from .analytics import Analytics
from .client import MessageListener, RelayClient
from .wire import Codec
from .config import RelayConfig
from .connection import TransportFactory
from .signing import Signer


def Relay(config: RelayConfig,
          signer: Signer,
          on_message: MessageListener,
          *,
          transport: Union[str, TransportFactory] = "zyre",
          codec: Union[str, Codec] = "json",
          analytics: Optional[Analytics] = None,
          auto_connect: bool = True,
          **transport_kwargs: Any) -> RelayClient:
    """
    One-liner factory:
      Relay(cfg, RsaSigner.from_files("key.pem"), print)
      Relay(cfg, signer, handler, transport="inmemory", hub=hub, auto_connect=False)

    - transport: "zyre" | "inmemory" | callable(config) -> Transport
    - codec: "json" | "msgpack" | Codec instance
    - auto_connect: connect immediately (the client is returned either way;
      check client.is_connected)
    - **transport_kwargs: passed to the transport constructor
    """
    if isinstance(transport, str):
        tlabel = transport.lower()
        if tlabel == "zyre":
            from .transports.zyre import ZyreTransport

            def factory(cfg: RelayConfig):
                return ZyreTransport(peer_id=cfg.origin_id, endpoint=cfg.server, **transport_kwargs)
        elif tlabel == "inmemory":
            from .transports.inmemory import InMemoryHub, InMemoryTransport
            hub = transport_kwargs.pop("hub", None) or InMemoryHub()

            def factory(cfg: RelayConfig):
                return InMemoryTransport(hub, peer_id=cfg.origin_id)
        else:
            raise ValueError(f"Unknown transport label: {transport}")
    else:
        factory = transport

    client = RelayClient(config, signer, on_message,
                         transport_factory=factory, codec=codec, analytics=analytics)
    if auto_connect:
        client.connect()
    return client
