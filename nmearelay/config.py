from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Mapping, Optional
import os

from .exceptions import ConfigError

DEFAULT_TOPIC = "nmea"
DEFAULT_RETRANSMIT_TOPIC = "nmea-retransmit"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}
_SCHEMES = {"tcp", "ipc", "inproc"}


@dataclass(frozen=True)
class Endpoint:
    scheme: str
    host: str
    port: Optional[int] = None

    def __str__(self) -> str:
        if self.port is None:
            return f"{self.scheme}://{self.host}"
        return f"{self.scheme}://{self.host}:{self.port}"


def parse_endpoint(server: str) -> Endpoint:
    """
    Parse 'tcp://host:port', 'ipc://path' or 'inproc://name'.
    Raises ConfigError for anything else.
    """
    if not isinstance(server, str) or "://" not in server:
        raise ConfigError(f"malformed endpoint: {server!r}")
    scheme, rest = server.split("://", 1)
    scheme = scheme.lower()
    if scheme not in _SCHEMES:
        raise ConfigError(f"unsupported endpoint scheme: {scheme!r}")
    if not rest:
        raise ConfigError(f"endpoint has no address: {server!r}")
    if scheme != "tcp":
        return Endpoint(scheme, rest)

    host, sep, port = rest.rpartition(":")
    if not sep or not host:
        raise ConfigError(f"tcp endpoint needs host:port: {server!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port_num = int(port)
    except ValueError:
        raise ConfigError(f"bad port in endpoint: {server!r}") from None
    if not 0 < port_num < 65536:
        raise ConfigError(f"port out of range in endpoint: {server!r}")
    return Endpoint(scheme, host, port_num)


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"not a boolean: {value!r}")


@dataclass(frozen=True)
class RelayConfig:
    server: str                                   # pub/sub endpoint address
    origin_id: str                                # stable id of this device
    topic: str = DEFAULT_TOPIC                    # relayed sentences
    retransmit_topic: str = DEFAULT_RETRANSMIT_TOPIC
    # Deliver messages whose signature does not verify. Keep off in production.
    ignore_invalid_signature: bool = False

    @property
    def endpoint(self) -> Endpoint:
        return parse_endpoint(self.server)

    def validate(self) -> None:
        """Raise ConfigError unless the config can open a session."""
        parse_endpoint(self.server)
        for name in ("origin_id", "topic", "retransmit_topic"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ConfigError(f"missing required config: {name}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RelayConfig":
        missing = [k for k in ("server", "origin_id") if not data.get(k)]
        if missing:
            raise ConfigError(f"missing required config: {', '.join(missing)}")
        return cls(
            server=str(data["server"]),
            origin_id=str(data["origin_id"]),
            topic=str(data.get("topic") or DEFAULT_TOPIC),
            retransmit_topic=str(data.get("retransmit_topic") or DEFAULT_RETRANSMIT_TOPIC),
            ignore_invalid_signature=_as_bool(data.get("ignore_invalid_signature", False)),
        )

    @classmethod
    def from_env(cls, prefix: str = "NMEARELAY_", environ: Optional[Mapping[str, str]] = None) -> "RelayConfig":
        environ = os.environ if environ is None else environ
        keys = ("server", "origin_id", "topic", "retransmit_topic", "ignore_invalid_signature")
        data = {k: environ[prefix + k.upper()] for k in keys if prefix + k.upper() in environ}
        return cls.from_mapping(data)
