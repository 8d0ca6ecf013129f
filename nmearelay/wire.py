from __future__ import annotations
from typing import Any, Dict, Mapping, Protocol as TypingProtocol, Tuple, Type, Union
import json

import msgpack
from msgpack.exceptions import UnpackException

from .envelope import Envelope
from .exceptions import ParseError

_REQUIRED = ("origin", "timestamp", "payload")


class Codec(TypingProtocol):
    """Turns the four-field envelope record into frame bytes and back."""
    name: str
    errors: Tuple[Type[BaseException], ...]   # what loads() raises on a bad frame
    def dumps(self, record: Dict[str, Any]) -> bytes: ...
    def loads(self, data: bytes) -> Any: ...


class JSONCodec:
    # What the relay server speaks; UTF-8 text, no whitespace
    name = "json"
    errors = (ValueError, RecursionError)
    def dumps(self, record: Dict[str, Any]) -> bytes:
        return json.dumps(record, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    def loads(self, data: bytes) -> Any:
        return json.loads(data.decode("utf-8"))


class MsgPackCodec:
    name = "msgpack"
    errors = (ValueError, TypeError, RecursionError, UnpackException)
    def dumps(self, record: Dict[str, Any]) -> bytes:
        return msgpack.packb(record, use_bin_type=True)
    def loads(self, data: bytes) -> Any:
        return msgpack.unpackb(data, raw=False)


CODECS: Dict[str, Codec] = {"json": JSONCodec(), "msgpack": MsgPackCodec()}


def get_codec(codec: Union[str, Codec]) -> Codec:
    if not isinstance(codec, str):
        return codec
    if codec not in CODECS:
        raise ValueError(f"Unknown codec: {codec}")
    return CODECS[codec]


def encode(env: Envelope, codec: Union[str, Codec] = "json") -> bytes:
    env_dict = {
        "origin":    env.origin,
        "timestamp": env.timestamp,
        "payload":   env.payload,
        "signature": env.signature,
    }
    return get_codec(codec).dumps(env_dict)


def decode(data: Union[bytes, str], codec: Union[str, Codec] = "json") -> Envelope:
    """
    Parse one frame into an Envelope. Raises ParseError for anything that is
    not a record with string origin/timestamp/payload and an optional string
    signature. The signature itself is not checked here.
    """
    codec = get_codec(codec)
    if isinstance(data, str):
        data = data.encode("utf-8")
    try:
        obj = codec.loads(bytes(data))
    except codec.errors as e:
        raise ParseError(f"undecodable frame: {type(e).__name__}: {e}") from e
    return _from_mapping(obj)


def _from_mapping(obj: Any) -> Envelope:
    if not isinstance(obj, Mapping):
        raise ParseError(f"expected an object, got {type(obj).__name__}")
    for name in _REQUIRED:
        if name not in obj:
            raise ParseError(f"missing field: {name}")
        if not isinstance(obj[name], str):
            raise ParseError(f"field {name} must be a string")
    if not obj["origin"]:
        raise ParseError("empty origin")
    signature = obj.get("signature")
    if signature is not None and not isinstance(signature, str):
        raise ParseError("field signature must be a string or null")
    return Envelope(
        origin=obj["origin"],
        timestamp=obj["timestamp"],
        payload=obj["payload"],
        signature=signature,
    )
