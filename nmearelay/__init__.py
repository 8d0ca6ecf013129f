"""
Public API:
- RelayClient: signed NMEA relay over a pub/sub topic (send, receive, loop prevention)
- Relay: one-liner factory picking transport and codec by name
- RelayConfig: immutable session configuration (endpoint, topics, origin id, bypass switch)
- Envelope, encode, decode: wire-level envelope (origin, timestamp, payload, signature)
- Signer, RsaSigner: signing capability and its SHA256withRSA implementation
- Transport: abstract class transports must implement
- ConnectionManager, State: one pub/sub session per client
"""

# Core client
from .client import RelayClient
from .factory import Relay

# Configuration
from .config import RelayConfig, Endpoint, parse_endpoint

# Wire types
from .envelope import Envelope, SIGN_SEPARATOR, signing_input
from .wire import encode, decode
from .wire import Codec, JSONCodec, MsgPackCodec, get_codec

# Collaborators
from .signing import Signer, RsaSigner
from .analytics import Analytics, LoggingAnalytics

# Transport contract & session
from .transport import Transport
from .connection import ConnectionManager, State

from .exceptions import (
    RelayError,
    ConfigError,
    ParseError,
    SigningError,
    ConnectionStateError,
    TransportError,
)

__all__ = [
    "RelayClient",
    "Relay",
    "RelayConfig",
    "Endpoint",
    "parse_endpoint",
    "Envelope",
    "SIGN_SEPARATOR",
    "signing_input",
    "encode",
    "decode",
    "Codec",
    "get_codec",
    "JSONCodec",
    "MsgPackCodec",
    "Signer",
    "RsaSigner",
    "Analytics",
    "LoggingAnalytics",
    "Transport",
    "ConnectionManager",
    "State",
    "RelayError",
    "ConfigError",
    "ParseError",
    "SigningError",
    "ConnectionStateError",
    "TransportError",
]

__version__ = "0.1.0"
