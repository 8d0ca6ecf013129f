from __future__ import annotations


class RelayError(Exception):
    """Base class for all relay errors."""


class ConfigError(RelayError):
    """Malformed endpoint or missing required configuration."""


class ParseError(RelayError):
    """Inbound data is not a well-formed envelope."""


class SigningError(RelayError):
    """The signer could not produce a signature."""


class ConnectionStateError(RelayError):
    """connect()/disconnect() called in the wrong state (caller bug)."""


class TransportError(RelayError):
    """The transport could not be started."""
