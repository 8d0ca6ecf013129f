from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import time

# Joins origin, timestamp and payload into the signed text
SIGN_SEPARATOR = "_"


def now_millis() -> str:
    return str(int(time.time() * 1000))


def signing_input(origin: str, timestamp: str, payload: str) -> str:
    return SIGN_SEPARATOR.join((origin, timestamp, payload))


@dataclass(frozen=True)
class Envelope:
    """
    Signed wrapper around one relayed sentence.
    """
    origin: str                       # sending device id
    timestamp: str                    # sender wall clock, ms
    payload: str                      # raw NMEA sentence
    signature: Optional[str] = None   # over signing_input(); None if signing failed

    def signing_input(self) -> str:
        return signing_input(self.origin, self.timestamp, self.payload)
