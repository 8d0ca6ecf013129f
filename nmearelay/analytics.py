from __future__ import annotations
from typing import Protocol as TypingProtocol
import logging

log = logging.getLogger(__name__)

CATEGORY_NMEA_REPEAT = "NMEA_REPEAT"
ACTION_MESSAGES_REPEATED = "Number of messages repeated"


class Analytics(TypingProtocol):
    def log_event(self, category: str, action: str, label: str) -> None: ...


class LoggingAnalytics:
    """Default sink: events go to the nmearelay.analytics logger."""
    def log_event(self, category: str, action: str, label: str) -> None:
        log.info("%s: %s = %s", category, action, label)


def report(analytics: Analytics, category: str, action: str, label: str) -> None:
    # Best effort; analytics must never break a disconnect
    try:
        analytics.log_event(category, action, label)
    except Exception:
        log.debug("Analytics event %s dropped", category, exc_info=True)
