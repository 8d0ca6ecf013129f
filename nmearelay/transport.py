from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable

# (topic, frame) for every frame arriving on a subscribed topic
ReceiveCallback = Callable[[str, bytes], None]


class Transport(ABC):
    """
    A pub/sub session. Inbound frames are handed to the on_receive callback
    from one transport-owned thread, in arrival order.
    """

    @abstractmethod
    def start(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def stop(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def subscribe(self, topic: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def unsubscribe(self, topic: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def publish(self, topic: str, frame: bytes) -> None:
        """Fire-and-forget publish of one frame to a topic."""
        raise NotImplementedError

    @abstractmethod
    def on_receive(self, cb: ReceiveCallback) -> None:
        raise NotImplementedError
