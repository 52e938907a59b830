from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Generic, Hashable, Protocol, TypeVar

from .markers import Marker, MarkerArray

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
P = TypeVar("P", Marker, MarkerArray)

Payload = Marker | MarkerArray
Producer = Callable[[P], bool]

# Default payload factory for gates and registries.
new_marker_array: Callable[[], Any] = MarkerArray


class Transport(Protocol):
    """Delivers one message to whoever listens on `topic`.

    Namespace and timestamp travel inside each marker. Sends are
    fire-and-forget: nothing is returned and nothing is awaited.
    """

    def send(self, topic: str, payload: Payload) -> None: ...


class Publisher:
    """A long-lived output channel bound to one topic."""

    def __init__(self, topic: str, transport: Transport) -> None:
        self.topic = topic
        self._transport = transport
        self.sent = 0

    def publish(self, payload: Payload) -> None:
        self._transport.send(self.topic, payload)
        self.sent += 1

    def __repr__(self) -> str:
        return f"Publisher(topic={self.topic!r}, sent={self.sent})"


class PublishGate(Generic[P]):
    """Runs a producer once and forwards its payload only if it asks to.

    The producer fills a fresh payload in place and returns whether it is
    worth sending, so the emptiness decision stays next to the code building
    the payload.
    """

    def __init__(self, channel: Publisher, factory: Callable[[], P] = new_marker_array) -> None:
        self._channel = channel
        self._factory = factory

    @property
    def channel(self) -> Publisher:
        return self._channel

    def publish(self, producer: Producer[P]) -> bool:
        payload = self._factory()
        if not producer(payload):
            return False
        self._channel.publish(payload)
        return True


def _default_topic(prefix: str, key: Hashable) -> str:
    if not prefix:
        return str(key)
    return f"{prefix.strip('/')}/{key}"


class ChannelRegistry(Generic[K]):
    """Lazily creates one publisher per key and keeps it for the registry's lifetime.

    The cache is append-only. Creation of a key happens under a lock so two
    threads resolving the same new key get the same channel.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        prefix: str = "",
        topic_for: Callable[[K], str] | None = None,
    ) -> None:
        self._transport = transport
        self._prefix = prefix
        self._topic_for = topic_for
        self._lock = threading.Lock()
        self._channels: dict[K, Publisher] = {}

    @property
    def transport(self) -> Transport:
        return self._transport

    def topic_for(self, key: K) -> str:
        if self._topic_for is not None:
            return self._topic_for(key)
        return _default_topic(self._prefix, key)

    def get_or_create(self, key: K) -> Publisher:
        channel = self._channels.get(key)
        if channel is not None:
            return channel

        with self._lock:
            channel = self._channels.get(key)
            if channel is None:
                channel = Publisher(self.topic_for(key), self._transport)
                self._channels[key] = channel
                logger.debug("created channel %s for key %r", channel.topic, key)
            return channel

    def publish(self, key: K, producer: Producer[P], factory: Callable[[], P] = new_marker_array) -> bool:
        return PublishGate(self.get_or_create(key), factory).publish(producer)

    def keys(self) -> list[K]:
        with self._lock:
            return list(self._channels)

    def __contains__(self, key: object) -> bool:
        return key in self._channels

    def __len__(self) -> int:
        return len(self._channels)
