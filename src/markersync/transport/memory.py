from __future__ import annotations

import threading
from dataclasses import dataclass

from ..core.markers import Marker, MarkerAction, MarkerArray
from ..surface.store import MarkerStore


@dataclass(frozen=True)
class SentMessage:
    topic: str
    payload: Marker | MarkerArray

    @property
    def markers(self) -> list[Marker]:
        if isinstance(self.payload, Marker):
            return [self.payload]
        return list(self.payload)

    @property
    def is_delete_batch(self) -> bool:
        return bool(self.markers) and all(m.action != MarkerAction.ADD for m in self.markers)


class RecordingTransport:
    """Keeps every message it is handed, in order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sent: list[SentMessage] = []

    def send(self, topic: str, payload: Marker | MarkerArray) -> None:
        with self._lock:
            self._sent.append(SentMessage(topic=topic, payload=payload))

    @property
    def sent(self) -> list[SentMessage]:
        with self._lock:
            return list(self._sent)

    def on_topic(self, topic: str) -> list[SentMessage]:
        return [m for m in self.sent if m.topic == topic]

    def clear(self) -> None:
        with self._lock:
            self._sent.clear()


class LocalTransport:
    """Applies messages straight to an in-process retained store."""

    def __init__(self, store: MarkerStore | None = None) -> None:
        self.store = store if store is not None else MarkerStore()

    def send(self, topic: str, payload: Marker | MarkerArray) -> None:
        self.store.apply(topic, payload)
