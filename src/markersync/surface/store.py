from __future__ import annotations

import logging
import threading

from ..core.markers import Marker, MarkerAction, MarkerArray

logger = logging.getLogger(__name__)


class MarkerStore:
    """Retained-mode marker surface.

    Markers stay until a DELETE (same topic, ns and id) or a DELETEALL (same
    topic and ns, or the whole topic for an empty ns) removes them.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._topics: dict[str, dict[tuple[str, int], Marker]] = {}
        self._global_revision = 0

    def global_revision(self) -> int:
        with self._lock:
            return self._global_revision

    def apply(self, topic: str, payload: Marker | MarkerArray) -> int:
        """Apply one message; returns how many markers changed the retained state."""

        markers = [payload] if isinstance(payload, Marker) else list(payload)
        changed = 0
        with self._lock:
            shown = self._topics.setdefault(topic, {})
            for m in markers:
                if m.action == MarkerAction.ADD:
                    shown[m.key] = m
                    changed += 1
                elif m.action == MarkerAction.DELETE:
                    if shown.pop(m.key, None) is not None:
                        changed += 1
                else:
                    doomed = [k for k in shown if not m.ns or k[0] == m.ns]
                    for k in doomed:
                        del shown[k]
                    changed += len(doomed)
            if changed:
                self._global_revision += 1
        logger.debug("applied %d marker(s) to %s (%d changed)", len(markers), topic, changed)
        return changed

    def topics(self) -> list[str]:
        with self._lock:
            return sorted(self._topics)

    def list_markers(self, *, topic: str | None = None, ns: str | None = None) -> list[tuple[str, Marker]]:
        with self._lock:
            out: list[tuple[str, Marker]] = []
            for t, shown in self._topics.items():
                if topic is not None and t != topic:
                    continue
                for (m_ns, _), m in shown.items():
                    if ns is not None and m_ns != ns:
                        continue
                    out.append((t, m))
            out.sort(key=lambda item: (item[0], item[1].ns, int(item[1].id)))
            return out

    def get(self, topic: str, ns: str, marker_id: int) -> Marker | None:
        with self._lock:
            return self._topics.get(topic, {}).get((ns, int(marker_id)))

    def ids(self, topic: str, ns: str) -> set[int]:
        with self._lock:
            return {i for (m_ns, i) in self._topics.get(topic, {}) if m_ns == ns}

    def reset(self) -> None:
        with self._lock:
            self._topics.clear()
            self._global_revision += 1


STORE = MarkerStore()
