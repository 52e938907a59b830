from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence

from .differ import ElementSetDiffer
from .markers import Header, Marker, MarkerArray, make_delete_markers
from .publishers import ChannelRegistry, PublishGate, Publisher

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    topic: str
    deleted: dict[str, list[int]] = field(default_factory=dict)
    published: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def deleted_count(self) -> int:
        return sum(len(ids) for ids in self.deleted.values())


class MarkerSynchronizer:
    """Keeps the retained surface for a set of namespaces in step with the latest markers.

    Per channel and tick:
    1. current ids are grouped by namespace (declared namespaces with no
       markers count as empty),
    2. prior-minus-current ids go out as one delete batch, and only then is
       the remembered state committed,
    3. the current markers go out stamped with the tick header, unless there
       are none.

    Namespaces remembered from earlier ticks on the same channel are always
    diffed, so one that is neither declared nor carried by any marker is still
    retracted. A send that raises is logged and reported in the result; the
    deletions stay pending and the caller moves on to its next channel.
    """

    def __init__(self, publishers: ChannelRegistry[str], differ: ElementSetDiffer | None = None) -> None:
        self._publishers = publishers
        self._differ = differ if differ is not None else ElementSetDiffer()

    @property
    def differ(self) -> ElementSetDiffer:
        return self._differ

    @property
    def publishers(self) -> ChannelRegistry[str]:
        return self._publishers

    def sync(
        self,
        topic: str,
        header: Header,
        markers: Sequence[Marker],
        *,
        namespaces: Iterable[str] = (),
        positional: Iterable[str] = (),
        channel: Publisher | None = None,
    ) -> SyncResult:
        if channel is None:
            channel = self._publishers.get_or_create(topic)
        positional_ns = set(positional)

        current: dict[str, list[int]] = {ns: [] for ns in namespaces}
        current.update({ns: [] for ns in positional_ns})
        for m in markers:
            current.setdefault(m.ns, []).append(int(m.id))
        for key in self._differ.keys():
            if isinstance(key, tuple) and len(key) == 2 and key[0] == channel.topic:
                current.setdefault(key[1], [])

        result = SyncResult(topic=channel.topic)
        delete_batch: list[Marker] = []
        for ns, ids in current.items():
            key = (channel.topic, ns)
            if ns in positional_ns:
                to_delete = self._differ.diff_count(key, len(ids))
            else:
                to_delete = self._differ.diff(key, ids)
            if to_delete:
                result.deleted[ns] = to_delete
                delete_batch.extend(make_delete_markers(header, to_delete, ns))

        if delete_batch:

            def _deletions(msg: MarkerArray) -> bool:
                msg.extend(delete_batch)
                return True

            if not self._send(result, channel, _deletions):
                return result

        for ns, ids in current.items():
            key = (channel.topic, ns)
            if ns in positional_ns:
                self._differ.commit_count(key, len(ids))
            else:
                self._differ.commit(key, ids)

        def _current(msg: MarkerArray) -> bool:
            msg.extend(markers)
            msg.stamp(header)
            return bool(msg)

        if self._send(result, channel, _current):
            result.published = len(markers)

        logger.debug(
            "synced %s: deleted=%d published=%d",
            channel.topic,
            result.deleted_count,
            result.published,
        )
        return result

    @staticmethod
    def _send(result: SyncResult, channel: Publisher, producer: Callable[[MarkerArray], bool]) -> bool:
        try:
            return PublishGate(channel).publish(producer)
        except Exception as e:
            result.error = f"{type(e).__name__}: {e}"
            logger.warning("send on %s failed: %s", channel.topic, e)
            return False
