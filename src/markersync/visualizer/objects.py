from __future__ import annotations

import copy
import logging
import pprint
import threading
from dataclasses import replace
from typing import Any, Mapping, Sequence

from ..core.config import ObjectVisualizerConfig
from ..core.markers import Header, Marker
from ..core.publishers import ChannelRegistry, Transport
from ..core.sync import MarkerSynchronizer, SyncResult
from ..geometry.colormap import label_color
from ..geometry.mesh import MeshDelta, make_cloud_marker

logger = logging.getLogger(__name__)

ACTIVE_NS = "active_vertices"


class ObjectVisualizer:
    """Shows the active mesh vertices and one point cloud per semantic label.

    Label channels are created the first time a label shows up and are kept
    afterwards; a label that disappears gets its cloud retracted on the
    channel it was shown on.

    Each `call` works on one copy of the settings taken at its start; an
    assignment or `update()` from another thread applies from the next call.
    """

    def __init__(self, transport: Transport, config: ObjectVisualizerConfig | None = None) -> None:
        self._config_lock = threading.RLock()
        self._config = copy.deepcopy(config) if config is not None else ObjectVisualizerConfig()
        module_ns = self._config.module_ns.strip("/")
        self._publishers: ChannelRegistry[str] = ChannelRegistry(transport, prefix=module_ns)
        self._segmented: ChannelRegistry[int] = ChannelRegistry(
            transport, prefix=f"{module_ns}/segmented_vertices"
        )
        self._sync = MarkerSynchronizer(self._publishers)
        self._lock = threading.Lock()

    @property
    def config(self) -> ObjectVisualizerConfig:
        """A copy of the active settings; assign or `update()` to change them."""
        with self._config_lock:
            return copy.deepcopy(self._config)

    @config.setter
    def config(self, config: ObjectVisualizerConfig) -> None:
        with self._config_lock:
            self._config = copy.deepcopy(config)

    def update(self, **changes: Any) -> ObjectVisualizerConfig:
        with self._config_lock:
            self._config = replace(self._config, **changes)
            return copy.deepcopy(self._config)

    @property
    def segmented_publishers(self) -> ChannelRegistry[int]:
        return self._segmented

    @property
    def synchronizer(self) -> MarkerSynchronizer:
        return self._sync

    def print_info(self) -> str:
        return pprint.pformat(self.config.to_dict(), sort_dicts=False)

    def call(
        self,
        timestamp_ns: int,
        delta: MeshDelta,
        active: Sequence[int],
        label_indices: Mapping[int, Sequence[int]],
    ) -> dict[str, SyncResult]:
        with self._lock:
            config = self.config
            header = Header(stamp_ns=int(timestamp_ns), frame_id=config.world_frame)
            results: dict[str, SyncResult] = {}
            self._publish_active_vertices(results, config, header, delta, active)
            self._publish_object_clouds(results, config, header, delta, label_indices)
            return results

    def _publish_active_vertices(
        self,
        results: dict[str, SyncResult],
        config: ObjectVisualizerConfig,
        header: Header,
        delta: MeshDelta,
        active: Sequence[int],
    ) -> None:
        markers: list[Marker] = []
        if config.enable_active_mesh_pub:
            marker = make_cloud_marker(delta, active, config, ns=ACTIVE_NS)
            if marker.point_count:
                markers.append(marker)
            else:
                logger.info("no active vertices to visualize")
        results[ACTIVE_NS] = self._sync.sync(ACTIVE_NS, header, markers, namespaces=[ACTIVE_NS])

    def _publish_object_clouds(
        self,
        results: dict[str, SyncResult],
        config: ObjectVisualizerConfig,
        header: Header,
        delta: MeshDelta,
        label_indices: Mapping[int, Sequence[int]],
    ) -> None:
        current: dict[int, list[Marker]] = {}
        if config.enable_segmented_mesh_pub:
            for label, indices in label_indices.items():
                marker = make_cloud_marker(
                    delta,
                    indices,
                    config,
                    ns=str(int(label)),
                    fallback_color=label_color(int(label)),
                )
                if marker.point_count:
                    current[int(label)] = [marker]

        # Known labels missing this tick still need a sync so their cloud is retracted.
        for label in sorted(set(self._segmented.keys()) | set(current)):
            channel = self._segmented.get_or_create(label)
            results[channel.topic] = self._sync.sync(
                channel.topic,
                header,
                current.get(label, []),
                namespaces=[str(label)],
                channel=channel,
            )
