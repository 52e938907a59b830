from __future__ import annotations

import numpy as np

from markersync.core.config import ObjectVisualizerConfig
from markersync.core.markers import MarkerAction, MarkerType
from markersync.geometry import MeshDelta
from markersync.transport import LocalTransport, RecordingTransport
from markersync.visualizer import ObjectVisualizer


def _delta(n: int = 6, *, colored: bool = False) -> MeshDelta:
    vertices = np.arange(n * 3, dtype=np.float32).reshape(n, 3)
    colors = np.full((n, 3), 200, dtype=np.uint8) if colored else None
    return MeshDelta(vertices=vertices, colors=colors)


def test_label_channels_are_created_on_first_use() -> None:
    transport = RecordingTransport()
    viz = ObjectVisualizer(transport)

    viz.call(1, _delta(), [0, 1], {3: [0, 1], 5: [2, 3, 4]})
    assert sorted(viz.segmented_publishers.keys()) == [3, 5]
    topics = {m.topic for m in transport.sent}
    assert topics == {
        "objects/active_vertices",
        "objects/segmented_vertices/3",
        "objects/segmented_vertices/5",
    }

    ch = viz.segmented_publishers.get_or_create(3)
    viz.call(2, _delta(), [0], {3: [1]})
    assert viz.segmented_publishers.get_or_create(3) is ch


def test_vanished_label_is_retracted_on_its_channel() -> None:
    transport = RecordingTransport()
    viz = ObjectVisualizer(transport)
    viz.call(1, _delta(), [], {3: [0, 1], 5: [2]})

    transport.clear()
    results = viz.call(2, _delta(), [], {3: [0]})
    assert results["objects/segmented_vertices/5"].deleted == {"5": [0]}
    (msg,) = transport.on_topic("objects/segmented_vertices/5")
    assert msg.is_delete_batch

    # The channel is kept for when the label comes back.
    assert 5 in viz.segmented_publishers
    transport.clear()
    viz.call(3, _delta(), [], {5: [4]})
    (msg,) = transport.on_topic("objects/segmented_vertices/5")
    assert msg.markers[0].action == MarkerAction.ADD


def test_active_vertices_are_retracted_when_none_are_active() -> None:
    transport = LocalTransport()
    viz = ObjectVisualizer(transport)

    viz.call(1, _delta(), [0, 2, 4], {})
    marker = transport.store.get("objects/active_vertices", "active_vertices", 0)
    assert marker is not None
    assert marker.point_count == 3

    viz.call(2, _delta(), [], {})
    assert transport.store.get("objects/active_vertices", "active_vertices", 0) is None


def test_disabled_publishers_retract_previous_clouds() -> None:
    transport = LocalTransport()
    viz = ObjectVisualizer(transport)
    viz.call(1, _delta(), [0], {2: [0, 1]})

    viz.config = ObjectVisualizerConfig(enable_active_mesh_pub=False, enable_segmented_mesh_pub=False)
    viz.call(2, _delta(), [0], {2: [0, 1]})
    assert transport.store.list_markers() == []


def test_marker_style_follows_config() -> None:
    transport = RecordingTransport()
    config = ObjectVisualizerConfig(module_ns="objs", point_scale=0.2, point_alpha=0.3, use_spheres=True)
    viz = ObjectVisualizer(transport, config)

    viz.call(7, _delta(colored=True), [0, 1, 99], {})
    (msg,) = transport.on_topic("objs/active_vertices")
    marker = msg.markers[0]
    assert marker.type == MarkerType.SPHERE_LIST
    assert marker.scale == (0.2, 0.2, 0.2)
    # Out-of-range indices are dropped.
    assert marker.point_count == 2
    assert marker.colors is not None
    assert np.allclose(marker.colors[:, 3], 0.3)
    assert np.allclose(marker.colors[:, 0], 200 / 255.0)
    assert marker.header.stamp_ns == 7


def test_print_info_lists_object_settings() -> None:
    viz = ObjectVisualizer(RecordingTransport(), ObjectVisualizerConfig(module_ns="things"))
    info = viz.print_info()
    assert "'module_ns': 'things'" in info
    assert "use_spheres" in info


class _RestylingTransport(RecordingTransport):
    """Switches the visualizer to spheres while the first message of a call goes out."""

    def __init__(self) -> None:
        super().__init__()
        self.viz: ObjectVisualizer | None = None

    def send(self, topic, payload) -> None:
        if self.viz is not None and not self.sent:
            self.viz.update(use_spheres=True)
        super().send(topic, payload)


def test_settings_changed_mid_call_apply_from_next_call() -> None:
    transport = _RestylingTransport()
    viz = ObjectVisualizer(transport)
    transport.viz = viz

    viz.call(1, _delta(), [0, 1], {3: [2], 5: [4]})
    types = {m.topic: m.markers[0].type for m in transport.sent}
    assert set(types.values()) == {MarkerType.CUBE_LIST}
    assert viz.config.use_spheres is True

    transport.clear()
    viz.call(2, _delta(), [0, 1], {3: [2], 5: [4]})
    assert {m.markers[0].type for m in transport.sent} == {MarkerType.SPHERE_LIST}


def test_config_reads_are_copies() -> None:
    viz = ObjectVisualizer(RecordingTransport())
    viz.config.point_scale = 5.0
    assert viz.config.point_scale == ObjectVisualizerConfig().point_scale
