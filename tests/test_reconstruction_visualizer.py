from __future__ import annotations

import logging
from dataclasses import replace

import numpy as np

from markersync.core.config import LayerConfig, ReconstructionVisualizerConfig
from markersync.core.markers import MarkerAction
from markersync.transport import LocalTransport, RecordingTransport
from markersync.visualizer import ReconstructionVisualizer

from scene import ClusteringExtractor, PlainExtractor, make_graph, make_gvd_graph, make_voxels


def _ids(messages, *, action: MarkerAction) -> list[int]:
    return [m.id for msg in messages for m in msg.markers if m.action == action]


def test_graph_labels_follow_the_graph(voxels) -> None:
    transport = RecordingTransport()
    viz = ReconstructionVisualizer(transport)

    viz.visualize(1, voxels, PlainExtractor(make_graph([1, 2, 3])))
    labels = transport.on_topic("graph_label_viz")
    assert _ids(labels, action=MarkerAction.DELETE) == []
    assert sorted(_ids(labels, action=MarkerAction.ADD)) == [1, 2, 3]

    transport.clear()
    viz.visualize(2, voxels, PlainExtractor(make_graph([2, 3])))
    labels = transport.on_topic("graph_label_viz")
    assert labels[0].is_delete_batch
    assert _ids(labels[:1], action=MarkerAction.DELETE) == [1]
    assert sorted(_ids(labels[1:], action=MarkerAction.ADD)) == [2, 3]

    transport.clear()
    results = viz.visualize(3, voxels, PlainExtractor(make_graph([])))
    labels = transport.on_topic("graph_label_viz")
    assert len(labels) == 1
    assert _ids(labels, action=MarkerAction.DELETE) == [2, 3]
    assert results["graph_label_viz"].published == 0


def test_empty_graph_retracts_nodes_and_edges(voxels, caplog) -> None:
    transport = RecordingTransport()
    viz = ReconstructionVisualizer(transport)
    viz.visualize(1, voxels, PlainExtractor(make_graph([1, 2])))

    transport.clear()
    with caplog.at_level(logging.INFO, logger="markersync.visualizer.reconstruction"):
        results = viz.visualize(2, voxels, PlainExtractor(make_graph([])))

    assert "visualizing empty graph!" in caplog.text
    assert results["graph_viz"].deleted == {"topology_graph_nodes": [0], "topology_graph_edges": [0]}
    (msg,) = transport.on_topic("graph_viz")
    assert msg.is_delete_batch


def test_freespace_spheres_are_positional(voxels) -> None:
    transport = RecordingTransport()
    viz = ReconstructionVisualizer(transport)

    viz.visualize(1, voxels, PlainExtractor(make_graph([10, 11, 12, 13, 14])))
    results = viz.visualize(2, voxels, PlainExtractor(make_graph([10, 11])))
    assert results["freespace_viz"].deleted == {"topology_graph_freespace": [2, 3, 4]}

    results = viz.visualize(3, voxels, PlainExtractor(make_graph([1, 2, 3, 4])))
    assert results["freespace_viz"].deleted == {}
    assert results["freespace_viz"].published == 4


def test_disabling_labels_retracts_them(voxels) -> None:
    transport = RecordingTransport()
    viz = ReconstructionVisualizer(transport)
    extractor = PlainExtractor(make_graph([4, 5]))
    viz.visualize(1, voxels, extractor)

    viz.config_store.set_layer_config(LayerConfig(use_label=False))
    results = viz.visualize(2, voxels, extractor)
    assert results["graph_label_viz"].deleted == {"topology_graph_labels": [4, 5]}
    assert results["graph_label_viz"].published == 0


def test_block_outlines_toggle(voxels) -> None:
    transport = RecordingTransport()
    viz = ReconstructionVisualizer(transport, ReconstructionVisualizerConfig(show_block_outlines=True))

    results = viz.visualize(1, voxels)
    assert results["voxel_block_viz"].published == 1
    (msg,) = transport.on_topic("voxel_block_viz")
    # One block, 12 edges, 2 points each.
    assert msg.markers[0].point_count == 24

    viz.config_store.update(show_block_outlines=False)
    results = viz.visualize(2, voxels)
    assert results["voxel_block_viz"].deleted == {"topology_server_blocks": [0]}


def test_empty_slice_is_logged_and_skipped(caplog) -> None:
    transport = RecordingTransport()
    viz = ReconstructionVisualizer(transport)
    with caplog.at_level(logging.INFO, logger="markersync.visualizer.reconstruction"):
        viz.visualize(1, make_voxels(slice_z=2.0))

    assert "visualizing empty ESDF slice" in caplog.text
    assert transport.on_topic("esdf_viz") == []
    assert len(transport.on_topic("gvd_viz")) == 1


def test_clusters_need_the_compression_capability(voxels) -> None:
    transport = RecordingTransport()
    viz = ReconstructionVisualizer(transport)
    graph = make_graph([1, 2])
    gvd = make_gvd_graph(3)

    results = viz.visualize(1, voxels, PlainExtractor(graph, gvd))
    assert results["gvd_cluster_viz"].published == 0
    assert transport.on_topic("gvd_cluster_viz") == []
    assert results["gvd_graph_viz"].published == 2

    results = viz.visualize(2, voxels, ClusteringExtractor(graph, gvd, {0: 7, 1: 7, 2: 8}))
    assert results["gvd_cluster_viz"].published == 2

    results = viz.visualize(3, voxels, PlainExtractor(graph, gvd))
    assert results["gvd_cluster_viz"].deleted == {"gvd_cluster_graph_nodes": [0], "gvd_cluster_graph_edges": [0]}


def test_no_extractor_retracts_graph_channels(voxels) -> None:
    transport = RecordingTransport()
    viz = ReconstructionVisualizer(transport)
    viz.visualize(1, voxels, PlainExtractor(make_graph([1, 2]), make_gvd_graph(2)))

    results = viz.visualize(2, voxels)
    assert results["graph_viz"].deleted_count == 2
    assert results["gvd_graph_viz"].deleted_count == 2
    assert results["graph_label_viz"].deleted == {"topology_graph_labels": [1, 2]}


def test_every_message_of_a_pass_shares_one_stamp(voxels) -> None:
    transport = RecordingTransport()
    viz = ReconstructionVisualizer(transport, ReconstructionVisualizerConfig(world_frame="map"))
    viz.visualize(1, voxels, PlainExtractor(make_graph([1, 2, 3])))
    transport.clear()

    viz.visualize(123, voxels, PlainExtractor(make_graph([2])))
    headers = {(m.header.stamp_ns, m.header.frame_id) for msg in transport.sent for m in msg.markers}
    assert headers == {(123, "map")}


def test_error_view(voxels, caplog) -> None:
    transport = RecordingTransport()
    viz = ReconstructionVisualizer(transport)

    with caplog.at_level(logging.INFO, logger="markersync.visualizer.reconstruction"):
        result = viz.visualize_error(1, voxels, voxels, 0.1)
    assert result.published == 0
    assert transport.on_topic("error_viz") == []
    assert "no voxels with error above threshold" in caplog.text

    shifted = replace(voxels, distances=np.asarray(voxels.distances) + np.array([0.0, 0.5, 0.0, 2.0]))
    result = viz.visualize_error(2, voxels, shifted, 0.1)
    assert result.published == 1
    (msg,) = transport.on_topic("error_viz")
    assert msg.markers[0].point_count == 2

    result = viz.visualize_error(3, voxels, voxels, 0.1)
    assert result.deleted == {"gvd_error": [0]}


def test_surface_never_shows_stale_geometry(voxels) -> None:
    transport = LocalTransport()
    viz = ReconstructionVisualizer(transport)
    store = transport.store

    for ids in ([1, 2, 3, 4], [2, 9], [], [5]):
        viz.visualize(1, voxels, PlainExtractor(make_graph(ids)))
        assert store.ids("graph_label_viz", "topology_graph_labels") == set(ids)
        assert store.ids("freespace_viz", "topology_graph_freespace") == set(range(len(ids)))
        expected_nodes = {0} if ids else set()
        assert store.ids("graph_viz", "topology_graph_nodes") == expected_nodes


def test_channels_are_prefixed_with_the_visualizer_ns(voxels) -> None:
    transport = RecordingTransport()
    viz = ReconstructionVisualizer(transport, ns="topology_visualizer")
    viz.visualize(1, voxels)
    assert {m.topic for m in transport.sent} <= {
        "topology_visualizer/esdf_viz",
        "topology_visualizer/gvd_viz",
        "topology_visualizer/surface_viz",
    }
    assert "graph_viz" in viz.publishers


def test_print_info_mentions_config(voxels) -> None:
    viz = ReconstructionVisualizer(RecordingTransport())
    info = viz.print_info()
    assert "topology_marker_ns" in info
    assert "world_frame" in info


class _OneTopicDown(RecordingTransport):
    def __init__(self, down: str) -> None:
        super().__init__()
        self.down = down

    def send(self, topic, payload) -> None:
        if topic == self.down:
            raise ConnectionError("down")
        super().send(topic, payload)


def test_failing_channel_does_not_stop_the_pass(voxels, caplog) -> None:
    transport = _OneTopicDown("esdf_viz")
    viz = ReconstructionVisualizer(transport)

    with caplog.at_level(logging.WARNING):
        results = viz.visualize(1, voxels, PlainExtractor(make_graph([1, 2])))

    assert not results["esdf_viz"].ok
    assert "esdf_viz" in caplog.text
    assert results["gvd_viz"].ok
    assert results["graph_viz"].published == 2
    assert _ids(transport.on_topic("graph_label_viz"), action=MarkerAction.ADD) == [1, 2]
    assert transport.on_topic("esdf_viz") == []

    transport.down = ""
    results = viz.visualize(2, voxels, PlainExtractor(make_graph([1, 2])))
    assert results["esdf_viz"].published == 1
