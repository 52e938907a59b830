from __future__ import annotations

import logging
import pprint
import threading
import time
from dataclasses import replace

from ..core.config import ReconstructionVisualizerConfig, VisualizerConfigStore
from ..core.markers import Header, Marker
from ..core.publishers import ChannelRegistry, Transport
from ..core.sync import MarkerSynchronizer, SyncResult
from ..geometry.graph import (
    SceneGraphLayer,
    make_centroid_markers,
    make_layer_edge_markers,
    make_place_spheres,
    make_text_markers,
)
from ..geometry.gvd_graph import (
    GraphExtractor,
    GvdGraph,
    compression_view,
    make_gvd_cluster_markers,
    make_gvd_graph_markers,
)
from ..geometry.voxels import (
    VoxelLayer,
    make_blocks_marker,
    make_error_marker,
    make_esdf_marker,
    make_gvd_marker,
    make_surface_marker,
)

logger = logging.getLogger(__name__)

SLICE_NS = "gvd_visualizer"
BLOCKS_NS = "topology_server_blocks"
CLUSTER_NS = "gvd_cluster_graph"
ERROR_NS = "gvd_error"


def _non_empty(marker: Marker, ns: str, what: str) -> list[Marker]:
    marker.ns = ns
    if marker.point_count:
        return [marker]
    logger.info("visualizing empty %s", what)
    return []


class ReconstructionVisualizer:
    """Mirrors a distance field, its places graph and its GVD graph onto a retained surface.

    Every channel goes through a `MarkerSynchronizer`, so anything that stops
    being produced (a slice that became empty, a disabled outline, a graph
    that lost nodes, an extractor without clusters) is retracted on the next
    pass instead of lingering on the surface.

    Passes are serialized; config updates go through `config_store` and a pass
    works on one snapshot taken at its start.
    """

    def __init__(
        self,
        transport: Transport,
        config: ReconstructionVisualizerConfig | VisualizerConfigStore | None = None,
        *,
        ns: str = "",
    ) -> None:
        if isinstance(config, VisualizerConfigStore):
            self._config = config
        else:
            self._config = VisualizerConfigStore(config)
        self._publishers: ChannelRegistry[str] = ChannelRegistry(transport, prefix=ns)
        self._sync = MarkerSynchronizer(self._publishers)
        self._lock = threading.Lock()

    @property
    def config_store(self) -> VisualizerConfigStore:
        return self._config

    @property
    def publishers(self) -> ChannelRegistry[str]:
        return self._publishers

    @property
    def synchronizer(self) -> MarkerSynchronizer:
        return self._sync

    def print_info(self) -> str:
        return pprint.pformat(self._config.snapshot().to_dict(), sort_dicts=False)

    def visualize(
        self,
        timestamp_ns: int,
        voxels: VoxelLayer,
        extractor: GraphExtractor | None = None,
    ) -> dict[str, SyncResult]:
        """Run one pass for a new map snapshot; returns the sync result per topic."""

        t0 = time.perf_counter()
        with self._lock:
            config = self._config.snapshot()
            header = Header(stamp_ns=int(timestamp_ns), frame_id=config.world_frame)
            results: dict[str, SyncResult] = {}

            self._visualize_gvd(results, config, header, voxels)

            graph = extractor.graph if extractor is not None else SceneGraphLayer()
            gvd_graph = extractor.gvd_graph if extractor is not None else GvdGraph()
            self._visualize_graph(results, config, header, graph)
            self._visualize_gvd_graph(results, config, header, gvd_graph)
            self._visualize_blocks(results, config, header, voxels)
            self._visualize_clusters(results, config, header, extractor)

        logger.debug("visualize(%d) took %.3f ms", int(timestamp_ns), 1000.0 * (time.perf_counter() - t0))
        return results

    def visualize_error(
        self,
        timestamp_ns: int,
        lhs: VoxelLayer,
        rhs: VoxelLayer,
        threshold: float,
    ) -> SyncResult:
        """Show voxels whose distance differs between two layers by more than `threshold`."""

        with self._lock:
            config = self._config.snapshot()
            header = Header(stamp_ns=int(timestamp_ns), frame_id=config.world_frame)
            marker = make_error_marker(config.gvd, config.colormap, lhs, rhs, threshold)
            marker.ns = ERROR_NS
            markers = [marker] if marker.point_count else []
            if not markers:
                logger.info("no voxels with error above threshold")
            return self._sync.sync("error_viz", header, markers, namespaces=[ERROR_NS])

    def _visualize_gvd(
        self,
        results: dict[str, SyncResult],
        config: ReconstructionVisualizerConfig,
        header: Header,
        voxels: VoxelLayer,
    ) -> None:
        slices = [
            ("esdf_viz", make_esdf_marker, "ESDF slice"),
            ("gvd_viz", make_gvd_marker, "GVD slice"),
            ("surface_viz", make_surface_marker, "surface slice"),
        ]
        for topic, build, what in slices:
            markers = _non_empty(build(config.gvd, config.colormap, voxels), SLICE_NS, what)
            results[topic] = self._sync.sync(topic, header, markers, namespaces=[SLICE_NS])

    def _visualize_blocks(
        self,
        results: dict[str, SyncResult],
        config: ReconstructionVisualizerConfig,
        header: Header,
        voxels: VoxelLayer,
    ) -> None:
        markers: list[Marker] = []
        if config.show_block_outlines:
            marker = make_blocks_marker(voxels, config.outline_scale, gvd_only=config.use_gvd_block_outlines)
            markers = _non_empty(marker, BLOCKS_NS, "block outlines")
        results["voxel_block_viz"] = self._sync.sync("voxel_block_viz", header, markers, namespaces=[BLOCKS_NS])

    def _visualize_graph(
        self,
        results: dict[str, SyncResult],
        config: ReconstructionVisualizerConfig,
        header: Header,
        graph: SceneGraphLayer,
    ) -> None:
        topo = config.topology_marker_ns
        if graph.empty():
            logger.info("visualizing empty graph!")

        nodes_ns, edges_ns = f"{topo}_nodes", f"{topo}_edges"
        markers: list[Marker] = []
        if not graph.empty():
            markers.append(
                make_centroid_markers(header, config.graph_layer, graph, config.graph, nodes_ns, config.colormap)
            )
            if graph.edges:
                markers.append(
                    make_layer_edge_markers(header, config.graph_layer, graph, config.graph, (0.0, 0.0, 0.0), edges_ns)
                )
        results["graph_viz"] = self._sync.sync("graph_viz", header, markers, namespaces=[nodes_ns, edges_ns])

        self._publish_freespace(results, config, header, graph)
        self._publish_graph_labels(results, config, header, graph)

    def _publish_freespace(
        self,
        results: dict[str, SyncResult],
        config: ReconstructionVisualizerConfig,
        header: Header,
        graph: SceneGraphLayer,
    ) -> None:
        topo = config.topology_marker_ns
        spheres_ns = f"{topo}_freespace"
        spheres = make_place_spheres(header, graph, spheres_ns, config.freespace_sphere_alpha)
        results["freespace_viz"] = self._sync.sync("freespace_viz", header, spheres, positional=[spheres_ns])

        nodes_ns, edges_ns = f"{topo}_freespace_nodes", f"{topo}_freespace_edges"
        freespace_layer = replace(config.graph_layer, use_sphere_marker=False, marker_scale=0.08, marker_alpha=0.5)
        markers: list[Marker] = []
        if not graph.empty():
            markers.append(
                make_centroid_markers(
                    header,
                    freespace_layer,
                    graph,
                    config.graph,
                    nodes_ns,
                    config.colormap,
                    color_fn=lambda _node: (0.0, 0.0, 0.0),
                )
            )
            if graph.edges:
                markers.append(
                    make_layer_edge_markers(header, config.graph_layer, graph, config.graph, (0.0, 0.0, 0.0), edges_ns)
                )
        results["freespace_graph_viz"] = self._sync.sync(
            "freespace_graph_viz", header, markers, namespaces=[nodes_ns, edges_ns]
        )

    def _publish_graph_labels(
        self,
        results: dict[str, SyncResult],
        config: ReconstructionVisualizerConfig,
        header: Header,
        graph: SceneGraphLayer,
    ) -> None:
        # Turning labels off retracts the ones already shown.
        label_ns = f"{config.topology_marker_ns}_labels"
        labels: list[Marker] = []
        if config.graph_layer.use_label:
            labels = make_text_markers(header, config.graph_layer, graph, config.graph, label_ns)
        results["graph_label_viz"] = self._sync.sync("graph_label_viz", header, labels, namespaces=[label_ns])

    def _visualize_gvd_graph(
        self,
        results: dict[str, SyncResult],
        config: ReconstructionVisualizerConfig,
        header: Header,
        graph: GvdGraph,
    ) -> None:
        ns = f"{config.topology_marker_ns}_gvd_graph"
        markers = make_gvd_graph_markers(graph, config.gvd, config.colormap, ns)
        results["gvd_graph_viz"] = self._sync.sync(
            "gvd_graph_viz", header, markers, namespaces=[f"{ns}_nodes", f"{ns}_edges"]
        )

    def _visualize_clusters(
        self,
        results: dict[str, SyncResult],
        config: ReconstructionVisualizerConfig,
        header: Header,
        extractor: GraphExtractor | None,
    ) -> None:
        view = compression_view(extractor)
        markers = make_gvd_cluster_markers(view, config.gvd, CLUSTER_NS) if view is not None else []
        results["gvd_cluster_viz"] = self._sync.sync(
            "gvd_cluster_viz", header, markers, namespaces=[f"{CLUSTER_NS}_nodes", f"{CLUSTER_NS}_edges"]
        )
