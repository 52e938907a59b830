from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Protocol, runtime_checkable

import numpy as np

from ..core.config import ColormapConfig, GvdVisualizerConfig
from ..core.markers import Marker, MarkerType
from .colormap import distance_colors, label_color, with_alpha
from .graph import SceneGraphLayer


@dataclass(frozen=True)
class GvdNode:
    position: tuple[float, float, float]
    distance: float = 0.0
    num_basis_points: int = 0
    siblings: frozenset[int] = frozenset()


@dataclass
class GvdGraph:
    """Sparse graph traced along the GVD; edges are stored as sibling sets."""

    nodes: dict[int, GvdNode] = field(default_factory=dict)

    def empty(self) -> bool:
        return not self.nodes

    def edges(self) -> list[tuple[int, int]]:
        out: set[tuple[int, int]] = set()
        for node_id, node in self.nodes.items():
            for other in node.siblings:
                if other in self.nodes and other != node_id:
                    out.add((min(node_id, other), max(node_id, other)))
        return sorted(out)


class GraphExtractor(Protocol):
    """Anything that extracts a places graph and its GVD graph from a distance field."""

    @property
    def graph(self) -> SceneGraphLayer: ...

    @property
    def gvd_graph(self) -> GvdGraph: ...


@runtime_checkable
class CompressionExtractor(Protocol):
    """Extractor that also groups GVD nodes into compressed clusters."""

    @property
    def gvd_graph(self) -> GvdGraph: ...

    @property
    def compressed_remapping(self) -> Mapping[int, int]: ...


@dataclass(frozen=True)
class CompressionView:
    gvd_graph: GvdGraph
    remapping: Mapping[int, int]


def compression_view(extractor: object | None) -> CompressionView | None:
    """Return the cluster view of an extractor, or None when it has no clusters."""

    if extractor is None or not isinstance(extractor, CompressionExtractor):
        return None
    return CompressionView(gvd_graph=extractor.gvd_graph, remapping=dict(extractor.compressed_remapping))


def _nodes_and_edges(
    graph: GvdGraph,
    colors: np.ndarray,
    *,
    ns: str,
    scale: float,
    alpha: float,
) -> list[Marker]:
    ids = list(graph.nodes)
    positions = np.asarray([graph.nodes[i].position for i in ids], dtype=np.float32).reshape(-1, 3)
    nodes = Marker(
        ns=f"{ns}_nodes",
        id=0,
        type=MarkerType.CUBE_LIST,
        scale=(scale, scale, scale),
        color=(1.0, 1.0, 1.0, float(alpha)),
        points=positions,
        colors=with_alpha(colors, alpha),
    )

    pts: list[tuple[float, float, float]] = []
    for a, b in graph.edges():
        pts.append(graph.nodes[a].position)
        pts.append(graph.nodes[b].position)
    if not pts:
        return [nodes]

    edges = Marker(
        ns=f"{ns}_edges",
        id=0,
        type=MarkerType.LINE_LIST,
        scale=(0.25 * scale, 0.0, 0.0),
        color=(0.0, 0.0, 0.0, float(alpha)),
        points=np.asarray(pts, dtype=np.float32).reshape(-1, 3),
    )
    return [nodes, edges]


def make_gvd_graph_markers(
    graph: GvdGraph,
    config: GvdVisualizerConfig,
    colormap: ColormapConfig,
    ns: str,
) -> list[Marker]:
    """Nodes (colored by distance) and edges of the GVD graph; empty graph gives no markers."""

    if graph.empty():
        return []
    distances = np.asarray([n.distance for n in graph.nodes.values()], dtype=np.float32)
    colors = distance_colors(
        distances,
        colormap,
        min_distance=config.gvd_min_distance,
        max_distance=config.gvd_max_distance,
    )
    return _nodes_and_edges(graph, colors, ns=ns, scale=float(config.point_scale), alpha=config.gvd_alpha)


def make_gvd_cluster_markers(view: CompressionView, config: GvdVisualizerConfig, ns: str) -> list[Marker]:
    """GVD nodes colored by the compressed cluster they were merged into."""

    if view.gvd_graph.empty():
        return []
    colors = np.asarray(
        [label_color(view.remapping.get(node_id, node_id)) for node_id in view.gvd_graph.nodes],
        dtype=np.float32,
    ).reshape(-1, 3)
    return _nodes_and_edges(view.gvd_graph, colors, ns=ns, scale=float(config.point_scale), alpha=config.gvd_alpha)
