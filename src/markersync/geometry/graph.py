from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

import numpy as np

from ..core.config import ColormapConfig, GraphConfig, LayerConfig
from ..core.markers import Header, Marker, MarkerType
from .colormap import distance_colors, with_alpha


@dataclass(frozen=True)
class PlaceNode:
    id: int
    position: tuple[float, float, float]
    distance: float = 0.0
    name: str = ""


@dataclass
class SceneGraphLayer:
    """A layer of places: nodes keyed by id plus undirected edges."""

    nodes: dict[int, PlaceNode] = field(default_factory=dict)
    edges: list[tuple[int, int]] = field(default_factory=list)

    def add_node(self, node: PlaceNode) -> None:
        self.nodes[int(node.id)] = node

    def add_edge(self, source: int, target: int) -> None:
        if source not in self.nodes or target not in self.nodes:
            raise KeyError(f"edge ({source}, {target}) references an unknown node")
        self.edges.append((int(source), int(target)))

    def empty(self) -> bool:
        return not self.nodes

    def positions(self) -> np.ndarray:
        if not self.nodes:
            return np.zeros((0, 3), dtype=np.float32)
        return np.asarray([n.position for n in self.nodes.values()], dtype=np.float32).reshape(-1, 3)

    def distances(self) -> np.ndarray:
        return np.asarray([n.distance for n in self.nodes.values()], dtype=np.float32)


NodeColorFn = Callable[[PlaceNode], tuple[float, float, float]]


def _node_colors(
    graph: SceneGraphLayer,
    graph_config: GraphConfig,
    colormap: ColormapConfig,
    color_fn: NodeColorFn | None,
) -> np.ndarray:
    if color_fn is not None:
        return np.asarray([color_fn(n) for n in graph.nodes.values()], dtype=np.float32).reshape(-1, 3)
    if graph_config.color_places_by_distance:
        return distance_colors(
            graph.distances(),
            colormap,
            min_distance=graph_config.places_colormap_min_distance,
            max_distance=graph_config.places_colormap_max_distance,
        )
    return np.zeros((len(graph.nodes), 3), dtype=np.float32)


def _layer_offset(graph_config: GraphConfig) -> np.ndarray:
    return np.array([0.0, 0.0, graph_config.layer_z_step], dtype=np.float32)


def make_centroid_markers(
    header: Header,
    layer: LayerConfig,
    graph: SceneGraphLayer,
    graph_config: GraphConfig,
    ns: str,
    colormap: ColormapConfig,
    color_fn: NodeColorFn | None = None,
) -> Marker:
    kind = MarkerType.SPHERE_LIST if layer.use_sphere_marker else MarkerType.CUBE_LIST
    s = float(layer.marker_scale)
    points = graph.positions() + _layer_offset(graph_config)
    colors = with_alpha(_node_colors(graph, graph_config, colormap, color_fn), layer.marker_alpha)
    return Marker(
        ns=ns,
        id=0,
        type=kind,
        header=header,
        scale=(s, s, s),
        color=(1.0, 1.0, 1.0, float(layer.marker_alpha)),
        points=points.astype(np.float32),
        colors=colors,
    )


def make_layer_edge_markers(
    header: Header,
    layer: LayerConfig,
    graph: SceneGraphLayer,
    graph_config: GraphConfig,
    color: tuple[float, float, float],
    ns: str,
) -> Marker:
    offset = _layer_offset(graph_config)
    pts: list[tuple[float, float, float]] = []
    for source, target in graph.edges:
        pts.append(graph.nodes[source].position)
        pts.append(graph.nodes[target].position)
    points = np.asarray(pts, dtype=np.float32).reshape(-1, 3) + offset
    return Marker(
        ns=ns,
        id=0,
        type=MarkerType.LINE_LIST,
        header=header,
        scale=(float(layer.edge_scale), 0.0, 0.0),
        color=(float(color[0]), float(color[1]), float(color[2]), float(layer.edge_alpha)),
        points=points.astype(np.float32),
    )


def make_text_marker(
    header: Header,
    layer: LayerConfig,
    node: PlaceNode,
    graph_config: GraphConfig,
    ns: str,
) -> Marker:
    x, y, z = node.position
    z = float(z) + float(graph_config.layer_z_step) + float(layer.label_height)
    s = float(layer.label_scale)
    return Marker(
        ns=ns,
        id=int(node.id),
        type=MarkerType.TEXT,
        header=header,
        position=(float(x), float(y), z),
        scale=(0.0, 0.0, s),
        color=(0.0, 0.0, 0.0, 1.0),
        text=node.name or f"P{int(node.id)}",
    )


def make_text_markers(
    header: Header,
    layer: LayerConfig,
    graph: SceneGraphLayer,
    graph_config: GraphConfig,
    ns: str,
) -> list[Marker]:
    return [make_text_marker(header, layer, node, graph_config, ns) for node in graph.nodes.values()]


def make_place_spheres(
    header: Header,
    graph: SceneGraphLayer,
    ns: str,
    alpha: float,
) -> list[Marker]:
    """One sphere per place, sized by its distance to the nearest obstacle.

    Ids are positional (0..n-1) in node iteration order.
    """

    out: list[Marker] = []
    for idx, node in enumerate(graph.nodes.values()):
        d = max(2.0 * float(node.distance), 1e-3)
        out.append(
            Marker(
                ns=ns,
                id=idx,
                type=MarkerType.SPHERE,
                header=header,
                position=(float(node.position[0]), float(node.position[1]), float(node.position[2])),
                scale=(d, d, d),
                color=(1.0, 0.0, 0.0, float(alpha)),
            )
        )
    return out
