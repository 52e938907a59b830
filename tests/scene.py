from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from markersync.geometry import GvdGraph, GvdNode, PlaceNode, SceneGraphLayer, VoxelLayer


@dataclass
class PlainExtractor:
    graph: SceneGraphLayer
    gvd_graph: GvdGraph = field(default_factory=GvdGraph)


@dataclass
class ClusteringExtractor:
    graph: SceneGraphLayer
    gvd_graph: GvdGraph = field(default_factory=GvdGraph)
    compressed_remapping: dict[int, int] = field(default_factory=dict)


def make_graph(ids: list[int], *, chain: bool = True) -> SceneGraphLayer:
    graph = SceneGraphLayer()
    for i in ids:
        graph.add_node(PlaceNode(id=i, position=(float(i), 0.0, 1.0), distance=0.5 + 0.1 * i))
    if chain:
        for a, b in zip(ids, ids[1:]):
            graph.add_edge(a, b)
    return graph


def make_gvd_graph(n: int) -> GvdGraph:
    nodes = {}
    for i in range(n):
        siblings = frozenset({j for j in (i - 1, i + 1) if 0 <= j < n})
        nodes[i] = GvdNode(position=(0.0, float(i), 0.5), distance=1.0, num_basis_points=3, siblings=siblings)
    return GvdGraph(nodes=nodes)


def make_voxels(*, slice_z: float = 0.0) -> VoxelLayer:
    return VoxelLayer(
        voxel_size=0.1,
        voxels_per_side=16,
        positions=np.array(
            [
                [0.05, 0.05, slice_z],
                [0.15, 0.05, slice_z],
                [0.05, 0.15, 1.0],
                [0.25, 0.25, 1.0],
            ],
            dtype=np.float32,
        ),
        distances=np.array([0.5, 1.0, 2.0, 3.0], dtype=np.float32),
        is_gvd=np.array([False, True, True, False]),
        is_surface=np.array([True, False, False, False]),
        num_basis=np.array([0, 3, 3, 0], dtype=np.int32),
    )
