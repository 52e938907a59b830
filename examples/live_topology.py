import logging
import time

import numpy as np

import markersync
from markersync.geometry import GvdGraph, PlaceNode, SceneGraphLayer, VoxelLayer


class _Extractor:
    def __init__(self, graph: SceneGraphLayer) -> None:
        self.graph = graph
        self.gvd_graph = GvdGraph()


def _random_places(rng: np.random.Generator, tick: int) -> SceneGraphLayer:
    # Places drift in and out so the surface has something to retract.
    graph = SceneGraphLayer()
    ids = sorted(rng.choice(np.arange(tick, tick + 20), size=8, replace=False).tolist())
    for i in ids:
        pos = rng.uniform(-3.0, 3.0, size=3)
        pos[2] = 1.0
        graph.add_node(PlaceNode(id=int(i), position=tuple(pos.tolist()), distance=float(rng.uniform(0.2, 2.0))))
    for a, b in zip(ids, ids[1:]):
        graph.add_edge(int(a), int(b))
    return graph


def _random_voxels(rng: np.random.Generator) -> VoxelLayer:
    n = 400
    pos = rng.uniform(-3.0, 3.0, size=(n, 3)).astype(np.float32)
    pos[: n // 2, 2] = 0.0
    return VoxelLayer(
        voxel_size=0.1,
        voxels_per_side=16,
        positions=pos,
        distances=rng.uniform(0.0, 3.0, size=n).astype(np.float32),
        is_gvd=rng.random(n) < 0.2,
        is_surface=rng.random(n) < 0.1,
        num_basis=rng.integers(0, 5, size=n),
    )


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    server = markersync.serve(port=57794)
    print(server.url)

    rng = np.random.default_rng(0)
    viz = markersync.ReconstructionVisualizer(server.transport())

    tick = 0
    try:
        while True:
            viz.visualize(time.time_ns(), _random_voxels(rng), _Extractor(_random_places(rng, tick)))
            tick += 1
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
