from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..core.config import ObjectVisualizerConfig
from ..core.markers import Marker, MarkerType
from .colormap import with_alpha


@dataclass(frozen=True)
class MeshDelta:
    """Vertices touched by the latest mesh update.

    - vertices: float (n,3)
    - colors: optional uint8 or float (n,3)
    """

    vertices: np.ndarray
    colors: np.ndarray | None = None

    def __post_init__(self) -> None:
        v = np.asarray(self.vertices)
        if v.ndim != 2 or v.shape[1] != 3:
            raise ValueError(f"vertices must have shape (N,3), got {v.shape}")
        if self.colors is not None and np.asarray(self.colors).shape != v.shape:
            raise ValueError(f"colors must have shape {v.shape}, got {np.asarray(self.colors).shape}")

    @property
    def vertex_count(self) -> int:
        return int(np.asarray(self.vertices).shape[0])

    def colors_rgb(self, indices: np.ndarray) -> np.ndarray | None:
        if self.colors is None:
            return None
        c = np.asarray(self.colors)[indices]
        if np.issubdtype(c.dtype, np.integer):
            return c.astype(np.float32) / 255.0
        return np.clip(c, 0.0, 1.0).astype(np.float32)


def make_cloud_marker(
    delta: MeshDelta,
    indices: Sequence[int] | np.ndarray,
    config: ObjectVisualizerConfig,
    *,
    ns: str,
    fallback_color: tuple[float, float, float] = (0.0, 0.0, 0.0),
) -> Marker:
    """Cloud marker over a subset of mesh vertices; out-of-range indices are dropped."""

    idx = np.asarray(indices, dtype=np.int64).reshape(-1)
    idx = idx[(idx >= 0) & (idx < delta.vertex_count)]
    points = np.asarray(delta.vertices, dtype=np.float32)[idx]

    rgb = delta.colors_rgb(idx)
    if rgb is None:
        rgb = np.tile(np.asarray(fallback_color, dtype=np.float32), (idx.shape[0], 1))

    s = float(config.point_scale)
    return Marker(
        ns=ns,
        id=0,
        type=MarkerType.SPHERE_LIST if config.use_spheres else MarkerType.CUBE_LIST,
        scale=(s, s, s),
        color=(fallback_color[0], fallback_color[1], fallback_color[2], float(config.point_alpha)),
        points=points.reshape(-1, 3),
        colors=with_alpha(rgb, config.point_alpha),
    )
