from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ..core.config import ColormapConfig, GvdVisualizerConfig
from ..core.markers import Marker, MarkerType
from .colormap import distance_colors, interpolate_colormap, with_alpha


@dataclass(frozen=True)
class VoxelLayer:
    """Observed voxels of a distance field with their GVD annotations.

    Arrays are parallel, one row per observed voxel:
    - positions: float (n,3) voxel centers
    - distances: float (n,) distance to the nearest obstacle
    - is_gvd: bool (n,) voxel lies on the generalized Voronoi diagram
    - is_surface: bool (n,) voxel touches an obstacle surface
    - num_basis: int (n,) number of obstacle basis points (GVD voxels only)
    """

    voxel_size: float
    voxels_per_side: int
    positions: np.ndarray
    distances: np.ndarray
    is_gvd: np.ndarray
    is_surface: np.ndarray
    num_basis: np.ndarray

    def __post_init__(self) -> None:
        if not float(self.voxel_size) > 0.0:
            raise ValueError("voxel_size must be > 0")
        if int(self.voxels_per_side) <= 0:
            raise ValueError("voxels_per_side must be a positive integer")
        n = int(np.asarray(self.positions).reshape(-1, 3).shape[0])
        for name in ("distances", "is_gvd", "is_surface", "num_basis"):
            if np.asarray(getattr(self, name)).reshape(-1).shape[0] != n:
                raise ValueError(f"{name} must have {n} entries")

    @classmethod
    def empty(cls, voxel_size: float = 0.1, voxels_per_side: int = 16) -> "VoxelLayer":
        return cls(
            voxel_size=voxel_size,
            voxels_per_side=voxels_per_side,
            positions=np.zeros((0, 3), dtype=np.float32),
            distances=np.zeros((0,), dtype=np.float32),
            is_gvd=np.zeros((0,), dtype=bool),
            is_surface=np.zeros((0,), dtype=bool),
            num_basis=np.zeros((0,), dtype=np.int32),
        )

    @property
    def count(self) -> int:
        return int(np.asarray(self.positions).reshape(-1, 3).shape[0])

    @property
    def block_size(self) -> float:
        return float(self.voxel_size) * int(self.voxels_per_side)

    def voxel_indices(self) -> np.ndarray:
        pos = np.asarray(self.positions, dtype=np.float64).reshape(-1, 3)
        return np.floor(pos / float(self.voxel_size)).astype(np.int64)

    def block_indices(self, mask: np.ndarray | None = None) -> np.ndarray:
        pos = np.asarray(self.positions, dtype=np.float64).reshape(-1, 3)
        if mask is not None:
            pos = pos[np.asarray(mask, dtype=bool).reshape(-1)]
        idx = np.floor(pos / self.block_size).astype(np.int64)
        if idx.shape[0] == 0:
            return idx.reshape(0, 3)
        return np.unique(idx, axis=0)


def _points_marker(points: np.ndarray, colors: np.ndarray, *, scale: float, alpha: float) -> Marker:
    return Marker(
        type=MarkerType.CUBE_LIST,
        scale=(scale, scale, scale),
        color=(1.0, 1.0, 1.0, float(alpha)),
        points=np.asarray(points, dtype=np.float32).reshape(-1, 3),
        colors=with_alpha(colors, alpha),
    )


def make_esdf_marker(config: GvdVisualizerConfig, colormap: ColormapConfig, voxels: VoxelLayer) -> Marker:
    """Horizontal slice of the distance field at `slice_height`."""

    pos = np.asarray(voxels.positions, dtype=np.float32).reshape(-1, 3)
    half = 0.5 * float(voxels.voxel_size)
    mask = np.abs(pos[:, 2] - float(config.slice_height)) <= half
    colors = distance_colors(
        np.asarray(voxels.distances)[mask],
        colormap,
        min_distance=config.gvd_min_distance,
        max_distance=config.gvd_max_distance,
    )
    return _points_marker(pos[mask], colors, scale=float(voxels.voxel_size), alpha=config.esdf_alpha)


def make_gvd_marker(config: GvdVisualizerConfig, colormap: ColormapConfig, voxels: VoxelLayer) -> Marker:
    pos = np.asarray(voxels.positions, dtype=np.float32).reshape(-1, 3)
    mask = np.asarray(voxels.is_gvd, dtype=bool) & (np.asarray(voxels.num_basis) >= int(config.min_num_basis))
    colors = distance_colors(
        np.asarray(voxels.distances)[mask],
        colormap,
        min_distance=config.gvd_min_distance,
        max_distance=config.gvd_max_distance,
    )
    return _points_marker(pos[mask], colors, scale=float(config.point_scale), alpha=config.gvd_alpha)


def make_surface_marker(config: GvdVisualizerConfig, colormap: ColormapConfig, voxels: VoxelLayer) -> Marker:
    pos = np.asarray(voxels.positions, dtype=np.float32).reshape(-1, 3)
    mask = np.asarray(voxels.is_surface, dtype=bool)
    # Surface voxels are colored by height.
    z = pos[mask, 2]
    if z.size:
        lo, hi = float(z.min()), float(z.max())
        ratios = (z - lo) / (hi - lo) if hi > lo else np.zeros_like(z)
    else:
        ratios = z
    colors = interpolate_colormap(ratios, colormap)
    return _points_marker(pos[mask], colors, scale=float(voxels.voxel_size), alpha=config.surface_alpha)


def make_blocks_marker(voxels: VoxelLayer, scale: float, *, gvd_only: bool = False) -> Marker:
    """Wireframe outline (12 edges) of every allocated block."""

    blocks = voxels.block_indices(voxels.is_gvd if gvd_only else None)
    size = voxels.block_size
    corners = np.array(
        [[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0], [0, 0, 1], [1, 0, 1], [1, 1, 1], [0, 1, 1]],
        dtype=np.float32,
    )
    edges = [(0, 1), (1, 2), (2, 3), (3, 0), (4, 5), (5, 6), (6, 7), (7, 4), (0, 4), (1, 5), (2, 6), (3, 7)]
    segment = np.asarray([corners[i] for pair in edges for i in pair], dtype=np.float32)

    if blocks.shape[0] == 0:
        points = np.zeros((0, 3), dtype=np.float32)
    else:
        origins = blocks.astype(np.float32) * size
        points = (origins[:, None, :] + segment[None, :, :] * size).reshape(-1, 3)

    return Marker(
        type=MarkerType.LINE_LIST,
        scale=(float(scale), 0.0, 0.0),
        color=(1.0, 0.0, 0.0, 1.0),
        points=points.astype(np.float32),
    )


def make_error_marker(
    config: GvdVisualizerConfig,
    colormap: ColormapConfig,
    lhs: VoxelLayer,
    rhs: VoxelLayer,
    threshold: float,
) -> Marker:
    """Voxels observed in both layers whose distances disagree by more than `threshold`."""

    if not np.isclose(float(lhs.voxel_size), float(rhs.voxel_size)):
        raise ValueError("layers must share a voxel size to be compared")

    rhs_lookup = {tuple(idx): i for i, idx in enumerate(rhs.voxel_indices().tolist())}
    lhs_d = np.asarray(lhs.distances, dtype=np.float64).reshape(-1)
    rhs_d = np.asarray(rhs.distances, dtype=np.float64).reshape(-1)
    lhs_pos = np.asarray(lhs.positions, dtype=np.float32).reshape(-1, 3)

    rows: list[int] = []
    errors: list[float] = []
    for i, idx in enumerate(lhs.voxel_indices().tolist()):
        j = rhs_lookup.get(tuple(idx))
        if j is None:
            continue
        err = abs(lhs_d[i] - rhs_d[j])
        if err > float(threshold):
            rows.append(i)
            errors.append(err)

    err_arr = np.asarray(errors, dtype=np.float64)
    max_err = float(err_arr.max()) if err_arr.size else float(threshold)
    colors = distance_colors(err_arr, colormap, min_distance=float(threshold), max_distance=max_err)
    return _points_marker(lhs_pos[rows], colors, scale=float(lhs.voxel_size), alpha=config.error_alpha)
