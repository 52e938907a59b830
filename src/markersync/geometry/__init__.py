from __future__ import annotations

from .colormap import LABEL_PALETTE, distance_colors, interpolate_colormap, label_color, with_alpha
from .graph import (
    PlaceNode,
    SceneGraphLayer,
    make_centroid_markers,
    make_layer_edge_markers,
    make_place_spheres,
    make_text_marker,
    make_text_markers,
)
from .gvd_graph import (
    CompressionExtractor,
    CompressionView,
    GraphExtractor,
    GvdGraph,
    GvdNode,
    compression_view,
    make_gvd_cluster_markers,
    make_gvd_graph_markers,
)
from .mesh import MeshDelta, make_cloud_marker
from .voxels import (
    VoxelLayer,
    make_blocks_marker,
    make_error_marker,
    make_esdf_marker,
    make_gvd_marker,
    make_surface_marker,
)

__all__ = [
    "LABEL_PALETTE",
    "distance_colors",
    "interpolate_colormap",
    "label_color",
    "with_alpha",
    "PlaceNode",
    "SceneGraphLayer",
    "make_centroid_markers",
    "make_layer_edge_markers",
    "make_place_spheres",
    "make_text_marker",
    "make_text_markers",
    "CompressionExtractor",
    "CompressionView",
    "GraphExtractor",
    "GvdGraph",
    "GvdNode",
    "compression_view",
    "make_gvd_cluster_markers",
    "make_gvd_graph_markers",
    "MeshDelta",
    "make_cloud_marker",
    "VoxelLayer",
    "make_blocks_marker",
    "make_error_marker",
    "make_esdf_marker",
    "make_gvd_marker",
    "make_surface_marker",
]
