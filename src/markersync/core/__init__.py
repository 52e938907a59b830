from __future__ import annotations

from .config import (
    ColormapConfig,
    GraphConfig,
    GvdVisualizerConfig,
    LayerConfig,
    ObjectVisualizerConfig,
    ReconstructionVisualizerConfig,
    VisualizerConfigStore,
    load_config,
)
from .differ import ElementSetDiffer, PriorState
from .markers import (
    Header,
    Marker,
    MarkerAction,
    MarkerArray,
    MarkerType,
    make_delete_marker,
    make_delete_markers,
)
from .publishers import ChannelRegistry, Publisher, PublishGate, Transport
from .sync import MarkerSynchronizer, SyncResult

__all__ = [
    "ColormapConfig",
    "GraphConfig",
    "GvdVisualizerConfig",
    "LayerConfig",
    "ObjectVisualizerConfig",
    "ReconstructionVisualizerConfig",
    "VisualizerConfigStore",
    "load_config",
    "ElementSetDiffer",
    "PriorState",
    "Header",
    "Marker",
    "MarkerAction",
    "MarkerArray",
    "MarkerType",
    "make_delete_marker",
    "make_delete_markers",
    "ChannelRegistry",
    "Publisher",
    "PublishGate",
    "Transport",
    "MarkerSynchronizer",
    "SyncResult",
]
