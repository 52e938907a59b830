from __future__ import annotations

from .core.config import (
    ObjectVisualizerConfig,
    ReconstructionVisualizerConfig,
    VisualizerConfigStore,
    load_config,
)
from .core.differ import ElementSetDiffer
from .core.markers import Header, Marker, MarkerAction, MarkerArray, MarkerType
from .core.publishers import ChannelRegistry, Publisher, PublishGate, Transport
from .core.sync import MarkerSynchronizer, SyncResult
from .surface.runner import SurfaceServer, serve
from .surface.store import MarkerStore
from .transport import HttpTransport, LocalTransport, RecordingTransport
from .visualizer import ObjectVisualizer, ReconstructionVisualizer

__all__ = [
    "ObjectVisualizerConfig",
    "ReconstructionVisualizerConfig",
    "VisualizerConfigStore",
    "load_config",
    "ElementSetDiffer",
    "Header",
    "Marker",
    "MarkerAction",
    "MarkerArray",
    "MarkerType",
    "ChannelRegistry",
    "Publisher",
    "PublishGate",
    "Transport",
    "MarkerSynchronizer",
    "SyncResult",
    "SurfaceServer",
    "serve",
    "MarkerStore",
    "HttpTransport",
    "LocalTransport",
    "RecordingTransport",
    "ObjectVisualizer",
    "ReconstructionVisualizer",
]
