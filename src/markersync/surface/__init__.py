from __future__ import annotations

from .api import create_app
from .runner import SurfaceServer, connect_or_serve, serve
from .serializers import marker_from_dict, marker_to_dict, payload_from_dict, payload_to_dict
from .store import STORE, MarkerStore

__all__ = [
    "create_app",
    "SurfaceServer",
    "connect_or_serve",
    "serve",
    "marker_from_dict",
    "marker_to_dict",
    "payload_from_dict",
    "payload_to_dict",
    "STORE",
    "MarkerStore",
]
