from __future__ import annotations

from .http import HttpTransport
from .memory import LocalTransport, RecordingTransport, SentMessage

__all__ = ["HttpTransport", "LocalTransport", "RecordingTransport", "SentMessage"]
