from __future__ import annotations

from .objects import ObjectVisualizer
from .reconstruction import ReconstructionVisualizer

__all__ = ["ObjectVisualizer", "ReconstructionVisualizer"]
