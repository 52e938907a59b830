from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator

import numpy as np


class MarkerAction(str, Enum):
    """What the retained surface should do with a marker.

    Notes:
    - ADD also replaces an existing marker with the same (ns, id).
    - DELETEALL with an empty namespace clears the whole topic.
    """

    ADD = "add"
    DELETE = "delete"
    DELETEALL = "deleteall"

    @classmethod
    def from_any(cls, value: Any) -> "MarkerAction":
        if isinstance(value, cls):
            return value

        v = str(value).strip().lower().replace("_", "")
        aliases: dict[str, MarkerAction] = {
            "add": cls.ADD,
            "modify": cls.ADD,
            "replace": cls.ADD,
            "delete": cls.DELETE,
            "remove": cls.DELETE,
            "deleteall": cls.DELETEALL,
        }
        if v in aliases:
            return aliases[v]
        raise ValueError(f"Unsupported marker action: {value!r}")


class MarkerType(str, Enum):
    POINTS = "points"
    CUBE_LIST = "cube_list"
    SPHERE_LIST = "sphere_list"
    LINE_LIST = "line_list"
    SPHERE = "sphere"
    TEXT = "text"

    @classmethod
    def from_any(cls, value: Any) -> "MarkerType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unsupported marker type: {value!r}") from None


@dataclass(frozen=True)
class Header:
    stamp_ns: int = 0
    frame_id: str = ""


def _empty_points() -> np.ndarray:
    return np.zeros((0, 3), dtype=np.float32)


@dataclass
class Marker:
    """One retained element on the remote surface, addressed by (ns, id)."""

    ns: str = ""
    id: int = 0
    type: MarkerType = MarkerType.POINTS
    action: MarkerAction = MarkerAction.ADD
    header: Header = field(default_factory=Header)
    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    scale: tuple[float, float, float] = (1.0, 1.0, 1.0)
    color: tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)
    points: np.ndarray = field(default_factory=_empty_points)  # float32 (n,3)
    colors: np.ndarray | None = None  # float32 (n,4) rgba
    text: str = ""

    @property
    def key(self) -> tuple[str, int]:
        return self.ns, int(self.id)

    @property
    def point_count(self) -> int:
        return int(self.points.shape[0])


@dataclass
class MarkerArray:
    markers: list[Marker] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.markers)

    def __iter__(self) -> Iterator[Marker]:
        return iter(self.markers)

    def __bool__(self) -> bool:
        return bool(self.markers)

    def append(self, marker: Marker) -> None:
        self.markers.append(marker)

    def extend(self, markers: Iterable[Marker]) -> None:
        self.markers.extend(markers)

    def stamp(self, header: Header) -> None:
        for m in self.markers:
            m.header = header


def make_delete_marker(header: Header, marker_id: int, ns: str) -> Marker:
    return Marker(ns=ns, id=int(marker_id), action=MarkerAction.DELETE, header=header)


def make_delete_markers(header: Header, ids: Iterable[int], ns: str) -> list[Marker]:
    return [make_delete_marker(header, i, ns) for i in ids]
