from __future__ import annotations

from typing import Any

import numpy as np

from ..core.markers import Header, Marker, MarkerAction, MarkerArray, MarkerType


def _vec(value: Any, n: int, *, name: str) -> tuple[float, ...]:
    arr = np.asarray(value, dtype=np.float64).reshape(-1)
    if arr.shape[0] != n:
        raise ValueError(f"{name} must have {n} components")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} must contain finite numeric values")
    return tuple(float(v) for v in arr)


def marker_to_dict(m: Marker) -> dict[str, Any]:
    out: dict[str, Any] = {
        "ns": m.ns,
        "id": int(m.id),
        "action": m.action.value,
        "header": {"stampNs": int(m.header.stamp_ns), "frameId": m.header.frame_id},
    }
    if m.action != MarkerAction.ADD:
        return out

    out.update(
        {
            "type": m.type.value,
            "position": list(m.position),
            "scale": list(m.scale),
            "color": list(m.color),
            "points": np.asarray(m.points, dtype=np.float32).reshape(-1, 3).tolist(),
            "colors": np.asarray(m.colors, dtype=np.float32).reshape(-1, 4).tolist() if m.colors is not None else None,
            "text": m.text,
        }
    )
    return out


def marker_from_dict(data: dict[str, Any]) -> Marker:
    try:
        marker_id = int(data.get("id", 0))
    except Exception as ex:
        raise ValueError("Invalid marker id") from ex

    raw_header = data.get("header") or {}
    header = Header(stamp_ns=int(raw_header.get("stampNs", 0)), frame_id=str(raw_header.get("frameId", "")))
    action = MarkerAction.from_any(data.get("action", MarkerAction.ADD.value))
    marker = Marker(ns=str(data.get("ns", "")), id=marker_id, action=action, header=header)
    if action != MarkerAction.ADD:
        return marker

    points = np.asarray(data.get("points") or [], dtype=np.float32).reshape(-1, 3)
    colors = data.get("colors")
    col: np.ndarray | None = None
    if colors is not None:
        col = np.asarray(colors, dtype=np.float32).reshape(-1, 4)
        if col.shape[0] != points.shape[0]:
            raise ValueError(f"colors must have {points.shape[0]} rows, got {col.shape[0]}")

    marker.type = MarkerType.from_any(data.get("type", MarkerType.POINTS.value))
    marker.position = _vec(data.get("position", (0.0, 0.0, 0.0)), 3, name="position")  # type: ignore[assignment]
    marker.scale = _vec(data.get("scale", (1.0, 1.0, 1.0)), 3, name="scale")  # type: ignore[assignment]
    marker.color = _vec(data.get("color", (1.0, 1.0, 1.0, 1.0)), 4, name="color")  # type: ignore[assignment]
    marker.points = points
    marker.colors = col
    marker.text = str(data.get("text", ""))
    return marker


def payload_to_dict(payload: Marker | MarkerArray) -> dict[str, Any]:
    if isinstance(payload, Marker):
        return {"markers": [marker_to_dict(payload)]}
    return {"markers": [marker_to_dict(m) for m in payload]}


def payload_from_dict(body: dict[str, Any]) -> MarkerArray:
    raw = body.get("markers")
    if not isinstance(raw, list):
        raise ValueError("Missing field: markers")
    return MarkerArray(markers=[marker_from_dict(m) for m in raw])


def marker_to_list_item(topic: str, m: Marker) -> dict[str, Any]:
    return {
        "topic": topic,
        "ns": m.ns,
        "id": int(m.id),
        "type": m.type.value,
        "stampNs": int(m.header.stamp_ns),
        "frameId": m.header.frame_id,
        "summary": {"pointCount": m.point_count, "text": m.text or None},
    }
