from __future__ import annotations

import copy
import threading
import tomllib
from dataclasses import asdict, dataclass, field, fields, is_dataclass, replace
from pathlib import Path
from typing import Any, Mapping, TypeVar

T = TypeVar("T")


def _check_alpha(value: float, *, name: str) -> None:
    if not 0.0 <= float(value) <= 1.0:
        raise ValueError(f"{name} must be within [0, 1], got {value}")


def _check_positive(value: float, *, name: str) -> None:
    if not float(value) > 0.0:
        raise ValueError(f"{name} must be > 0, got {value}")


def _from_dict(cls: type[T], data: Mapping[str, Any]) -> T:
    known = {f.name: f for f in fields(cls)}  # type: ignore[arg-type]
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} field(s): {', '.join(unknown)}")

    kwargs: dict[str, Any] = {}
    for name, value in data.items():
        default = known[name].default_factory  # type: ignore[misc]
        nested = default() if callable(default) else None
        if is_dataclass(nested) and isinstance(value, Mapping):
            kwargs[name] = _from_dict(type(nested), value)
        else:
            kwargs[name] = value
    return cls(**kwargs)


@dataclass
class LayerConfig:
    """How nodes, edges and labels of one graph layer are drawn."""

    marker_scale: float = 0.1
    marker_alpha: float = 0.7
    use_sphere_marker: bool = True
    use_label: bool = True
    label_scale: float = 0.25
    label_height: float = 0.5
    edge_scale: float = 0.01
    edge_alpha: float = 0.5

    def __post_init__(self) -> None:
        _check_positive(self.marker_scale, name="marker_scale")
        _check_positive(self.label_scale, name="label_scale")
        _check_positive(self.edge_scale, name="edge_scale")
        _check_alpha(self.marker_alpha, name="marker_alpha")
        _check_alpha(self.edge_alpha, name="edge_alpha")


@dataclass
class ColormapConfig:
    """HLS ramp used to color values between a min and a max."""

    min_hue: float = 0.0
    max_hue: float = 0.65
    min_saturation: float = 0.9
    max_saturation: float = 0.9
    min_luminance: float = 0.5
    max_luminance: float = 0.5

    def __post_init__(self) -> None:
        for f in fields(self):
            _check_alpha(getattr(self, f.name), name=f.name)


@dataclass
class GvdVisualizerConfig:
    point_scale: float = 0.1
    gvd_alpha: float = 0.6
    gvd_min_distance: float = 0.2
    gvd_max_distance: float = 5.0
    min_num_basis: int = 2
    esdf_alpha: float = 0.4
    slice_height: float = 0.0
    surface_alpha: float = 0.5
    error_alpha: float = 0.8

    def __post_init__(self) -> None:
        _check_positive(self.point_scale, name="point_scale")
        for name in ("gvd_alpha", "esdf_alpha", "surface_alpha", "error_alpha"):
            _check_alpha(getattr(self, name), name=name)
        if self.gvd_min_distance > self.gvd_max_distance:
            raise ValueError("gvd_min_distance must be <= gvd_max_distance")


@dataclass
class GraphConfig:
    places_colormap_min_distance: float = 0.0
    places_colormap_max_distance: float = 5.0
    color_places_by_distance: bool = True
    layer_z_step: float = 0.0

    def __post_init__(self) -> None:
        if self.places_colormap_min_distance > self.places_colormap_max_distance:
            raise ValueError("places_colormap_min_distance must be <= places_colormap_max_distance")


@dataclass
class ReconstructionVisualizerConfig:
    world_frame: str = "world"
    topology_marker_ns: str = "topology_graph"
    show_block_outlines: bool = False
    use_gvd_block_outlines: bool = False
    outline_scale: float = 0.01
    freespace_sphere_alpha: float = 0.15
    graph_layer: LayerConfig = field(default_factory=LayerConfig)
    graph: GraphConfig = field(default_factory=GraphConfig)
    gvd: GvdVisualizerConfig = field(default_factory=GvdVisualizerConfig)
    colormap: ColormapConfig = field(default_factory=ColormapConfig)

    def __post_init__(self) -> None:
        _check_positive(self.outline_scale, name="outline_scale")
        _check_alpha(self.freespace_sphere_alpha, name="freespace_sphere_alpha")
        if not str(self.topology_marker_ns).strip():
            raise ValueError("topology_marker_ns cannot be empty")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ReconstructionVisualizerConfig":
        return _from_dict(cls, data)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ObjectVisualizerConfig:
    module_ns: str = "objects"
    world_frame: str = "world"
    enable_active_mesh_pub: bool = True
    enable_segmented_mesh_pub: bool = True
    point_scale: float = 0.1
    point_alpha: float = 0.7
    use_spheres: bool = False

    def __post_init__(self) -> None:
        _check_positive(self.point_scale, name="point_scale")
        _check_alpha(self.point_alpha, name="point_alpha")
        if not str(self.module_ns).strip("/ "):
            raise ValueError("module_ns cannot be empty")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ObjectVisualizerConfig":
        return _from_dict(cls, data)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def load_config(path: str | Path) -> tuple[ReconstructionVisualizerConfig, ObjectVisualizerConfig]:
    """Read visualizer settings from a TOML file.

    Expected layout (both sections optional):

        [reconstruction]
        world_frame = "map"
        [reconstruction.graph_layer]
        use_label = false

        [objects]
        point_scale = 0.05
    """

    with open(path, "rb") as f:
        data = tomllib.load(f)

    unknown = sorted(set(data) - {"reconstruction", "objects"})
    if unknown:
        raise ValueError(f"Unknown config section(s): {', '.join(unknown)}")

    return (
        ReconstructionVisualizerConfig.from_dict(data.get("reconstruction", {})),
        ObjectVisualizerConfig.from_dict(data.get("objects", {})),
    )


class VisualizerConfigStore:
    """Config shared between a visualization pass and live parameter updates.

    A pass calls `snapshot()` once and uses that copy for the whole tick, so
    it never sees half of an update.
    """

    def __init__(self, config: ReconstructionVisualizerConfig | None = None) -> None:
        self._lock = threading.RLock()
        self._config = config if config is not None else ReconstructionVisualizerConfig()

    def snapshot(self) -> ReconstructionVisualizerConfig:
        with self._lock:
            return copy.deepcopy(self._config)

    def set_layer_config(self, layer: LayerConfig) -> ReconstructionVisualizerConfig:
        with self._lock:
            self._config.graph_layer = copy.deepcopy(layer)
            return self.snapshot()

    def set_colormap(self, colormap: ColormapConfig) -> ReconstructionVisualizerConfig:
        with self._lock:
            self._config.colormap = copy.deepcopy(colormap)
            return self.snapshot()

    def set_gvd_config(self, gvd: GvdVisualizerConfig) -> ReconstructionVisualizerConfig:
        # Places are colored on the same distance range as the GVD.
        with self._lock:
            self._config.gvd = copy.deepcopy(gvd)
            self._config.graph = replace(
                self._config.graph,
                places_colormap_min_distance=gvd.gvd_min_distance,
                places_colormap_max_distance=gvd.gvd_max_distance,
            )
            return self.snapshot()

    def update(self, **changes: Any) -> ReconstructionVisualizerConfig:
        with self._lock:
            self._config = replace(self._config, **changes)
            return self.snapshot()
