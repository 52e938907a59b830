from __future__ import annotations

import threading

import pytest

from markersync.core.config import (
    ColormapConfig,
    GvdVisualizerConfig,
    LayerConfig,
    ObjectVisualizerConfig,
    ReconstructionVisualizerConfig,
    VisualizerConfigStore,
    load_config,
)


def test_from_dict_builds_nested_configs() -> None:
    cfg = ReconstructionVisualizerConfig.from_dict(
        {
            "world_frame": "map",
            "show_block_outlines": True,
            "graph_layer": {"use_label": False, "marker_scale": 0.3},
            "gvd": {"gvd_min_distance": 0.5, "gvd_max_distance": 2.0},
        }
    )
    assert cfg.world_frame == "map"
    assert cfg.show_block_outlines is True
    assert cfg.graph_layer == LayerConfig(use_label=False, marker_scale=0.3)
    assert cfg.gvd.gvd_max_distance == 2.0
    assert cfg.colormap == ColormapConfig()
    assert ReconstructionVisualizerConfig.from_dict(cfg.to_dict()) == cfg


def test_unknown_fields_are_rejected() -> None:
    with pytest.raises(ValueError, match="marker_sclae"):
        ReconstructionVisualizerConfig.from_dict({"graph_layer": {"marker_sclae": 1.0}})
    with pytest.raises(ValueError):
        ObjectVisualizerConfig.from_dict({"nope": 1})


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(ValueError):
        LayerConfig(marker_alpha=1.5)
    with pytest.raises(ValueError):
        ObjectVisualizerConfig(point_scale=0.0)
    with pytest.raises(ValueError):
        GvdVisualizerConfig(gvd_min_distance=3.0, gvd_max_distance=1.0)


def test_load_config_reads_toml(tmp_path) -> None:
    path = tmp_path / "viz.toml"
    path.write_text(
        "\n".join(
            [
                "[reconstruction]",
                'world_frame = "odom"',
                "[reconstruction.graph_layer]",
                "use_label = false",
                "[objects]",
                "point_scale = 0.05",
                "use_spheres = true",
            ]
        )
    )
    recon, objects = load_config(path)
    assert recon.world_frame == "odom"
    assert recon.graph_layer.use_label is False
    assert objects.point_scale == 0.05
    assert objects.use_spheres is True


def test_load_config_rejects_unknown_sections(tmp_path) -> None:
    path = tmp_path / "viz.toml"
    path.write_text("[mystery]\nx = 1\n")
    with pytest.raises(ValueError, match="mystery"):
        load_config(path)


def test_gvd_update_moves_place_color_bounds() -> None:
    store = VisualizerConfigStore()
    cfg = store.set_gvd_config(GvdVisualizerConfig(gvd_min_distance=0.4, gvd_max_distance=3.0))
    assert cfg.graph.places_colormap_min_distance == 0.4
    assert cfg.graph.places_colormap_max_distance == 3.0


def test_snapshots_are_isolated_from_later_updates() -> None:
    store = VisualizerConfigStore()
    snap = store.snapshot()
    store.set_layer_config(LayerConfig(marker_scale=0.9))
    assert snap.graph_layer.marker_scale == LayerConfig().marker_scale
    assert store.snapshot().graph_layer.marker_scale == 0.9

    snap.graph_layer.marker_scale = 5.0
    assert store.snapshot().graph_layer.marker_scale == 0.9


def test_snapshots_never_mix_parameter_sets() -> None:
    store = VisualizerConfigStore()
    a = GvdVisualizerConfig(gvd_min_distance=0.1, gvd_max_distance=1.0)
    b = GvdVisualizerConfig(gvd_min_distance=2.0, gvd_max_distance=9.0)
    store.set_gvd_config(a)
    stop = threading.Event()

    def writer() -> None:
        while not stop.is_set():
            store.set_gvd_config(a)
            store.set_gvd_config(b)

    t = threading.Thread(target=writer)
    t.start()
    try:
        for _ in range(500):
            snap = store.snapshot()
            assert snap.gvd.gvd_min_distance == snap.graph.places_colormap_min_distance
            assert snap.gvd.gvd_max_distance == snap.graph.places_colormap_max_distance
    finally:
        stop.set()
        t.join()
