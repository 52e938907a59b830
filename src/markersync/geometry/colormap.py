from __future__ import annotations

import numpy as np

from ..core.config import ColormapConfig

# Deterministic palette for discrete labels (rgb, 0-255).
LABEL_PALETTE: list[tuple[int, int, int]] = [
    (31, 119, 180),  # blue
    (255, 127, 14),  # orange
    (44, 160, 44),  # green
    (214, 39, 40),  # red
    (148, 103, 189),  # purple
    (140, 86, 75),  # brown
    (227, 119, 194),  # pink
    (127, 127, 127),  # gray
    (188, 189, 34),  # olive
    (23, 190, 207),  # cyan
]


def _hls_to_rgb(h: np.ndarray, l: np.ndarray, s: np.ndarray) -> np.ndarray:  # noqa: E741
    # Vectorized colorsys.hls_to_rgb.
    m2 = np.where(l <= 0.5, l * (1.0 + s), l + s - l * s)
    m1 = 2.0 * l - m2

    def _v(hue: np.ndarray) -> np.ndarray:
        hue = np.mod(hue, 1.0)
        out = np.where(hue < 1.0 / 6.0, m1 + (m2 - m1) * hue * 6.0, m1)
        out = np.where((hue >= 1.0 / 6.0) & (hue < 0.5), m2, out)
        out = np.where((hue >= 0.5) & (hue < 2.0 / 3.0), m1 + (m2 - m1) * (2.0 / 3.0 - hue) * 6.0, out)
        return out

    rgb = np.stack([_v(h + 1.0 / 3.0), _v(h), _v(h - 1.0 / 3.0)], axis=-1)
    gray = np.repeat(l[..., None], 3, axis=-1)
    return np.where((s == 0.0)[..., None], gray, rgb)


def interpolate_colormap(ratios: np.ndarray, config: ColormapConfig) -> np.ndarray:
    """Map ratios in [0, 1] to rgb float32 (n,3) along the configured HLS ramp."""

    r = np.clip(np.asarray(ratios, dtype=np.float64).reshape(-1), 0.0, 1.0)
    h = config.min_hue + r * (config.max_hue - config.min_hue)
    l = config.min_luminance + r * (config.max_luminance - config.min_luminance)  # noqa: E741
    s = config.min_saturation + r * (config.max_saturation - config.min_saturation)
    return _hls_to_rgb(h, l, s).astype(np.float32)


def distance_colors(
    distances: np.ndarray,
    config: ColormapConfig,
    *,
    min_distance: float,
    max_distance: float,
) -> np.ndarray:
    d = np.asarray(distances, dtype=np.float64).reshape(-1)
    span = float(max_distance) - float(min_distance)
    if span <= 0.0:
        ratios = np.zeros_like(d)
    else:
        ratios = (d - float(min_distance)) / span
    return interpolate_colormap(ratios, config)


def label_color(label: int) -> tuple[float, float, float]:
    r, g, b = LABEL_PALETTE[int(label) % len(LABEL_PALETTE)]
    return r / 255.0, g / 255.0, b / 255.0


def with_alpha(rgb: np.ndarray, alpha: float) -> np.ndarray:
    rgb = np.asarray(rgb, dtype=np.float32).reshape(-1, 3)
    a = np.full((rgb.shape[0], 1), float(alpha), dtype=np.float32)
    return np.concatenate([rgb, a], axis=1)
