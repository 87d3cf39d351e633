"""dBm to color mapping through the cubehelix colormap.

Cubehelix (D. A. Green, 2011) spirals through hue while brightness rises
monotonically from black to white, so the spectrogram stays readable in
grayscale. Parameters match the common defaults: start 0.5, rotations -1.5,
hue 1.0, gamma 1.0.
"""

from __future__ import annotations

from typing import Union

import numpy as np  # type: ignore

POWER_FLOOR_DBM = -120.0
POWER_RANGE_DB = 100.0

CUBEHELIX_START = 0.5
CUBEHELIX_ROTATIONS = -1.5
CUBEHELIX_HUE = 1.0
CUBEHELIX_GAMMA = 1.0

# Per-channel (cos, sin) coefficients of the helix
_COEFFS = np.array(
    [
        [-0.14861, 1.78277],
        [-0.29227, -0.90649],
        [1.97294, 0.0],
    ]
)

ArrayLike = Union[float, np.ndarray]


def normalize_power(power_dbm: ArrayLike) -> ArrayLike:
    """Stretch -120..-20 dBm onto 0..1. Out-of-range values are not clamped."""
    return (np.asarray(power_dbm, dtype=np.float64) - POWER_FLOOR_DBM) / POWER_RANGE_DB


def cubehelix(t: ArrayLike) -> np.ndarray:
    """Evaluate cubehelix at ``t``; returns float RGB with a trailing axis of 3."""
    x = np.clip(np.asarray(t, dtype=np.float64), 0.0, 1.0)
    xg = x**CUBEHELIX_GAMMA
    amp = CUBEHELIX_HUE * xg * (1.0 - xg) / 2.0
    phi = 2.0 * np.pi * (CUBEHELIX_START / 3.0 + CUBEHELIX_ROTATIONS * x)
    helix = np.stack((np.cos(phi), np.sin(phi)), axis=-1)
    rgb = xg[..., np.newaxis] + amp[..., np.newaxis] * (helix @ _COEFFS.T)
    return np.clip(rgb, 0.0, 1.0)


def power_to_rgb(power_dbm: ArrayLike) -> np.ndarray:
    """Map dBm values to float RGB in [0, 1]."""
    return cubehelix(normalize_power(power_dbm))


def power_to_rgb8(power_dbm: ArrayLike) -> np.ndarray:
    """Map dBm values to 8-bit RGB."""
    return np.rint(power_to_rgb(power_dbm) * 255.0).astype(np.uint8)
