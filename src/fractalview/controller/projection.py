# projection.py
from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numba as nb

if TYPE_CHECKING:
    import numpy.typing as npt


# ---- JIT'd rotation kernel ----

@nb.njit(cache=True, fastmath=True)
def _rotate(positions, pitch, yaw, out):
    """
    Rotate (x, y, z) points by ``yaw`` about the vertical axis, then by
    ``pitch`` about the horizontal screen axis.

    Writes (screen_x, screen_y, depth) rows into ``out``; larger depth is
    closer to the viewer.
    """
    cos_yaw = np.cos(yaw)
    sin_yaw = np.sin(yaw)
    cos_pitch = np.cos(pitch)
    sin_pitch = np.sin(pitch)
    for i in range(positions.shape[0]):
        x = positions[i, 0]
        y = positions[i, 1]
        z = positions[i, 2]
        xr = x * cos_yaw - z * sin_yaw
        zr = x * sin_yaw + z * cos_yaw
        out[i, 0] = xr
        out[i, 1] = y * cos_pitch - zr * sin_pitch
        out[i, 2] = y * sin_pitch + zr * cos_pitch


def project(positions: npt.NDArray[np.float64], pitch: float, yaw: float) -> npt.NDArray[np.float64]:
    """
    Project unit-cube points for the given view angles.

    Args:
        positions: (N, 3) array of centred x, y, z coordinates.
        pitch: Rotation about the horizontal axis (radians).
        yaw: Rotation about the vertical axis (radians).

    Returns:
        (N, 3) array of (screen_x, screen_y, depth) in unit space; screen_y
        grows upwards.
    """
    points = np.ascontiguousarray(positions, dtype=np.float64)
    out = np.empty_like(points)
    if points.shape[0]:
        _rotate(points, float(pitch), float(yaw), out)
    return out


def to_pixels(
    projected: npt.NDArray[np.float64],
    width: int,
    height: int,
    scale: float,
    fit: bool = False,
    margin: float = 1.0,
) -> tuple[npt.NDArray[np.int64], npt.NDArray[np.int64]]:
    """
    Map projected unit-space points to integer pixel coordinates.

    Without ``fit`` the cloud is centred and scaled by ``scale`` times the
    shorter side; points may fall outside the surface. With ``fit`` the
    bounding box of the cloud is centred and scaled to ``margin`` times the
    surface, so every point lands inside it.
    """
    u = projected[:, 0]
    v = projected[:, 1]
    shorter = float(min(width, height))

    if fit and u.size:
        u_lo, u_hi = float(u.min()), float(u.max())
        v_lo, v_hi = float(v.min()), float(v.max())
        span_u = u_hi - u_lo
        span_v = v_hi - v_lo
        limits = []
        if span_u > 0.0:
            limits.append(margin * (width - 1) / span_u)
        if span_v > 0.0:
            limits.append(margin * (height - 1) / span_v)
        pixels_per_unit = min(limits) if limits else scale * shorter
        centre_u = (u_lo + u_hi) * 0.5
        centre_v = (v_lo + v_hi) * 0.5
    else:
        pixels_per_unit = scale * shorter
        centre_u = 0.0
        centre_v = 0.0

    cx = (width - 1) * 0.5
    cy = (height - 1) * 0.5
    px = np.rint(cx + (u - centre_u) * pixels_per_unit).astype(np.int64)
    py = np.rint(cy - (v - centre_v) * pixels_per_unit).astype(np.int64)
    if fit:
        np.clip(px, 0, width - 1, out=px)
        np.clip(py, 0, height - 1, out=py)
    return px, py
