"""
Fractal Midpoint Displacement
=============================
Generates the height field behind the point cloud.

Why is this file needed?
------------------------
1. Physics of the picture: Starting from a single root height, every step
   halves the grid spacing and places new points halfway between existing
   ones, at the mean of the two endpoint heights plus a seeded random offset.
   The offset amplitude decays geometrically (noise * decay**level).
2. Determinism: The random offset is a hash of (seed, endpoint coordinates),
   so identical parameters always give identical point sets.
3. Ordering: Points are returned in the order they were introduced (coarse
   levels first), which is the order the renderer draws them in.

The grid is a torus of 2**depth cells per axis: endpoints that fall off the
far edge wrap to the start.

Note: This module should be pure Python/NumPy and should NOT import PySide6.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Sequence, TYPE_CHECKING

import numpy as np

from fractalview import config
from fractalview.model.errors import GenerationFailure

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

# splitmix64 constants
_GOLDEN = np.uint64(0x9E3779B97F4A7C15)
_MIX_1 = np.uint64(0xBF58476D1CE4E5B9)
_MIX_2 = np.uint64(0x94D049BB133111EB)
_LOW_32 = np.uint64(0xFFFFFFFF)
_SHIFT_30 = np.uint64(30)
_SHIFT_27 = np.uint64(27)
_SHIFT_31 = np.uint64(31)

# offsets of the three new points around each existing grid point
_COMBOS: tuple[tuple[int, int], ...] = ((1, 0), (0, 1), (1, 1))


@dataclass(frozen=True)
class MidpointField:
    """Raw output of the displacement process, in generation order."""
    xs: npt.NDArray[np.int64]
    zs: npt.NDArray[np.int64]
    heights: npt.NDArray[np.float64]
    levels: npt.NDArray[np.int32]
    upper_bound: float
    size: int


def noise_levels(noise: float, decay: float, count: int = config.NOISE_LEVELS) -> npt.NDArray[np.float64]:
    """Offset amplitude per level: noise, noise*decay, noise*decay**2, ..."""
    with np.errstate(over="ignore", invalid="ignore"):
        return noise * np.power(decay, np.arange(count, dtype=np.float64))


def upper_bounds(levels: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Bound at level i is the sum of the amplitudes of all levels >= i."""
    with np.errstate(over="ignore", invalid="ignore"):
        return np.cumsum(levels[::-1])[::-1]


def _mix64(x: npt.NDArray[np.uint64]) -> npt.NDArray[np.uint64]:
    x = (x ^ (x >> _SHIFT_30)) * _MIX_1
    x = (x ^ (x >> _SHIFT_27)) * _MIX_2
    return x ^ (x >> _SHIFT_31)


def hash_samples(
    seed: int,
    coords: Sequence[npt.NDArray[np.int64]],
    noise: float,
) -> npt.NDArray[np.float64]:
    """
    Seeded offsets in [-noise/2, noise/2), one per coordinate tuple.

    Args:
        seed: Unsigned 64-bit seed.
        coords: Equally shaped integer arrays (x1, z1, x2, z2).
        noise: Amplitude of this level.
    """
    state = np.full(coords[0].shape, seed, dtype=np.uint64)
    for component in coords:
        state = _mix64(state ^ (component.astype(np.uint64) + _GOLDEN))
    sampled = (state & _LOW_32).astype(np.float64)
    return np.remainder(sampled, noise) - noise * 0.5


def displace(seed: int, noise: float, decay: float, depth: int) -> MidpointField:
    """
    Run ``depth`` subdivision steps and return every point created.

    Stops early once a level's amplitude is (numerically) zero; in that case
    fewer than 4**depth points are returned.

    Raises:
        GenerationFailure: if the heights are not finite.
    """
    if depth < 1:
        raise GenerationFailure(f"depth must be at least 1, got {depth}")
    size = 1 << depth

    amplitudes = noise_levels(noise, decay)
    bounds = upper_bounds(amplitudes)
    upper = float(bounds[0])
    if not np.isfinite(upper):
        raise GenerationFailure(f"noise={noise:g} with decay={decay:g} has no finite height bound")

    grid = np.zeros((size, size), dtype=np.float64)
    grid[0, 0] = upper / 2.0

    xs = [np.zeros(1, dtype=np.int64)]
    zs = [np.zeros(1, dtype=np.int64)]
    heights = [np.array([upper / 2.0])]
    levels = [np.zeros(1, dtype=np.int32)]

    all_x, all_z = xs[0], zs[0]
    spacing = size
    for step in range(depth):
        amplitude = float(amplitudes[step])
        if abs(amplitude) < config.NOISE_EPSILON:
            logger.debug(f"Noise vanished at level {step}, stopping early.")
            break
        half = spacing // 2
        start_heights = grid[all_x, all_z]

        new_x, new_z, new_h = [], [], []
        for bx, bz in _COMBOS:
            end_x = (all_x + spacing * bx) % size
            end_z = (all_z + spacing * bz) % size
            sample = hash_samples(seed, (all_x, all_z, end_x, end_z), amplitude)
            new_x.append(all_x + half * bx)
            new_z.append(all_z + half * bz)
            new_h.append((start_heights + grid[end_x, end_z]) * 0.5 + sample)

        # endpoints always lie on the coarser grid, so write after all combos
        step_x = np.concatenate(new_x)
        step_z = np.concatenate(new_z)
        step_h = np.concatenate(new_h)
        grid[step_x, step_z] = step_h

        xs.append(step_x)
        zs.append(step_z)
        heights.append(step_h)
        levels.append(np.full(step_x.shape, step + 1, dtype=np.int32))

        all_x = np.concatenate((all_x, step_x))
        all_z = np.concatenate((all_z, step_z))
        spacing = half

    field = MidpointField(
        xs=np.concatenate(xs),
        zs=np.concatenate(zs),
        heights=np.concatenate(heights),
        levels=np.concatenate(levels),
        upper_bound=upper,
        size=size,
    )
    if not np.all(np.isfinite(field.heights)):
        raise GenerationFailure("generated heights are not finite")
    return field
