"""
Chart Instance (Data Model)
===========================
The generated point set and the parameters that produced it.

Classes:
    PointSetHandle: Immutable result of one generation.
    ChartInstance: The single live (parameters, handle) pair of a viewer.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from fractalview.model.parameters import GenerationParameters

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass(frozen=True, eq=False)
class PointSetHandle:
    """
    A generated point cloud, in generation order (coarse levels first).

    positions: (N, 3) unit-cube coordinates centred on the origin, columns
        x (grid), y (height), z (grid).
    shades: (N,) gray level per point.
    levels: (N,) subdivision level at which each point was introduced.
    upper_bound: largest height the process can reach for these parameters.

    Handles compare by identity; the arrays are read-only.
    """
    params: GenerationParameters
    positions: npt.NDArray[np.float64]
    shades: npt.NDArray[np.uint8]
    levels: npt.NDArray[np.int32]
    upper_bound: float

    def __post_init__(self) -> None:
        for array in (self.positions, self.shades, self.levels):
            array.flags.writeable = False

    def __len__(self) -> int:
        return int(self.positions.shape[0])

    @property
    def depth(self) -> int:
        """Number of subdivision steps that were computed (the root is level 0)."""
        return int(self.levels.max()) if len(self) else 0


@dataclass(frozen=True)
class ChartInstance:
    """Exactly one of these is live per scheduler; replacement swaps the reference."""
    params: GenerationParameters
    handle: PointSetHandle

    def matches(self, params: GenerationParameters) -> bool:
        return self.params == params
