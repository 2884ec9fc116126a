"""
Configuration & Constants
=========================
This module serves as the central registry for control ranges, defaults and
rendering constants.

Why is this file needed?
------------------------
1. Abstraction: It prevents magic numbers (slider maxima, unit divisors,
   frame intervals) from being scattered throughout the widgets and the
   pipeline.
2. Consistency: The control panel and the parameter store must agree on the
   declared maxima and unit divisors; both read them from here.

Exports:
    AppConfig: Runtime options chosen on the command line.
"""
from dataclasses import dataclass

# --- Controls ---
DECAY_MAX: int = 100            # declared maximum of the decay slider
ANGLE_UNIT: float = 100.0       # pitch/yaw sliders are in 1/100 rad
ANGLE_RANGE: int = 314          # slider range is [-ANGLE_RANGE, ANGLE_RANGE]

DEFAULT_SEED: str = "1"
DEFAULT_NOISE: str = "10000"
DEFAULT_DECAY_RAW: int = 50
DEFAULT_PITCH_RAW: int = 50
DEFAULT_YAW_RAW: int = 50
DEFAULT_BOUNDED: bool = False

# --- Generation ---
DEFAULT_POINT_DEPTH: int = 7    # 2**7 x 2**7 grid -> 16384 points
MAX_POINT_DEPTH: int = 11
NOISE_LEVELS: int = 32
NOISE_EPSILON: float = 1e-5

# --- Rendering ---
FRAME_INTERVAL_MS: int = 16
PROJECTION_SCALE: float = 0.7   # unbounded scale, fraction of the shorter side
BOUNDED_MARGIN: float = 0.95    # bounded fit, fraction of the shorter side
CANVAS_INTRINSIC_SIZE: tuple[int, int] = (800, 800)
DEFAULT_ASPECT_RATIO: float = 1.0
CANVAS_BACKGROUND: str = "#1e1e2e"

RENDERING_STATUS: str = "Rendering 3d plot..."
GENERATING_STATUS: str = "Generating point cloud..."


def point_count(depth: int) -> int:
    """Number of points produced by a full generation at ``depth``."""
    return 4 ** depth


@dataclass(frozen=True)
class AppConfig:
    """Options that may differ between runs of the application."""
    threaded_generation: bool = False
    presentation_factor: float = 1.0
    point_depth: int = DEFAULT_POINT_DEPTH
    frame_interval_ms: int = FRAME_INTERVAL_MS

    def __post_init__(self) -> None:
        if not 0.0 < self.presentation_factor <= 1.0:
            raise ValueError(f"presentation_factor must be in (0, 1], got {self.presentation_factor}")
        if not 1 <= self.point_depth <= MAX_POINT_DEPTH:
            raise ValueError(f"point_depth must be in [1, {MAX_POINT_DEPTH}], got {self.point_depth}")
        if self.frame_interval_ms < 0:
            raise ValueError("frame_interval_ms must not be negative")

    @property
    def point_count(self) -> int:
        return point_count(self.point_depth)
