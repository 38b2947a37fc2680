"""Universal LUT Generator configuration: paths, analysis/synthesis constants and baseline profile."""

import os
from enum import Enum

OUTPUT_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "output")
os.makedirs(OUTPUT_DIR, exist_ok=True)


class LutConfig:
    """Request limits and per-image sampling parameters."""
    MIN_INTENSITY: int = 1
    MAX_INTENSITY: int = 5
    DEFAULT_INTENSITY: int = 3

    RESOLUTION_PRESETS = (17, 33, 65)
    DEFAULT_RESOLUTION: int = 33
    MIN_RESOLUTION: int = 2
    MAX_RESOLUTION: int = 256

    MAX_REFERENCE_IMAGES: int = 10
    MAX_ANALYSIS_SIZE: int = 512       # px, longest side after decode
    IMAGE_TIMEOUT_S: float = 30.0

    # Zone sampling
    ZONE_SAMPLE_STRIDE: int = 16       # every 16th pixel
    SHADOW_THRESHOLD: float = 0.25
    HIGHLIGHT_THRESHOLD: float = 0.75

    # Black & white detection
    BW_SAMPLE_STRIDE: int = 10         # every 10th pixel
    BW_CHANNEL_THRESHOLD: int = 10     # 0-255 scale
    BW_COLORFUL_RATIO: float = 0.05


class GrayscaleMethod(str, Enum):
    """Channel mixing used to collapse RGB to a single gray value."""
    LUMINANCE = "luminance"
    AVERAGE = "average"
    RED = "red"
    GREEN = "green"
    BLUE = "blue"
    MAX = "max"
    MIN = "min"

    def get_display_name(self) -> str:
        display_names = {
            GrayscaleMethod.LUMINANCE: "Luminance (Recommended)",
            GrayscaleMethod.AVERAGE: "RGB Average",
            GrayscaleMethod.RED: "Red Channel",
            GrayscaleMethod.GREEN: "Green Channel",
            GrayscaleMethod.BLUE: "Blue Channel",
            GrayscaleMethod.MAX: "Maximum Channel",
            GrayscaleMethod.MIN: "Minimum Channel",
        }
        return display_names.get(self, self.value)

    @classmethod
    def values(cls):
        return [m.value for m in cls]


class CameraProfileConfig:
    """Universal camera baseline used as the neutral reference for transform solving."""
    SHADOW_LIFT = (0.015, 0.012, 0.008)
    MIDTONE_GAMMA = (0.5, 0.5, 0.5)
    HIGHLIGHT_GAIN = (0.95, 0.95, 0.95)
    COLOR_MATRIX = (
        (1.0, 0.0, 0.0),
        (0.0, 1.0, 0.0),
        (0.0, 0.0, 1.0),
    )


class GlobalStatsConfig:
    """Batch-wide tone statistics. Fixed neutral values, not measured from images."""
    CONTRAST: float = 0.5
    SATURATION: float = 0.5
    COLOR_TEMPERATURE: float = 0.0
    TINT: float = 0.0


class SynthesisConfig:
    """Lattice synthesis work partitioning."""
    CHUNK_SIZE: int = 32768            # lattice cells per work unit

    # Parallel processing
    ENABLE_PARALLEL: bool = True       # Map chunks on a thread pool
    MAX_WORKERS: int = 4               # Thread pool size


# ========== Global Constants ==========

# .cube output
CUBE_DECIMALS = 6
CUBE_TITLE_PREFIX = "Universal"
CUBE_FILE_PREFIX = "universal"
