"""
Universal LUT Generator - Data Model

Immutable value objects passed between pipeline stages:
ImageAnalysis -> CombinedAnalysis -> ZoneTransforms -> LutGrid
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple

import numpy as np

from config import CameraProfileConfig, GlobalStatsConfig

RGB = Tuple[float, float, float]
LAB = Tuple[float, float, float]

ZONES = ("shadows", "midtones", "highlights")


@dataclass(frozen=True)
class ZoneStatistics:
    """Mean color of the pixels sampled into one luminance zone of one image."""
    count: int
    rgb: RGB
    luminance: float
    lab: LAB

    def to_dict(self) -> dict:
        return {
            'count': self.count,
            'rgb': {'r': self.rgb[0], 'g': self.rgb[1], 'b': self.rgb[2]},
            'luminance': {'avg': self.luminance},
            'lab': {'L': self.lab[0], 'a': self.lab[1], 'b': self.lab[2]},
        }


@dataclass(frozen=True)
class ImageAnalysis:
    """Per-image result. A zone with no sampled pixels is None."""
    shadows: Optional[ZoneStatistics]
    midtones: Optional[ZoneStatistics]
    highlights: Optional[ZoneStatistics]
    is_black_and_white: bool
    name: str = ""

    def zone(self, zone_name: str) -> Optional[ZoneStatistics]:
        return getattr(self, zone_name)

    def to_dict(self) -> dict:
        result = {'name': self.name, 'isBlackAndWhite': self.is_black_and_white}
        for zone_name in ZONES:
            stats = self.zone(zone_name)
            result[zone_name] = stats.to_dict() if stats is not None else None
        return result


@dataclass(frozen=True)
class CombinedZone:
    """Pixel-count weighted zone aggregate. Zero everywhere when weight is 0."""
    rgb: RGB = (0.0, 0.0, 0.0)
    luminance: float = 0.0
    lab: LAB = (0.0, 0.0, 0.0)
    weight: int = 0

    @property
    def is_empty(self) -> bool:
        return self.weight <= 0

    def to_dict(self) -> dict:
        return {
            'rgb': {'r': self.rgb[0], 'g': self.rgb[1], 'b': self.rgb[2]},
            'luminance': {'avg': self.luminance},
            'lab': {'L': self.lab[0], 'a': self.lab[1], 'b': self.lab[2]},
            'weight': self.weight,
        }


@dataclass(frozen=True)
class GlobalStats:
    """Batch-wide tone adjustments applied after the zone blends."""
    contrast: float = GlobalStatsConfig.CONTRAST
    saturation: float = GlobalStatsConfig.SATURATION
    color_temperature: float = GlobalStatsConfig.COLOR_TEMPERATURE
    tint: float = GlobalStatsConfig.TINT

    def to_dict(self) -> dict:
        return {
            'contrast': self.contrast,
            'saturation': self.saturation,
            'colorTemperature': self.color_temperature,
            'tint': self.tint,
        }


@dataclass(frozen=True)
class CombinedAnalysis:
    """Weighted aggregate over every successfully analysed image of a batch."""
    shadows: CombinedZone
    midtones: CombinedZone
    highlights: CombinedZone
    is_black_and_white: bool
    global_stats: GlobalStats = field(default_factory=GlobalStats)
    image_count: int = 0

    def zone(self, zone_name: str) -> CombinedZone:
        return getattr(self, zone_name)

    def to_dict(self) -> dict:
        result = {
            'isBlackAndWhite': self.is_black_and_white,
            'imageCount': self.image_count,
            'globalStats': self.global_stats.to_dict(),
        }
        for zone_name in ZONES:
            result[zone_name] = self.zone(zone_name).to_dict()
        return result


@dataclass(frozen=True)
class CameraProfile:
    """Neutral baseline per zone plus a 3x3 color matrix."""
    shadow_lift: RGB
    midtone_gamma: RGB
    highlight_gain: RGB
    color_matrix: Tuple[RGB, RGB, RGB]

    @classmethod
    def universal(cls) -> 'CameraProfile':
        """The default universal camera profile."""
        return cls(
            shadow_lift=tuple(CameraProfileConfig.SHADOW_LIFT),
            midtone_gamma=tuple(CameraProfileConfig.MIDTONE_GAMMA),
            highlight_gain=tuple(CameraProfileConfig.HIGHLIGHT_GAIN),
            color_matrix=tuple(tuple(row) for row in CameraProfileConfig.COLOR_MATRIX),
        )

    def neutral(self, zone_name: str) -> RGB:
        """Baseline RGB for a zone."""
        return {
            'shadows': self.shadow_lift,
            'midtones': self.midtone_gamma,
            'highlights': self.highlight_gain,
        }[zone_name]

    def matrix_array(self) -> np.ndarray:
        return np.array(self.color_matrix, dtype=np.float64)


@dataclass(frozen=True)
class ZoneTransform:
    """Multiplicative per-channel gain, clamped to [0.1, 3.0]."""
    r: float = 1.0
    g: float = 1.0
    b: float = 1.0

    def as_array(self) -> np.ndarray:
        return np.array([self.r, self.g, self.b], dtype=np.float64)


@dataclass(frozen=True)
class ZoneTransforms:
    shadows: ZoneTransform
    midtones: ZoneTransform
    highlights: ZoneTransform

    def zone(self, zone_name: str) -> ZoneTransform:
        return getattr(self, zone_name)


@dataclass(frozen=True)
class LutGrid:
    """
    Output lattice: resolution**3 RGB triplets in [0, 1].

    Row order is blue-outer, green-middle, red-inner, matching the
    .cube convention. The values array is read-only.
    """
    resolution: int
    values: np.ndarray
    is_black_and_white: bool = False

    def __post_init__(self):
        values = np.array(self.values, dtype=np.float64).reshape(-1, 3)
        if len(values) != self.resolution ** 3:
            raise ValueError(
                f"LUT grid has {len(values)} points, expected {self.resolution ** 3}"
            )
        values.flags.writeable = False
        object.__setattr__(self, 'values', values)

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[RGB]:
        for row in self.values:
            yield float(row[0]), float(row[1]), float(row[2])

    def index_of(self, r: int, g: int, b: int) -> int:
        n = self.resolution
        return (b * n + g) * n + r

    def point(self, r: int, g: int, b: int) -> RGB:
        """Output triplet at lattice coordinate (r, g, b)."""
        row = self.values[self.index_of(r, g, b)]
        return float(row[0]), float(row[1]), float(row[2])

    def as_cube(self) -> np.ndarray:
        """View as (b, g, r, 3) array."""
        n = self.resolution
        return self.values.reshape(n, n, n, 3)
