"""
Universal LUT Generator - LUT Synthesizer

Walks the resolution^3 input lattice and maps every point through the
zone blends (color) or the tonal remap (monochrome).

Architecture:
- Lattice points are numbered blue-outer, green-middle, red-inner.
- The lattice is cut into contiguous index chunks; each chunk is mapped
  by a pure vectorized function that only reads the immutable
  analysis/transform state, so chunks can run on a thread pool.
- Chunks are concatenated in index order, so the output does not
  depend on scheduling.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import numpy as np

from config import GrayscaleMethod, LutConfig, SynthesisConfig
from core.color_space import rgb_to_grayscale
from core.exceptions import InvalidConfigError
from core.models import (
    CameraProfile,
    CombinedAnalysis,
    LutGrid,
    ZoneTransforms,
)

# Monochrome ramps
_BW_SHADOW_EDGE = 0.3
_BW_HIGHLIGHT_EDGE = 0.7
_BW_RAMP = 0.3

# Color ramps
_COLOR_SHADOW_EDGE = 0.35
_COLOR_HIGHLIGHT_EDGE = 0.65
_COLOR_RAMP = 0.35


def lattice_inputs(resolution: int, start: int = 0, stop: Optional[int] = None) -> np.ndarray:
    """
    Normalized input RGB for lattice indices [start, stop).

    Index i maps to r = i % n, g = (i // n) % n, b = i // n^2.

    Returns:
        (stop - start, 3) float64 array in [0, 1]
    """
    n = resolution
    if stop is None:
        stop = n ** 3
    idx = np.arange(start, stop, dtype=np.int64)
    coords = np.stack([idx % n, (idx // n) % n, idx // (n * n)], axis=1)
    return coords.astype(np.float64) / (n - 1)


def apply_s_curve(values: np.ndarray, strength: float) -> np.ndarray:
    """
    Contrast S-curve pivoting at 0.5.

    v < 0.5:  (2v)^s / 2
    v >= 0.5: 1 - (2(1 - v))^s / 2

    Inputs are clamped to [0, 1] first; the curve fixes both ends.
    """
    v = np.clip(values, 0.0, 1.0)
    low = np.power(v * 2, strength) / 2
    high = 1 - np.power((1 - v) * 2, strength) / 2
    return np.where(v < 0.5, low, high)


class LutSynthesizer:
    """
    Builds a LutGrid from a combined analysis.

    All inputs are fixed at construction; synthesize() and map_points()
    are pure with respect to them.
    """

    def __init__(self, combined: CombinedAnalysis, transforms: ZoneTransforms,
                 profile: CameraProfile,
                 intensity_level: int = LutConfig.DEFAULT_INTENSITY,
                 bw_method: str = GrayscaleMethod.LUMINANCE.value):
        self.combined = combined
        self.transforms = transforms
        self.intensity_level = intensity_level
        self.bw_method = bw_method.value if isinstance(bw_method, GrayscaleMethod) else bw_method
        self.is_black_and_white = combined.is_black_and_white

        matrix = profile.matrix_array()
        if matrix.shape != (3, 3):
            raise InvalidConfigError("Camera profile color matrix must be 3x3")
        self.color_matrix = matrix

        stats = combined.global_stats
        self.blend_strength = intensity_level * 0.15
        self.intensity_factor = intensity_level * 0.2
        self.contrast_boost = 1 + (stats.contrast - 0.3) * (intensity_level * 0.3)
        self.saturation_boost = 1 + (stats.saturation - 0.4) * (intensity_level * 0.4)
        self.temperature_shift = stats.color_temperature * (intensity_level * 0.002)
        self.tint_shift = stats.tint * (intensity_level * 0.002)

    def synthesize(self, resolution: int,
                   chunk_size: int = SynthesisConfig.CHUNK_SIZE,
                   parallel: bool = SynthesisConfig.ENABLE_PARALLEL,
                   max_workers: int = SynthesisConfig.MAX_WORKERS,
                   verbose: bool = True) -> LutGrid:
        """
        Map the full lattice.

        Args:
            resolution: Points per axis (>= 2)
            chunk_size: Lattice cells per work unit
            parallel: Map chunks on a thread pool
            max_workers: Thread pool size
            verbose: Print timing

        Returns:
            LutGrid with resolution^3 points
        """
        if not isinstance(resolution, int) or isinstance(resolution, bool) or resolution < 2:
            raise InvalidConfigError(f"LUT resolution must be an integer >= 2, got {resolution!r}")
        chunk_size = max(1, int(chunk_size))

        t0 = time.time()
        total = resolution ** 3
        bounds = [(start, min(start + chunk_size, total)) for start in range(0, total, chunk_size)]

        def run(bound):
            start, stop = bound
            return self.map_points(lattice_inputs(resolution, start, stop))

        if parallel and len(bounds) > 1 and max_workers > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                chunks = list(pool.map(run, bounds))
        else:
            chunks = [run(bound) for bound in bounds]

        values = np.concatenate(chunks, axis=0)

        if verbose:
            branch = "B&W" if self.is_black_and_white else "Color"
            print(f"[LutSynthesizer] {resolution}^3 = {total:,} points, branch={branch}, "
                  f"{len(bounds)} chunk(s), {time.time() - t0:.2f}s")

        return LutGrid(resolution=resolution, values=values,
                       is_black_and_white=self.is_black_and_white)

    def map_points(self, rgb_in: np.ndarray) -> np.ndarray:
        """
        Map normalized input colors to output colors.

        Args:
            rgb_in: (N, 3) array in [0, 1]

        Returns:
            (N, 3) array in [0, 1]
        """
        rgb_in = np.asarray(rgb_in, dtype=np.float64).reshape(-1, 3)
        ir, ig, ib = rgb_in[:, 0], rgb_in[:, 1], rgb_in[:, 2]
        luminance = rgb_to_grayscale(ir, ig, ib, 'luminance')

        if self.is_black_and_white:
            out = self._map_monochrome(ir, ig, ib)
        else:
            out = self._map_color(rgb_in, luminance)

        # + 0.0 turns -0.0 into 0.0
        return np.clip(out, 0.0, 1.0) + 0.0

    def map_point(self, r: float, g: float, b: float):
        """Map one normalized input color."""
        out = self.map_points(np.array([[r, g, b]], dtype=np.float64))[0]
        return float(out[0]), float(out[1]), float(out[2])

    # ==================== Branches ====================

    def _map_monochrome(self, ir, ig, ib) -> np.ndarray:
        gray = np.asarray(rgb_to_grayscale(ir, ig, ib, self.bw_method), dtype=np.float64)

        shadow_w = np.clip((_BW_SHADOW_EDGE - gray) / _BW_RAMP, 0, 1)
        highlight_w = np.clip((gray - _BW_HIGHLIGHT_EDGE) / _BW_RAMP, 0, 1)
        midtone_w = np.maximum(0, 1 - shadow_w - highlight_w)

        intensity_factor = self.intensity_factor
        mapped = gray.copy()

        # Order matters: each step blends the running value
        for zone_name, weight, exponent in (
            ('shadows', shadow_w, 0.8),
            ('midtones', midtone_w, 0.6),
            ('highlights', highlight_w, 0.8),
        ):
            zone = self.combined.zone(zone_name)
            if zone.is_empty:
                continue
            target = zone.luminance
            factor = np.power(weight, exponent)
            blended = mapped * (1 - factor * intensity_factor) + target * factor * intensity_factor
            mapped = np.where(weight > 0, blended, mapped)

        mapped = np.clip(mapped, 0, 1)
        return np.stack([mapped, mapped, mapped], axis=1)

    def _map_color(self, rgb_in: np.ndarray, luminance: np.ndarray) -> np.ndarray:
        shadow_w = np.clip((_COLOR_SHADOW_EDGE - luminance) / _COLOR_RAMP, 0, 1)
        highlight_w = np.clip((luminance - _COLOR_HIGHLIGHT_EDGE) / _COLOR_RAMP, 0, 1)
        midtone_w = np.maximum(0, 1 - shadow_w - highlight_w)

        out = rgb_in.copy()

        # Shadows: transformed input pulled 20% toward the zone mean
        if not self.combined.shadows.is_empty:
            gain = self.transforms.shadows.as_array()
            mean = np.array(self.combined.shadows.rgb, dtype=np.float64)
            target = rgb_in * gain * 0.8 + mean * 0.2
            out = self._blend(out, target, shadow_w, 0.7)

        # Midtones: transformed input only, no pull toward the zone mean
        if not self.combined.midtones.is_empty:
            gain = self.transforms.midtones.as_array()
            target = rgb_in * gain
            out = self._blend(out, target, midtone_w, 0.5)

        # Highlights: transformed input pulled 10% toward the zone mean
        if not self.combined.highlights.is_empty:
            gain = self.transforms.highlights.as_array()
            mean = np.array(self.combined.highlights.rgb, dtype=np.float64)
            target = rgb_in * gain * 0.9 + mean * 0.1
            out = self._blend(out, target, highlight_w, 0.7)

        out = self._apply_matrix(out)

        out[:, 0] += self.temperature_shift
        out[:, 2] -= self.temperature_shift
        out[:, 1] += self.tint_shift

        current_lum = rgb_to_grayscale(out[:, 0], out[:, 1], out[:, 2], 'luminance')[:, None]
        out = current_lum + (out - current_lum) * self.saturation_boost

        if self.contrast_boost != 1:
            out = apply_s_curve(out, self.contrast_boost)

        return out

    def _blend(self, out: np.ndarray, target: np.ndarray, weight: np.ndarray,
               exponent: float) -> np.ndarray:
        factor = (np.power(weight, exponent) * self.blend_strength)[:, None]
        blended = out * (1 - factor) + target * factor
        return np.where((weight > 0)[:, None], blended, out)

    def _apply_matrix(self, out: np.ndarray) -> np.ndarray:
        # Explicit sums instead of a matmul keep results independent of chunk size
        m = self.color_matrix
        r, g, b = out[:, 0], out[:, 1], out[:, 2]
        return np.stack([
            r * m[0, 0] + g * m[0, 1] + b * m[0, 2],
            r * m[1, 0] + g * m[1, 1] + b * m[1, 2],
            r * m[2, 0] + g * m[2, 1] + b * m[2, 2],
        ], axis=1)


def synthesize_lut(combined: CombinedAnalysis, transforms: ZoneTransforms,
                   profile: CameraProfile, resolution: int = LutConfig.DEFAULT_RESOLUTION,
                   intensity_level: int = LutConfig.DEFAULT_INTENSITY,
                   bw_method: str = GrayscaleMethod.LUMINANCE.value,
                   **kwargs) -> LutGrid:
    """Build a LutGrid in one call. Extra kwargs go to LutSynthesizer.synthesize."""
    synthesizer = LutSynthesizer(combined, transforms, profile, intensity_level, bw_method)
    return synthesizer.synthesize(resolution, **kwargs)
