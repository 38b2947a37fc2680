"""
Universal LUT Generator - Color Analyzer

Samples a decoded reference image into shadow / midtone / highlight
statistics and classifies it as black & white or color.
Standalone module, works on raw RGBA buffers.
"""

import time
from typing import Dict, Optional

import numpy as np

from config import LutConfig
from core.color_space import rgb_to_grayscale, rgb_to_lab_array
from core.exceptions import ImageLoadError
from core.models import ImageAnalysis, ZONES, ZoneStatistics


class ColorAnalyzer:
    """
    Reference image analyzer

    Two independent passes over the same RGBA buffer:
    1. Black & white detection: every 10th pixel, a pixel counts as
       colorful when any channel pair differs by more than 10 (0-255).
       Fewer than 5% colorful pixels means monochrome.
    2. Zone sampling: every 16th pixel is normalized, converted to
       luminance and LAB, then binned by luminance into
       shadows (< 0.25), midtones ([0.25, 0.75)) and highlights (>= 0.75).
    """

    @staticmethod
    def as_pixels(buffer) -> np.ndarray:
        """
        Normalize an RGBA buffer to an (N, 4) uint8 array.

        Accepts (H, W, 4) arrays, (N, 4) arrays or flat byte sequences.
        """
        if isinstance(buffer, (bytes, bytearray, memoryview)):
            data = np.frombuffer(buffer, dtype=np.uint8)
        else:
            data = np.asarray(buffer)
            if data.dtype != np.uint8:
                data = np.clip(data, 0, 255).astype(np.uint8)

        if data.ndim == 3 and data.shape[2] == 3:
            alpha = np.full(data.shape[:2] + (1,), 255, dtype=np.uint8)
            data = np.concatenate([data, alpha], axis=2)

        flat = data.reshape(-1)
        if flat.size % 4 != 0:
            raise ValueError(f"RGBA buffer length {flat.size} is not a multiple of 4")
        return flat.reshape(-1, 4)

    @classmethod
    def detect_black_and_white(cls, buffer) -> bool:
        """
        Classify an image as black & white.

        Args:
            buffer: RGBA pixel buffer

        Returns:
            bool: True when fewer than 5% of sampled pixels carry color
        """
        pixels = cls.as_pixels(buffer)
        pixel_count = len(pixels)
        if pixel_count == 0:
            raise ValueError("Empty pixel buffer")

        sampled = pixels[::LutConfig.BW_SAMPLE_STRIDE, :3].astype(np.int16)
        r, g, b = sampled[:, 0], sampled[:, 1], sampled[:, 2]
        spread = np.maximum(np.maximum(np.abs(r - g), np.abs(g - b)), np.abs(r - b))
        colorful = int(np.sum(spread > LutConfig.BW_CHANNEL_THRESHOLD))

        # Denominator is the nominal sample count (pixel_count / stride)
        ratio = colorful / (pixel_count / LutConfig.BW_SAMPLE_STRIDE)
        return ratio < LutConfig.BW_COLORFUL_RATIO

    @classmethod
    def sample_zones(cls, buffer) -> Dict[str, Optional[ZoneStatistics]]:
        """
        Sample an image into per-zone mean statistics.

        Args:
            buffer: RGBA pixel buffer

        Returns:
            dict: {zone_name: ZoneStatistics or None when the zone is empty}
        """
        pixels = cls.as_pixels(buffer)
        sampled = pixels[::LutConfig.ZONE_SAMPLE_STRIDE, :3].astype(np.float64) / 255.0

        r, g, b = sampled[:, 0], sampled[:, 1], sampled[:, 2]
        luminance = rgb_to_grayscale(r, g, b, 'luminance')
        lab = rgb_to_lab_array(sampled)

        masks = {
            'shadows': luminance < LutConfig.SHADOW_THRESHOLD,
            'midtones': (luminance >= LutConfig.SHADOW_THRESHOLD)
                        & (luminance < LutConfig.HIGHLIGHT_THRESHOLD),
            'highlights': luminance >= LutConfig.HIGHLIGHT_THRESHOLD,
        }

        zones = {}
        for zone_name in ZONES:
            zones[zone_name] = cls._zone_statistics(
                sampled[masks[zone_name]],
                luminance[masks[zone_name]],
                lab[masks[zone_name]],
            )
        return zones

    @classmethod
    def analyze(cls, buffer, name: str = "", verbose: bool = True) -> ImageAnalysis:
        """
        Analyze one decoded reference image.

        Args:
            buffer: RGBA pixel buffer (already fitted to the analysis size)
            name: Image identity used in logs
            verbose: Print per-zone details

        Returns:
            ImageAnalysis

        Raises:
            ImageLoadError: If the buffer is empty or malformed
        """
        t0 = time.time()
        try:
            pixels = cls.as_pixels(buffer)
        except ValueError as e:
            raise ImageLoadError(f"Invalid pixel buffer: {e}", name) from e
        if len(pixels) == 0:
            raise ImageLoadError("Image has no pixels", name)

        is_bw = cls.detect_black_and_white(pixels)
        zones = cls.sample_zones(pixels)

        if verbose:
            counts = ", ".join(
                f"{z}={zones[z].count if zones[z] else 0}" for z in ZONES
            )
            print(f"[ColorAnalysis] {name or 'image'}: {len(pixels):,} px, "
                  f"B&W={is_bw}, samples: {counts}, {time.time() - t0:.2f}s")

        return ImageAnalysis(
            shadows=zones['shadows'],
            midtones=zones['midtones'],
            highlights=zones['highlights'],
            is_black_and_white=is_bw,
            name=name,
        )

    # ==================== Private helpers ====================

    @staticmethod
    def _zone_statistics(rgb: np.ndarray, luminance: np.ndarray,
                         lab: np.ndarray) -> Optional[ZoneStatistics]:
        """Mean statistics of one zone, None when nothing was sampled."""
        count = len(rgb)
        if count == 0:
            return None

        mean_rgb = rgb.mean(axis=0)
        mean_lab = lab.mean(axis=0)
        return ZoneStatistics(
            count=count,
            rgb=(float(mean_rgb[0]), float(mean_rgb[1]), float(mean_rgb[2])),
            luminance=float(luminance.mean()),
            lab=(float(mean_lab[0]), float(mean_lab[1]), float(mean_lab[2])),
        )


# Convenience function
def analyze_reference_image(buffer, name: str = "") -> dict:
    """
    Analyze one reference image and return its statistics as a dict.

    Args:
        buffer: RGBA pixel buffer
        name: Image identity

    Returns:
        dict: {'name', 'isBlackAndWhite', 'shadows', 'midtones', 'highlights'}
    """
    return ColorAnalyzer.analyze(buffer, name, verbose=False).to_dict()
