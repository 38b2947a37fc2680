"""
Universal LUT Generator - Transform Solver

Derives per-zone multiplicative RGB gains from the combined analysis
relative to the camera profile baseline.
"""

from config import LutConfig
from core.exceptions import InvalidConfigError
from core.models import (
    CameraProfile,
    CombinedAnalysis,
    RGB,
    ZoneTransform,
    ZoneTransforms,
    ZONES,
)

MIN_GAIN = 0.1
MAX_GAIN = 3.0


def base_intensity(intensity_level: int) -> float:
    """Map intensity level 1..5 to a gain scale of 0.5..1.5."""
    return 0.5 + (intensity_level - 1) * 0.25


def validate_profile(profile: CameraProfile) -> None:
    """
    Reject baselines that cannot be used as divisors.

    Raises:
        InvalidConfigError: On zero components or a malformed matrix
    """
    for zone_name in ZONES:
        neutral = profile.neutral(zone_name)
        if len(neutral) != 3:
            raise InvalidConfigError(f"Camera profile {zone_name} baseline must have 3 channels")
        if any(c == 0 for c in neutral):
            raise InvalidConfigError(
                f"Camera profile {zone_name} baseline has a zero component: {neutral}"
            )

    matrix = profile.color_matrix
    if len(matrix) != 3 or any(len(row) != 3 for row in matrix):
        raise InvalidConfigError("Camera profile color matrix must be 3x3")


def solve_zone_transform(neutral: RGB, target: RGB, intensity_level: int) -> ZoneTransform:
    """
    Gain per channel: ((target / neutral) - 1) * intensity + 1, clamped to [0.1, 3.0].

    Args:
        neutral: Baseline RGB of the zone (no zero components)
        target: Combined zone mean RGB
        intensity_level: 1..5

    Returns:
        ZoneTransform
    """
    if any(c == 0 for c in neutral):
        raise InvalidConfigError(f"Baseline has a zero component: {neutral}")

    scale = base_intensity(intensity_level)
    gains = [
        min(MAX_GAIN, max(MIN_GAIN, (t / n - 1) * scale + 1))
        for n, t in zip(neutral, target)
    ]
    return ZoneTransform(r=gains[0], g=gains[1], b=gains[2])


def solve_transforms(profile: CameraProfile, combined: CombinedAnalysis,
                     intensity_level: int = LutConfig.DEFAULT_INTENSITY,
                     verbose: bool = True) -> ZoneTransforms:
    """
    Solve shadow, midtone and highlight transforms.

    Empty zones still get a gain; the synthesizer skips them.
    """
    validate_profile(profile)

    transforms = {}
    for zone_name in ZONES:
        transforms[zone_name] = solve_zone_transform(
            profile.neutral(zone_name),
            combined.zone(zone_name).rgb,
            intensity_level,
        )
        if verbose:
            t = transforms[zone_name]
            print(f"[TransformSolver] {zone_name}: gain=({t.r:.3f}, {t.g:.3f}, {t.b:.3f})")

    return ZoneTransforms(**transforms)
