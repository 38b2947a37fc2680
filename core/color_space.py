"""
Color Space Conversion Module

RGB to CIELAB and RGB to grayscale conversions shared by the image
analyzer and the LUT synthesizer.

The LAB conversion applies the sRGB->XYZ matrix directly to the
normalized (gamma-encoded) RGB values, without linearization.

Functions:
- rgb_to_lab: Convert one normalized RGB triplet to LAB
- rgb_to_lab_array: Vectorized LAB conversion for (N, 3) arrays
- rgb_to_grayscale: Collapse RGB to gray with a selectable method
"""

from typing import Tuple

import numpy as np

from config import GrayscaleMethod


# sRGB -> XYZ (D65)
_RGB_TO_XYZ = np.array(
    [
        [0.4124564, 0.3575761, 0.1804375],
        [0.2126729, 0.7151522, 0.0721750],
        [0.0193339, 0.1191920, 0.9503041],
    ],
    dtype=np.float64,
)

# D65 reference white
_WHITE_POINT = np.array([0.95047, 1.0, 1.08883], dtype=np.float64)

_EPSILON = 0.008856
_KAPPA_SLOPE = 7.787
_OFFSET = 16.0 / 116.0


def _lab_f(t):
    """CIE companding function, scalar or array."""
    t = np.asarray(t, dtype=np.float64)
    return np.where(t > _EPSILON, np.cbrt(t), _KAPPA_SLOPE * t + _OFFSET)


def rgb_to_lab(r: float, g: float, b: float) -> Tuple[float, float, float]:
    """
    Convert a normalized RGB triplet to LAB.

    Args:
        r, g, b: Channel values in [0, 1]

    Returns:
        (L, a, b) tuple. L in [0, 100], a/b roughly in [-128, 127]
    """
    x = r * 0.4124564 + g * 0.3575761 + b * 0.1804375
    y = r * 0.2126729 + g * 0.7151522 + b * 0.0721750
    z = r * 0.0193339 + g * 0.1191920 + b * 0.9503041

    x /= 0.95047
    y /= 1.0
    z /= 1.08883

    fx = float(_lab_f(x))
    fy = float(_lab_f(y))
    fz = float(_lab_f(z))

    return 116.0 * fy - 16.0, 500.0 * (fx - fy), 200.0 * (fy - fz)


def rgb_to_lab_array(rgb: np.ndarray) -> np.ndarray:
    """
    Convert normalized RGB colors to LAB (vectorized).

    Args:
        rgb: RGB array, shape (N, 3), values in [0, 1]

    Returns:
        LAB array, shape (N, 3)
    """
    rgb = np.asarray(rgb, dtype=np.float64).reshape(-1, 3)
    r, g, b = rgb[:, 0], rgb[:, 1], rgb[:, 2]

    # Row-wise sums keep the same evaluation order as the scalar path
    xyz = np.empty_like(rgb)
    for row in range(3):
        m = _RGB_TO_XYZ[row]
        xyz[:, row] = (r * m[0] + g * m[1] + b * m[2]) / _WHITE_POINT[row]

    f_xyz = _lab_f(xyz)

    L = 116.0 * f_xyz[:, 1] - 16.0
    a = 500.0 * (f_xyz[:, 0] - f_xyz[:, 1])
    b_val = 200.0 * (f_xyz[:, 1] - f_xyz[:, 2])

    return np.stack([L, a, b_val], axis=1)


def rgb_to_grayscale(r, g, b, method="luminance"):
    """
    Convert RGB to a gray value.

    Works on Python floats and on numpy arrays of matching shape.

    Args:
        r, g, b: Channel values in [0, 1]
        method: One of GrayscaleMethod values. Unknown methods fall back
                to luminance.

    Returns:
        Gray value(s), same shape as the inputs
    """
    method = method.value if isinstance(method, GrayscaleMethod) else method

    if method == "average":
        return (r + g + b) / 3
    if method == "red":
        return r
    if method == "green":
        return g
    if method == "blue":
        return b
    if method == "max":
        return np.maximum(np.maximum(r, g), b)
    if method == "min":
        return np.minimum(np.minimum(r, g), b)
    # luminance, and anything unrecognized
    return 0.299 * r + 0.587 * g + 0.114 * b
