"""Shared fixtures: synthetic RGBA buffers."""

import numpy as np
import pytest

from core.models import CombinedAnalysis, CombinedZone, GlobalStats


def make_rgba(color, width=64, height=64):
    """Flat (H, W, 4) uint8 image of one RGB color."""
    img = np.zeros((height, width, 4), dtype=np.uint8)
    img[:, :, :3] = color
    img[:, :, 3] = 255
    return img


def make_combined(shadows=None, midtones=None, highlights=None,
                  is_black_and_white=False, global_stats=None):
    return CombinedAnalysis(
        shadows=shadows or CombinedZone(),
        midtones=midtones or CombinedZone(),
        highlights=highlights or CombinedZone(),
        is_black_and_white=is_black_and_white,
        global_stats=global_stats or GlobalStats(),
        image_count=1,
    )


@pytest.fixture
def gray_image():
    return make_rgba((128, 128, 128))


@pytest.fixture
def red_image():
    return make_rgba((230, 20, 30))


@pytest.fixture
def graded_image():
    """Horizontal ramp with a warm cast: covers all three zones."""
    width, height = 256, 32
    ramp = np.arange(width, dtype=np.float64)
    img = np.zeros((height, width, 4), dtype=np.uint8)
    img[:, :, 0] = np.clip(ramp * 1.0 + 20, 0, 255).astype(np.uint8)
    img[:, :, 1] = np.clip(ramp * 0.9, 0, 255).astype(np.uint8)
    img[:, :, 2] = np.clip(ramp * 0.7, 0, 255).astype(np.uint8)
    img[:, :, 3] = 255
    return img


@pytest.fixture
def full_combined():
    """Color analysis with every zone populated."""
    return make_combined(
        shadows=CombinedZone(rgb=(0.12, 0.08, 0.05), luminance=0.09, lab=(8.0, 3.0, 5.0), weight=100),
        midtones=CombinedZone(rgb=(0.55, 0.48, 0.40), luminance=0.49, lab=(55.0, 4.0, 9.0), weight=300),
        highlights=CombinedZone(rgb=(0.92, 0.88, 0.80), luminance=0.88, lab=(90.0, 1.0, 6.0), weight=80),
    )
