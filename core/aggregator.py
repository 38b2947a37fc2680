"""
Universal LUT Generator - Analysis Aggregator

Reduces per-image analyses into one batch-level CombinedAnalysis.
"""

from typing import Optional, Sequence

from core.exceptions import BatchEmptyError
from core.models import (
    CombinedAnalysis,
    CombinedZone,
    GlobalStats,
    ImageAnalysis,
    ZONES,
)


def combine_analyses(analyses: Sequence[ImageAnalysis],
                     global_stats: Optional[GlobalStats] = None,
                     verbose: bool = True) -> CombinedAnalysis:
    """
    Combine per-image zone statistics weighted by sampled pixel count.

    A single monochrome reference switches the whole batch to
    monochrome (logical OR), so mixed batches always produce a B&W LUT.

    Zones without samples in any image keep zero values and weight 0
    instead of None.

    Args:
        analyses: Successfully analysed images (at least one)
        global_stats: Tone adjustments to attach. Defaults to the neutral
                      constants from GlobalStatsConfig.
        verbose: Print zone weights

    Returns:
        CombinedAnalysis

    Raises:
        BatchEmptyError: If analyses is empty
    """
    if not analyses:
        raise BatchEmptyError("No analysed images to combine")

    is_bw = any(a.is_black_and_white for a in analyses)

    combined = {}
    for zone_name in ZONES:
        sum_r = sum_g = sum_b = 0.0
        sum_lum = 0.0
        sum_L = sum_a = sum_lab_b = 0.0
        weight = 0

        for analysis in analyses:
            stats = analysis.zone(zone_name)
            if stats is None or stats.count <= 0:
                continue
            w = stats.count
            sum_r += stats.rgb[0] * w
            sum_g += stats.rgb[1] * w
            sum_b += stats.rgb[2] * w
            sum_lum += stats.luminance * w
            sum_L += stats.lab[0] * w
            sum_a += stats.lab[1] * w
            sum_lab_b += stats.lab[2] * w
            weight += w

        if weight > 0:
            combined[zone_name] = CombinedZone(
                rgb=(sum_r / weight, sum_g / weight, sum_b / weight),
                luminance=sum_lum / weight,
                lab=(sum_L / weight, sum_a / weight, sum_lab_b / weight),
                weight=weight,
            )
        else:
            combined[zone_name] = CombinedZone()

    result = CombinedAnalysis(
        shadows=combined['shadows'],
        midtones=combined['midtones'],
        highlights=combined['highlights'],
        is_black_and_white=is_bw,
        global_stats=global_stats if global_stats is not None else GlobalStats(),
        image_count=len(analyses),
    )

    if verbose:
        weights = ", ".join(f"{z}={combined[z].weight}" for z in ZONES)
        print(f"[Aggregator] {len(analyses)} image(s), B&W={is_bw}, weights: {weights}")

    return result
