import pytest

from config import GlobalStatsConfig
from core.aggregator import combine_analyses
from core.exceptions import BatchEmptyError
from core.models import GlobalStats, ImageAnalysis, ZoneStatistics


def _zone(count, value, lum=None, lab=(50.0, 0.0, 0.0)):
    return ZoneStatistics(count=count, rgb=(value, value, value),
                          luminance=value if lum is None else lum, lab=lab)


def _analysis(shadows=None, midtones=None, highlights=None, bw=False, name=""):
    return ImageAnalysis(shadows=shadows, midtones=midtones, highlights=highlights,
                         is_black_and_white=bw, name=name)


def test_zone_means_are_weighted_by_pixel_count():
    a = _analysis(midtones=_zone(10, 0.2, lab=(20.0, 1.0, -1.0)))
    b = _analysis(midtones=_zone(30, 0.6, lab=(60.0, 5.0, 3.0)))
    combined = combine_analyses([a, b], verbose=False)

    mid = combined.midtones
    assert mid.weight == 40
    assert mid.rgb == pytest.approx((0.5, 0.5, 0.5))
    assert mid.luminance == pytest.approx(0.5)
    assert mid.lab == pytest.approx((50.0, 4.0, 2.0))


def test_single_monochrome_image_forces_batch_monochrome():
    colorful = _analysis(midtones=_zone(50, 0.4), bw=False)
    mono = _analysis(midtones=_zone(5, 0.4), bw=True)
    assert combine_analyses([colorful, mono], verbose=False).is_black_and_white is True
    assert combine_analyses([colorful, colorful], verbose=False).is_black_and_white is False


def test_zone_missing_everywhere_stays_zero():
    combined = combine_analyses([
        _analysis(midtones=_zone(8, 0.5)),
        _analysis(midtones=_zone(8, 0.3)),
    ], verbose=False)

    for zone in (combined.shadows, combined.highlights):
        assert zone is not None
        assert zone.weight == 0
        assert zone.is_empty
        assert zone.rgb == (0.0, 0.0, 0.0)
        assert zone.luminance == 0.0
        assert zone.lab == (0.0, 0.0, 0.0)


def test_zone_present_in_one_image_only():
    combined = combine_analyses([
        _analysis(shadows=_zone(4, 0.1), midtones=_zone(8, 0.5)),
        _analysis(midtones=_zone(8, 0.3)),
    ], verbose=False)
    assert combined.shadows.weight == 4
    assert combined.shadows.rgb == pytest.approx((0.1, 0.1, 0.1))
    assert combined.midtones.rgb == pytest.approx((0.4, 0.4, 0.4))


def test_global_stats_default_to_neutral_constants():
    stats = combine_analyses([_analysis(midtones=_zone(1, 0.5))], verbose=False).global_stats
    assert stats.contrast == GlobalStatsConfig.CONTRAST == 0.5
    assert stats.saturation == GlobalStatsConfig.SATURATION == 0.5
    assert stats.color_temperature == 0
    assert stats.tint == 0


def test_global_stats_override():
    custom = GlobalStats(contrast=0.3, saturation=0.4, color_temperature=10, tint=-5)
    combined = combine_analyses([_analysis(midtones=_zone(1, 0.5))], custom, verbose=False)
    assert combined.global_stats is custom


def test_image_count_and_dict():
    combined = combine_analyses([_analysis(), _analysis(midtones=_zone(2, 0.5))], verbose=False)
    assert combined.image_count == 2
    data = combined.to_dict()
    assert data['midtones']['weight'] == 2
    assert data['globalStats']['colorTemperature'] == 0


def test_empty_batch_raises():
    with pytest.raises(BatchEmptyError):
        combine_analyses([], verbose=False)
