import datetime
import json
import os
import subprocess
import sys
import textwrap
import threading
import time

import numpy as np
import pytest
from PIL import Image

from config import GrayscaleMethod
from conftest import make_rgba
from core.exceptions import (
    BatchEmptyError,
    GenerationCancelledError,
    ImageLoadError,
    InvalidConfigError,
)
from core.image_loader import ImageLoader
from core.lut_generator import LutGenerator, LutSettings, generate_lut_file
from main import main

DATE = datetime.date(2024, 5, 1)
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _generator(**kwargs):
    kwargs.setdefault('settings', LutSettings(lut_resolution=5))
    kwargs.setdefault('date', DATE)
    kwargs.setdefault('verbose', False)
    return LutGenerator(**kwargs)


def _save_png(path, color, size=(48, 32)):
    Image.fromarray(make_rgba(color, *size)).save(str(path))
    return str(path)


# ==================== Settings ====================

def test_default_settings_are_valid():
    settings = LutSettings().validate()
    assert settings.intensity_level == 3
    assert settings.lut_resolution == 33
    assert settings.bw_method == "luminance"


@pytest.mark.parametrize("kwargs", [
    {'intensity_level': 0},
    {'intensity_level': 6},
    {'intensity_level': 2.5},
    {'intensity_level': True},
    {'lut_resolution': 1},
    {'lut_resolution': 257},
    {'lut_resolution': "33"},
    {'bw_method': "sepia"},
])
def test_invalid_settings(kwargs):
    with pytest.raises(InvalidConfigError):
        LutSettings(**kwargs).validate()


def test_enum_method_is_normalized():
    assert LutSettings(bw_method=GrayscaleMethod.GREEN).validate().bw_method == "green"


# ==================== Image loader ====================

def test_large_image_is_downscaled():
    decoded = ImageLoader.load(make_rgba((10, 20, 30), width=1024, height=512), verbose=False)
    assert decoded.size == (512, 256)
    assert decoded.original_size == (1024, 512)


def test_small_image_is_enlarged():
    decoded = ImageLoader.load(make_rgba((10, 20, 30), width=100, height=50), verbose=False)
    assert decoded.size == (512, 256)
    assert tuple(decoded.pixels[100, 100]) == (10, 20, 30, 255)


def test_grayscale_array_gets_rgba():
    decoded = ImageLoader.load(np.full((32, 32), 77, dtype=np.uint8), verbose=False)
    assert decoded.pixels.shape == (512, 512, 4)
    assert tuple(decoded.pixels[0, 0]) == (77, 77, 77, 255)


def test_unsupported_array_shape():
    with pytest.raises(ImageLoadError):
        ImageLoader.load(np.zeros((4, 4, 2), dtype=np.uint8), verbose=False)


def test_file_sources(tmp_path):
    path = _save_png(tmp_path / "warm.png", (200, 150, 100))
    decoded = ImageLoader.load(path, verbose=False)
    assert decoded.name == "warm.png"
    assert decoded.original_size == (48, 32)

    broken = tmp_path / "notes.png"
    broken.write_text("not an image")
    with pytest.raises(ImageLoadError) as exc_info:
        ImageLoader.load(str(broken), verbose=False)
    assert exc_info.value.image_name == "notes.png"


def test_load_with_timeout(monkeypatch):
    def slow_load(cls, source, index=0, verbose=True):
        time.sleep(1.0)

    monkeypatch.setattr(ImageLoader, "load", classmethod(slow_load))
    with pytest.raises(ImageLoadError, match="Timeout analysing image 3"):
        ImageLoader.load_with_timeout(make_rgba((1, 2, 3)), index=2, timeout=0.05)


# ==================== Generator ====================

def test_generate_from_arrays(graded_image):
    result = _generator().generate([graded_image])

    assert result.is_black_and_white is False
    assert result.title == "Universal Colour LUT - 3x - 2024-05-01"
    assert result.filename == "universal-colour-3x-5-2024-05-01.cube"
    assert len(result.grid) == 125
    assert result.cube_text.split("\n")[3] == "LUT_3D_SIZE 5"
    assert len(result.cube_text.split("\n")) == 5 + 125
    assert result.failures == []
    assert result.saved_path is None


def test_generate_black_and_white(gray_image):
    result = _generator().generate([gray_image])
    assert result.is_black_and_white is True
    assert result.filename.startswith("universal-bw-3x-5-")


def test_failed_image_is_skipped(tmp_path, red_image):
    missing = str(tmp_path / "missing.png")
    result = _generator().generate([missing, red_image])

    assert len(result.analyses) == 1
    assert len(result.failures) == 1
    assert result.failures[0].name == "missing.png"


def test_all_images_failing(tmp_path):
    with pytest.raises(BatchEmptyError):
        _generator().generate([str(tmp_path / "a.png"), str(tmp_path / "b.png")])


def test_batch_size_limits(gray_image):
    with pytest.raises(InvalidConfigError):
        _generator().generate([])
    with pytest.raises(InvalidConfigError):
        _generator().generate([gray_image] * 11)


def test_ten_images_are_accepted(gray_image):
    result = _generator(settings=LutSettings(lut_resolution=2)).generate([gray_image] * 10)
    assert len(result.analyses) == 10


def test_slow_image_times_out_and_is_skipped(monkeypatch, gray_image, red_image):
    original = ImageLoader.load.__func__

    def slow_first(cls, source, index=0, verbose=True):
        if index == 0:
            time.sleep(1.0)
        return original(cls, source, index, verbose)

    monkeypatch.setattr(ImageLoader, "load", classmethod(slow_first))
    result = _generator(image_timeout=0.1).generate([gray_image, red_image])

    assert [f.message for f in result.failures] == ["Timeout analysing image 1"]
    assert len(result.analyses) == 1
    assert result.is_black_and_white is False


def test_stalled_decode_does_not_block_exit():
    script = textwrap.dedent("""
        import time
        import numpy as np
        from core.image_loader import ImageLoader
        from core.lut_generator import LutGenerator, LutSettings

        original = ImageLoader.load.__func__

        def stalled(cls, source, index=0, verbose=True):
            if index == 0:
                time.sleep(30)
            return original(cls, source, index, verbose)

        ImageLoader.load = classmethod(stalled)
        image = np.full((16, 16, 4), 200, dtype=np.uint8)
        generator = LutGenerator(LutSettings(lut_resolution=3), image_timeout=0.2, verbose=False)
        result = generator.generate([image, image])
        print(len(result.failures), len(result.analyses))
    """)

    t0 = time.time()
    proc = subprocess.run([sys.executable, "-c", script], cwd=REPO_ROOT,
                          capture_output=True, text=True, timeout=25)
    elapsed = time.time() - t0

    assert proc.returncode == 0, proc.stderr
    assert proc.stdout.strip().splitlines()[-1] == "1 1"
    assert elapsed < 15


def test_cancel_before_start(gray_image):
    event = threading.Event()
    event.set()
    with pytest.raises(GenerationCancelledError):
        _generator(cancel_event=event).generate([gray_image])


def test_cancel_during_generation(gray_image):
    event = threading.Event()

    def on_progress(message, current, total):
        if message == "Computing colour transformations...":
            event.set()

    generator = _generator(cancel_event=event, progress_callback=on_progress)
    with pytest.raises(GenerationCancelledError):
        generator.generate([gray_image])


def test_progress_messages(gray_image, red_image):
    events = []
    _generator(progress_callback=lambda m, c, t: events.append((m, c, t))).generate(
        [gray_image, red_image]
    )
    messages = [m for m, _, _ in events]

    assert messages[0] == "Starting analysis..."
    assert "Analysing image 1/2..." in messages
    assert "Analysing image 2/2..." in messages
    assert "Computing colour transformations..." in messages
    assert "Generating 5x5x5 LUT..." in messages
    assert messages[-1] == "Complete!"
    assert events[-1][1:] == (2, 2)


def test_per_image_stage_sequence(gray_image):
    messages = []
    _generator(progress_callback=lambda m, c, t: messages.append(m)).generate([gray_image])

    start = messages.index("Analysing image 1/1...")
    assert messages[start + 1:start + 5] == ["Loading", "Analysing", "Computing", "Complete"]
    assert messages[start + 5] == "Computing colour transformations..."


def test_generation_is_deterministic(graded_image, red_image):
    first = _generator(parallel=False).generate([graded_image, red_image])
    second = _generator(parallel=True, max_workers=3).generate([graded_image, red_image])
    assert first.cube_text == second.cube_text


def test_chinese_progress(gray_image):
    messages = []
    _generator(lang='zh', progress_callback=lambda m, c, t: messages.append(m)).generate([gray_image])
    assert messages[0] != "Starting analysis..."


# ==================== generate_lut_file ====================

def test_generate_lut_file_saves_cube(tmp_path):
    path = _save_png(tmp_path / "gray.png", (128, 128, 128))
    out_dir = tmp_path / "out"

    result, status = generate_lut_file([path], lut_resolution=5, output_dir=str(out_dir),
                                       date=DATE, verbose=False)

    assert result is not None
    assert status.startswith("✅")
    assert result.saved_path == os.path.join(str(out_dir), "universal-bw-3x-5-2024-05-01.cube")
    with open(result.saved_path, encoding="utf-8") as f:
        assert f.read() == result.cube_text
    assert "References: 1/1" in status


def test_generate_lut_file_reports_skipped(tmp_path):
    good = _save_png(tmp_path / "red.png", (230, 20, 30))
    result, status = generate_lut_file([good, str(tmp_path / "gone.png")], lut_resolution=3,
                                       output_dir=str(tmp_path), verbose=False)
    assert result is not None
    assert "References: 1/2" in status
    assert "Skipped 1 image(s)" in status


def test_generate_lut_file_errors(tmp_path, gray_image):
    result, status = generate_lut_file([])
    assert result is None
    assert status == "❌ Please select at least one reference image"

    result, status = generate_lut_file([gray_image] * 11)
    assert result is None
    assert "10" in status

    result, status = generate_lut_file([gray_image], bw_method="sepia",
                                       output_dir=str(tmp_path), verbose=False)
    assert result is None
    assert status.startswith("❌ Invalid settings")

    result, status = generate_lut_file([str(tmp_path / "none.png")],
                                       output_dir=str(tmp_path), verbose=False)
    assert result is None
    assert status == "❌ Failed to analyse any reference images"
    assert not any(name.endswith(".cube") for name in os.listdir(tmp_path))


def test_generate_lut_file_chinese_status():
    result, status = generate_lut_file([], lang='zh')
    assert result is None
    assert status != "❌ Please select at least one reference image"


def test_generate_lut_file_unexpected_error(monkeypatch, tmp_path, gray_image):
    def broken(self, sources):
        raise RuntimeError("synthesis exploded")

    monkeypatch.setattr(LutGenerator, "generate", broken)
    result, status = generate_lut_file([gray_image], output_dir=str(tmp_path), verbose=False)

    assert result is None
    assert status.startswith("❌ Error generating LUT")
    assert "synthesis exploded" in status


def test_quiet_generation_prints_nothing(tmp_path, capsys, gray_image):
    result, _ = generate_lut_file([gray_image], lut_resolution=3, output_dir=str(tmp_path),
                                  verbose=False)
    assert result is not None
    assert capsys.readouterr().out == ""


# ==================== CLI ====================

def test_cli_writes_cube_and_analysis(tmp_path, capsys):
    image = _save_png(tmp_path / "warm.png", (210, 160, 110))
    analysis_json = tmp_path / "analysis.json"

    code = main([image, "-q", "-r", "4", "-n", "2", "-o", str(tmp_path),
                 "--workers", "1", "--analysis-json", str(analysis_json)])

    assert code == 0
    cubes = [name for name in os.listdir(tmp_path) if name.endswith(".cube")]
    assert len(cubes) == 1
    assert cubes[0].startswith("universal-colour-2x-4-")

    with open(analysis_json, encoding="utf-8") as f:
        data = json.load(f)
    assert data['isBlackAndWhite'] is False
    assert data['imageCount'] == 1
    out = capsys.readouterr().out
    assert out.startswith("✅")
    assert "[CUBE]" not in out
    assert "[LUT_GENERATOR]" not in out


def test_cli_failure_exit_code(tmp_path, capsys):
    code = main([str(tmp_path / "missing.jpg"), "-q", "-o", str(tmp_path)])
    assert code == 1
    captured = capsys.readouterr()
    assert "Failed to analyse" in captured.err
    assert captured.out == ""
