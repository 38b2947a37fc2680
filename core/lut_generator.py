"""
Universal LUT Generator - Generation Coordinator

Coordinates modules to turn a batch of reference images into a .cube LUT.

Pipeline:
1. Decode each image (with timeout) and analyse it, strictly one at a time
2. Combine the per-image analyses into one batch analysis
3. Solve per-zone transforms against the camera profile
4. Synthesize the lattice
5. Render the .cube text (and optionally save it)

A failed image is logged and skipped; the batch only fails when no image
succeeds. Nothing is written or returned until the whole LUT is built.
"""

import datetime
import threading
import time
import traceback
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from config import GrayscaleMethod, LutConfig, SynthesisConfig
from core.aggregator import combine_analyses
from core.color_analyzer import ColorAnalyzer
from core.cube_writer import build_filename, build_title, format_cube, save_cube
from core.exceptions import (
    BatchEmptyError,
    GenerationCancelledError,
    ImageLoadError,
    InvalidConfigError,
    LutGenerationError,
)
from core.i18n import I18n
from core.image_loader import ImageLoader
from core.lut_synthesizer import LutSynthesizer
from core.models import (
    CameraProfile,
    CombinedAnalysis,
    GlobalStats,
    ImageAnalysis,
    LutGrid,
    ZoneTransforms,
)
from core.transform_solver import solve_transforms, validate_profile

ProgressCallback = Callable[[str, int, int], None]


@dataclass
class LutSettings:
    """Per-request generation settings."""
    intensity_level: int = LutConfig.DEFAULT_INTENSITY
    lut_resolution: int = LutConfig.DEFAULT_RESOLUTION
    bw_method: str = GrayscaleMethod.LUMINANCE.value
    advanced_mode: bool = True  # informational only

    def validate(self) -> 'LutSettings':
        """
        Check ranges before any work starts.

        Raises:
            InvalidConfigError: On an out-of-range value
        """
        level = self.intensity_level
        if not isinstance(level, int) or isinstance(level, bool) \
                or not LutConfig.MIN_INTENSITY <= level <= LutConfig.MAX_INTENSITY:
            raise InvalidConfigError(
                f"intensity_level must be an integer in "
                f"[{LutConfig.MIN_INTENSITY}, {LutConfig.MAX_INTENSITY}], got {level!r}"
            )

        size = self.lut_resolution
        if not isinstance(size, int) or isinstance(size, bool) \
                or not LutConfig.MIN_RESOLUTION <= size <= LutConfig.MAX_RESOLUTION:
            raise InvalidConfigError(
                f"lut_resolution must be an integer in "
                f"[{LutConfig.MIN_RESOLUTION}, {LutConfig.MAX_RESOLUTION}], got {size!r}"
            )

        method = self.bw_method.value if isinstance(self.bw_method, GrayscaleMethod) else self.bw_method
        if method not in GrayscaleMethod.values():
            raise InvalidConfigError(
                f"bw_method must be one of {GrayscaleMethod.values()}, got {method!r}"
            )
        self.bw_method = method
        return self


@dataclass
class ImageFailure:
    name: str
    message: str


@dataclass
class GenerationResult:
    """Everything produced by one successful run."""
    grid: LutGrid
    cube_text: str
    title: str
    filename: str
    combined: CombinedAnalysis
    transforms: ZoneTransforms
    analyses: List[ImageAnalysis] = field(default_factory=list)
    failures: List[ImageFailure] = field(default_factory=list)
    saved_path: Optional[str] = None

    @property
    def is_black_and_white(self) -> bool:
        return self.combined.is_black_and_white


class LutGenerator:
    """
    Batch coordinator.

    Each instance handles one configuration; generate() may be called
    repeatedly and shares no state between calls.
    """

    def __init__(self, settings: Optional[LutSettings] = None,
                 camera_profile: Optional[CameraProfile] = None,
                 global_stats: Optional[GlobalStats] = None,
                 image_timeout: float = LutConfig.IMAGE_TIMEOUT_S,
                 progress_callback: Optional[ProgressCallback] = None,
                 cancel_event: Optional[threading.Event] = None,
                 parallel: bool = SynthesisConfig.ENABLE_PARALLEL,
                 max_workers: int = SynthesisConfig.MAX_WORKERS,
                 date: Optional[datetime.date] = None,
                 lang: str = 'en',
                 verbose: bool = True):
        self.settings = settings or LutSettings()
        self.camera_profile = camera_profile or CameraProfile.universal()
        self.global_stats = global_stats or GlobalStats()
        self.image_timeout = image_timeout
        self.progress_callback = progress_callback
        self.cancel_event = cancel_event
        self.parallel = parallel
        self.max_workers = max_workers
        self.date = date
        self.lang = lang
        self.verbose = verbose

    # ==================== Steps ====================

    def analyze_images(self, sources: Sequence) -> Tuple[List[ImageAnalysis], List[ImageFailure]]:
        """
        Decode and analyse each source in order.

        Returns:
            (analyses, failures)
        """
        analyses = []
        failures = []
        total = len(sources)

        for index, source in enumerate(sources):
            self._check_cancelled()
            self._report(I18n.get('step_analysing', self.lang, current=index + 1, total=total),
                         index + 1, total)
            name = ImageLoader.source_name(source, index)

            try:
                self._report(I18n.get('stage_loading', self.lang), index + 1, total)
                decoded = ImageLoader.load_with_timeout(
                    source, index, timeout=self.image_timeout, verbose=self.verbose
                )
                self._report(I18n.get('stage_analysing', self.lang), index + 1, total)
                analysis = ColorAnalyzer.analyze(decoded.pixels, decoded.name, verbose=self.verbose)
            except ImageLoadError as e:
                if self.verbose:
                    print(f"[LUT_GENERATOR] ⚠️ Error analysing image {index + 1} ({name}): {e}")
                failures.append(ImageFailure(name=name, message=str(e)))
                continue
            except Exception as e:
                print(f"[LUT_GENERATOR] ⚠️ Error analysing image {index + 1} ({name}): {e}")
                traceback.print_exc()
                failures.append(ImageFailure(name=name, message=str(e)))
                continue

            self._report(I18n.get('stage_computing', self.lang), index + 1, total)
            self._report(I18n.get('stage_complete', self.lang), index + 1, total)
            analyses.append(analysis)

        return analyses, failures

    def generate(self, sources: Sequence) -> GenerationResult:
        """
        Run the full pipeline.

        Args:
            sources: 1-10 paths, Pillow images or RGBA arrays

        Returns:
            GenerationResult

        Raises:
            InvalidConfigError: Bad settings, profile or batch size
            BatchEmptyError: No image could be analysed
            GenerationCancelledError: cancel_event was set
        """
        t0 = time.time()
        settings = self.settings.validate()
        validate_profile(self.camera_profile)

        sources = list(sources or [])
        if not sources:
            raise InvalidConfigError("No reference images provided")
        if len(sources) > LutConfig.MAX_REFERENCE_IMAGES:
            raise InvalidConfigError(
                f"At most {LutConfig.MAX_REFERENCE_IMAGES} reference images are supported, "
                f"got {len(sources)}"
            )

        if self.verbose:
            print(f"[LUT_GENERATOR] Starting: {len(sources)} image(s), intensity={settings.intensity_level}x, "
                  f"resolution={settings.lut_resolution}, bw_method={settings.bw_method}, "
                  f"advanced={settings.advanced_mode}")
        self._report(I18n.get('step_starting', self.lang), 0, len(sources))

        analyses, failures = self.analyze_images(sources)
        if not analyses:
            raise BatchEmptyError("Failed to analyse any reference images")

        self._check_cancelled()
        self._report(I18n.get('step_computing', self.lang), len(sources), len(sources))
        combined = combine_analyses(analyses, self.global_stats, verbose=self.verbose)
        transforms = solve_transforms(self.camera_profile, combined,
                                      settings.intensity_level, verbose=self.verbose)

        self._check_cancelled()
        self._report(I18n.get('step_generating', self.lang, size=settings.lut_resolution),
                     len(sources), len(sources))
        synthesizer = LutSynthesizer(combined, transforms, self.camera_profile,
                                     settings.intensity_level, settings.bw_method)
        grid = synthesizer.synthesize(settings.lut_resolution, parallel=self.parallel,
                                      max_workers=self.max_workers, verbose=self.verbose)

        self._report(I18n.get('step_finalising', self.lang), len(sources), len(sources))
        title = build_title(combined.is_black_and_white, settings.intensity_level, self.date)
        filename = build_filename(combined.is_black_and_white, settings.intensity_level,
                                  settings.lut_resolution, self.date)
        cube_text = format_cube(grid, title)

        self._report(I18n.get('step_complete', self.lang), len(sources), len(sources))
        if self.verbose:
            print(f"[LUT_GENERATOR] ✅ Done: {len(analyses)}/{len(sources)} image(s) used, "
                  f"{'B&W' if combined.is_black_and_white else 'Colour'}, {time.time() - t0:.2f}s")

        return GenerationResult(
            grid=grid,
            cube_text=cube_text,
            title=title,
            filename=filename,
            combined=combined,
            transforms=transforms,
            analyses=analyses,
            failures=failures,
        )

    # ==================== Helpers ====================

    def _check_cancelled(self):
        if self.cancel_event is not None and self.cancel_event.is_set():
            if self.verbose:
                print("[LUT_GENERATOR] 🛑 Cancelled")
            raise GenerationCancelledError("Generation cancelled")

    def _report(self, message: str, current: int, total: int):
        if self.progress_callback is not None:
            self.progress_callback(message, current, total)


def generate_lut_file(image_paths: Sequence,
                      intensity_level: int = LutConfig.DEFAULT_INTENSITY,
                      lut_resolution: int = LutConfig.DEFAULT_RESOLUTION,
                      bw_method: str = GrayscaleMethod.LUMINANCE.value,
                      advanced_mode: bool = True,
                      output_dir: Optional[str] = None,
                      lang: str = 'en',
                      **generator_kwargs) -> Tuple[Optional[GenerationResult], str]:
    """
    Main entry: generate a LUT from reference images and save it.

    Args:
        image_paths: 1-10 reference images
        intensity_level: 1-5
        lut_resolution: Points per axis (17 / 33 / 65 or any integer >= 2)
        bw_method: Grayscale method for monochrome LUTs
        advanced_mode: Informational flag
        output_dir: Save location, defaults to OUTPUT_DIR
        lang: Status message language
        **generator_kwargs: Passed to LutGenerator

    Returns:
        Tuple of (GenerationResult or None, status_message)
    """
    if not image_paths:
        return None, I18n.get('err_no_images', lang)
    if len(image_paths) > LutConfig.MAX_REFERENCE_IMAGES:
        return None, I18n.get('err_too_many_images', lang, max=LutConfig.MAX_REFERENCE_IMAGES)

    settings = LutSettings(
        intensity_level=intensity_level,
        lut_resolution=lut_resolution,
        bw_method=bw_method,
        advanced_mode=advanced_mode,
    )

    try:
        generator = LutGenerator(settings, lang=lang, **generator_kwargs)
        result = generator.generate(image_paths)
        result.saved_path = save_cube(result.cube_text, result.filename, output_dir,
                                       verbose=generator.verbose)
    except InvalidConfigError as e:
        return None, I18n.get('err_invalid_config', lang, detail=e)
    except BatchEmptyError:
        return None, I18n.get('err_batch_empty', lang)
    except GenerationCancelledError:
        return None, I18n.get('err_cancelled', lang)
    except (LutGenerationError, OSError) as e:
        print(f"[LUT_GENERATOR] Error generating LUT: {e}")
        return None, I18n.get('err_generation', lang, detail=e)
    except Exception as e:
        print(f"[LUT_GENERATOR] Unexpected error: {e}")
        traceback.print_exc()
        return None, I18n.get('err_generation', lang, detail=e)

    lut_type_key = 'lut_type_bw' if result.is_black_and_white else 'lut_type_colour'
    msg = I18n.get(
        'msg_saved', lang,
        path=result.saved_path,
        lut_type=I18n.get(lut_type_key, lang),
        intensity=settings.intensity_level,
        size=settings.lut_resolution,
        used=len(result.analyses),
        total=len(image_paths),
    )
    if result.failures:
        msg += "\n" + I18n.get('msg_skipped', lang, count=len(result.failures))
    return result, msg
