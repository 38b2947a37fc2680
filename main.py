#!/usr/bin/env python3
"""
Universal LUT Generator - Command Line Entry

Builds a .cube LUT from up to 10 reference photographs.

Usage:
    python main.py ref1.jpg ref2.png --intensity 3 --resolution 33
"""

import argparse
import json
import sys

from config import GrayscaleMethod, LutConfig, SynthesisConfig
from core.lut_generator import generate_lut_file


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Generate a 3D colour LUT (.cube) from reference images.'
    )
    parser.add_argument(
        'images',
        nargs='+',
        help=f'Reference images (1-{LutConfig.MAX_REFERENCE_IMAGES})'
    )
    parser.add_argument(
        '--intensity', '-n',
        type=int,
        default=LutConfig.DEFAULT_INTENSITY,
        help=f'Intensity level {LutConfig.MIN_INTENSITY}-{LutConfig.MAX_INTENSITY} '
             f'(default {LutConfig.DEFAULT_INTENSITY})'
    )
    parser.add_argument(
        '--resolution', '-r',
        type=int,
        default=LutConfig.DEFAULT_RESOLUTION,
        help=f'Lattice points per axis, usually one of {LutConfig.RESOLUTION_PRESETS} '
             f'(default {LutConfig.DEFAULT_RESOLUTION})'
    )
    parser.add_argument(
        '--bw-method', '-m',
        choices=GrayscaleMethod.values(),
        default=GrayscaleMethod.LUMINANCE.value,
        help='Grayscale conversion used for black & white LUTs'
    )
    parser.add_argument(
        '--output-dir', '-o',
        default=None,
        help='Directory for the .cube file (default: ./output)'
    )
    parser.add_argument(
        '--timeout',
        type=float,
        default=LutConfig.IMAGE_TIMEOUT_S,
        help='Per-image decode timeout in seconds'
    )
    parser.add_argument(
        '--workers',
        type=int,
        default=SynthesisConfig.MAX_WORKERS,
        help='Threads used for lattice synthesis (1 disables threading)'
    )
    parser.add_argument(
        '--lang',
        choices=['en', 'zh'],
        default='en',
        help='Status message language'
    )
    parser.add_argument(
        '--analysis-json',
        default=None,
        help='Also write the combined analysis to this JSON file'
    )
    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Only print the final status'
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    result, status = generate_lut_file(
        args.images,
        intensity_level=args.intensity,
        lut_resolution=args.resolution,
        bw_method=args.bw_method,
        output_dir=args.output_dir,
        lang=args.lang,
        image_timeout=args.timeout,
        parallel=args.workers > 1,
        max_workers=max(1, args.workers),
        verbose=not args.quiet,
    )

    if result is None:
        print(status, file=sys.stderr)
        return 1

    if args.analysis_json:
        with open(args.analysis_json, 'w', encoding='utf-8') as f:
            json.dump(result.combined.to_dict(), f, indent=2)

    print(status)
    return 0


if __name__ == '__main__':
    sys.exit(main())
