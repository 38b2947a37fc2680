"""
Universal LUT Generator - .cube Writer

Serializes a LutGrid to the plain-text .cube format and reads .cube
files back for verification.
"""

import datetime
import os
from dataclasses import dataclass
from typing import Optional

import numpy as np

from config import CUBE_DECIMALS, CUBE_FILE_PREFIX, CUBE_TITLE_PREFIX, OUTPUT_DIR
from core.exceptions import CubeFormatError
from core.models import LutGrid


@dataclass
class CubeFile:
    """Parsed .cube content"""
    size: int
    title: str
    domain_min: tuple
    domain_max: tuple
    table: np.ndarray  # (size^3, 3), file row order


def _date_label(date: Optional[datetime.date]) -> str:
    return (date or datetime.date.today()).isoformat()


def build_title(is_black_and_white: bool, intensity_level: int,
                date: Optional[datetime.date] = None) -> str:
    """e.g. 'Universal Colour LUT - 3x - 2024-05-01'"""
    lut_type = "B&W" if is_black_and_white else "Colour"
    return f"{CUBE_TITLE_PREFIX} {lut_type} LUT - {intensity_level}x - {_date_label(date)}"


def build_filename(is_black_and_white: bool, intensity_level: int, resolution: int,
                   date: Optional[datetime.date] = None) -> str:
    """e.g. 'universal-colour-3x-33-2024-05-01.cube'"""
    lut_type = "bw" if is_black_and_white else "colour"
    return f"{CUBE_FILE_PREFIX}-{lut_type}-{intensity_level}x-{resolution}-{_date_label(date)}.cube"


def format_cube(grid: LutGrid, title: str) -> str:
    """
    Render a LutGrid as .cube text.

    Layout:
        TITLE "<title>"
        DOMAIN_MIN 0.0 0.0 0.0
        DOMAIN_MAX 1.0 1.0 1.0
        LUT_3D_SIZE <n>
        <blank line>
        n^3 lines of "R G B" with 6 decimals, blue-outer / red-inner

    No trailing newline after the last data row.
    """
    fmt = f"{{:.{CUBE_DECIMALS}f}} {{:.{CUBE_DECIMALS}f}} {{:.{CUBE_DECIMALS}f}}"
    # + 0.0 so -0.0 prints as 0.000000
    rows = [fmt.format(r, g, b) for r, g, b in (grid.values + 0.0).tolist()]

    header = (
        f'TITLE "{title}"\n'
        f"DOMAIN_MIN 0.0 0.0 0.0\n"
        f"DOMAIN_MAX 1.0 1.0 1.0\n"
        f"LUT_3D_SIZE {grid.resolution}\n"
        f"\n"
    )
    return header + "\n".join(rows)


def save_cube(content: str, filename: str, output_dir: Optional[str] = None,
              verbose: bool = True) -> str:
    """
    Write .cube text to disk.

    Args:
        content: Output of format_cube
        filename: Target file name
        output_dir: Directory, defaults to OUTPUT_DIR
        verbose: Print the written path

    Returns:
        str: Written file path
    """
    output_dir = output_dir or OUTPUT_DIR
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, filename)

    # Written under a temp name, then renamed into place
    tmp_path = path + ".tmp"
    with open(tmp_path, "w", encoding="utf-8", newline="\n") as f:
        f.write(content)
    os.replace(tmp_path, path)

    if verbose:
        print(f"[CUBE] Saved: {path}")
    return path


def parse_cube(text: str) -> CubeFile:
    """
    Parse .cube text.

    Raises:
        CubeFormatError: Missing size, malformed rows or wrong entry count
    """
    size = None
    title = ""
    domain_min = (0.0, 0.0, 0.0)
    domain_max = (1.0, 1.0, 1.0)
    data = []

    for line_no, line in enumerate(text.splitlines(), start=1):
        s = line.strip()
        if not s or s.startswith("#"):
            continue
        toks = s.split()
        key = toks[0].upper()
        try:
            if key == "TITLE":
                title = s[len(toks[0]):].strip().strip('"')
            elif key == "LUT_3D_SIZE":
                size = int(toks[1])
            elif key in ("DOMAIN_MIN", "DOMAIN_MAX"):
                if len(toks) != 4:
                    raise CubeFormatError(f"Line {line_no}: {key} needs 3 values")
                bound = tuple(float(v) for v in toks[1:4])
                if key == "DOMAIN_MIN":
                    domain_min = bound
                else:
                    domain_max = bound
            elif key == "LUT_1D_SIZE":
                raise CubeFormatError("1D .cube files are not supported")
            elif len(toks) >= 3:
                data.append([float(v) for v in toks[:3]])
            else:
                raise CubeFormatError(f"Line {line_no}: unexpected content: {s!r}")
        except CubeFormatError:
            raise
        except (ValueError, IndexError) as e:
            raise CubeFormatError(f"Line {line_no}: {e}") from e

    if size is None:
        raise CubeFormatError("Missing LUT_3D_SIZE")

    table = np.asarray(data, dtype=np.float64).reshape(-1, 3)
    expected = size ** 3
    if table.shape[0] != expected:
        raise CubeFormatError(f"LUT entries mismatch: got {table.shape[0]}, expect {expected}")

    return CubeFile(size=size, title=title, domain_min=domain_min,
                    domain_max=domain_max, table=table)


def load_cube(path: str) -> CubeFile:
    """Read and parse a .cube file."""
    with open(path, "r", encoding="utf-8") as f:
        cube = parse_cube(f.read())
    print(f"[CUBE] Loaded: {path} ({cube.size}^3)")
    return cube
