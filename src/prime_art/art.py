"""Map luminance grids to digit art, and digit strings back to rows."""
import math
from typing import Iterable, List, Sequence, Tuple

from prime_art.utils import ImageTooSmallError, InvalidInputError

RGB = Tuple[int, int, int]

# Dark to light. Luminance picks one of the first ten characters; the trailing '1' is never reached.
LUMINANCE_RAMP = "17398888888"[::-1]
DEFAULT_SCALE = 0.43
DEFAULT_COLS = 80


def average_luminance(pixels: Iterable[RGB]) -> float:
    """Mean ITU-R 601 luma of the pixels. An empty tile is black."""
    total = 0.0
    count = 0
    for r, g, b, *_ in pixels:
        total += 0.299 * r + 0.587 * g + 0.114 * b
        count += 1
    return total / count if count else 0.0


def luminance_to_digit(avg: float) -> str:
    index = min(int(avg * 10) // 256, len(LUMINANCE_RAMP) - 1)
    return LUMINANCE_RAMP[max(index, 0)]


def pixels_to_rows(image: Sequence[Sequence[RGB]], cols: int = DEFAULT_COLS, scale: float = DEFAULT_SCALE) -> List[str]:
    """
    Tile a decoded image (rows of RGB tuples) into `cols` columns and map each
    tile's mean luminance to a digit. Tile height is tile width / scale; the last
    row and column absorb any remainder.
    """
    height = len(image)
    width = len(image[0]) if height else 0
    if cols < 1 or scale <= 0:
        raise InvalidInputError("cols must be positive and scale must be > 0")

    tile_width = width / cols
    tile_height = tile_width / scale
    rows = math.floor(height / tile_height) if tile_height else 0
    if cols > width or rows > height or rows < 1:
        raise ImageTooSmallError(f"Image {width}x{height} is too small for {cols} columns")

    art = []
    for j in range(rows):
        y1 = math.floor(j * tile_height)
        y2 = height if j == rows - 1 else math.floor((j + 1) * tile_height)
        line = []
        for i in range(cols):
            x1 = math.floor(i * tile_width)
            x2 = width if i == cols - 1 else math.floor((i + 1) * tile_width)
            tile = (px for row in image[y1:y2] for px in row[x1:x2])
            line.append(luminance_to_digit(math.floor(average_luminance(tile))))
        art.append("".join(line))
    return art


def join_rows(rows: Sequence[str]) -> str:
    """Concatenate art rows into one seed digit string."""
    digits = "".join(rows)
    if not digits.strip():
        raise InvalidInputError("Digit art is empty")
    return digits


def split_rows(digits: str, row_lengths: Sequence[int]) -> List[str]:
    """Cut a digit string back into rows of the given lengths; leftovers form a final row."""
    rows = []
    start = 0
    for length in row_lengths:
        rows.append(digits[start:start + length])
        start += length
    if start < len(digits):
        rows.append(digits[start:])
    return rows
