# ascii_frames.py
"""Картинка -> цветной текстовый кадр.

Картинка режется на ячейки по `GridSpec`, цвет ячейки усредняется, яркость
выбирает глиф из палитры, а соседние ячейки одного цвета склеиваются в один
`ColorRun`, чтобы на каждый отрезок уходила одна пара escape-последовательностей.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from geometry import GridSpec, compute_grid

RGB = Tuple[int, int, int]

# ITU-R BT.709
LUMA_R, LUMA_G, LUMA_B = 0.2126, 0.7152, 0.0722

RESET = "\x1b[0m"


# ------------ CELL AVERAGER ------------
def average_cell(
    pixels: np.ndarray,
    x: int,
    y: int,
    span_x: float,
    span_y: float,
) -> Optional[Tuple[float, float, float]]:
    """Средний цвет прямоугольника `span_x × span_y` с левым верхним углом (x, y).

    Блок обрезается по границам картинки; если от него ничего не осталось,
    возвращает None и ячейку надо пропустить.
    """
    height, width = pixels.shape[:2]
    x1 = min(x + max(int(span_x), 1), width)
    y1 = min(y + max(int(span_y), 1), height)
    if x < 0 or y < 0 or x >= x1 or y >= y1:
        return None
    block = pixels[y:y1, x:x1].reshape(-1, 3)
    # float64 + попарное суммирование numpy: сотни пикселей не уводят цвет
    r, g, b = block.mean(axis=0, dtype=np.float64)
    return float(r), float(g), float(b)


# ------------ GLYPH MAPPER ------------
def luminance(r: float, g: float, b: float) -> float:
    return LUMA_R * r + LUMA_G * g + LUMA_B * b


def glyph_index(lum: float, palette_size: int) -> int:
    idx = math.floor(lum / 255 * (palette_size - 1))
    return min(max(idx, 0), palette_size - 1)


# ------------ ROW ENCODER ------------
@dataclass
class ColorRun:
    r: int
    g: int
    b: int
    glyphs: List[str] = field(default_factory=list)

    def matches(self, color: RGB) -> bool:
        return (self.r, self.g, self.b) == color

    def render(self) -> str:
        return f"\x1b[38;2;{self.r};{self.g};{self.b}m{''.join(self.glyphs)}{RESET}"


def encode_row(cells: Iterable[Tuple[RGB, str]]) -> List[ColorRun]:
    """Жадно склеивает подряд идущие ячейки одного цвета. Один проход, без заглядывания вперёд."""
    runs: List[ColorRun] = []
    current: Optional[ColorRun] = None
    for color, glyph in cells:
        if current is not None and current.matches(color):
            current.glyphs.append(glyph)
            continue
        current = ColorRun(*color, glyphs=[glyph])
        runs.append(current)
    return runs


def replay(runs: Iterable[ColorRun]) -> str:
    """Глифы без оформления — ровно то, что было до кодирования."""
    return "".join("".join(run.glyphs) for run in runs)


# ------------ FRAME RENDERER ------------
def _row_cells(pixels: np.ndarray, grid: GridSpec, top: int, palette: Sequence[str]):
    for col in range(grid.columns):
        avg = average_cell(pixels, int(col * grid.cell_width), top, grid.cell_width, grid.cell_height)
        if avg is None:
            continue
        color = (int(avg[0]), int(avg[1]), int(avg[2]))
        yield color, palette[glyph_index(luminance(*avg), len(palette))]


def render_grid(pixels: np.ndarray, grid: GridSpec, palette: Sequence[str]) -> str:
    """Чистая функция: одинаковые пиксели, сетка и палитра дают байт-в-байт один кадр."""
    out: List[str] = []
    for row in range(grid.rows):
        out.append("\n")
        runs = encode_row(_row_cells(pixels, grid, int(row * grid.cell_height), palette))
        out.extend(run.render() for run in runs)
    return "".join(out)


def render_frame(pixels: np.ndarray, capacity: Tuple[int, int], palette: Sequence[str]) -> str:
    """Считает сетку под `capacity` (колонки, строки) и рендерит кадр."""
    height, width = pixels.shape[:2]
    return render_grid(pixels, compute_grid(capacity, width, height), palette)
