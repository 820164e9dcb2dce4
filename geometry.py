# geometry.py
"""Геометрия сетки: сколько ячеек влезает в терминал и сколько пикселей на ячейку."""
from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

# Обрезаем край картинки — на границе часто мусор
EDGE_MARGIN = 2

Probe = Callable[[], Tuple[int, int]]


class TerminalSizeError(RuntimeError):
    """Не удалось узнать размер терминала. Без него рисовать нечего — фатально."""


@dataclass(frozen=True)
class GridSpec:
    columns: int
    rows: int
    cell_width: float
    cell_height: float


def probe_terminal_size() -> Tuple[int, int]:
    """Спрашивает у `stty size` размер управляющего терминала.

    Returns:
        (columns, rows)

    Raises:
        TerminalSizeError: если stty недоступен, stdin не терминал или вывод не парсится.
    """
    try:
        res = subprocess.run(
            ["stty", "size"],
            stdin=sys.stdin,
            capture_output=True,
            text=True,
            check=True,
        )
        rows, columns = (int(v) for v in res.stdout.split())
    except (OSError, ValueError, subprocess.CalledProcessError) as exc:
        raise TerminalSizeError(f"cannot determine terminal size: {exc}") from exc
    if columns < 1 or rows < 1:
        raise TerminalSizeError(f"terminal reports unusable size {columns}x{rows}")
    return columns, rows


def terminal_capacity(
    fixed_width: Optional[int],
    fixed_height: Optional[int],
    probe: Probe = probe_terminal_size,
) -> Tuple[int, int]:
    """Сколько колонок и строк доступно под кадр.

    Оба override заданы — берём их как есть, терминал не трогаем.
    Иначе меряем терминал и, если override меньше измеренного, ужимаем
    вторую ось пропорционально.
    """
    if fixed_width and fixed_height:
        return fixed_width, fixed_height

    columns, rows = probe()
    if fixed_width and columns > fixed_width:
        columns, rows = fixed_width, int(rows * fixed_width / columns)
    elif fixed_height and rows > fixed_height:
        columns, rows = int(columns * fixed_height / rows), fixed_height
    return max(columns, 1), max(rows, 1)


def _axis(cells: int, extent: int) -> Tuple[int, float]:
    extent = max(extent - EDGE_MARGIN, 1)
    span = max(extent / max(cells, 1), 1.0)
    # при span == 1 лишние ячейки оказались бы за краем картинки
    return max(min(cells, extent), 1), span


def compute_grid(capacity: Tuple[int, int], width: int, height: int) -> GridSpec:
    columns, cell_width = _axis(capacity[0], width)
    rows, cell_height = _axis(capacity[1], height)
    return GridSpec(columns=columns, rows=rows, cell_width=cell_width, cell_height=cell_height)
