# config.py
"""Настройки слайдшоу.

Один неизменяемый `SlideshowConfig` собирается при старте (CLI или фабрика
приложения) и передаётся в пайплайн явно. Глобальных флагов нет.
"""
from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

# ------------ DEFAULTS ------------
DEFAULT_PALETTE = "░▒▓█"   # от редкого к плотному
DEFAULT_QUEUE_SIZE = 2      # больше кадров в очереди -> меньше задержка, больше памяти
DEFAULT_WORKERS = 2
DEFAULT_DELAY = 3.0         # секунды между кадрами
DEFAULT_BUFFER_SIZE = 4096 * 2


class ConfigError(ValueError):
    """Недопустимое значение настройки."""


@dataclass(frozen=True)
class SlideshowConfig:
    """Все параметры запуска.

    Fields:
        directory: Папка с картинками (перебирается без рекурсии).
        queue_size: Ёмкость очереди готовых кадров.
        palette: Глифы от редкого к плотному.
        workers: Сколько потоков рендерят параллельно.
        fixed_width: Фиксированная ширина в колонках (None — по терминалу).
        fixed_height: Фиксированная высота в строках (None — по терминалу).
        shuffle: Перемешать файлы перед показом.
        delay: Пауза между кадрами, секунды.
        buffer_size: Размер буфера stdout, байты.
        seed: Зерно для перемешивания (None — случайное).
    """
    directory: Path = Path(".")
    queue_size: int = DEFAULT_QUEUE_SIZE
    palette: str = DEFAULT_PALETTE
    workers: int = DEFAULT_WORKERS
    fixed_width: Optional[int] = None
    fixed_height: Optional[int] = None
    shuffle: bool = True
    delay: float = DEFAULT_DELAY
    buffer_size: int = DEFAULT_BUFFER_SIZE
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.palette:
            raise ConfigError("palette must contain at least one glyph")
        if self.queue_size < 1:
            raise ConfigError(f"queue size must be positive, got {self.queue_size}")
        if self.workers < 1:
            raise ConfigError(f"worker count must be positive, got {self.workers}")
        if self.delay < 0:
            raise ConfigError(f"delay must not be negative, got {self.delay}")
        if self.buffer_size < 1:
            raise ConfigError(f"buffer size must be positive, got {self.buffer_size}")
        for name in ("fixed_width", "fixed_height"):
            value = getattr(self, name)
            if value is not None and value < 1:
                raise ConfigError(f"{name} must be positive or unset, got {value}")


def _fixed(value: int) -> Optional[int]:
    # отрицательное или ноль — «не фиксировано», как в старых флагах
    return value if value > 0 else None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ascii-slideshow",
        description="Render a folder of images as a colored block-character slideshow.",
    )
    parser.add_argument("-p", "--path", default=".", help="Path to folder containing images to render")
    parser.add_argument("--sleep", type=float, default=DEFAULT_DELAY, help="Seconds to wait between frames")
    parser.add_argument("--qs", type=int, default=DEFAULT_QUEUE_SIZE,
                        help="# of frames to queue (larger == less latency, more memory)")
    parser.add_argument("--chars", default=DEFAULT_PALETTE, help="Characters to use for rendering, sparse to dense")
    parser.add_argument("--workers", type=int, default=DEFAULT_WORKERS, help="Number of workers for rendering")
    parser.add_argument("--width", type=int, default=-1, help="Fixed width (negative implies unfixed)")
    parser.add_argument("--height", type=int, default=-1, help="Fixed height (negative implies unfixed)")
    parser.add_argument("--shuffle", action=argparse.BooleanOptionalAction, default=True,
                        help="Shuffle source images")
    parser.add_argument("--seed", type=int, default=None, help="Seed for shuffling")
    parser.add_argument("--buf", type=int, default=DEFAULT_BUFFER_SIZE, help="Size of output buffer, bytes")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log skipped files and pool progress")
    parser.add_argument("--serve", action="store_true", help="Stream the slideshow over HTTP instead")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    return parser


def config_from_args(args: argparse.Namespace) -> SlideshowConfig:
    return SlideshowConfig(
        directory=Path(args.path),
        queue_size=args.qs,
        palette=args.chars,
        workers=args.workers,
        fixed_width=_fixed(args.width),
        fixed_height=_fixed(args.height),
        shuffle=args.shuffle,
        delay=args.sleep,
        buffer_size=args.buf,
        seed=args.seed,
    )


def parse_config(argv: Optional[List[str]] = None) -> SlideshowConfig:
    return config_from_args(build_parser().parse_args(argv))
