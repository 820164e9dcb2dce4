# slideshow.py
"""Точка входа: ascii-slideshow -p ./pics --sleep 2 --workers 4"""
from __future__ import annotations

import logging
import sys
from typing import List, Optional, TextIO

from rich.console import Console
from rich.logging import RichHandler

from config import ConfigError, SlideshowConfig, build_parser, config_from_args
from geometry import Probe, TerminalSizeError, probe_terminal_size, terminal_capacity
from pipeline import WorkerPool, list_sources, pump

logger = logging.getLogger("slideshow")

DONE_MESSAGE = "That's all folks!"


def setup_logging(verbose: bool) -> None:
    # только stderr: stdout занят кадрами
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def play(config: SlideshowConfig, out: Optional[TextIO] = None, probe: Probe = probe_terminal_size) -> int:
    """Показывает всю папку и возвращает число показанных кадров.

    Raises:
        OSError: папку нельзя прочитать.
        TerminalSizeError: размер терминала не определяется.
    """
    sources = list_sources(config.directory, shuffle=config.shuffle, seed=config.seed)
    # мерим терминал до старта воркеров: падать сразу, а не после первого декода
    terminal_capacity(config.fixed_width, config.fixed_height, probe)

    pool = WorkerPool(config, probe)
    frames = pool.start(sources)
    if out is None:
        sys.stdout.flush()
        with open(sys.stdout.fileno(), "w", buffering=config.buffer_size, encoding="utf-8", closefd=False) as stdout:
            shown = pump(frames, stdout, config.delay)
    else:
        shown = pump(frames, out, config.delay)
    if pool.error is not None:
        raise pool.error
    logger.info("Shown %d frames, skipped %d of %d entries", shown, pool.skipped, len(sources))
    return shown


def serve(config: SlideshowConfig, host: str, port: int) -> None:
    import uvicorn

    from app import create_app

    uvicorn.run(create_app(config), host=host, port=port)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    try:
        config = config_from_args(args)
        if args.serve:
            serve(config, args.host, args.port)
            return 0
        play(config)
    except (ConfigError, TerminalSizeError) as exc:
        logger.error("%s", exc)
        return 1
    except OSError as exc:
        logger.error("Cannot read %s: %s", args.path, exc)
        return 1
    Console().print(DONE_MESSAGE)
    return 0


if __name__ == "__main__":
    sys.exit(main())
