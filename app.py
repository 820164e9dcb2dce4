# app.py
from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import replace
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse, StreamingResponse
from rich.console import Console
from rich.markup import escape
from starlette.concurrency import run_in_threadpool

from config import SlideshowConfig
from pipeline import CLEAR_SCREEN, ImageSource, WorkerPool, list_sources

logger = logging.getLogger(__name__)

# ------------ CONFIG ------------
CAPTION_COLOR = "0,255,180"
DONE_MESSAGE = "That's all folks!"
# Альт-экран выключен по умолчанию (чтобы скролл терминала работал как раньше)
ALT_SCREEN_DEFAULT = False

# ------------ BROWSER DETECTION ------------
def is_browser(req: Request) -> bool:
    ua = (req.headers.get("user-agent") or "").lower()
    accept = (req.headers.get("accept") or "").lower()
    ua_browser = any(k in ua for k in ["mozilla", "chrome", "safari", "edg", "firefox", "opera"])
    accept_html = "text/html" in accept
    return ua_browser or accept_html

BROWSER_HINT = (
    "This endpoint streams ANSI graphics and is meant for a terminal.\n\n"
    "Open it from a terminal, for example:\n"
    "  curl -N 'http://<host>:<port>/slideshow?cols=80&rows=24&delay=1'\n"
    "or on Windows PowerShell:\n"
    "  curl.exe -N http://<host>:<port>/slideshow\n"
)

USAGE = (
    "ASCII slideshow is running.\n\n"
    "Endpoints:\n"
    "  GET /slideshow         -> stream the image folder (terminal only)\n"
    "       Query: cols, rows (int), delay (float), alt, shuffle, caption (bool)\n"
    "  GET /healthz           -> liveness probe\n"
    "\n"
    "Browsers do not render the stream. Use a terminal (curl -N ...).\n"
)

# ------------ CAPTION ------------
def render_caption(name: str, color: str = CAPTION_COLOR) -> str:
    """
    Подпись под кадром через Rich (TrueColor). Хвост строки чистим (ESC[K),
    чтобы не оставались куски от предыдущей, более длинной подписи.
    """
    buf = io.StringIO()
    # своя консоль на вызов: кадры стримятся параллельно в разные ответы
    console = Console(file=buf, force_terminal=True, color_system="truecolor", width=max(len(name) + 1, 80))
    console.print(f"[rgb({color})]{escape(name)}[/]", end="", soft_wrap=True, highlight=False)
    buf.write("\x1b[K\n")
    return buf.getvalue()

# ------------ STREAMER ------------
async def stream_slideshow(
    *,
    config: SlideshowConfig,
    sources: List[ImageSource],
    delay: float,
    alt_screen: bool,
    caption: bool,
):
    # стартовые/завершающие ANSI-последовательности
    if alt_screen:
        start = "\033[?1049h\033[2J\033[H\033[?25l"  # альт-экран + очистка + курсор в (1,1) + скрыть курсор
        end = "\033[?25h\033[?1049l"                 # показать курсор + вернуться с альт-экрана
    else:
        start = "\033[2J\033[H\033[?25l"             # обычный экран: очистка + курсор в (1,1) + скрыть курсор
        end = "\033[?25h"                            # показать курсор

    pool = WorkerPool(config)
    frames = pool.start(sources)
    try:
        yield start.encode("utf-8")
        while True:
            frame = await run_in_threadpool(frames.get)
            if frame is None:
                break
            content = CLEAR_SCREEN + frame.text + "\n"
            if caption:
                content += render_caption(frame.name)
            yield content.encode("utf-8")
            await asyncio.sleep(delay)
        logger.info("Stream finished: %d frames, %d skipped", pool.rendered, pool.skipped)
        yield (DONE_MESSAGE + "\n" + end).encode("utf-8")
    finally:
        # клиент мог отвалиться посреди показа — воркеры не должны висеть на put
        frames.discard_in_background()

# ------------ APP ------------
def create_app(config: SlideshowConfig) -> FastAPI:
    app = FastAPI(title="ASCII Slideshow", version="1.0")

    @app.get("/", response_class=PlainTextResponse)
    def index(request: Request) -> str:
        if is_browser(request):
            return BROWSER_HINT
        return USAGE

    @app.get("/healthz", response_class=PlainTextResponse)
    def healthz() -> str:
        return "ok"

    @app.get("/slideshow")
    async def slideshow(
        request: Request,
        cols: int = Query(80, ge=1, le=500, description="Grid width in characters"),
        rows: int = Query(24, ge=1, le=200, description="Grid height in characters"),
        delay: Optional[float] = Query(None, ge=0.0, le=60.0, description="Seconds between frames"),
        alt: bool = Query(ALT_SCREEN_DEFAULT, description="Use alternate screen buffer"),
        shuffle: Optional[bool] = Query(None, description="Override shuffle setting"),
        caption: bool = Query(False, description="Print the file name under each frame"),
    ):
        if is_browser(request):
            return PlainTextResponse(BROWSER_HINT, status_code=200)

        try:
            sources = list_sources(
                config.directory,
                shuffle=config.shuffle if shuffle is None else shuffle,
                seed=config.seed,
            )
        except OSError as exc:
            logger.error("Cannot read %s: %s", config.directory, exc)
            raise HTTPException(status_code=500, detail=f"Cannot read image folder: {config.directory}")

        # на сервере терминала нет — сетку задаёт клиент
        stream_config = replace(config, fixed_width=cols, fixed_height=rows)
        gen = stream_slideshow(
            config=stream_config,
            sources=sources,
            delay=config.delay if delay is None else delay,
            alt_screen=alt,
            caption=caption,
        )
        headers = {"Cache-Control": "no-store"}
        return StreamingResponse(gen, media_type="text/plain; charset=utf-8", headers=headers)

    return app
