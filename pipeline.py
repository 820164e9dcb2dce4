# pipeline.py
"""Файлы -> очередь работы -> воркеры -> очередь кадров -> вывод.

Воркеры — потоки, общаются только через очереди. Очередь кадров ограничена:
`put` блокирует, пока потребитель не заберёт кадр (backpressure).
"""
from __future__ import annotations

import logging
import os
import queue
import random
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, TextIO

import numpy as np
from PIL import Image

from ascii_frames import render_frame
from config import SlideshowConfig
from geometry import Probe, TerminalSizeError, probe_terminal_size, terminal_capacity

logger = logging.getLogger(__name__)

CLEAR_SCREEN = "\033[H\033[2J"

@dataclass(frozen=True)
class ImageSource:
    name: str
    path: Path


@dataclass(frozen=True)
class DecodedImage:
    name: str
    pixels: np.ndarray  # (H, W, 3) uint8
    format: Optional[str]

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]


@dataclass(frozen=True)
class Frame:
    name: str
    text: str


def list_sources(directory: Path, shuffle: bool = False, seed: Optional[int] = None) -> List[ImageSource]:
    """Записи папки (без рекурсии, по имени). По расширению не фильтруем — решает декодер.

    Raises:
        OSError: папку нельзя прочитать.
    """
    with os.scandir(directory) as it:
        sources = [ImageSource(entry.name, Path(entry.path)) for entry in it]
    sources.sort(key=lambda s: s.name)
    if shuffle:
        random.Random(seed).shuffle(sources)
    return sources


def decode_image(source: ImageSource) -> DecodedImage:
    """Открывает и декодирует файл; дескриптор закрывается до возврата.

    Raises:
        Exception: файл не открылся или это не картинка (Pillow бросает разное: OSError,
            ValueError, IndexError, ...).
    """
    with Image.open(source.path) as img:
        fmt = img.format
        pixels = np.asarray(img.convert("RGB"), dtype=np.uint8)
    return DecodedImage(name=source.name, pixels=pixels, format=fmt)


# ------------ FRAME QUEUE ------------
_CLOSED = object()


class FrameQueue:
    """Ограниченная FIFO с однократным закрытием.

    Итерация отдаёт кадры в порядке поступления, пока очередь не закрыта и не пуста.
    """

    def __init__(self, maxsize: int) -> None:
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=maxsize)
        self._drained = False

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize

    def qsize(self) -> int:
        return self._queue.qsize()

    def put(self, frame: Frame) -> None:
        self._queue.put(frame)

    def close(self) -> None:
        # вызывается ровно один раз — из action барьера
        self._queue.put(_CLOSED)

    def get(self) -> Optional[Frame]:
        """Следующий кадр или None, если очередь закрыта и вычерпана."""
        if self._drained:
            return None
        item = self._queue.get()
        if item is _CLOSED:
            self._drained = True
            # возвращаем метку: её должен увидеть каждый, кто ждёт в get
            self._queue.put_nowait(_CLOSED)
            return None
        return item  # type: ignore[return-value]

    def __iter__(self) -> Iterator[Frame]:
        while True:
            frame = self.get()
            if frame is None:
                return
            yield frame

    def discard_in_background(self) -> threading.Thread:
        """Вычерпывает остаток в фоне, чтобы заблокированные воркеры доработали."""
        t = threading.Thread(target=self._drain, name="frame-drain", daemon=True)
        t.start()
        return t

    def _drain(self) -> None:
        for _ in self:
            pass


# ------------ WORKER POOL ------------
class WorkerPool:
    """Фиксированный пул потоков: берут файл, декодируют, рендерят, кладут кадр.

    Битые и нечитаемые файлы пропускаются без ошибки; их число — в `skipped`.
    Если во время рендера не удалось померить терминал, пул останавливается,
    а ошибка лежит в `error` — вызывающий поднимает её после вычерпывания очереди.
    """

    def __init__(self, config: SlideshowConfig, probe: Probe = probe_terminal_size) -> None:
        self.config = config
        self.probe = probe
        self.error: Optional[TerminalSizeError] = None
        self._rendered = 0
        self._skipped = 0
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._threads: List[threading.Thread] = []

    @property
    def rendered(self) -> int:
        with self._lock:
            return self._rendered

    @property
    def skipped(self) -> int:
        with self._lock:
            return self._skipped

    def start(self, sources: List[ImageSource]) -> FrameQueue:
        work: "queue.Queue[ImageSource]" = queue.Queue(maxsize=max(len(sources), 1))
        for source in sources:
            work.put_nowait(source)

        frames = FrameQueue(self.config.queue_size)
        barrier = threading.Barrier(self.config.workers, action=frames.close)
        logger.info("Rendering %d entries with %d workers", len(sources), self.config.workers)
        for i in range(self.config.workers):
            t = threading.Thread(
                target=self._work,
                args=(work, frames, barrier),
                name=f"render-{i}",
                daemon=True,
            )
            self._threads.append(t)
            t.start()
        return frames

    def join(self, timeout: Optional[float] = None) -> None:
        for t in self._threads:
            t.join(timeout)

    def _work(self, work: "queue.Queue[ImageSource]", frames: FrameQueue, barrier: threading.Barrier) -> None:
        try:
            while not self._stop.is_set():
                try:
                    source = work.get_nowait()
                except queue.Empty:
                    break
                frame = self._render(source)
                if frame is not None:
                    frames.put(frame)
        finally:
            # последний дошедший до барьера закрывает очередь кадров
            barrier.wait()

    def _render(self, source: ImageSource) -> Optional[Frame]:
        try:
            image = decode_image(source)
        except Exception as exc:
            # любой сбой открытия или декодирования: файл пропускаем, показ идёт дальше
            logger.debug("Skipping %s: %r", source.name, exc)
            with self._lock:
                self._skipped += 1
            return None

        try:
            capacity = terminal_capacity(self.config.fixed_width, self.config.fixed_height, self.probe)
        except TerminalSizeError as exc:
            with self._lock:
                if self.error is None:
                    self.error = exc
            self._stop.set()
            return None

        text = render_frame(image.pixels, capacity, self.config.palette)
        with self._lock:
            self._rendered += 1
        return Frame(name=image.name, text=text)


# ------------ OUTPUT PUMP ------------
def pump(
    frames: Iterable[Frame],
    out: TextIO,
    delay: float,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Печатает кадры по одному в порядке прихода, с паузой `delay` после каждого."""
    shown = 0
    for frame in frames:
        out.write(CLEAR_SCREEN)
        out.write(frame.text)
        out.write("\n")
        out.flush()
        shown += 1
        sleep(delay)
    return shown
