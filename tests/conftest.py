from pathlib import Path
from typing import Tuple

import pytest
from PIL import Image

from config import SlideshowConfig


def save_image(path: Path, size: Tuple[int, int], color=(0, 0, 0), fmt: str = "PNG") -> Path:
    Image.new("RGB", size, color).save(path, format=fmt)
    return path


@pytest.fixture
def image_dir(tmp_path: Path) -> Path:
    """Три картинки и один битый файл."""
    save_image(tmp_path / "a.png", (32, 16), (255, 0, 0))
    save_image(tmp_path / "b.png", (32, 16), (0, 255, 0))
    save_image(tmp_path / "c.jpg", (32, 16), (0, 0, 255), fmt="JPEG")
    (tmp_path / "notes.txt").write_bytes(b"definitely not an image")
    return tmp_path


@pytest.fixture
def fixed_config(image_dir: Path) -> SlideshowConfig:
    return SlideshowConfig(
        directory=image_dir,
        fixed_width=8,
        fixed_height=4,
        shuffle=False,
        delay=0.0,
    )


def fixed_probe(columns: int = 80, rows: int = 24):
    return lambda: (columns, rows)
