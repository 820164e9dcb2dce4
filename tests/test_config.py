from pathlib import Path

import pytest

from config import DEFAULT_PALETTE, ConfigError, SlideshowConfig, parse_config


def test_defaults():
    config = parse_config([])
    assert config == SlideshowConfig()
    assert config.directory == Path(".")
    assert config.palette == DEFAULT_PALETTE
    assert config.fixed_width is None and config.fixed_height is None
    assert config.shuffle is True


def test_flags():
    config = parse_config(
        ["-p", "pics", "--sleep", "0.5", "--qs", "4", "--chars", " .#", "--workers", "3",
         "--width", "40", "--height", "-1", "--no-shuffle", "--seed", "9", "--buf", "1024"]
    )
    assert config == SlideshowConfig(
        directory=Path("pics"),
        queue_size=4,
        palette=" .#",
        workers=3,
        fixed_width=40,
        fixed_height=None,
        shuffle=False,
        delay=0.5,
        buffer_size=1024,
        seed=9,
    )


@pytest.mark.parametrize(
    "kwargs",
    [
        {"palette": ""},
        {"workers": 0},
        {"queue_size": 0},
        {"delay": -0.1},
        {"buffer_size": 0},
        {"fixed_width": 0},
        {"fixed_height": -3},
    ],
)
def test_invalid_values(kwargs):
    with pytest.raises(ConfigError):
        SlideshowConfig(**kwargs)


def test_config_is_immutable():
    config = SlideshowConfig()
    with pytest.raises(AttributeError):
        config.workers = 5
