import io
from dataclasses import replace

import pytest

from geometry import TerminalSizeError
from pipeline import CLEAR_SCREEN
from slideshow import main, play


def test_play_shows_every_image(fixed_config):
    out = io.StringIO()
    assert play(fixed_config, out) == 3
    assert out.getvalue().count(CLEAR_SCREEN) == 3


def test_play_fails_fast_without_terminal(fixed_config):
    def broken_probe():
        raise TerminalSizeError("no tty")

    config = replace(fixed_config, fixed_width=None, fixed_height=None)
    with pytest.raises(TerminalSizeError):
        play(config, io.StringIO(), probe=broken_probe)


def test_play_missing_folder(tmp_path, fixed_config):
    with pytest.raises(OSError):
        play(replace(fixed_config, directory=tmp_path / "gone"), io.StringIO())


def test_main_exits_nonzero_on_missing_folder(tmp_path):
    assert main(["-p", str(tmp_path / "gone"), "--width", "4", "--height", "2"]) == 1


@pytest.mark.parametrize("flags", [["--chars", ""], ["--workers", "0"], ["--qs", "0"]])
def test_main_exits_nonzero_on_bad_config(tmp_path, flags):
    assert main(["-p", str(tmp_path)] + flags) == 1


def test_main_plays_folder_and_says_goodbye(image_dir, capfd):
    code = main(["-p", str(image_dir), "--width", "8", "--height", "4", "--sleep", "0", "--no-shuffle"])
    out, _ = capfd.readouterr()
    assert code == 0
    assert out.count(CLEAR_SCREEN) == 3
    assert out.rstrip().endswith("That's all folks!")
