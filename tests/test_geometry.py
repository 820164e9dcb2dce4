import subprocess

import pytest

import geometry
from geometry import GridSpec, TerminalSizeError, compute_grid, probe_terminal_size, terminal_capacity

from conftest import fixed_probe


def failing_probe():
    raise TerminalSizeError("no tty")


def test_both_overrides_skip_probe():
    assert terminal_capacity(30, 10, failing_probe) == (30, 10)


def test_fixed_width_scales_rows_proportionally():
    assert terminal_capacity(40, None, fixed_probe(80, 24)) == (40, 12)


def test_fixed_height_scales_columns_proportionally():
    assert terminal_capacity(None, 12, fixed_probe(80, 24)) == (40, 12)


def test_override_larger_than_terminal_is_ignored():
    assert terminal_capacity(200, None, fixed_probe(80, 24)) == (80, 24)


def test_unfixed_uses_probe():
    assert terminal_capacity(None, None, fixed_probe(120, 40)) == (120, 40)


def test_capacity_never_zero():
    assert terminal_capacity(1, None, fixed_probe(80, 24)) == (1, 1)


def test_probe_failure_propagates():
    with pytest.raises(TerminalSizeError):
        terminal_capacity(None, None, failing_probe)


def test_probe_parses_stty_output(monkeypatch):
    def fake_run(args, **kwargs):
        assert args == ["stty", "size"]
        return subprocess.CompletedProcess(args, 0, stdout="24 80\n", stderr="")

    monkeypatch.setattr(geometry.subprocess, "run", fake_run)
    assert probe_terminal_size() == (80, 24)


@pytest.mark.parametrize(
    "error",
    [FileNotFoundError("stty"), subprocess.CalledProcessError(1, ["stty", "size"])],
)
def test_probe_errors_become_terminal_size_error(monkeypatch, error):
    def fake_run(args, **kwargs):
        raise error

    monkeypatch.setattr(geometry.subprocess, "run", fake_run)
    with pytest.raises(TerminalSizeError):
        probe_terminal_size()


def test_probe_rejects_garbage(monkeypatch):
    monkeypatch.setattr(
        geometry.subprocess,
        "run",
        lambda args, **kwargs: subprocess.CompletedProcess(args, 0, stdout="nonsense", stderr=""),
    )
    with pytest.raises(TerminalSizeError):
        probe_terminal_size()


def test_grid_for_small_image():
    assert compute_grid((2, 2), 4, 4) == GridSpec(columns=2, rows=2, cell_width=1.0, cell_height=1.0)


def test_grid_for_large_image():
    grid = compute_grid((40, 12), 402, 122)
    assert (grid.columns, grid.rows) == (40, 12)
    assert grid.cell_width == pytest.approx(10.0)
    assert grid.cell_height == pytest.approx(10.0)


@pytest.mark.parametrize("capacity", [(1, 1), (2, 2), (80, 24), (500, 200)])
@pytest.mark.parametrize("size", [(1, 1), (2, 3), (4, 4), (17, 5), (640, 480)])
def test_grid_invariants(capacity, size):
    width, height = size
    grid = compute_grid(capacity, width, height)
    assert grid.columns >= 1 and grid.rows >= 1
    assert grid.cell_width >= 1 and grid.cell_height >= 1
    assert grid.columns <= capacity[0] and grid.rows <= capacity[1]
    # каждая ячейка начинается внутри картинки
    assert int((grid.columns - 1) * grid.cell_width) < width
    assert int((grid.rows - 1) * grid.cell_height) < height
