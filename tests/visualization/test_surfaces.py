import io

import numpy as np
from rich.console import Console

from lifecast.visualization import FrameMatrix, GridView, StatusBar, TerminalSurface


def test_matrix_draws_off_screen_until_present():
    matrix = FrameMatrix(4, 3)
    assert matrix.draw_cell(1, 2)
    assert matrix.population == 0

    matrix.present()

    assert matrix.alive_cells() == {(1, 2)}
    assert matrix.frames_presented == 1


def test_matrix_clear_keeps_presented_frame():
    matrix = FrameMatrix(4, 3)
    matrix.draw_cell(0, 0)
    matrix.present()

    matrix.clear()
    matrix.draw_cell(3, 2)

    assert matrix.alive_cells() == {(0, 0)}
    matrix.present()
    assert matrix.alive_cells() == {(3, 2)}


def test_matrix_rejects_out_of_bounds_cells():
    matrix = FrameMatrix(4, 3)
    assert not matrix.draw_cell(4, 0)
    assert not matrix.draw_cell(0, 3)
    assert not matrix.draw_cell(-1, 1)
    matrix.present()
    assert matrix.population == 0


def test_matrix_snapshot_is_a_copy():
    matrix = FrameMatrix(2, 2)
    snapshot = matrix.get_snapshot()
    snapshot[0, 0] = True
    assert not matrix.front.any()
    assert snapshot.shape == (2, 2)


def test_grid_view_renders_presented_frame():
    matrix = FrameMatrix(3, 2)
    matrix.draw_cell(0, 0)
    matrix.draw_cell(2, 1)
    matrix.present()
    console = Console(record=True, width=40, file=io.StringIO())

    console.print(GridView(matrix))

    lines = console.export_text().splitlines()
    assert lines[0] == "██    "
    assert lines[1] == "    ██"


def test_grid_view_merges_runs_of_equal_cells():
    matrix = FrameMatrix(10, 2)
    matrix.front[0, :] = np.array([1, 1, 1, 0, 0, 1, 1, 1, 1, 1], dtype=bool)
    console = Console(width=40, file=io.StringIO())

    segments = list(GridView(matrix).__rich_console__(console, console.options))

    # Row 0: three runs and a newline. Row 1: one run and a newline.
    assert len(segments) == 6


def test_status_bar_shows_every_key():
    console = Console(record=True, width=80, file=io.StringIO())
    bar = StatusBar("SubGlife", {"Frame": 0})
    bar.set_status("Alive", 12)

    console.print(bar)

    text = console.export_text()
    assert "SubGlife" in text
    assert "Frame: 0" in text
    assert "Alive: 12" in text


def test_terminal_surface_updates_status_on_present():
    output = io.StringIO()
    console = Console(file=output, width=120)
    surface = TerminalSurface(4, 3, title="SubGlife", console=console)

    with surface:
        surface.clear()
        surface.draw_cell(0, 0)
        surface.draw_cell(1, 0)
        assert not surface.draw_cell(9, 9)
        surface.present()

    assert surface.frames_presented == 1
    assert surface.status_bar.status_data == {"Frame": 1, "Alive": 2}
    assert surface.matrix.alive_cells() == {(0, 0), (1, 0)}
    assert "Alive: 2" in output.getvalue()
