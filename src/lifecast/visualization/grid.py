from rich.console import Console, ConsoleOptions, RenderResult
from rich.segment import Segment
from rich.style import Style

from .matrix import FrameMatrix

# White cells on a blue field.
ALIVE_STYLE = Style(color="bright_white", bgcolor="blue")
DEAD_STYLE = Style(bgcolor="blue")


class GridView:
    """
    A Rich-renderable view of the presented frame of a FrameMatrix.
    Each cell is two characters wide so cells look square in a terminal.
    """

    def __init__(self, matrix: FrameMatrix, cell: str = "██"):
        self.matrix = matrix
        self.cell = cell
        self.blank = " " * len(cell)

    def __rich_console__(
        self, console: Console, options: ConsoleOptions
    ) -> RenderResult:
        front = self.matrix.get_snapshot()
        # One segment per run of equal cells keeps the segment count low.
        for row in front:
            run_alive = bool(row[0])
            run_length = 0
            for alive in row:
                if bool(alive) == run_alive:
                    run_length += 1
                    continue
                yield self._segment(run_alive, run_length)
                run_alive = bool(alive)
                run_length = 1
            yield self._segment(run_alive, run_length)
            yield Segment.line()

    def _segment(self, alive: bool, length: int) -> Segment:
        if alive:
            return Segment(self.cell * length, ALIVE_STYLE)
        return Segment(self.blank * length, DEAD_STYLE)
