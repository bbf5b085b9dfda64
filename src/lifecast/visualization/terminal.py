from typing import Optional

from rich.console import Console, Group
from rich.live import Live

from .grid import GridView
from .matrix import FrameMatrix
from .status import StatusBar


class TerminalSurface:
    """
    A draw surface rendered live in the terminal.

    Drawing goes to an off-screen FrameMatrix; the terminal only changes on
    `present`, mirroring a double-buffered window.
    """

    def __init__(
        self,
        width: int,
        height: int,
        title: str = "lifecast",
        console: Optional[Console] = None,
    ):
        self.matrix = FrameMatrix(width, height)
        self.grid_view = GridView(self.matrix)
        self.status_bar = StatusBar(title, {"Frame": 0, "Alive": 0})
        self._live = Live(
            Group(self.grid_view, self.status_bar),
            console=console,
            auto_refresh=False,
            transient=False,
        )
        self._started = False

    def start(self):
        if not self._started:
            self._live.start()
            self._started = True

    def stop(self):
        if self._started:
            self._live.stop()
            self._started = False

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    def set_status(self, key: str, value):
        self.status_bar.set_status(key, value)

    def clear(self) -> None:
        self.matrix.clear()

    def draw_cell(self, x: int, y: int) -> bool:
        return self.matrix.draw_cell(x, y)

    def present(self) -> None:
        self.matrix.present()
        self.status_bar.set_status("Frame", self.matrix.frames_presented)
        self.status_bar.set_status("Alive", self.matrix.population)
        if self._started:
            self._live.refresh()

    @property
    def frames_presented(self) -> int:
        return self.matrix.frames_presented
