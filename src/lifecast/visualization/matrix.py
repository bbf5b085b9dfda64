import numpy as np


class FrameMatrix:
    """
    A double-buffered draw surface.

    Cells are drawn into the back buffer; `present` replaces the front buffer
    with it, which is what a viewer sees. Clearing only touches the back
    buffer, so an unfinished frame never disturbs the presented one.
    """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.back = np.zeros((height, width), dtype=bool)
        self.front = np.zeros((height, width), dtype=bool)
        self.frames_presented = 0

    def clear(self) -> None:
        self.back[:] = False

    def draw_cell(self, x: int, y: int) -> bool:
        if 0 <= x < self.width and 0 <= y < self.height:
            self.back[y, x] = True
            return True
        return False

    def present(self) -> None:
        np.copyto(self.front, self.back)
        self.frames_presented += 1

    @property
    def population(self) -> int:
        return int(np.count_nonzero(self.front))

    def alive_cells(self) -> set:
        """The (x, y) cells of the presented frame."""
        ys, xs = np.nonzero(self.front)
        return set(zip(xs.tolist(), ys.tolist()))

    def get_snapshot(self) -> np.ndarray:
        return self.front.copy()
