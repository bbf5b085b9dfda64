from typing import Iterable, Iterator, Optional, Sequence, Tuple

import numpy as np

from .rule import Phase, next_states

# The 8-neighbourhood; the cell itself is excluded.
NEIGHBOR_OFFSETS: Tuple[Tuple[int, int], ...] = tuple(
    (dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if not (dx == 0 and dy == 0)
)

ALIVE_MARKS = "#O*1"


class Grid:
    """
    A toroidal grid of cell phases.

    Cells are stored row-major as `cells[y, x]`. Every coordinate wraps modulo
    the grid size, so neighbour lookups at the edges read the opposite edge
    and never go out of bounds.
    """

    def __init__(self, width: int, height: int):
        if width < 3 or height < 3:
            raise ValueError(f"Grid must be at least 3x3, got {width}x{height}")
        self.width = width
        self.height = height
        self.cells = np.zeros((height, width), dtype=np.int8)
        self.generation = 0

    @classmethod
    def from_rows(cls, rows: Sequence[str]) -> "Grid":
        """
        Builds a grid from a text picture, one string per row.
        '#', 'O', '*' and '1' mark live cells; anything else is dead.
        """
        if not rows:
            raise ValueError("At least one row is required")
        width = len(rows[0])
        if any(len(row) != width for row in rows):
            raise ValueError("All rows must have the same length")
        grid = cls(width, len(rows))
        for y, row in enumerate(rows):
            for x, mark in enumerate(row):
                if mark in ALIVE_MARKS:
                    grid.cells[y, x] = Phase.ALIVE
        return grid

    def to_rows(self, alive: str = "#", dead: str = ".") -> list:
        return [
            "".join(alive if cell else dead for cell in row) for row in self.cells
        ]

    def seed(self, initial_state: np.ndarray):
        """Replaces the whole population with the given (height, width) array."""
        if initial_state.shape != (self.height, self.width):
            raise ValueError(
                f"Shape mismatch: expected {(self.height, self.width)}, got {initial_state.shape}"
            )
        self.cells = (initial_state != 0).astype(np.int8)

    def seed_random(self, density: float, rng: Optional[np.random.Generator] = None):
        """Makes every cell independently alive with probability `density`."""
        rng = rng if rng is not None else np.random.default_rng()
        noise = rng.random((self.height, self.width))
        self.cells = (noise < density).astype(np.int8)

    def get(self, x: int, y: int) -> Phase:
        return Phase(int(self.cells[y % self.height, x % self.width]))

    def set(self, x: int, y: int, phase: Phase):
        self.cells[y % self.height, x % self.width] = phase

    def neighbor_count(self, x: int, y: int) -> int:
        return sum(int(self.get(x + dx, y + dy)) for dx, dy in NEIGHBOR_OFFSETS)

    def neighbor_counts(self) -> np.ndarray:
        """Live-neighbour counts for every cell, taken from one snapshot."""
        counts = np.zeros((self.height, self.width), dtype=np.int8)
        for dx, dy in NEIGHBOR_OFFSETS:
            counts += np.roll(self.cells, shift=(-dy, -dx), axis=(0, 1))
        return counts

    def step(self) -> int:
        """
        Advances one generation as a single synchronous sweep.
        All counts are taken before any cell changes. Returns the number of
        cells whose phase changed.
        """
        counts = self.neighbor_counts()
        next_cells = next_states(self.cells, counts)
        changed = int(np.count_nonzero(next_cells != self.cells))
        self.cells = next_cells
        self.generation += 1
        return changed

    @property
    def population(self) -> int:
        return int(np.count_nonzero(self.cells))

    @property
    def is_extinct(self) -> bool:
        return self.population == 0

    def alive_cells(self, order: str = "row") -> Iterator[Tuple[int, int]]:
        """
        Yields (x, y) of every live cell.
        'row' scans y-major (rows top to bottom), 'column' scans x-major.
        """
        if order == "row":
            ys, xs = np.nonzero(self.cells)
            return zip(xs.tolist(), ys.tolist())
        if order == "column":
            xs, ys = np.nonzero(self.cells.T)
            return zip(xs.tolist(), ys.tolist())
        raise ValueError(f"Unknown scan order '{order}'")

    def alive_set(self) -> set:
        return set(self.alive_cells())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self.cells.shape == other.cells.shape and bool(
            np.array_equal(self.cells, other.cells)
        )

    def __repr__(self) -> str:
        return f"Grid({self.width}x{self.height}, generation={self.generation}, population={self.population})"


def grid_from_cells(width: int, height: int, cells: Iterable[Tuple[int, int]]) -> Grid:
    grid = Grid(width, height)
    for x, y in cells:
        grid.set(x, y, Phase.ALIVE)
    return grid
