from .matrix import FrameMatrix
from .grid import GridView
from .status import StatusBar
from .terminal import TerminalSurface

__all__ = ["FrameMatrix", "GridView", "StatusBar", "TerminalSurface"]
