# Rotrix - A gravity-flipping falling-block puzzle
# rendering.py - Renderer interface used by the controller, plus a text renderer

import sys
from typing import Iterable, List, Optional, Sequence, TextIO

from .board import GridSnapshot
from .pieces import Matrix, Piece
from .resettle import BodyMove

FILLED = "█"
EMPTY = "·"
ACTIVE = "○"
FLASH = "▒"


class Renderer:
    """
    Drawing collaborator for GameController.
    Every method is a no-op here, so this class doubles as the headless renderer.
    The animate_* methods return iterables of frames; the controller suspends
    once per frame and resumes on the next update.
    """

    def clear(self):
        pass

    def draw_board(self, snapshot: GridSnapshot, colors: Sequence[Optional[str]]):
        pass

    def draw_piece(self, piece: Piece, colors: Sequence[Optional[str]]):
        pass

    def draw_next_piece(self, matrix: Matrix, colors: Sequence[Optional[str]]):
        pass

    def draw_stats(self, state):
        pass

    def draw_paused(self, state):
        pass

    def draw_game_over(self, state):
        pass

    def present(self):
        pass

    def animate_lines_clear(self, rows: List[int], colors: Sequence[Optional[str]],
                            snapshot: GridSnapshot) -> Iterable[None]:
        return iter(())

    def animate_gravity_flip(self, snapshot: GridSnapshot, colors: Sequence[Optional[str]],
                             old_gravity_down: bool, move: BodyMove) -> Iterable[None]:
        return iter(())


class TextRenderer(Renderer):
    """Renders frames as text, one character per cell."""

    def __init__(self, stream: Optional[TextIO] = None, flash_frames: int = 2):
        self.stream = stream or sys.stdout
        self.flash_frames = flash_frames
        self._rows: List[List[str]] = []
        self._footer: List[str] = []

    def clear(self):
        self._rows = []
        self._footer = []

    def draw_board(self, snapshot, colors):
        self._rows = [[FILLED if cell else EMPTY for cell in row] for row in snapshot.tolist()]

    def draw_piece(self, piece, colors):
        for x, y, _ in piece.cells():
            if 0 <= y < len(self._rows) and 0 <= x < len(self._rows[y]):
                self._rows[y][x] = ACTIVE

    def draw_next_piece(self, matrix, colors):
        self._footer.append("Next:")
        for row in matrix:
            self._footer.append("".join(FILLED if cell else " " for cell in row))

    def draw_stats(self, state):
        gravity = "down" if state.gravity_down else "up"
        self._footer.append(
            f"Score: {state.score}  Level: {state.level}  Lines: {state.total_lines}  Gravity: {gravity}"
        )

    def draw_paused(self, state):
        self._footer.append("PAUSED")

    def draw_game_over(self, state):
        self._footer.append("GAME OVER - press Enter to restart")

    def present(self):
        lines = ["".join(row) for row in self._rows] + self._footer
        self.stream.write("\n".join(lines) + "\n\n")

    def animate_lines_clear(self, rows, colors, snapshot):
        for frame in range(self.flash_frames):
            grid = [[FILLED if cell else EMPTY for cell in row] for row in snapshot.tolist()]
            if frame % 2 == 0:
                for y in rows:
                    if 0 <= y < len(grid):
                        grid[y] = [FLASH] * len(grid[y])
            self.stream.write("\n".join("".join(row) for row in grid) + "\n\n")
            yield

    def animate_gravity_flip(self, snapshot, colors, old_gravity_down, move):
        arrow = "↑" if old_gravity_down else "↓"
        self.stream.write(f"{arrow} piece {move.piece_id} fell {move.distance}\n")
        self._rows = [[FILLED if cell else EMPTY for cell in row] for row in snapshot.tolist()]
        self._footer = []
        self.present()
        yield
