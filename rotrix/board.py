# Rotrix - A gravity-flipping falling-block puzzle
# board.py - Manages the board grid, collisions, merging and direction-aware line clearing.

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Set

import numpy as np

from .pieces import MAX_CELL_VALUE, Piece, Position, is_valid_matrix
from .resettle import BodyMove, resettle_board, settle_board

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class GridSnapshot:
    """
    Immutable copy of the colour grid handed to renderers.
    Piece ids are left out on purpose: animations only need colours.
    """
    cells: np.ndarray

    @classmethod
    def of(cls, grid: np.ndarray) -> 'GridSnapshot':
        cells = np.array(grid, dtype=np.int8, copy=True)
        cells.flags.writeable = False
        return cls(cells)

    @property
    def width(self) -> int:
        return self.cells.shape[1]

    @property
    def height(self) -> int:
        return self.cells.shape[0]

    def __getitem__(self, index):
        return self.cells[index]

    def tolist(self) -> List[List[int]]:
        return self.cells.tolist()


class Board:
    """
    The Rotrix playfield.
    `grid` holds colour values (0 empty, 1-7 tetromino colour) and `piece_ids`
    holds the id of the placed piece each block came from (0 for empty).
    Row 0 is the top of the board whichever way gravity points.
    """
    def __init__(self, width: int = 10, height: int = 20):
        self.width = width
        self.height = height
        self.grid = self._create_empty_grid()
        self.piece_ids = np.zeros((self.height, self.width), dtype=np.int32)
        self.next_piece_id = 0
        self.last_cleared_lines: List[int] = []

    def _create_empty_grid(self) -> np.ndarray:
        return np.zeros((self.height, self.width), dtype=np.int8)

    def reset(self):
        """Empty the board and restart piece id numbering."""
        self.grid = self._create_empty_grid()
        self.piece_ids = np.zeros((self.height, self.width), dtype=np.int32)
        self.next_piece_id = 0
        self.last_cleared_lines = []

    def check_collision(self, piece: Piece, position: Position, gravity_down: bool = True) -> bool:
        """
        True if `piece` at `position` overlaps a wall, the floor in the gravity
        direction, or a settled block.
        Cells beyond the spawn edge (above the top when falling down, below the
        bottom when falling up) are allowed so pieces can enter partially off-board.
        A malformed piece always collides.
        """
        if piece is None or not is_valid_matrix(piece.current):
            return True

        for r_idx, row in enumerate(piece.current):
            for c_idx, cell in enumerate(row):
                if cell == 0:
                    continue
                board_x = position.x + c_idx
                board_y = position.y + r_idx

                if board_x < 0 or board_x >= self.width:
                    return True

                if gravity_down:
                    if board_y >= self.height:
                        return True
                    if board_y >= 0 and self.grid[board_y, board_x] != 0:
                        return True
                else:
                    if board_y < 0:
                        return True
                    if board_y < self.height and self.grid[board_y, board_x] != 0:
                        return True
        return False

    def merge_piece(self, piece: Piece) -> int:
        """
        Write the piece into the grid under a fresh piece id and return that id.
        Cells outside the board are dropped. Returns 0 for a malformed piece.
        """
        if piece is None or not is_valid_matrix(piece.current):
            return 0

        self.next_piece_id += 1
        piece_id = self.next_piece_id
        for x, y, value in piece.cells():
            if 0 <= y < self.height and 0 <= x < self.width:
                self.grid[y, x] = value
                self.piece_ids[y, x] = piece_id
        return piece_id

    def _find_full_rows(self) -> List[int]:
        """Rows whose every cell holds a colour in 1-7, confirmed by two independent checks."""
        full_rows = []
        for y in range(self.height):
            row = self.grid[y]
            is_full = bool(np.all(row != 0))
            filled_count = int(np.count_nonzero((row >= 1) & (row <= MAX_CELL_VALUE)))
            is_actually_full = filled_count == self.width

            if is_full != is_actually_full:
                logger.error(
                    "Row %d integrity mismatch: all-nonzero=%s, filled=%d/%d, row=%s",
                    y, is_full, filled_count, self.width, row.tolist()
                )
                continue
            if is_actually_full:
                full_rows.append(y)
        return full_rows

    def _compact(self, cleared: List[int], gravity_down: bool):
        """Remove `cleared` rows and stack the survivors against the gravity floor."""
        keep = [y for y in range(self.height) if y not in cleared]
        new_grid = self._create_empty_grid()
        new_ids = np.zeros_like(self.piece_ids)
        if keep:
            if gravity_down:
                start = self.height - len(keep)
            else:
                start = 0
            new_grid[start:start + len(keep)] = self.grid[keep]
            new_ids[start:start + len(keep)] = self.piece_ids[keep]
        self.grid = new_grid
        self.piece_ids = new_ids

    def check_lines(self, gravity_down: bool = True) -> int:
        """
        Clear every full row, compact toward the gravity floor, and rescan until
        a pass finds nothing. Returns the total number of rows cleared; the
        indices are kept in `last_cleared_lines`.
        """
        self.last_cleared_lines = []
        total_cleared = 0

        # Each pass removes at least one row, so height + 1 passes is an upper bound.
        for _ in range(self.height + 1):
            rows = self._find_full_rows()
            if not rows:
                break
            logger.debug("Clearing rows %s (gravity %s)", rows, 'down' if gravity_down else 'up')
            self.last_cleared_lines.extend(rows)
            total_cleared += len(rows)
            self._compact(rows, gravity_down)

        return total_cleared

    def get_last_cleared_lines(self) -> List[int]:
        return list(self.last_cleared_lines)

    def fast_clone(self) -> GridSnapshot:
        """Colour-only snapshot for animations."""
        return GridSnapshot.of(self.grid)

    def resettle(self, gravity_down: bool) -> Iterator[BodyMove]:
        """Move every placed piece to its resting place under the new gravity, one body per step."""
        return resettle_board(self, gravity_down)

    def settle(self, gravity_down: bool) -> int:
        """Run resettlement to completion; returns the summed fall distance."""
        return settle_board(self, gravity_down)

    def cell_count(self) -> int:
        return int(np.count_nonzero(self.grid))

    def present_piece_ids(self) -> Set[int]:
        ids = set(np.unique(self.piece_ids).tolist())
        ids.discard(0)
        return ids

    def is_empty(self) -> bool:
        return not self.grid.any()

    def __str__(self):
        """String representation of the board."""
        result = []
        for y in range(self.height):
            row = ""
            for x in range(self.width):
                row += "█" if self.grid[y, x] else "·"
            result.append(row)
        return "\n".join(result)

    def __repr__(self):
        return f"Board({self.width}x{self.height}, cells={self.cell_count()}, next_id={self.next_piece_id})"
