# Rotrix - A gravity-flipping falling-block puzzle
# pieces.py - Defines Tetrominoes, colours, spawning and matrix rotation

import random
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Tuple

Matrix = List[List[int]]

# Each shape is stored in its spawn orientation. The cell value doubles as the
# colour index, so a merged block remembers which tetromino it came from.
SHAPES: List[Matrix] = [
    [[1, 1, 1, 1]],              # I
    [[2, 0, 0], [2, 2, 2]],      # J
    [[0, 0, 3], [3, 3, 3]],      # L
    [[4, 4], [4, 4]],            # O
    [[0, 5, 5], [5, 5, 0]],      # S
    [[0, 6, 0], [6, 6, 6]],      # T
    [[7, 7, 0], [0, 7, 7]],      # Z
]

SHAPE_NAMES = ['I', 'J', 'L', 'O', 'S', 'T', 'Z']

# Index 0 is the empty cell.
COLORS = [
    None,
    '#FF0D72',  # I
    '#0DC2FF',  # J
    '#0DFF72',  # L
    '#F538FF',  # O
    '#FF8E0D',  # S
    '#FFE138',  # T
    '#3877FF',  # Z
]

MAX_CELL_VALUE = len(COLORS) - 1
ROTATION_CACHE_SIZE = 128


@dataclass
class Position:
    """Board position of the top-left corner of a piece matrix."""
    x: int
    y: int


def is_valid_matrix(matrix) -> bool:
    """True for a non-empty rectangular matrix whose cells are all in 0..7."""
    if not matrix or not isinstance(matrix, (list, tuple)):
        return False
    first = matrix[0]
    if not first or not isinstance(first, (list, tuple)):
        return False
    width = len(first)
    for row in matrix:
        if not isinstance(row, (list, tuple)) or len(row) != width:
            return False
        for cell in row:
            if not isinstance(cell, int) or isinstance(cell, bool) or not 0 <= cell <= MAX_CELL_VALUE:
                return False
    return True


@lru_cache(maxsize=ROTATION_CACHE_SIZE)
def _rotate_cached(matrix: Tuple[Tuple[int, ...], ...]) -> Tuple[Tuple[int, ...], ...]:
    rows = len(matrix)
    cols = len(matrix[0])
    rotated = [[0] * rows for _ in range(cols)]
    for y in range(rows):
        for x in range(cols):
            rotated[x][rows - 1 - y] = matrix[y][x]
    return tuple(tuple(row) for row in rotated)


def rotate_matrix(matrix: Matrix) -> Matrix:
    """Return `matrix` turned 90 degrees clockwise. The input is left untouched."""
    key = tuple(tuple(row) for row in matrix)
    return [list(row) for row in _rotate_cached(key)]


def shape_name(matrix: Optional[Matrix]) -> str:
    """Identify a tetromino by its colour value; 'UNKNOWN' for anything else."""
    if not is_valid_matrix(matrix):
        return 'UNKNOWN'
    for row in matrix:
        for cell in row:
            if cell:
                return SHAPE_NAMES[cell - 1]
    return 'UNKNOWN'


class Piece:
    """
    The active falling piece plus its lookahead.
    `current` is the matrix in its present rotation, `next` is the shape that
    will be promoted on the following spawn.
    """
    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.current: Optional[Matrix] = None
        self.next: Optional[Matrix] = None
        self.position = Position(0, 0)

    def generate_new_piece(self) -> Matrix:
        """Pick one of the seven shapes uniformly at random."""
        shape = SHAPES[self.rng.randrange(len(SHAPES))]
        return [list(row) for row in shape]

    def spawn(self, board_width: int):
        """
        Promote the lookahead to the current piece and draw a new lookahead.
        Only the horizontal anchor is set here; the caller owns the vertical one,
        which depends on the gravity direction.
        """
        if self.next is None:
            self.next = self.generate_new_piece()
        self.current = self.next
        self.next = self.generate_new_piece()
        self.position = Position(board_width // 2 - self.width // 2, 0)

    def rotate(self) -> Optional[Matrix]:
        """
        Clockwise rotation of the current matrix, or None without a current piece.
        `current` is not modified; the caller commits the result after a collision test.
        """
        if not is_valid_matrix(self.current):
            return None
        return rotate_matrix(self.current)

    @property
    def width(self) -> int:
        return len(self.current[0]) if self.current else 0

    @property
    def height(self) -> int:
        return len(self.current) if self.current else 0

    def cells(self, position: Optional[Position] = None) -> List[Tuple[int, int, int]]:
        """Board coordinates (x, y, value) of every filled cell of the current matrix."""
        pos = position or self.position
        cells = []
        if not is_valid_matrix(self.current):
            return cells
        for r_idx, row in enumerate(self.current):
            for c_idx, value in enumerate(row):
                if value:
                    cells.append((pos.x + c_idx, pos.y + r_idx, value))
        return cells

    def type_name(self) -> str:
        return shape_name(self.current)

    def __repr__(self):
        return f"Piece({self.type_name()}, x={self.position.x}, y={self.position.y})"
