# Rotrix - A gravity-flipping falling-block puzzle
# resettle.py - Rigid-body resettlement of placed pieces after a gravity flip

"""
When gravity flips, every placed piece falls as one rigid body toward the new
floor. A body is the set of cells sharing a piece id, so a piece split in two
by a line clear still moves as one shape.

Each pass identifies the bodies, orders them so that a body is handled after
the bodies it rests on, and drops every body as far as its slowest column
allows. Passes repeat until nothing moves. `resettle_board` is a generator that
yields after every body it moves, which is where a caller can animate.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Set, Tuple

import numpy as np

logger = logging.getLogger(__name__)

MAX_PASSES = 100
NO_BODY = -1


@dataclass
class RigidBody:
    """Cells of one placed piece, with its bounding box."""
    index: int  # Transient index for the current scan
    piece_id: int
    cells: List[Tuple[int, int, int]] = field(default_factory=list)  # (x, y, color)
    min_x: int = 0
    max_x: int = 0
    min_y: int = 0
    max_y: int = 0

    def add(self, x: int, y: int, color: int):
        if not self.cells:
            self.min_x = self.max_x = x
            self.min_y = self.max_y = y
        else:
            self.min_x = min(self.min_x, x)
            self.max_x = max(self.max_x, x)
            self.min_y = min(self.min_y, y)
            self.max_y = max(self.max_y, y)
        self.cells.append((x, y, color))

    def columns(self) -> Dict[int, List[int]]:
        """Occupied rows per column."""
        cols: Dict[int, List[int]] = {}
        for x, y, _ in self.cells:
            cols.setdefault(x, []).append(y)
        return cols


@dataclass(frozen=True)
class BodyMove:
    """One body's movement during resettlement."""
    piece_id: int
    distance: int
    direction: int  # +1 falling down, -1 falling up
    cells: Tuple[Tuple[int, int, int], ...]  # Positions after the move


def _direction(gravity_down: bool) -> int:
    return 1 if gravity_down else -1


def identify_bodies(grid: np.ndarray, piece_ids: np.ndarray) -> Tuple[List[RigidBody], np.ndarray]:
    """
    Group occupied cells by piece id.
    Returns the bodies in scan order and a matrix mapping each cell to its
    body index (NO_BODY for empty cells). Cells without a piece id each
    become a body of their own.
    """
    height, width = grid.shape
    body_index = np.full((height, width), NO_BODY, dtype=np.int32)
    bodies: List[RigidBody] = []
    by_piece: Dict[int, RigidBody] = {}

    for y in range(height):
        for x in range(width):
            color = int(grid[y, x])
            if color == 0:
                continue
            piece_id = int(piece_ids[y, x])
            body = by_piece.get(piece_id) if piece_id else None
            if body is None:
                body = RigidBody(index=len(bodies), piece_id=piece_id)
                bodies.append(body)
                if piece_id:
                    by_piece[piece_id] = body
            body.add(x, y, color)
            body_index[y, x] = body.index

    return bodies, body_index


def build_dependencies(bodies: List[RigidBody], body_index: np.ndarray, gravity_down: bool) -> Dict[int, Set[int]]:
    """
    Map each body index to the bodies directly beneath it in the fall direction.
    Those bodies have to move first.
    """
    height = body_index.shape[0]
    step = _direction(gravity_down)
    depends_on: Dict[int, Set[int]] = {body.index: set() for body in bodies}

    for body in bodies:
        for x, y, _ in body.cells:
            ny = y + step
            if not 0 <= ny < height:
                continue
            other = int(body_index[ny, x])
            if other != NO_BODY and other != body.index:
                depends_on[body.index].add(other)
    return depends_on


def fall_order(bodies: List[RigidBody], depends_on: Dict[int, Set[int]]) -> List[RigidBody]:
    """Kahn ordering: bodies resting on nothing come first."""
    in_degree = {index: len(deps) for index, deps in depends_on.items()}
    supports: Dict[int, List[int]] = {body.index: [] for body in bodies}
    for index, deps in depends_on.items():
        for dep in deps:
            supports[dep].append(index)

    ready = deque(body.index for body in bodies if in_degree[body.index] == 0)
    ordered: List[int] = []
    seen: Set[int] = set()

    while ready and len(ordered) < len(bodies):
        index = ready.popleft()
        if index in seen:
            continue
        seen.add(index)
        ordered.append(index)
        for dependent in supports[index]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                ready.append(dependent)

    if len(ordered) < len(bodies):
        leftovers = [body.index for body in bodies if body.index not in seen]
        logger.warning("Dependency cycle between bodies %s; falling back to scan order", leftovers)
        ordered.extend(leftovers)

    return [bodies[index] for index in ordered]


def fall_distance(body: RigidBody, body_index: np.ndarray, gravity_down: bool) -> int:
    """
    How far `body` can fall without entering another body or leaving the board.
    Own cells count as free, since they move along with the body. The slowest
    column limits the whole shape.
    """
    height = body_index.shape[0]
    step = _direction(gravity_down)
    distance = height

    for x, rows in body.columns().items():
        # Leading edge first: the lowest cell when falling down, the highest when falling up.
        for y in sorted(rows, reverse=gravity_down):
            free = 0
            ny = y + step
            while 0 <= ny < height:
                occupant = int(body_index[ny, x])
                if occupant != NO_BODY and occupant != body.index:
                    break
                free += 1
                ny += step
            distance = min(distance, free)
            if distance == 0:
                return 0
    return distance


def move_body(body: RigidBody, distance: int, gravity_down: bool,
              grid: np.ndarray, piece_ids: np.ndarray, body_index: np.ndarray):
    """Shift `body` by `distance` rows in the fall direction, keeping colours and piece id."""
    if distance <= 0:
        return
    offset = distance * _direction(gravity_down)

    for x, y, _ in body.cells:
        grid[y, x] = 0
        piece_ids[y, x] = 0
        body_index[y, x] = NO_BODY

    moved = [(x, y + offset, color) for x, y, color in body.cells]
    body.cells = []
    for x, y, color in moved:
        grid[y, x] = color
        piece_ids[y, x] = body.piece_id
        body_index[y, x] = body.index
        body.add(x, y, color)


def resettle_board(board, gravity_down: bool) -> Iterator[BodyMove]:
    """
    Let every body on `board` fall toward the new floor.
    Yields a BodyMove after each body that moved; the board is already updated
    when the move is yielded.
    """
    direction = _direction(gravity_down)

    for _ in range(MAX_PASSES):
        bodies, body_index = identify_bodies(board.grid, board.piece_ids)
        if not bodies:
            return
        depends_on = build_dependencies(bodies, body_index, gravity_down)

        moved = False
        for body in fall_order(bodies, depends_on):
            distance = fall_distance(body, body_index, gravity_down)
            if distance == 0:
                continue
            move_body(body, distance, gravity_down, board.grid, board.piece_ids, body_index)
            moved = True
            yield BodyMove(body.piece_id, distance, direction, tuple(body.cells))

        if not moved:
            return

    logger.warning("Resettlement stopped after %d passes with bodies still moving", MAX_PASSES)


def settle_board(board, gravity_down: bool) -> int:
    """Run resettlement to completion and return the summed fall distance."""
    return sum(move.distance for move in resettle_board(board, gravity_down))
