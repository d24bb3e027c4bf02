import random
import unittest

import numpy as np

from rotrix.board import Board
from rotrix.pieces import SHAPES, Piece, Position
from rotrix.resettle import (NO_BODY, BodyMove, RigidBody, build_dependencies, fall_distance,
                             fall_order, identify_bodies, resettle_board, settle_board)


class TestResettle(unittest.TestCase):

    def setUp(self):
        self.board = Board(width=10, height=20)

    def _place(self, x, y, color=1, piece_id=None):
        if piece_id is None:
            self.board.next_piece_id += 1
            piece_id = self.board.next_piece_id
        self.board.grid[y, x] = color
        self.board.piece_ids[y, x] = piece_id
        self.board.next_piece_id = max(self.board.next_piece_id, piece_id)
        return piece_id

    def _merge(self, shape, x, y) -> int:
        piece = Piece(random.Random(0))
        piece.current = [row[:] for row in shape]
        piece.position = Position(x, y)
        return self.board.merge_piece(piece)

    def _cells_of(self, piece_id):
        ys, xs = np.nonzero(self.board.piece_ids == piece_id)
        return sorted(zip(xs.tolist(), ys.tolist()))

    def test_identify_bodies_by_piece_id(self):
        self._place(0, 19, color=2, piece_id=5)
        self._place(3, 10, color=2, piece_id=5)
        self._place(1, 19, color=4, piece_id=6)

        bodies, body_index = identify_bodies(self.board.grid, self.board.piece_ids)
        self.assertEqual(len(bodies), 2)
        split = next(body for body in bodies if body.piece_id == 5)
        self.assertEqual(sorted(split.cells), [(0, 19, 2), (3, 10, 2)])
        self.assertEqual((split.min_x, split.max_x, split.min_y, split.max_y), (0, 3, 10, 19))
        self.assertEqual(body_index[19, 0], split.index)
        self.assertEqual(body_index[10, 3], split.index)
        self.assertEqual(body_index[0, 0], NO_BODY)

    def test_identify_bodies_empty_board(self):
        bodies, body_index = identify_bodies(self.board.grid, self.board.piece_ids)
        self.assertEqual(bodies, [])
        self.assertTrue(np.all(body_index == NO_BODY))

    def test_cells_without_id_are_separate_bodies(self):
        self.board.grid[19, 0] = 1
        self.board.grid[19, 1] = 1
        bodies, _ = identify_bodies(self.board.grid, self.board.piece_ids)
        self.assertEqual(len(bodies), 2)

    def test_dependencies_follow_fall_direction(self):
        top = self._place(0, 18)
        bottom = self._place(0, 19)
        bodies, body_index = identify_bodies(self.board.grid, self.board.piece_ids)
        by_id = {body.piece_id: body for body in bodies}

        down = build_dependencies(bodies, body_index, gravity_down=True)
        self.assertEqual(down[by_id[top].index], {by_id[bottom].index})
        self.assertEqual(down[by_id[bottom].index], set())

        up = build_dependencies(bodies, body_index, gravity_down=False)
        self.assertEqual(up[by_id[bottom].index], {by_id[top].index})
        self.assertEqual(up[by_id[top].index], set())

    def test_fall_order_supports_first(self):
        first = self._place(0, 10)
        second = self._place(0, 11)
        third = self._place(0, 12)
        bodies, body_index = identify_bodies(self.board.grid, self.board.piece_ids)

        order = fall_order(bodies, build_dependencies(bodies, body_index, True))
        self.assertEqual([body.piece_id for body in order], [third, second, first])
        order = fall_order(bodies, build_dependencies(bodies, body_index, False))
        self.assertEqual([body.piece_id for body in order], [first, second, third])

    def test_fall_order_survives_cycles(self):
        bodies = [RigidBody(index=0, piece_id=1), RigidBody(index=1, piece_id=2)]
        with self.assertLogs('rotrix.resettle', level='WARNING'):
            order = fall_order(bodies, {0: {1}, 1: {0}})
        self.assertEqual([body.index for body in order], [0, 1])

    def test_fall_distance_to_floor(self):
        piece_id = self._merge(SHAPES[3], 4, 5)  # O in rows 5-6
        bodies, body_index = identify_bodies(self.board.grid, self.board.piece_ids)
        body = bodies[0]
        self.assertEqual(body.piece_id, piece_id)
        self.assertEqual(fall_distance(body, body_index, True), 13)
        self.assertEqual(fall_distance(body, body_index, False), 5)

    def test_slowest_column_limits_the_body(self):
        wide = self._merge([[1, 1]], 0, 5)
        blocker = self._place(1, 19)
        bodies, body_index = identify_bodies(self.board.grid, self.board.piece_ids)
        body = next(b for b in bodies if b.piece_id == wide)
        # Column 0 could fall 14 rows, column 1 only 13
        self.assertEqual(fall_distance(body, body_index, True), 13)

        settle_board(self.board, True)
        self.assertEqual(self._cells_of(wide), [(0, 18), (1, 18)])
        self.assertEqual(self._cells_of(blocker), [(1, 19)])

    def test_fall_distance_bounded_by_free_cells(self):
        rng = random.Random(5)
        for _ in range(30):
            self.board.reset()
            for _ in range(15):
                self._place(rng.randrange(10), rng.randrange(20), color=rng.randint(1, 7))
            for gravity_down in (True, False):
                bodies, body_index = identify_bodies(self.board.grid, self.board.piece_ids)
                step = 1 if gravity_down else -1
                for body in bodies:
                    distance = fall_distance(body, body_index, gravity_down)
                    for x, y, _ in body.cells:
                        free = 0
                        ny = y + step
                        while 0 <= ny < 20 and body_index[ny, x] in (NO_BODY, body.index):
                            free += 1
                            ny += step
                        self.assertLessEqual(distance, free)

    def test_resting_body_does_not_move(self):
        resting = self._merge(SHAPES[3], 0, 18)
        before = self._cells_of(resting)
        moves = list(resettle_board(self.board, True))
        self.assertEqual(moves, [])
        self.assertEqual(self._cells_of(resting), before)

    def test_split_body_moves_rigidly(self):
        split = self._place(0, 10, color=3, piece_id=1)
        self._place(0, 15, color=3, piece_id=1)
        settle_board(self.board, True)
        self.assertEqual(self._cells_of(split), [(0, 14), (0, 19)])
        self.assertEqual(self.board.grid[14, 0], 3)

    def test_scenario_two_cells_with_gap_flip_up(self):
        upper = self._place(0, 17, color=2)
        lower = self._place(0, 19, color=5)
        gap = 1

        moves = list(resettle_board(self.board, gravity_down=False))
        distances = {move.piece_id: move.distance for move in moves}

        self.assertEqual(self._cells_of(upper), [(0, 0)])
        self.assertEqual(self._cells_of(lower), [(0, 1)])
        self.assertEqual(self.board.grid[0, 0], 2)
        self.assertEqual(self.board.grid[1, 0], 5)
        # The lower cell travels exactly the gap further than the upper one
        self.assertEqual(distances[lower] - distances[upper], gap)
        self.assertEqual(sum(distances.values()), 17 + 18)
        for move in moves:
            self.assertIsInstance(move, BodyMove)
            self.assertEqual(move.direction, -1)

    def test_interlocking_stack_flip_up(self):
        # Each piece rests on the one below it
        ids = []
        ids.append(self._merge(SHAPES[3], 0, 18))        # O at rows 18-19, cols 0-1
        ids.append(self._merge([[6, 6, 6]], 1, 17))      # Bar at row 17, cols 1-3
        ids.append(self._merge([[2], [2]], 3, 15))       # Column at rows 15-16, col 3
        before_count = self.board.cell_count()

        total = settle_board(self.board, gravity_down=False)
        self.assertEqual(total, 45)
        self.assertEqual(self.board.cell_count(), before_count)
        self.assertEqual(self._cells_of(ids[2]), [(3, 0), (3, 1)])
        self.assertEqual(self._cells_of(ids[1]), [(1, 2), (2, 2), (3, 2)])
        self.assertEqual(self._cells_of(ids[0]), [(0, 3), (0, 4), (1, 3), (1, 4)])
        # Nothing can move any further once settled
        self.assertEqual(list(resettle_board(self.board, False)), [])
        self.assertTrue(np.array_equal(self.board.grid != 0, self.board.piece_ids != 0))

    def test_piece_identity_preserved(self):
        rng = random.Random(9)
        for _ in range(10):
            self.board.reset()
            for _ in range(8):
                shape = rng.choice(SHAPES)
                x = rng.randrange(10 - len(shape[0]) + 1)
                y = rng.randrange(20 - len(shape) + 1)
                piece = Piece(rng)
                piece.current = [row[:] for row in shape]
                piece.position = Position(x, y)
                if not self.board.check_collision(piece, piece.position, True):
                    self.board.merge_piece(piece)

            ids_before = self.board.present_piece_ids()
            count_before = self.board.cell_count()
            sizes_before = {pid: len(self._cells_of(pid)) for pid in ids_before}
            settle_board(self.board, gravity_down=False)
            self.assertEqual(self.board.present_piece_ids(), ids_before)
            self.assertEqual(self.board.cell_count(), count_before)
            for pid, size in sizes_before.items():
                self.assertEqual(len(self._cells_of(pid)), size)
            self.assertEqual(list(resettle_board(self.board, False)), [])

    def test_board_delegates(self):
        self._place(5, 3)
        moves = list(self.board.resettle(True))
        self.assertEqual(len(moves), 1)
        self.assertEqual(moves[0].distance, 16)
        self.assertEqual(self.board.settle(False), 19)


if __name__ == '__main__':
    unittest.main()
