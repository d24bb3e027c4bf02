import random
import unittest

from rotrix.config import GameConfig
from rotrix.controls import KEY_BINDINGS, Controls, Intent
from rotrix.game import GameController, monotonic_ms
from rotrix.pieces import SHAPES, Position


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class TestControls(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock(1000)
        self.game = GameController(GameConfig(), rng=random.Random(2), clock=self.clock)
        self.game.piece.current = [row[:] for row in SHAPES[3]]
        self.game.piece.position = Position(4, 5)
        self.controls = Controls(self.game, clock=self.clock)

    def test_movement_is_debounced(self):
        self.assertTrue(self.controls.handle(Intent.MOVE_LEFT))
        self.assertIsNone(self.controls.handle(Intent.MOVE_LEFT))
        # Left, right and soft drop share one timer
        self.assertIsNone(self.controls.handle(Intent.MOVE_RIGHT))
        self.assertEqual(self.game.piece.position, Position(3, 5))

        self.clock.now += 80
        self.assertTrue(self.controls.handle(Intent.MOVE_RIGHT))
        self.assertEqual(self.game.piece.position, Position(4, 5))

    def test_action_classes_have_separate_timers(self):
        self.assertTrue(self.controls.handle(Intent.MOVE_LEFT))
        self.assertIsNotNone(self.controls.handle(Intent.ROTATE))
        self.assertIsNone(self.controls.handle(Intent.ROTATE))
        self.clock.now += 149
        self.assertIsNone(self.controls.handle(Intent.ROTATE))
        self.clock.now += 1
        self.assertIsNotNone(self.controls.handle(Intent.ROTATE))

    def test_hard_drop_debounce(self):
        self.assertEqual(self.controls.handle(Intent.HARD_DROP), 13)
        self.assertIsNone(self.controls.handle(Intent.HARD_DROP))
        self.assertEqual(self.game.state.pieces_placed, 1)

    def test_pause_is_not_debounced(self):
        self.assertTrue(self.controls.handle(Intent.TOGGLE_PAUSE))
        self.assertFalse(self.controls.handle(Intent.TOGGLE_PAUSE))

    def test_force_flip(self):
        self.assertTrue(self.controls.handle(Intent.FORCE_GRAVITY_FLIP))
        self.assertFalse(self.game.state.gravity_down)

    def test_confirm_restarts_only_after_game_over(self):
        self.assertIsNone(self.controls.handle(Intent.CONFIRM))

        self.game.board.grid[0:2, 0:9] = 3
        self.game.piece.current = None
        self.game.spawn_piece()
        self.assertTrue(self.game.state.game_over)

        self.assertTrue(self.controls.handle(Intent.CONFIRM))
        self.assertFalse(self.game.state.game_over)

    def test_controller_rejects_input_while_paused(self):
        self.game.toggle_pause()
        self.assertFalse(self.controls.handle(Intent.MOVE_LEFT))
        self.assertEqual(self.game.piece.position, Position(4, 5))

    def test_default_clock_is_shared_with_controller(self):
        controls = Controls(self.game)
        self.assertIs(controls.clock, monotonic_ms)

    def test_handle_key(self):
        self.assertEqual(KEY_BINDINGS['space'], Intent.HARD_DROP)
        self.assertTrue(self.controls.handle_key('LEFT'))
        self.assertIsNone(self.controls.handle_key('x'))


if __name__ == '__main__':
    unittest.main()
