# Rotrix - A gravity-flipping falling-block puzzle
# game.py - Game controller: spawn, movement, landing, line clears, gravity flips and scoring

"""
GameController drives one Rotrix game.

The controller is single threaded and cooperative. Landing and gravity flips
run as generator sequences: each `yield` is a point where an animation frame
is shown and control goes back to the caller's frame loop. While a sequence
is running the `busy` gate rejects every state-changing call; pause and
restart requests are queued and applied once the sequence has finished.
"""

import logging
import random
import time
from dataclasses import dataclass, replace
from typing import Callable, Generator, Optional

from .board import Board
from .config import GameConfig
from .highscores import HighscoreManager
from .pieces import COLORS, Piece, Position
from .rendering import Renderer

logger = logging.getLogger(__name__)

Sequence = Generator[None, None, None]


@dataclass
class GameState:
    """Counters and mode flags of a game."""
    score: int = 0
    level: int = 1
    total_lines: int = 0
    gravity_down: bool = True
    spawn_count: int = 0
    spawns_until_flip: int = 0
    pieces_placed: int = 0
    flips: int = 0
    game_over: bool = False
    paused: bool = False
    is_flipping_gravity: bool = False
    is_clearing_lines: bool = False


def monotonic_ms() -> float:
    return time.monotonic() * 1000


class GameController:
    """Main Rotrix game engine."""

    def __init__(self, config: Optional[GameConfig] = None, renderer: Optional[Renderer] = None,
                 highscores: Optional[HighscoreManager] = None, rng: Optional[random.Random] = None,
                 clock: Optional[Callable[[], float]] = None):
        self.config = (config or GameConfig()).validate()
        self.renderer = renderer or Renderer()
        self.highscores = highscores
        self.rng = rng or random.Random()
        self.clock = clock or monotonic_ms

        self.board = Board(self.config.width, self.config.height)
        self.piece = Piece(self.rng)
        self.state = GameState()

        self.piece_visible = True
        self.drop_interval = self.config.drop_interval(1)
        self.last_drop_time = 0.0

        self._sequence: Optional[Sequence] = None
        self._flip_pending = False
        self._pending_pause = False
        self._pending_restart = False

        # Callbacks
        self.on_piece_placed: Optional[Callable] = None
        self.on_lines_cleared: Optional[Callable] = None
        self.on_gravity_flip: Optional[Callable] = None
        self.on_level_up: Optional[Callable] = None
        self.on_game_over: Optional[Callable] = None

        self.reset()

    # ------------------------------------------------------------------
    # Lifecycle

    def reset(self):
        """Start a fresh game."""
        self._sequence = None
        self._flip_pending = False
        self._pending_pause = False
        self._pending_restart = False

        self.board.reset()
        self.piece = Piece(self.rng)
        self.state = GameState(spawns_until_flip=self._draw_flip_threshold())
        self.piece_visible = True
        self.drop_interval = self.config.drop_interval(1)
        self.last_drop_time = self.clock()

        self.spawn_piece()

    def restart(self) -> bool:
        """Restart now, or once the running sequence completes."""
        if self.busy:
            self._pending_restart = True
            return False
        self.reset()
        return True

    @property
    def busy(self) -> bool:
        return (self._sequence is not None
                or self.state.is_flipping_gravity
                or self.state.is_clearing_lines)

    @property
    def gravity_step(self) -> int:
        return 1 if self.state.gravity_down else -1

    def snapshot(self) -> GameState:
        """Copy of the current counters and flags."""
        return replace(self.state)

    def _can_act(self) -> bool:
        return not (self.state.game_over or self.state.paused or self.busy)

    def _draw_flip_threshold(self) -> int:
        return self.rng.randint(self.config.min_spawns_before_flip, self.config.max_spawns_before_flip)

    # ------------------------------------------------------------------
    # Sequences

    def _start(self, sequence: Sequence) -> bool:
        if self._sequence is not None:
            logger.warning("A sequence is already running; new sequence dropped")
            sequence.close()
            return False
        self._sequence = sequence
        self._advance()
        return True

    def _advance(self):
        """Run the active sequence up to its next suspension point."""
        if self._sequence is None:
            return
        try:
            next(self._sequence)
        except StopIteration:
            self._sequence = None
            self._apply_queued_intents()

    def run_until_idle(self, max_steps: int = 10000) -> int:
        """Drive the active sequence to completion; returns the number of steps taken."""
        steps = 0
        while self._sequence is not None and steps < max_steps:
            self._advance()
            steps += 1
        return steps

    def _apply_queued_intents(self):
        if self._pending_restart:
            self._pending_restart = False
            self.reset()
            return
        if self._pending_pause:
            self._pending_pause = False
            self.toggle_pause()

    # ------------------------------------------------------------------
    # Spawning

    def _spawn_y(self) -> int:
        return 0 if self.state.gravity_down else self.board.height - self.piece.height

    def _spawn(self) -> bool:
        if self.piece.current is not None:
            logger.warning("Spawn refused: a piece is still active")
            return False
        if self.state.game_over:
            return False

        self.piece.spawn(self.board.width)
        self.piece.position.y = self._spawn_y()

        if self.board.check_collision(self.piece, self.piece.position, self.state.gravity_down):
            self._end_game()
            return False

        self.state.spawn_count += 1
        if self.state.spawn_count >= self.state.spawns_until_flip:
            self.state.spawn_count = 0
            self.state.spawns_until_flip = self._draw_flip_threshold()
            self._flip_pending = True
        return True

    def spawn_piece(self) -> bool:
        """Spawn the next piece; starts a gravity flip if this spawn hits the threshold."""
        spawned = self._spawn()
        if self._flip_pending and self._sequence is None:
            self._start(self._gravity_flip_sequence())
        return spawned

    def _spawn_next(self) -> Sequence:
        if self._spawn() and self._flip_pending:
            yield from self._gravity_flip_sequence()

    def _end_game(self):
        self.state.game_over = True
        self.piece.current = None
        logger.info("Game over: score=%d level=%d lines=%d",
                    self.state.score, self.state.level, self.state.total_lines)
        if self.on_game_over:
            self.on_game_over(self.snapshot())

    # ------------------------------------------------------------------
    # Movement

    def move(self, dx: int, dy: int) -> bool:
        """
        Move the active piece. A blocked move in the gravity direction lands
        the piece. Returns True if the piece moved.
        """
        if not self._can_act() or self.piece.current is None:
            return False

        candidate = Position(self.piece.position.x + dx, self.piece.position.y + dy)
        if not self.board.check_collision(self.piece, candidate, self.state.gravity_down):
            self.piece.position = candidate
            return True

        if dx == 0 and dy == self.gravity_step:
            self._start(self._landing_sequence())
        return False

    def move_left(self) -> bool:
        return self.move(-1, 0)

    def move_right(self) -> bool:
        return self.move(1, 0)

    def soft_drop(self) -> bool:
        return self.move(0, self.gravity_step)

    def rotate(self) -> bool:
        """Rotate clockwise in place; rejected if the rotated piece would overlap."""
        if not self._can_act() or self.piece.current is None:
            return False
        rotated = self.piece.rotate()
        if rotated is None:
            return False

        original = self.piece.current
        self.piece.current = rotated
        if self.board.check_collision(self.piece, self.piece.position, self.state.gravity_down):
            self.piece.current = original
            return False
        return True

    def hard_drop(self) -> int:
        """Drop the piece as far as it goes and land it. Returns the rows travelled."""
        if not self._can_act() or self.piece.current is None:
            return 0

        step = self.gravity_step
        distance = 0
        while not self.board.check_collision(
                self.piece,
                Position(self.piece.position.x, self.piece.position.y + step * (distance + 1)),
                self.state.gravity_down):
            distance += 1
            if distance > self.board.height * 2:
                break

        self.piece.position = Position(self.piece.position.x, self.piece.position.y + step * distance)
        self._start(self._landing_sequence())
        return distance

    def tick(self):
        """One gravity step: per-tick bonus and a move in the gravity direction."""
        if not self._can_act():
            return
        self._add_score(self.config.tick_points)
        self.move(0, self.gravity_step)

    # ------------------------------------------------------------------
    # Landing and line clears

    def _landing_sequence(self) -> Sequence:
        landed = self.piece.type_name()
        self.board.merge_piece(self.piece)
        self.piece.current = None
        self.state.pieces_placed += 1

        lines = yield from self._clear_lines_sequence()
        if self.on_piece_placed:
            self.on_piece_placed(landed, lines)

        if not self.state.game_over:
            yield from self._spawn_next()

    def _clear_lines_sequence(self) -> Generator[None, None, int]:
        snapshot = self.board.fast_clone()
        lines = self.board.check_lines(self.state.gravity_down)
        if lines == 0:
            return 0

        rows = self.board.get_last_cleared_lines()
        self.state.is_clearing_lines = True
        try:
            yield from self.renderer.animate_lines_clear(rows, COLORS, snapshot)
        finally:
            self.state.is_clearing_lines = False

        self.state.total_lines += lines
        self._add_score(self.config.line_score(lines))
        logger.debug("Cleared %d line(s): rows %s", lines, rows)
        if self.on_lines_cleared:
            self.on_lines_cleared(lines, rows)
        return lines

    # ------------------------------------------------------------------
    # Gravity flip

    def force_gravity_flip(self) -> bool:
        """Flip gravity now. Ignored while paused, over, or during another sequence."""
        if self.state.is_flipping_gravity:
            logger.warning("Gravity flip refused: a flip is already running")
            return False
        if not self._can_act():
            return False
        return self._start(self._gravity_flip_sequence())

    def _gravity_flip_sequence(self) -> Sequence:
        if self.state.is_flipping_gravity:
            logger.warning("Gravity flip refused: a flip is already running")
            return
        self._flip_pending = False
        self.state.is_flipping_gravity = True
        try:
            old_gravity_down = self.state.gravity_down
            self.piece_visible = False
            self.state.gravity_down = not old_gravity_down
            self.state.flips += 1
            logger.info("Gravity flip #%d: now falling %s",
                        self.state.flips, 'down' if self.state.gravity_down else 'up')

            fallen = 0
            for move in self.board.resettle(self.state.gravity_down):
                self._add_score(move.distance * self.config.fall_points)
                fallen += move.distance
                yield from self.renderer.animate_gravity_flip(
                    self.board.fast_clone(), COLORS, old_gravity_down, move)
                yield

            logger.info("Gravity flip #%d settled: %d cell(s) of fall", self.state.flips, fallen)
            yield from self._clear_lines_sequence()

            if self.piece.current is not None:
                self.piece.position = Position(self.piece.position.x, self._spawn_y())
                if self.board.check_collision(self.piece, self.piece.position, self.state.gravity_down):
                    self._end_game()
            self.piece_visible = True
        finally:
            self.state.is_flipping_gravity = False

        if self.on_gravity_flip:
            self.on_gravity_flip(self.state.gravity_down)

    # ------------------------------------------------------------------
    # Scoring

    def _add_score(self, points: int):
        if points <= 0:
            return
        self.state.score += points
        while (self.state.level < self.config.max_level
               and self.state.score >= self.config.level_threshold(self.state.level)):
            self.state.level += 1
            self.drop_interval = self.config.drop_interval(self.state.level)
            logger.info("Level up: %d (drop interval %.0f ms)", self.state.level, self.drop_interval)
            if self.on_level_up:
                self.on_level_up(self.state.level)

    # ------------------------------------------------------------------
    # Pause

    def toggle_pause(self) -> bool:
        """Pause or resume. Returns the new paused flag."""
        if self.state.game_over:
            return self.state.paused
        if self.busy:
            self._pending_pause = not self._pending_pause
            return self.state.paused
        self.state.paused = not self.state.paused
        if not self.state.paused:
            self.last_drop_time = self.clock()
        return self.state.paused

    # ------------------------------------------------------------------
    # Frame loop

    def update(self, now: Optional[float] = None):
        """Advance one frame: a pending animation step, or the gravity timer."""
        if now is None:
            now = self.clock()

        if self._sequence is not None:
            self._advance()
            return

        if not self.state.game_over and not self.state.paused:
            if now - self.last_drop_time >= self.drop_interval:
                self.last_drop_time = now
                self.tick()

        if self._sequence is None:
            self.draw()

    def draw(self):
        r = self.renderer
        r.clear()
        r.draw_board(self.board.fast_clone(), COLORS)
        if self.piece.current is not None and self.piece_visible and not self.state.game_over:
            r.draw_piece(self.piece, COLORS)
        if self.piece.next is not None:
            r.draw_next_piece(self.piece.next, COLORS)
        r.draw_stats(self.state)
        if self.state.game_over:
            r.draw_game_over(self.state)
        elif self.state.paused:
            r.draw_paused(self.state)
        r.present()

    # ------------------------------------------------------------------
    # Highscores

    def qualifies_for_highscore(self) -> bool:
        if self.highscores is None or self.state.score <= 0:
            return False
        return self.highscores.qualifies_for_highscore(self.state.score)

    def submit_highscore(self, name: str) -> bool:
        if self.highscores is None or not self.state.game_over:
            return False
        return self.highscores.add_highscore(
            name, self.state.score, self.state.level, self.state.total_lines)

    def __str__(self):
        result = []
        result.append(f"Level: {self.state.level}")
        result.append(f"Lines: {self.state.total_lines}")
        result.append(f"Score: {self.state.score}")
        result.append(f"Gravity: {'down' if self.state.gravity_down else 'up'}")
        result.append("")
        result.append(str(self.board))
        return "\n".join(result)
