# Rotrix - A gravity-flipping falling-block puzzle
# config.py - Passive game configuration: board size, scoring, levels, speed and flip range

from dataclasses import dataclass, field
from typing import Dict

from .exceptions import ConfigError


def _default_line_points() -> Dict[int, int]:
    return {
        1: 200,   # Single
        2: 1000,  # Double
        3: 2500,  # Triple
        4: 5000,  # Four lines
    }


@dataclass
class GameConfig:
    """Configuration for a Rotrix game."""
    # Board
    width: int = 10
    height: int = 20
    block_size: int = 30

    # Levels
    points_base: int = 1000  # Score needed to leave level 1
    points_multiplier: float = 1.5  # Threshold growth per level
    max_level: int = 15

    # Speed (milliseconds between gravity ticks)
    initial_speed: float = 450
    speed_multiplier: float = 0.85
    speed_min: float = 50

    # Scoring
    tick_points: int = 10
    line_points: Dict[int, int] = field(default_factory=_default_line_points)
    fall_points: int = 1  # Per cell a body falls during a gravity flip

    # Gravity flip: pieces spawned before the next forced flip
    min_spawns_before_flip: int = 5
    max_spawns_before_flip: int = 8

    # Highscores
    max_highscores: int = 5
    max_name_length: int = 20

    # Input debounce (milliseconds between repeated actions of one class)
    move_repeat_ms: float = 80
    rotate_repeat_ms: float = 150
    drop_repeat_ms: float = 200

    def validate(self) -> 'GameConfig':
        """Raise ConfigError if the configuration cannot drive a game."""
        if self.width <= 0 or self.height <= 0:
            raise ConfigError(f"Board size must be positive, got {self.width}x{self.height}")
        if self.max_level < 1:
            raise ConfigError("max_level must be at least 1")
        if not self.line_points or 1 not in self.line_points:
            raise ConfigError("line_points must define a score for a single line")
        if self.min_spawns_before_flip < 1:
            raise ConfigError("min_spawns_before_flip must be at least 1")
        if self.min_spawns_before_flip > self.max_spawns_before_flip:
            raise ConfigError(
                f"Flip range is empty: [{self.min_spawns_before_flip}, {self.max_spawns_before_flip}]"
            )
        if self.speed_min <= 0 or self.initial_speed < self.speed_min:
            raise ConfigError("initial_speed must be >= speed_min > 0")
        if not 0 < self.speed_multiplier <= 1:
            raise ConfigError("speed_multiplier must be in (0, 1]")
        if self.points_multiplier < 1:
            raise ConfigError("points_multiplier must be >= 1")
        return self

    def line_score(self, lines: int) -> int:
        """Score for clearing `lines` rows at once.

        Counts missing from the table scale linearly from the single-line value.
        """
        if lines <= 0:
            return 0
        if lines in self.line_points:
            return self.line_points[lines]
        return lines * self.line_points[1]

    def level_threshold(self, level: int) -> float:
        """Score needed to advance past `level`."""
        return self.points_base * self.points_multiplier ** (level - 1)

    def drop_interval(self, level: int) -> float:
        """Milliseconds between gravity ticks at `level`."""
        level = max(1, min(level, self.max_level))
        return max(self.speed_min, self.initial_speed * self.speed_multiplier ** (level - 1))
