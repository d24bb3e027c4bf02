# Rotrix - A gravity-flipping falling-block puzzle
# controls.py - Translates input intents into controller calls, with per-action debouncing

import logging
from enum import Enum
from typing import Callable, Dict, Optional

from .config import GameConfig
from .game import monotonic_ms

logger = logging.getLogger(__name__)


class Intent(Enum):
    """Discrete player intents."""
    MOVE_LEFT = 0
    MOVE_RIGHT = 1
    SOFT_DROP = 2
    ROTATE = 3
    HARD_DROP = 4
    TOGGLE_PAUSE = 5
    FORCE_GRAVITY_FLIP = 6
    CONFIRM = 7


KEY_BINDINGS: Dict[str, Intent] = {
    'left': Intent.MOVE_LEFT,
    'right': Intent.MOVE_RIGHT,
    'down': Intent.SOFT_DROP,
    'up': Intent.ROTATE,
    'space': Intent.HARD_DROP,
    'p': Intent.TOGGLE_PAUSE,
    'g': Intent.FORCE_GRAVITY_FLIP,
    'enter': Intent.CONFIRM,
}

# Action classes that share one debounce timer
_MOVEMENT = 'movement'
_ROTATION = 'rotation'
_DROP = 'drop'

_ACTION_CLASS = {
    Intent.MOVE_LEFT: _MOVEMENT,
    Intent.MOVE_RIGHT: _MOVEMENT,
    Intent.SOFT_DROP: _MOVEMENT,
    Intent.ROTATE: _ROTATION,
    Intent.HARD_DROP: _DROP,
}


class Controls:
    """
    Input layer for a GameController.
    Only debouncing and translation happen here; all validity checks belong
    to the controller.
    """

    def __init__(self, game, config: Optional[GameConfig] = None,
                 clock: Optional[Callable[[], float]] = None):
        self.game = game
        self.config = config or game.config
        self.clock = clock or monotonic_ms
        self._last_action: Dict[str, float] = {}
        self._intervals = {
            _MOVEMENT: self.config.move_repeat_ms,
            _ROTATION: self.config.rotate_repeat_ms,
            _DROP: self.config.drop_repeat_ms,
        }

    def _debounced(self, intent: Intent) -> bool:
        action_class = _ACTION_CLASS.get(intent)
        if action_class is None:
            return False
        now = self.clock()
        last = self._last_action.get(action_class)
        if last is not None and now - last < self._intervals[action_class]:
            return True
        self._last_action[action_class] = now
        return False

    def handle(self, intent: Intent):
        """Dispatch one intent. Returns the controller's result, or None if debounced."""
        if self._debounced(intent):
            logger.debug("Debounced %s", intent.name)
            return None

        if intent == Intent.CONFIRM:
            if self.game.state.game_over:
                return self.game.restart()
            return None
        if intent == Intent.MOVE_LEFT:
            return self.game.move_left()
        elif intent == Intent.MOVE_RIGHT:
            return self.game.move_right()
        elif intent == Intent.SOFT_DROP:
            return self.game.soft_drop()
        elif intent == Intent.ROTATE:
            return self.game.rotate()
        elif intent == Intent.HARD_DROP:
            return self.game.hard_drop()
        elif intent == Intent.TOGGLE_PAUSE:
            return self.game.toggle_pause()
        elif intent == Intent.FORCE_GRAVITY_FLIP:
            return self.game.force_gravity_flip()
        return None

    def handle_key(self, key: str):
        intent = KEY_BINDINGS.get(key.lower())
        if intent is None:
            return None
        return self.handle(intent)
