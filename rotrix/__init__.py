# Rotrix - A gravity-flipping falling-block puzzle
# __init__.py for the rotrix package

from .config import GameConfig
from .pieces import Piece, Position, SHAPES, COLORS, rotate_matrix
from .board import Board, GridSnapshot
from .resettle import RigidBody, BodyMove, identify_bodies
from .game import GameController, GameState
from .rendering import Renderer, TextRenderer
from .controls import Controls, Intent
from .highscores import HighscoreManager, HighscoreEntry, JsonFileStore, MemoryStore
from .exceptions import RotrixError, ConfigError, HighscoreStorageError
