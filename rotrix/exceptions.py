# Rotrix - A gravity-flipping falling-block puzzle
# exceptions.py - Custom exceptions for the Rotrix game engine

class RotrixError(Exception):
    """Base class for all Rotrix errors."""
    pass

class ConfigError(RotrixError):
    """Raised when a GameConfig holds impossible values."""
    pass

class HighscoreStorageError(RotrixError):
    """Raised by a highscore backend when the store cannot be read or written."""
    pass
