# Rotrix - A gravity-flipping falling-block puzzle
# highscores.py - Top-N highscore table over a local key-value store

import json
import logging
import os
import tempfile
import threading
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .exceptions import HighscoreStorageError

logger = logging.getLogger(__name__)

STORAGE_KEY = 'rotrix_highscores'
MAX_HIGHSCORES = 5
MAX_NAME_LENGTH = 20


@dataclass
class HighscoreEntry:
    name: str
    score: int
    level: int = 1
    lines: int = 0
    date: float = field(default_factory=time.time)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HighscoreEntry':
        return cls(
            name=str(data.get('name', '')),
            score=_as_int(data.get('score'), 0),
            level=_as_int(data.get('level'), 1),
            lines=_as_int(data.get('lines'), 0),
            date=float(data.get('date') or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _as_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class MemoryStore:
    """In-process key-value store."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str):
        self._data[key] = value


class JsonFileStore:
    """
    Key-value store persisted as one JSON object on disk.
    Writes go through a temporary file and os.replace so a crash never leaves
    a half-written file behind.
    """

    def __init__(self, path: str):
        self.path = path
        self.lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise HighscoreStorageError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise HighscoreStorageError(f"{self.path} does not hold a JSON object")
        return data

    def get(self, key: str) -> Optional[str]:
        with self.lock:
            return self._load().get(key)

    def set(self, key: str, value: str):
        with self.lock:
            data = self._load()
            data[key] = value
            directory = os.path.dirname(os.path.abspath(self.path))
            try:
                os.makedirs(directory, exist_ok=True)
                fd, tmp_path = tempfile.mkstemp(dir=directory, suffix='.tmp')
                try:
                    with os.fdopen(fd, 'w', encoding='utf-8') as f:
                        json.dump(data, f, indent=2)
                    os.replace(tmp_path, self.path)
                except OSError:
                    try:
                        os.unlink(tmp_path)
                    except FileNotFoundError:
                        pass
                    raise
            except OSError as e:
                raise HighscoreStorageError(f"Cannot write {self.path}: {e}") from e


class HighscoreManager:
    """Keeps the best `max_entries` results, sorted by score descending."""

    def __init__(self, store=None, max_entries: int = MAX_HIGHSCORES,
                 max_name_length: int = MAX_NAME_LENGTH, key: str = STORAGE_KEY):
        self.store = store if store is not None else MemoryStore()
        self.max_entries = max_entries
        self.max_name_length = max_name_length
        self.key = key

    def get_highscores(self) -> List[HighscoreEntry]:
        try:
            raw = self.store.get(self.key)
            if not raw:
                return []
            entries = [HighscoreEntry.from_dict(item) for item in json.loads(raw)]
        except (HighscoreStorageError, ValueError, TypeError, AttributeError) as e:
            logger.error("Error reading highscores: %s", e)
            return []
        entries.sort(key=lambda entry: entry.score, reverse=True)
        return entries

    def save_highscores(self, entries: List[HighscoreEntry]) -> bool:
        try:
            self.store.set(self.key, json.dumps([entry.to_dict() for entry in entries]))
        except HighscoreStorageError as e:
            logger.error("Error saving highscores: %s", e)
            return False
        return True

    def qualifies_for_highscore(self, score: int) -> bool:
        """True if the table has room, or `score` reaches the current lowest entry."""
        try:
            score = int(score)
        except (TypeError, ValueError):
            logger.error("Invalid score provided to qualifies_for_highscore: %r", score)
            return False

        entries = self.get_highscores()
        if len(entries) < self.max_entries:
            return True
        lowest = entries[self.max_entries - 1].score
        return score >= lowest

    def add_highscore(self, name: str, score: int, level: int = 1, lines: int = 0) -> bool:
        """
        Insert a result and keep the top entries.
        Returns False for a blank name or a non-positive score. A storage failure
        is logged and the game carries on.
        """
        if not name or not name.strip():
            logger.error("Invalid highscore name: %r", name)
            return False
        score = _as_int(score, 0)
        if score <= 0:
            logger.error("Invalid highscore score: %r", score)
            return False

        entry = HighscoreEntry(
            name=name.strip()[:self.max_name_length],
            score=score,
            level=_as_int(level, 1),
            lines=_as_int(lines, 0),
        )
        entries = self.get_highscores()
        entries.append(entry)
        entries.sort(key=lambda e: e.score, reverse=True)
        if not self.save_highscores(entries[:self.max_entries]):
            logger.warning("Highscore for %s was not saved", entry.name)
        return True

    def get_rank(self, score: int) -> Optional[int]:
        """1-based rank `score` would take, or None if it misses the table."""
        entries = self.get_highscores()
        for i, entry in enumerate(entries):
            if score >= entry.score:
                return i + 1
        if len(entries) < self.max_entries:
            return len(entries) + 1
        return None
