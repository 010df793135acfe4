"""
storage.py: Local key/value persistence for the player's saved blobs.

Every blob is a JSON document under one key, loaded and defaulted on its own,
so a corrupt entry never takes the others down with it.
"""

import json
import logging
import sqlite3
import threading
from typing import Any, Dict

from .constants import LOCAL_DB_FILE
from .errors import PersistenceError

logger = logging.getLogger(__name__)

BEST_SCORES = "best_scores"
MISSIONS = "missions"
ACHIEVEMENTS = "achievements"
PROGRESSION = "progression"
PREFS = "prefs"
LAST_MODE = "last_mode"
SCORE_QUEUE = "score_queue"
PLAYER_ID = "player_id"


class KeyValueStore:
    """Interface: JSON-compatible values addressed by a string key."""

    def load(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def save(self, key: str, value: Any):
        raise NotImplementedError

    def delete(self, key: str):
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """In-process store. Values are round-tripped through JSON like the real one."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def load(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Corrupt blob for %r, using default", key)
            return default

    def save(self, key: str, value: Any):
        self._data[key] = json.dumps(value)

    def delete(self, key: str):
        self._data.pop(key, None)

    def put_raw(self, key: str, raw: str):
        self._data[key] = raw


class SqliteStore(KeyValueStore):
    """Handles all interaction with the local SQLite file."""

    def __init__(self, db_file: str = LOCAL_DB_FILE):
        try:
            # the score submitter writes from its own thread
            self.conn = sqlite3.connect(db_file, check_same_thread=False)
        except sqlite3.Error as e:
            raise PersistenceError("cannot open %s: %s" % (db_file, e)) from e
        self.lock = threading.Lock()
        self.setup()

    def setup(self):
        with self.lock:
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
            self.conn.commit()

    def load(self, key: str, default: Any = None) -> Any:
        with self.lock:
            row = self.conn.execute("SELECT value FROM kv WHERE key=?", (key,)).fetchone()
        if row is None:
            return default
        try:
            return json.loads(row[0])
        except ValueError:
            logger.warning("Corrupt blob for %r, using default", key)
            return default

    def save(self, key: str, value: Any):
        data = json.dumps(value)
        try:
            with self.lock:
                self.conn.execute(
                    "INSERT INTO kv (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value", (key, data))
                self.conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError("cannot save %r: %s" % (key, e)) from e

    def delete(self, key: str):
        with self.lock:
            self.conn.execute("DELETE FROM kv WHERE key=?", (key,))
            self.conn.commit()

    def close(self):
        with self.lock:
            self.conn.close()
