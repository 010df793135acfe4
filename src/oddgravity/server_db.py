"""
server_db.py: Database layer for player registration and score persistence.
"""

import datetime
import sqlite3
import threading
from typing import List, Optional

from .constants import DB_FILE


def _iso(ts: datetime.datetime) -> str:
    return ts.astimezone(datetime.timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class Database:
    """Handles all interaction with the SQLite database."""
    def __init__(self, db_file: str = DB_FILE):
        # request handlers run on their own threads
        self.conn = sqlite3.connect(db_file, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.lock = threading.Lock()
        self.setup()

    def setup(self):
        """Creates tables if they don't exist."""
        with self.lock:
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS players (
                    id TEXT PRIMARY KEY,
                    created_at TEXT NOT NULL
                )
            """)
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS scores (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    player_id TEXT NOT NULL,
                    score INTEGER NOT NULL,
                    mode_name TEXT,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY(player_id) REFERENCES players(id)
                )
            """)
            self.conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_scores_created ON scores(created_at)")
            self.conn.commit()

    def add_player(self, player_id: str, now: Optional[datetime.datetime] = None):
        """Registers a player id. Registering twice is a no-op."""
        now = now or datetime.datetime.now(datetime.timezone.utc)
        with self.lock:
            self.conn.execute(
                "INSERT OR IGNORE INTO players (id, created_at) VALUES (?, ?)", (player_id, _iso(now)))
            self.conn.commit()

    def add_score(self, player_id: str, score: int, mode_name: str,
                  now: Optional[datetime.datetime] = None):
        now = now or datetime.datetime.now(datetime.timezone.utc)
        with self.lock:
            self.conn.execute(
                "INSERT OR IGNORE INTO players (id, created_at) VALUES (?, ?)", (player_id, _iso(now)))
            self.conn.execute(
                "INSERT INTO scores (player_id, score, mode_name, created_at) VALUES (?, ?, ?, ?)",
                (player_id, score, mode_name, _iso(now)))
            self.conn.commit()

    def get_leaderboard(self, since: Optional[datetime.datetime] = None, mode: Optional[str] = None,
                        limit: int = 20) -> List[dict]:
        """Best score per (player, mode), newest first on ties."""
        where = []
        params: list = []
        if since is not None:
            where.append("created_at >= ?")
            params.append(_iso(since))
        if mode:
            where.append("mode_name = ?")
            params.append(mode)
        where_sql = ("WHERE " + " AND ".join(where)) if where else ""
        params.append(limit)
        sql = """
            SELECT player_id,
                   MAX(score) AS best_score,
                   MAX(created_at) AS last_played,
                   COALESCE(mode_name, 'Classic') AS mode_name
            FROM scores
            %s
            GROUP BY player_id, mode_name
            ORDER BY best_score DESC, last_played DESC
            LIMIT ?
        """ % where_sql
        with self.lock:
            rows = self.conn.execute(sql, params).fetchall()
        return [dict(row) for row in rows]

    def close(self):
        with self.lock:
            self.conn.close()
