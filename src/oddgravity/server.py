#!/usr/bin/env python3
"""
Odd Gravity daily/leaderboard server with SQLite persistence.

    GET  /api/health
    POST /api/register      {"playerId"?: uuid}
    GET  /api/daily
    POST /api/score         {"playerId": uuid, "score": int, "modeName"?: str}
    GET  /api/leaderboard   ?period=all|daily|weekly&mode=any|<name>&limit=N
"""

import argparse
import datetime
import json
import logging
import re
import threading
import uuid
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional, Tuple
from urllib.parse import parse_qs, urlparse

from .constants import (
    DB_FILE, LEADERBOARD_DEFAULT_LIMIT, LEADERBOARD_MAX_LIMIT, MAX_SCORE, SERVER_HOST, SERVER_PORT,
)
from .seeding import date_seed, mulberry32
from .server_db import Database

logger = logging.getLogger(__name__)

DAILY_MODE_NAMES = ("Classic", "Chaotic", "Bouncy", "Inverted", "Pulse", "Flux", "Odd Gravity")
MODE_NAME_MAX = 32
MAX_BODY = 100 * 1024


def daily_config(day: datetime.date) -> dict:
    """Same date, same config, for every player."""
    seed = date_seed(day)
    rng = mulberry32(seed)
    mode_name = DAILY_MODE_NAMES[int(rng() * len(DAILY_MODE_NAMES))]
    flip = round(2500 + 1000 * rng())
    speed = round(2 + rng() * 2)
    freeze = round(450 + 200 * rng())
    return {
        "seed": seed,
        "modeName": mode_name,
        "gravityFlipEveryMs": flip,
        "obstacleSpeed": speed,
        "freezeDurationMs": freeze,
    }


def is_uuid(value) -> bool:
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def sanitize_mode(name: Optional[str]) -> str:
    name = (name or "").strip() or "Classic"
    return re.sub(r"[^\w\s-]", "", name)[:MODE_NAME_MAX]


def validate_score(body) -> Optional[Tuple[str, int, str]]:
    """(player_id, score, mode_name), or None when the payload is invalid."""
    if not isinstance(body, dict):
        return None
    player_id = body.get("playerId")
    score = body.get("score")
    mode = body.get("modeName")
    if not is_uuid(player_id):
        return None
    if isinstance(score, bool) or not isinstance(score, int) or not 0 <= score <= MAX_SCORE:
        return None
    if mode is not None and (not isinstance(mode, str) or len(mode.strip()) > MODE_NAME_MAX):
        return None
    return player_id, score, sanitize_mode(mode)


def period_start(period: str, now: datetime.datetime) -> Optional[datetime.datetime]:
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "daily":
        return midnight
    if period == "weekly":
        return midnight - datetime.timedelta(days=now.weekday())
    return None


class ApiHandler(BaseHTTPRequestHandler):
    server_version = "OddGravity/1.0"

    @property
    def db(self) -> Database:
        return self.server.db

    def log_message(self, fmt, *args):
        logger.debug("%s - %s", self.address_string(), fmt % args)

    def _send(self, status: int, payload: dict):
        data = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _read_json(self):
        length = int(self.headers.get("Content-Length") or 0)
        if length > MAX_BODY:
            raise ValueError("body too large")
        raw = self.rfile.read(length) if length else b""
        return json.loads(raw.decode("utf-8")) if raw else {}

    def do_GET(self):
        url = urlparse(self.path)
        routes = {
            "/api/health": self._health,
            "/api/daily": self._daily,
            "/api/leaderboard": self._leaderboard,
        }
        self._dispatch(routes.get(url.path), parse_qs(url.query))

    def do_POST(self):
        url = urlparse(self.path)
        routes = {
            "/api/register": self._register,
            "/api/score": self._score,
        }
        handler = routes.get(url.path)
        if handler is None:
            return self._send(404, {"error": "not_found"})
        try:
            body = self._read_json()
        except ValueError:
            return self._send(400, {"error": "invalid_input"})
        self._dispatch(handler, body)

    def _dispatch(self, handler, arg):
        if handler is None:
            return self._send(404, {"error": "not_found"})
        try:
            status, payload = handler(arg)
        except Exception:
            logger.exception("Request failed: %s", self.path)
            status, payload = 500, {"error": "server_error"}
        self._send(status, payload)

    def _health(self, _query):
        now = datetime.datetime.now(datetime.timezone.utc)
        return 200, {"ok": True, "time": now.isoformat()}

    def _daily(self, _query):
        today = datetime.datetime.now(datetime.timezone.utc).date()
        return 200, daily_config(today)

    def _register(self, body):
        player_id = body.get("playerId") if isinstance(body, dict) else None
        if player_id is not None and not is_uuid(player_id):
            return 400, {"error": "Invalid playerId"}
        player_id = player_id or str(uuid.uuid4())
        self.db.add_player(player_id)
        return 200, {"playerId": player_id}

    def _score(self, body):
        parsed = validate_score(body)
        if parsed is None:
            return 400, {"error": "invalid_input"}
        self.db.add_score(*parsed)
        return 200, {"ok": True}

    def _leaderboard(self, query):
        period = (query.get("period") or ["all"])[0]
        mode = (query.get("mode") or ["any"])[0]
        try:
            limit = int((query.get("limit") or [LEADERBOARD_DEFAULT_LIMIT])[0])
        except ValueError:
            return 400, {"error": "invalid_input"}
        limit = max(1, min(limit, LEADERBOARD_MAX_LIMIT))
        since = period_start(period, datetime.datetime.now(datetime.timezone.utc))
        items = self.db.get_leaderboard(since, None if mode == "any" else mode[:MODE_NAME_MAX], limit)
        return 200, {"items": items}


class OddGravityServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, host: str = SERVER_HOST, port: int = SERVER_PORT, db: Optional[Database] = None):
        super().__init__((host, port), ApiHandler)
        self.db = db or Database()
        self.thread = threading.Thread(target=self.serve_forever, name="api-server", daemon=True)

    def start(self):
        self.thread.start()

    def stop(self):
        print("Stopping server...")
        self.shutdown()
        self.thread.join()
        self.server_close()
        self.db.close()
        print("Server stopped.")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Odd Gravity daily/leaderboard server")
    parser.add_argument("--host", default=SERVER_HOST)
    parser.add_argument("--port", type=int, default=SERVER_PORT)
    parser.add_argument("--db", default=DB_FILE)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    server = OddGravityServer(args.host, args.port, Database(args.db))
    print(f"API listening on {args.host}:{server.server_address[1]} (db: {args.db})")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        print("Stopping server...")
        server.server_close()
        server.db.close()
        print("Server stopped.")


if __name__ == "__main__":
    main()
