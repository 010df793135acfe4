"""
api_client.py: HTTP client for the daily/score backend and the score submitter.

Score submission never blocks the game: entries go to a background thread,
and anything the server does not accept is parked in the local score queue
until the next flush.
"""

import json
import logging
import queue
import threading
import time
import urllib.error
import urllib.parse
from typing import List, Optional
from urllib.request import Request, urlopen

from .constants import API_BASE_URL, API_TIMEOUT
from .data_models import DailyConfig, ScoreEntry
from .errors import ApiError
from .storage import PLAYER_ID, SCORE_QUEUE, KeyValueStore

logger = logging.getLogger(__name__)

USER_AGENT = "oddgravity-client"


class ApiClient:
    def __init__(self, base_url: str = API_BASE_URL, timeout: float = API_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, path: str, body: Optional[dict] = None, params: Optional[dict] = None):
        url = self.base_url + path
        if params:
            url += "?" + urllib.parse.urlencode(params)
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        data = None
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"
        req = Request(url, data=data, headers=headers, method=method)
        try:
            with urlopen(req, timeout=self.timeout) as r:
                raw = r.read()
        except urllib.error.HTTPError as e:
            raise ApiError("%s %s -> HTTP %d" % (method, path, e.code), status=e.code) from e
        except (urllib.error.URLError, OSError) as e:
            raise ApiError("%s %s failed: %s" % (method, path, e)) from e
        try:
            return json.loads(raw.decode("utf-8"))
        except ValueError as e:
            raise ApiError("%s %s returned invalid JSON" % (method, path)) from e

    def health(self) -> dict:
        return self._request("GET", "/api/health")

    def register(self, existing_id: Optional[str] = None) -> str:
        body = {"playerId": existing_id} if existing_id else {}
        return self._request("POST", "/api/register", body)["playerId"]

    def daily(self) -> DailyConfig:
        return DailyConfig.from_dict(self._request("GET", "/api/daily"))

    def leaderboard(self, period: str = "daily", mode: str = "any", limit: int = 20) -> List[dict]:
        data = self._request("GET", "/api/leaderboard", params={"period": period, "mode": mode, "limit": limit})
        return data.get("items", [])

    def submit_score(self, entry: ScoreEntry) -> dict:
        return self._request("POST", "/api/score", entry.to_payload())


def fetch_daily(api: Optional[ApiClient]) -> Optional[DailyConfig]:
    """The day's config, or None when the provider is unreachable."""
    if api is None:
        return None
    try:
        return api.daily()
    except ApiError as e:
        logger.warning("Daily config unavailable, using defaults: %s", e)
        return None


def ensure_player_id(api: Optional[ApiClient], store: KeyValueStore) -> Optional[str]:
    player_id = store.load(PLAYER_ID)
    if api is None:
        return player_id
    try:
        player_id = api.register(player_id)
    except ApiError as e:
        logger.warning("Register failed: %s", e)
        return player_id
    store.save(PLAYER_ID, player_id)
    return player_id


class ScoreSubmitter:
    """
    Sends scores from a background thread. Failed entries are appended to the
    SCORE_QUEUE blob; flush() resends them oldest first and stops at the first
    failure.
    """

    def __init__(self, api: ApiClient, store: KeyValueStore, background: bool = True):
        self.api = api
        self.store = store
        self.background = background
        self.status: Optional[str] = None
        self.lock = threading.Lock()
        self.jobs: "queue.Queue[Optional[ScoreEntry]]" = queue.Queue()
        self.running = threading.Event()
        self.worker = threading.Thread(target=self._worker_loop, name="score-submitter", daemon=True)

    def start(self):
        if self.background and not self.running.is_set():
            self.running.set()
            self.worker.start()

    def stop(self):
        if not self.running.is_set():
            return
        self.running.clear()
        self.jobs.put(None)
        self.worker.join()

    def submit(self, entry: ScoreEntry):
        """Fire and forget."""
        if self.background and self.running.is_set():
            self.jobs.put(entry)
        else:
            self._send(entry)

    def wait_idle(self):
        self.jobs.join()

    def _worker_loop(self):
        logger.debug("Score submitter thread started.")
        while self.running.is_set():
            entry = self.jobs.get()
            try:
                if entry is not None:
                    self._send(entry)
            finally:
                self.jobs.task_done()

    def _send(self, entry: ScoreEntry):
        try:
            self.api.submit_score(entry)
        except ApiError as e:
            logger.warning("Score submit failed, queued for later: %s", e)
            self._enqueue(entry)
            self.status = "queued"
            return
        self.status = "sent"
        logger.info("Score sent: %d (%s)", entry.score, entry.mode_name)

    def _load_queue(self) -> list:
        q = self.store.load(SCORE_QUEUE, [])
        if not isinstance(q, list):
            return []
        good = [item for item in q if isinstance(item, dict)
                and isinstance(item.get("score"), int) and not isinstance(item.get("score"), bool)]
        if len(good) != len(q):
            logger.warning("Dropping %d corrupt queued score(s)", len(q) - len(good))
        return good

    def _enqueue(self, entry: ScoreEntry):
        with self.lock:
            q = self._load_queue()
            q.append({"playerId": entry.player_id, "score": entry.score,
                      "modeName": entry.mode_name, "ts": entry.ts or time.time() * 1000})
            self.store.save(SCORE_QUEUE, q)

    def pending(self) -> int:
        with self.lock:
            return len(self._load_queue())

    def flush(self, player_id: Optional[str] = None) -> int:
        """Resend queued scores in order. Returns how many were accepted."""
        with self.lock:
            q = self._load_queue()
            sent = 0
            for item in q:
                entry = ScoreEntry(player_id=player_id or item.get("playerId", ""),
                                   score=int(item.get("score", 0)),
                                   mode_name=item.get("modeName", "Classic"),
                                   ts=item.get("ts", 0))
                try:
                    self.api.submit_score(entry)
                except ApiError as e:
                    logger.warning("Queue flush stopped after %d: %s", sent, e)
                    break
                sent += 1
            if sent:
                self.store.save(SCORE_QUEUE, q[sent:])
                logger.info("Flushed %d queued score(s)", sent)
        return sent
