import datetime
import json
import uuid
import urllib.error
import urllib.request

import pytest

from oddgravity.api_client import ApiClient
from oddgravity.data_models import ScoreEntry
from oddgravity.errors import ApiError
from oddgravity.server import (
    DAILY_MODE_NAMES, OddGravityServer, daily_config, period_start, sanitize_mode, validate_score,
)
from oddgravity.server_db import Database

PID = "0f8fad5b-d9cb-469f-a165-70867728950e"
UTC = datetime.timezone.utc


def test_daily_config_is_deterministic_and_in_range():
    day = datetime.date(2026, 10, 19)
    cfg = daily_config(day)
    assert cfg == daily_config(day)
    assert cfg["seed"] == 20261019
    assert cfg["modeName"] in DAILY_MODE_NAMES
    assert 2500 <= cfg["gravityFlipEveryMs"] <= 3500
    assert 2 <= cfg["obstacleSpeed"] <= 4
    assert 450 <= cfg["freezeDurationMs"] <= 650
    assert daily_config(day + datetime.timedelta(days=1))["seed"] == 20261020


def test_validate_score():
    assert validate_score({"playerId": PID, "score": 12}) == (PID, 12, "Classic")
    assert validate_score({"playerId": PID, "score": 3, "modeName": "Odd Gravity!"}) == (PID, 3, "Odd Gravity")
    assert validate_score({"playerId": "nope", "score": 12}) is None
    assert validate_score({"playerId": PID, "score": True}) is None
    assert validate_score({"playerId": PID, "score": -1}) is None
    assert validate_score({"playerId": PID, "score": 10 ** 7}) is None
    assert validate_score({"playerId": PID, "score": 1, "modeName": "x" * 40}) is None
    assert validate_score([1, 2]) is None


def test_sanitize_mode():
    assert sanitize_mode(None) == "Classic"
    assert sanitize_mode("  ") == "Classic"
    assert sanitize_mode("<b>Flux</b>") == "bFluxb"


def test_period_start():
    wed = datetime.datetime(2026, 10, 21, 15, 30, tzinfo=UTC)
    assert period_start("daily", wed) == datetime.datetime(2026, 10, 21, tzinfo=UTC)
    assert period_start("weekly", wed) == datetime.datetime(2026, 10, 19, tzinfo=UTC)
    assert period_start("all", wed) is None


def test_leaderboard_keeps_best_per_player_and_mode(tmp_path):
    db = Database(str(tmp_path / "server.db"))
    old = datetime.datetime(2026, 10, 1, tzinfo=UTC)
    new = datetime.datetime(2026, 10, 19, 12, tzinfo=UTC)
    other = str(uuid.uuid4())
    db.add_score(PID, 10, "Classic", now=old)
    db.add_score(PID, 40, "Classic", now=new)
    db.add_score(PID, 15, "Bouncy", now=new)
    db.add_score(other, 25, "Classic", now=old)

    rows = db.get_leaderboard()
    assert [(r["player_id"], r["best_score"], r["mode_name"]) for r in rows] == [
        (PID, 40, "Classic"), (other, 25, "Classic"), (PID, 15, "Bouncy")]

    recent = db.get_leaderboard(since=datetime.datetime(2026, 10, 19, tzinfo=UTC))
    assert {r["best_score"] for r in recent} == {40, 15}

    bouncy = db.get_leaderboard(mode="Bouncy")
    assert [r["best_score"] for r in bouncy] == [15]
    assert len(db.get_leaderboard(limit=1)) == 1
    db.close()


@pytest.fixture
def live(tmp_path):
    server = OddGravityServer("127.0.0.1", 0, Database(str(tmp_path / "server.db")))
    server.start()
    base = "http://127.0.0.1:%d" % server.server_address[1]
    yield ApiClient(base, timeout=5), base
    server.stop()


def test_health_and_daily(live):
    api, _ = live
    assert api.health()["ok"] is True
    daily = api.daily()
    today = datetime.datetime.now(UTC).date()
    assert daily.seed == str(daily_config(today)["seed"])
    assert daily.mode_name in DAILY_MODE_NAMES


def test_register_and_score_round_trip(live):
    api, _ = live
    pid = api.register()
    assert uuid.UUID(pid)
    assert api.register(pid) == pid
    api.submit_score(ScoreEntry(player_id=pid, score=25, mode_name="Classic"))
    api.submit_score(ScoreEntry(player_id=pid, score=10, mode_name="Classic"))
    items = api.leaderboard(period="daily")
    assert [(i["player_id"], i["best_score"]) for i in items] == [(pid, 25)]
    assert api.leaderboard(mode="Flux") == []


def test_invalid_score_is_rejected(live):
    api, _ = live
    with pytest.raises(ApiError) as err:
        api.submit_score(ScoreEntry(player_id="not-a-uuid", score=5, mode_name="Classic"))
    assert err.value.status == 400


def test_register_rejects_bad_id(live):
    api, _ = live
    with pytest.raises(ApiError) as err:
        api.register("bogus")
    assert err.value.status == 400


def test_unknown_route_and_bad_limit(live):
    _, base = live
    with pytest.raises(urllib.error.HTTPError) as err:
        urllib.request.urlopen(base + "/api/nowhere", timeout=5)
    assert err.value.code == 404
    assert json.loads(err.value.read()) == {"error": "not_found"}

    with pytest.raises(urllib.error.HTTPError) as err:
        urllib.request.urlopen(base + "/api/leaderboard?limit=abc", timeout=5)
    assert err.value.code == 400


def test_malformed_json_body(live):
    _, base = live
    req = urllib.request.Request(base + "/api/score", data=b"{nope", method="POST",
                                 headers={"Content-Type": "application/json"})
    with pytest.raises(urllib.error.HTTPError) as err:
        urllib.request.urlopen(req, timeout=5)
    assert err.value.code == 400
