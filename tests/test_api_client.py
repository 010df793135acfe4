from fakes import FakeApi

from oddgravity.api_client import ScoreSubmitter, ensure_player_id, fetch_daily
from oddgravity.data_models import ScoreEntry
from oddgravity.storage import PLAYER_ID, SCORE_QUEUE, MemoryStore


def entry(score):
    return ScoreEntry(player_id="p1", score=score, mode_name="Classic", ts=1000 + score)


def test_failed_submit_goes_to_queue():
    store = MemoryStore()
    sub = ScoreSubmitter(FakeApi(down=True), store, background=False)
    sub.submit(entry(5))
    sub.submit(entry(6))
    assert sub.status == "queued"
    assert [q["score"] for q in store.load(SCORE_QUEUE)] == [5, 6]


def test_flush_sends_in_order():
    store = MemoryStore()
    api = FakeApi(down=True)
    sub = ScoreSubmitter(api, store, background=False)
    for s in (1, 2, 3):
        sub.submit(entry(s))
    api.down = False
    assert sub.flush("p2") == 3
    assert [e.score for e in api.sent] == [1, 2, 3]
    assert all(e.player_id == "p2" for e in api.sent)
    assert sub.pending() == 0


def test_flush_stops_at_first_failure():
    store = MemoryStore()
    api = FakeApi(down=True)
    sub = ScoreSubmitter(api, store, background=False)
    for s in (1, 2, 3):
        sub.submit(entry(s))
    api.down = False
    api.fail_after = 1
    assert sub.flush() == 1
    assert [q["score"] for q in store.load(SCORE_QUEUE)] == [2, 3]


def test_flush_with_empty_queue():
    sub = ScoreSubmitter(FakeApi(), MemoryStore(), background=False)
    assert sub.flush() == 0


def test_flush_skips_corrupt_queue_items():
    store = MemoryStore()
    store.save(SCORE_QUEUE, [1, {"score": "x"}, {"playerId": "p0", "score": 4, "modeName": "Classic", "ts": 5}])
    api = FakeApi()
    sub = ScoreSubmitter(api, store, background=False)
    assert sub.pending() == 1
    assert sub.flush("p1") == 1
    assert [e.score for e in api.sent] == [4]
    assert store.load(SCORE_QUEUE) == []


def test_flush_with_only_corrupt_items_sends_nothing():
    store = MemoryStore()
    store.save(SCORE_QUEUE, [1, {"score": "x"}, {"score": True}])
    api = FakeApi()
    assert ScoreSubmitter(api, store, background=False).flush("p1") == 0
    assert api.sent == []


def test_background_submitter():
    store = MemoryStore()
    api = FakeApi()
    sub = ScoreSubmitter(api, store)
    sub.start()
    sub.submit(entry(9))
    sub.wait_idle()
    sub.stop()
    assert [e.score for e in api.sent] == [9]
    assert sub.status == "sent"


def test_fetch_daily_falls_back():
    assert fetch_daily(None) is None
    assert fetch_daily(FakeApi()) is None


def test_ensure_player_id():
    store = MemoryStore()
    pid = ensure_player_id(FakeApi(), store)
    assert store.load(PLAYER_ID) == pid
    assert ensure_player_id(FakeApi(down=True), store) == pid
    assert ensure_player_id(None, MemoryStore()) is None
