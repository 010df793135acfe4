import pytest

from oddgravity.storage import PREFS, PROGRESSION, MemoryStore, SqliteStore


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        yield MemoryStore()
    else:
        s = SqliteStore(str(tmp_path / "local.db"))
        yield s
        s.close()


def test_missing_key_returns_default(store):
    assert store.load("nothing") is None
    assert store.load("nothing", []) == []


def test_save_overwrite_delete(store):
    store.save(PREFS, {"audio": False})
    store.save(PREFS, {"audio": True, "vibrate": False})
    assert store.load(PREFS) == {"audio": True, "vibrate": False}
    store.delete(PREFS)
    assert store.load(PREFS) is None


def test_keys_are_independent(store):
    store.save(PREFS, {"audio": False})
    store.save(PROGRESSION, {"coins": 3})
    store.delete(PROGRESSION)
    assert store.load(PREFS) == {"audio": False}


def test_corrupt_blob_memory():
    store = MemoryStore()
    store.put_raw(PROGRESSION, "{oops")
    assert store.load(PROGRESSION, "fallback") == "fallback"


def test_corrupt_blob_sqlite(tmp_path):
    store = SqliteStore(str(tmp_path / "local.db"))
    store.conn.execute("INSERT INTO kv (key, value) VALUES (?, ?)", (PROGRESSION, "{oops"))
    store.conn.commit()
    assert store.load(PROGRESSION, {}) == {}
    store.close()


def test_sqlite_persists_across_connections(tmp_path):
    path = str(tmp_path / "local.db")
    first = SqliteStore(path)
    first.save("player_id", "abc")
    first.close()
    second = SqliteStore(path)
    assert second.load("player_id") == "abc"
    second.close()
