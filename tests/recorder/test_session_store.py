import json
import pytest
from unittest.mock import patch

from webreplay.core.state import PersistenceError, SessionNotFoundError


def test_save_then_load_round_trip(store, make_session):
    session = make_session(name="checkout")
    store.save(session)
    assert store.load(session.id) == session


def test_saved_file_uses_camel_case(store, make_session):
    session = make_session()
    path = store.save(session)
    data = json.loads(path.read_text())
    assert data["startUrl"] == "https://example.com/"
    assert data["totalDuration"] == 5000
    assert "name" not in data


def test_load_missing_session(store):
    with pytest.raises(SessionNotFoundError):
        store.load("nope")


def test_load_corrupt_session_file(store):
    store.session_path("broken").write_text("{not json")
    with pytest.raises(SessionNotFoundError):
        store.load("broken")


def test_load_session_file_missing_fields(store):
    store.session_path("partial").write_text(json.dumps({"name": "no id"}))
    with pytest.raises(SessionNotFoundError):
        store.load("partial")


def test_persist_writes_blob_and_index(store, make_session):
    session = make_session()
    path = store.persist(session)

    assert path == store.session_path(session.id)
    assert path.exists()
    entries = store.list()
    assert len(entries) == 1
    assert entries[0].id == session.id
    assert entries[0].event_count == 3
    assert entries[0].duration == 5000
    assert entries[0].filepath == f"{session.id}.json"


def test_persist_twice_keeps_single_entry(store, make_session):
    session = make_session()
    store.persist(session)
    session.name = "again"
    store.persist(session)

    entries = store.list()
    assert len(entries) == 1
    assert entries[0].name == "again"


def test_list_does_not_open_session_files(store, make_session):
    store.persist(make_session("a_1"))
    store.persist(make_session("b_2"))

    with patch.object(store, "load", side_effect=AssertionError("list must not load sessions")):
        assert [e.id for e in store.list()] == ["a_1", "b_2"]


def test_delete_removes_blob_and_entry(store, make_session):
    session = make_session()
    store.persist(session)

    assert store.delete(session.id) is True
    assert not store.session_path(session.id).exists()
    assert store.list() == []
    with pytest.raises(SessionNotFoundError):
        store.load(session.id)


def test_delete_unknown_is_noop(store, make_session):
    store.persist(make_session())
    before = store.index_path.read_bytes()

    assert store.delete("does_not_exist") is False
    assert store.index_path.read_bytes() == before


def test_delete_orphan_blob(store, make_session):
    session = make_session()
    store.save(session)

    assert store.delete(session.id) is True
    assert not store.session_path(session.id).exists()


def test_rename_updates_blob_and_index(store, make_session):
    session = make_session()
    store.persist(session)

    store.rename(session.id, "login flow")

    assert store.load(session.id).name == "login flow"
    assert store.list()[0].name == "login flow"


def test_rename_unknown_session(store):
    with pytest.raises(SessionNotFoundError):
        store.rename("missing", "x")
    assert not store.index_path.exists()


def test_rename_requires_index_entry(store, make_session):
    session = make_session()
    store.save(session)

    with pytest.raises(SessionNotFoundError):
        store.rename(session.id, "x")
    assert store.load(session.id).name is None


def test_rename_requires_blob(store, make_session):
    session = make_session()
    store.persist(session)
    store.session_path(session.id).unlink()

    with pytest.raises(SessionNotFoundError):
        store.rename(session.id, "x")
    assert store.list()[0].name is None


def test_corrupt_index_reads_as_empty(store):
    store.index_path.write_text("{not json")
    assert store.list() == []


def test_failed_blob_write_raises(store, make_session):
    with patch("webreplay.recorder.session_store.safe_write_json", return_value=False):
        with pytest.raises(PersistenceError):
            store.persist(make_session())
    assert not store.index_path.exists()
