import pytest
from conftest import TickingClock, make_note

from geonotes.common.errors import NoteNotFoundError
from geonotes.store.note_store import NoteStore


def test_create_assigns_id_and_timestamps(note_store):
    stored = note_store.create(make_note("", 1.5, 2.5, title="Coffee"))

    assert stored.note_id
    assert stored.created_at == stored.updated_at
    assert note_store.get(stored.note_id) == stored


def test_list_for_user_is_newest_first_and_owner_scoped(note_store):
    first = note_store.create(make_note("", title="first"))
    second = note_store.create(make_note("", title="second"))
    note_store.create(make_note("", title="other", user_id="u2"))

    assert [note.note_id for note in note_store.list_for_user("u1")] == [second.note_id, first.note_id]


def test_update_and_delete(note_store):
    stored = note_store.create(make_note("", title="old"))
    updated = note_store.update(stored.note_id, title="new", content="text", latitude=None, longitude=None)

    assert updated.title == "new"
    assert updated.updated_at > stored.updated_at
    assert updated.created_at == stored.created_at

    note_store.delete(stored.note_id)
    with pytest.raises(NoteNotFoundError):
        note_store.get(stored.note_id)


def test_missing_ids_raise(note_store):
    with pytest.raises(NoteNotFoundError):
        note_store.update("nope", title="t", content="c", latitude=None, longitude=None)
    with pytest.raises(NoteNotFoundError):
        note_store.delete("nope")


def test_subscribe_delivers_initial_and_changes(note_store):
    received = []
    unsubscribe = note_store.subscribe("u1", received.append)
    stored = note_store.create(make_note("", title="a"))
    note_store.create(make_note("", title="elsewhere", user_id="u2"))
    unsubscribe()
    note_store.delete(stored.note_id)

    assert [len(batch) for batch in received] == [0, 1]


def test_parquet_persistence_round_trip(tmp_path):
    store = NoteStore(str(tmp_path), clock=TickingClock())
    located = store.create(make_note("", 36.1699, -115.1398, title="Vegas"))
    unlocated = store.create(make_note("", title="Nowhere"))

    reloaded = NoteStore(str(tmp_path))

    assert (tmp_path / "notes.parquet").exists()
    assert reloaded.get(located.note_id).latitude == pytest.approx(36.1699)
    assert reloaded.get(located.note_id).created_at == located.created_at
    assert reloaded.get(unlocated.note_id).position is None
    assert [n.title for n in reloaded.list_for_user("u1")] == ["Nowhere", "Vegas"]
