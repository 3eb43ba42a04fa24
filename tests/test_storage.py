import json

import pytest
from smart_structure.models import Session
from smart_structure.storage import JsonFileBackend, MemoryBackend, SessionStore


def _session():
    return Session(
        access_token="tok",
        refresh_token="ref",
        user={"id": "u1", "name": "Asha", "role": "owner"},
    )


def test_session_round_trip():
    session = Session(
        access_token="tok",
        refresh_token="ref",
        user={"id": "u1", "name": "Asha", "role": "owner", "email": "asha@example.com", "avatarUrl": "a.png"},
    )
    store = SessionStore()
    store.save(session)
    assert store.load() == session


def test_user_is_stored_as_json_string():
    backend = MemoryBackend()
    SessionStore(backend).save(_session())
    assert isinstance(backend.read()["user"], str)
    assert json.loads(backend.read()["user"])["id"] == "u1"


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"token": "tok"},
        {"user": json.dumps({"id": "u1", "name": "Asha"})},
        {"token": "tok", "user": "{not json"},
        {"token": "tok", "user": json.dumps(["u1"])},
        {"token": "tok", "user": json.dumps({"id": "u1"})},
        {"token": "", "user": json.dumps({"id": "u1", "name": "Asha"})},
    ],
)
def test_malformed_session_reads_as_absent(data):
    assert SessionStore(MemoryBackend(data)).load() is None


def test_pointers_write_through():
    backend = MemoryBackend()
    store = SessionStore(backend)
    store.survey_id = "s1"
    store.building_id = 42
    assert backend.read() == {"surveyId": "s1", "buildingId": "42"}
    store.survey_id = None
    assert "surveyId" not in backend.read()
    assert store.survey_id is None


def test_non_scalar_pointer_reads_as_absent():
    store = SessionStore(MemoryBackend({"buildingId": {"id": "b1"}, "surveyId": "  "}))
    assert store.building_id is None
    assert store.survey_id is None


def test_clear_is_a_single_write():
    writes = []

    class RecordingBackend(MemoryBackend):
        def write(self, data):
            writes.append(dict(data))
            super().write(data)

    store = SessionStore(RecordingBackend())
    store.save(_session())
    store.survey_id = "s1"
    store.building_id = "b1"
    writes.clear()

    store.clear()
    assert writes == [{}]
    assert store.load() is None
    assert store.survey_id is None
    assert store.building_id is None


def test_file_backend_survives_restart(tmp_path):
    path = tmp_path / "nested" / "session.json"
    store = SessionStore.at_path(path)
    store.save(_session())
    store.building_id = "b1"

    reopened = SessionStore.at_path(path)
    assert reopened.load().user.name == "Asha"
    assert reopened.building_id == "b1"
    assert [p.name for p in path.parent.iterdir()] == ["session.json"]


def test_file_backend_tolerates_corruption(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{broken", encoding="utf-8")
    assert JsonFileBackend(path).read() == {}

    path.write_text("[1, 2]", encoding="utf-8")
    assert JsonFileBackend(path).read() == {}
    assert SessionStore.at_path(path).load() is None


def test_missing_file_reads_empty(tmp_path):
    assert JsonFileBackend(tmp_path / "absent.json").read() == {}


def test_stores_on_one_file_share_a_lock(tmp_path):
    path = tmp_path / "session.json"
    first = SessionStore.at_path(path)
    second = SessionStore.at_path(tmp_path / "." / "session.json")
    other = SessionStore.at_path(tmp_path / "other.json")
    assert first._lock is second._lock
    assert first._lock is not other._lock
    assert SessionStore()._lock is not SessionStore()._lock
