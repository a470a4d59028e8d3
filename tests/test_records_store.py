# tests/test_records_store.py

from __future__ import annotations

import pytest

from legalintel.records.store import RecordStore


@pytest.fixture()
def records(tmp_path) -> RecordStore:
    return RecordStore(tmp_path / "records.sqlite3")


def test_case_log_with_entries(records: RecordStore) -> None:
    case_id = records.create_case_log("alice", case_name=" Rao v. Mehta ", client_name="Anita Rao", case_number="")

    records.add_case_log_entry("alice", case_id, "Filed the plaint.")
    records.add_case_log_entry("alice", case_id, "  First hearing adjourned.  ")

    case = records.get_case_log("alice", case_id)
    assert case is not None
    assert (case.case_name, case.client_name, case.case_number) == ("Rao v. Mehta", "Anita Rao", None)
    assert [e.entry for e in case.entries] == ["Filed the plaint.", "First hearing adjourned."]
    assert case.updated_at >= case.created_at


def test_case_logs_are_scoped_to_their_owner(records: RecordStore) -> None:
    case_id = records.create_case_log("alice", case_name="Rao v. Mehta", client_name="Anita Rao")

    assert records.get_case_log("bob", case_id) is None
    assert records.list_case_logs("bob") == []
    with pytest.raises(LookupError, match="Case log not found"):
        records.add_case_log_entry("bob", case_id, "Not my case.")
    assert records.get_case_log("alice", case_id).entries == []


def test_recently_touched_case_lists_first(records: RecordStore) -> None:
    older = records.create_case_log("alice", case_name="Older", client_name="A", case_number="12/2024")
    newer = records.create_case_log("alice", case_name="Newer", client_name="B")
    assert [c.id for c in records.list_case_logs("alice")] == [newer, older]

    records.add_case_log_entry("alice", older, "Judgment reserved.")
    listed = records.list_case_logs("alice")
    assert listed[0].id == older
    assert listed[0].case_number == "12/2024"


@pytest.mark.parametrize(
    ("case_name", "client_name", "message"),
    [("", "Anita Rao", "Case name is required."), ("Rao v. Mehta", "  ", "Client name is required.")],
)
def test_case_log_requires_names(records: RecordStore, case_name, client_name, message) -> None:
    with pytest.raises(ValueError, match=message):
        records.create_case_log("alice", case_name=case_name, client_name=client_name)
    assert records.list_case_logs("alice") == []


def test_empty_case_entry_is_rejected(records: RecordStore) -> None:
    case_id = records.create_case_log("alice", case_name="Rao v. Mehta", client_name="Anita Rao")
    with pytest.raises(ValueError, match="Entry text is required."):
        records.add_case_log_entry("alice", case_id, "   ")


def test_delete_role_play_session(records: RecordStore) -> None:
    session_id = records.add_role_play_session("alice", {"role": "Client", "messages": []})

    assert records.delete_role_play_session("bob", session_id) is False
    assert records.get_role_play_session("alice", session_id) is not None

    assert records.delete_role_play_session("alice", session_id) is True
    assert records.get_role_play_session("alice", session_id) is None
    assert records.delete_role_play_session("alice", session_id) is False
