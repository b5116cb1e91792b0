from datetime import date, datetime, timezone

import pytest

from inspectsync.api.schemas.shared import CanonicalRecord, ReconciliationDecisionSet
from inspectsync.domain.imports.reconciliation import (
    ReconciliationSession,
    apply_reconciliation,
    reconcile,
    same_identity,
)


USER = "user-1"
TODAY = date(2025, 3, 17)


def _open(record_id, address, **fields):
    return CanonicalRecord(id=record_id, address=address, company="MIL", **fields)


def test_records_absent_from_export_are_reported_missing():
    previously_open = [
        _open("a", "1 Elm St"),
        _open("b", "9 Oak Ave", due_date=date(2025, 3, 18), insured_name="Jane Doe"),
    ]
    export = [CanonicalRecord(address="1 Elm St", company="MIL")]

    missing = reconcile(export, previously_open, today=TODAY)

    assert [m.id for m in missing] == ["b"]
    assert missing[0].decision == "completed"
    assert missing[0].urgency == "CRITICAL"
    assert missing[0].days_remaining == 1
    assert missing[0].insured_name == "Jane Doe"


def test_closed_records_are_never_reported():
    previously_open = [
        _open("done", "1 Elm St", status="COMPLETED"),
        _open("gone", "2 Elm St", status="CANCELLED"),
    ]

    assert reconcile([], previously_open, today=TODAY) == []


def test_claim_number_distinguishes_inspections_at_one_address():
    previous = _open("a", "1 Elm St", claim_number="C-1")

    assert same_identity(previous, CanonicalRecord(address="1 Elm St", claim_number="C-1"))
    assert same_identity(previous, CanonicalRecord(address="1 Elm St"))
    assert not same_identity(previous, CanonicalRecord(address="1 Elm St", claim_number="C-2"))

    missing = reconcile([CanonicalRecord(address="1 Elm St", claim_number="C-2")], [previous], today=TODAY)
    assert [m.id for m in missing] == ["a"]


def test_missing_address_includes_locality():
    previous = _open("a", "1 Elm St", city="Springfield", state="IL", zip="62704")

    missing = reconcile([], [previous], today=TODAY)

    assert missing[0].address == "1 Elm St, Springfield, IL 62704"
    assert missing[0].urgency == "UNKNOWN"


def test_session_toggles_between_completed_and_removed():
    missing = reconcile([], [_open("a", "1 Elm St"), _open("b", "2 Elm St")], today=TODAY)
    session = ReconciliationSession(missing)

    assert session.toggle("b") == "removed"
    assert session.tally() == {"completed": 1, "removed": 1}
    assert session.toggle("b") == "completed"
    session.set_status("a", "removed")

    decisions = session.confirm()
    assert decisions.completed_ids == ["b"]
    assert decisions.removed_ids == ["a"]

    with pytest.raises(KeyError):
        session.toggle("zzz")
    with pytest.raises(ValueError):
        session.set_status("a", "archived")


def test_apply_reconciliation_updates_statuses(store):
    finished = store.insert_record(USER, CanonicalRecord(address="1 Elm St", company="MIL"))
    withdrawn = store.insert_record(USER, CanonicalRecord(address="2 Elm St", company="MIL"))
    untouched = store.insert_record(USER, CanonicalRecord(address="3 Elm St", company="MIL"))
    now = datetime(2025, 3, 17, 12, 0, tzinfo=timezone.utc)

    result = apply_reconciliation(
        store,
        USER,
        ReconciliationDecisionSet(completed_ids=[finished.id], removed_ids=[withdrawn.id]),
        now=now,
    )
    store.db.expire_all()

    assert result.success
    assert result.completed_count == 1
    assert result.removed_count == 1
    completed = store.get_record(USER, finished.id)
    assert completed.status == "COMPLETED"
    assert completed.completed_at is not None
    assert store.get_record(USER, withdrawn.id).status == "CANCELLED"
    assert [r.id for r in store.fetch_open_records(USER)] == [untouched.id]


def test_apply_reconciliation_ignores_other_users_records(store):
    foreign = store.insert_record("someone-else", CanonicalRecord(address="1 Elm St", company="MIL"))

    result = apply_reconciliation(store, USER, ReconciliationDecisionSet(completed_ids=[foreign.id]))

    assert result.completed_count == 0
    assert result.skipped_ids == [foreign.id]
    store.db.expire_all()
    assert store.get_record("someone-else", foreign.id).status == "PENDING"


def test_apply_reconciliation_rejects_overlapping_decisions(store):
    with pytest.raises(ValueError):
        apply_reconciliation(store, USER, ReconciliationDecisionSet(completed_ids=["x"], removed_ids=["x"]))


def test_apply_reconciliation_leaves_closed_records_alone(store):
    cancelled = store.insert_record(USER, CanonicalRecord(address="1 Elm St", company="MIL", status="CANCELLED"))
    still_open = store.insert_record(USER, CanonicalRecord(address="2 Elm St", company="MIL"))

    result = apply_reconciliation(
        store,
        USER,
        ReconciliationDecisionSet(completed_ids=[cancelled.id, still_open.id]),
    )
    store.db.expire_all()

    assert result.success
    assert result.completed_count == 1
    assert result.skipped_ids == [cancelled.id]
    closed = store.get_record(USER, cancelled.id)
    assert closed.status == "CANCELLED"
    assert closed.completed_at is None
    assert store.get_record(USER, still_open.id).status == "COMPLETED"
