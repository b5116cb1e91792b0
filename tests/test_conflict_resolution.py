from datetime import date

import pytest

from inspectsync.api.schemas.shared import CanonicalRecord, ConflictResolution
from inspectsync.domain.imports.conflicts import classify_conflict
from inspectsync.domain.imports.resolution import (
    ResolutionSession,
    apply_resolution,
    apply_resolutions,
    build_session,
)


USER = "user-1"


def _seed(store, **fields):
    fields.setdefault("company", "MIL")
    fields.setdefault("address", "123 Main St")
    return store.insert_record(USER, CanonicalRecord(**fields))


def _conflict_for(store, incoming):
    conflict = classify_conflict(incoming, store.fetch_open_records(USER), incoming_index=0)
    assert conflict is not None
    return conflict


def test_use_new_keeps_id_and_takes_incoming_fields(store):
    existing = _seed(store, insured_name="Old Name", due_date=date(2025, 3, 1), notes="old")
    incoming = CanonicalRecord(
        company="MIL",
        address="123 Main St",
        city="Springfield",
        insured_name="New Name",
        due_date=date(2025, 4, 1),
        claim_number="C-9",
        raw_data={"Inspector": "Bob"},
    )
    conflict = _conflict_for(store, incoming)

    outcome = apply_resolution(store, USER, conflict, "use_new")

    assert outcome.success
    assert outcome.record_id == existing.id
    stored = store.get_record(USER, existing.id)
    assert stored.id == existing.id
    assert stored.model_dump(exclude={"id"}) == incoming.model_dump(exclude={"id"})
    assert store.count_records(USER) == 1


def test_skip_leaves_the_store_untouched(store):
    existing = _seed(store, insured_name="Old Name")
    conflict = _conflict_for(store, CanonicalRecord(company="MIL", address="123 Main St", insured_name="New"))

    outcome = apply_resolution(store, USER, conflict, "skip")

    assert outcome.success
    assert outcome.record_id is None
    assert store.count_records(USER) == 1
    assert store.get_record(USER, existing.id).insured_name == "Old Name"


def test_keep_existing_does_not_modify_the_record(store):
    existing = _seed(store, insured_name="Old Name")
    conflict = _conflict_for(store, CanonicalRecord(company="ABC", address="123 Main St", insured_name="New"))

    outcome = apply_resolution(store, USER, conflict, "keep_existing")

    assert outcome.record_id == existing.id
    assert store.count_records(USER) == 1
    assert store.get_record(USER, existing.id).company == "MIL"


def test_keep_both_inserts_the_incoming_record(store):
    existing = _seed(store)
    conflict = _conflict_for(store, CanonicalRecord(company="MIL", address="123 Main St", insured_name="Twin"))

    outcome = apply_resolution(store, USER, conflict, "keep_both")

    assert outcome.success
    assert outcome.record_id not in (None, existing.id)
    assert store.count_records(USER) == 2
    assert store.get_record(USER, outcome.record_id).insured_name == "Twin"


def test_session_starts_from_suggested_actions_and_tallies_overrides(store):
    _seed(store)
    _seed(store, address="9 Oak Ave", company="ABC")
    conflicts = [
        _conflict_for(store, CanonicalRecord(company="MIL", address="123 Main St")),
        _conflict_for(store, CanonicalRecord(company="MIL", address="9 Oak Ave")),
    ]
    session = ResolutionSession(conflicts)

    assert [session.action_for(i) for i in range(len(session))] == ["use_new", "keep_existing"]
    session.set_action(1, "skip")
    assert session.tally() == {"keep_existing": 0, "use_new": 1, "keep_both": 0, "skip": 1}

    with pytest.raises(ValueError):
        session.set_action(0, "merge")
    with pytest.raises(IndexError):
        session.set_action(5, "skip")


def test_build_session_rejects_mismatched_resolutions(store):
    existing = _seed(store)
    conflict = _conflict_for(store, CanonicalRecord(company="MIL", address="123 Main St"))

    with pytest.raises(ValueError):
        build_session([conflict], [])
    with pytest.raises(ValueError):
        build_session([conflict], [ConflictResolution(existing_id="other", action="skip")])

    session = build_session([conflict], [ConflictResolution(existing_id=existing.id, action="keep_both")])
    assert session.action_for(0) == "keep_both"


def test_failed_item_does_not_undo_earlier_commits(store):
    first = _seed(store)
    second = _seed(store, address="9 Oak Ave")
    conflicts = [
        _conflict_for(store, CanonicalRecord(company="MIL", address="123 Main St", notes="fresh")),
        _conflict_for(store, CanonicalRecord(company="MIL", address="9 Oak Ave", notes="fresh")),
    ]
    # The second existing record disappears before the operator confirms.
    store.db.delete(store._get_row(USER, second.id))
    store.db.commit()

    outcomes = apply_resolutions(store, USER, ResolutionSession(conflicts))

    assert [o.success for o in outcomes] == [True, False]
    assert outcomes[1].error
    assert store.get_record(USER, first.id).notes == "fresh"
