from inspectsync.api.schemas.shared import CanonicalRecord
from inspectsync.domain.imports.fields import CanonicalField
from inspectsync.domain.imports.orchestrator import scan_import, scan_reconciliation


USER = "user-1"
HEADERS = ["Address", "City", "State", "Zip"]
STALE_MAPPING = {"address": "Street", "city": "City", "state": "State", "zip": "Zip"}


def _row(address):
    return {"Address": address, "City": "Springfield", "State": "IL", "Zip": "62704"}


def _open_count(store):
    return len(store.fetch_open_records(USER))


def test_reconciliation_refuses_mapping_to_absent_header(store):
    store.insert_record(USER, CanonicalRecord(address="1 Elm St", company="MIL"))
    store.insert_record(USER, CanonicalRecord(address="2 Elm St", company="MIL"))

    result = scan_reconciliation(store, USER, "mil", HEADERS, [_row("1 Elm St")], mapping=STALE_MAPPING)

    assert result.inference.is_valid is False
    assert CanonicalField.ADDRESS in result.inference.missing_required
    assert result.inference.mapping[CanonicalField.ADDRESS] is None
    assert result.missing == []


def test_import_with_mapping_to_absent_header_commits_nothing(store):
    result = scan_import(store, USER, HEADERS, [_row("1 Elm St")], company="MIL", mapping=STALE_MAPPING)

    assert result.inference.is_valid is False
    assert result.committed_ids == []
    assert result.conflicts == []
    assert _open_count(store) == 0


def test_stale_company_profile_falls_back_to_inference(store):
    store.save_company_profile("MIL", name="Millennium", column_mappings=STALE_MAPPING)

    result = scan_import(store, USER, HEADERS, [_row("1 Elm St")], company="MIL")

    assert result.inference.is_valid is True
    assert result.inference.mapping[CanonicalField.ADDRESS] == "Address"
    assert len(result.committed_ids) == 1


def test_row_with_out_of_range_number_still_commits(store):
    headers = HEADERS + ["Sq Ft"]
    row = dict(_row("1 Elm St"), **{"Sq Ft": "99999999999999999999"})

    result = scan_import(store, USER, headers, [row], company="MIL")

    assert len(result.committed_ids) == 1
    assert [(e.type, e.field) for e in result.row_errors] == [("type_mismatch", "square_feet")]
    assert store.get_record(USER, result.committed_ids[0]).square_feet is None
