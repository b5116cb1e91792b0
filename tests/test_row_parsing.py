from datetime import date

from inspectsync.domain.imports.mapper import coerce_mapping, map_row, map_rows


MAPPING = coerce_mapping({
    "address": "Address",
    "city": "City",
    "state": "State",
    "zip": "Zip",
    "first_name": "First",
    "last_name": "Last",
    "due_date": "Due",
    "schedule_for": "Scheduled",
    "appointment_flag": "Appt",
    "square_feet": "SqFt",
    "year_built": "Built",
    "claim_number": "Claim",
})

TODAY = date(2025, 3, 17)


def _row(**overrides):
    row = {
        "Address": " 123 Main St ",
        "City": "Springfield",
        "State": "IL",
        "Zip": "62704",
        "First": "Jane",
        "Last": "Doe",
        "Due": "03/20/2025",
        "Scheduled": "03/18/2025 2:30 PM",
        "Appt": "",
        "SqFt": "2,150 sq ft",
        "Built": "1987",
        "Claim": "CLM-1",
        "Inspector": "Bob",
        "Blank": "",
    }
    row.update(overrides)
    return row


def test_map_row_builds_canonical_record():
    record, errors = map_row(_row(), MAPPING, company="mil", today=TODAY)

    assert errors == []
    assert record.company == "MIL"
    assert record.address == "123 Main St"
    assert record.insured_name == "Jane Doe"
    assert record.due_date == date(2025, 3, 20)
    assert record.appointment_date == date(2025, 3, 18)
    assert record.appointment_time == "14:30"
    assert record.appointment_flag is True
    assert record.square_feet == 2150
    assert record.year_built == 1987
    assert record.claim_number == "CLM-1"
    assert record.urgency == "URGENT"
    assert record.status == "PENDING"
    assert record.id is None


def test_unmapped_non_empty_columns_are_kept_as_raw_data():
    record, _ = map_row(_row(), MAPPING, today=TODAY)

    assert record.raw_data == {"Inspector": "Bob"}


def test_explicit_insured_column_wins_over_split_name():
    mapping = dict(MAPPING)
    mapping.update({key: value for key, value in coerce_mapping({"insured": "Insured"}).items() if value})

    record, _ = map_row(_row(Insured="Acme Holdings"), mapping, today=TODAY)

    assert record.insured_name == "Acme Holdings"


def test_insured_falls_back_to_company_name():
    mapping = coerce_mapping({"address": "Address", "company_name": "Business"})

    record, _ = map_row({"Address": "1 Elm", "Business": "Acme LLC"}, mapping)

    assert record.insured_name == "Acme LLC"
    assert record.company_name == "Acme LLC"


def test_unparseable_cells_leave_field_empty_and_report_errors():
    record, errors = map_row(
        _row(Due="not a date", Built="19x5", Appt="maybe", Scheduled=""),
        MAPPING,
        record_number=7,
        today=TODAY,
    )

    assert record.due_date is None
    assert record.year_built is None
    assert record.appointment_flag is None
    assert record.urgency == "UNKNOWN"
    assert {(e.type, e.field) for e in errors} == {
        ("invalid_date", "due_date"),
        ("type_mismatch", "year_built"),
        ("invalid_flag", "appointment_flag"),
    }
    assert all(e.record_number == 7 for e in errors)
    due_error = next(e for e in errors if e.field == "due_date")
    assert due_error.column == "Due"
    assert due_error.value == "not a date"


def test_numbers_beyond_integer_column_range_are_rejected():
    record, errors = map_row(_row(SqFt="99999999999999999999", Built="-3000000000"), MAPPING, today=TODAY)

    assert record.square_feet is None
    assert record.year_built is None
    assert {(e.type, e.field) for e in errors} == {
        ("type_mismatch", "square_feet"),
        ("type_mismatch", "year_built"),
    }


def test_explicit_no_flag_without_schedule():
    record, errors = map_row(_row(Appt="No", Scheduled=""), MAPPING, today=TODAY)

    assert errors == []
    assert record.appointment_flag is False
    assert record.appointment_date is None


def test_time_only_schedule_sets_time_without_date():
    record, _ = map_row(_row(Scheduled="2:30 PM"), MAPPING, today=TODAY)

    assert record.appointment_date is None
    assert record.appointment_time == "14:30"
    assert record.appointment_flag is True


def test_map_rows_returns_one_record_per_row():
    rows = [_row(), _row(Due="garbage"), {"Address": "9 Oak Ave"}]

    records, errors = map_rows(rows, MAPPING, company="ABC", today=TODAY)

    assert len(records) == 3
    assert [r.address for r in records] == ["123 Main St", "123 Main St", "9 Oak Ave"]
    assert [e.record_number for e in errors] == [2]
    assert all(r.company == "ABC" for r in records)
