from types import SimpleNamespace

from inspectsync.domain.imports.fingerprinting import (
    calculate_fingerprint,
    find_matching_profile,
    fingerprint_coverage,
    generate_company_code,
    normalize_column_name,
)


MIL_HEADERS = [
    "Property Address", "City", "St", "Zip Code", "Insured Name",
    "Due Date", "Claim #", "Policy #", "Phone", "Notes",
]


def test_normalize_column_name():
    assert normalize_column_name("Claim #") == "claim"
    assert normalize_column_name(" Zip-Code ") == "zipcode"
    assert normalize_column_name("") == ""


def test_fingerprint_is_order_and_case_insensitive():
    first, columns = calculate_fingerprint(["City", "Zip Code", "Property Address"])
    second, _ = calculate_fingerprint(["property address", "ZIP CODE", "city"])

    assert first == second
    assert columns == ["city", "propertyaddress", "zipcode"]


def test_coverage_ignores_extra_incoming_columns():
    assert fingerprint_coverage(MIL_HEADERS, MIL_HEADERS + ["Inspector"]) == 1.0
    assert fingerprint_coverage(MIL_HEADERS, MIL_HEADERS[:9]) == 0.9
    assert fingerprint_coverage([], MIL_HEADERS) == 0.0


def test_find_matching_profile_requires_threshold():
    mil = SimpleNamespace(code="MIL", column_fingerprint=MIL_HEADERS)
    other = SimpleNamespace(code="ABC", column_fingerprint=["Address", "Town", "Postcode"])

    profile, similarity = find_matching_profile([other, mil], MIL_HEADERS[:9] + ["Extra"])
    assert profile is mil
    assert similarity == 0.9

    profile, similarity = find_matching_profile([other, mil], MIL_HEADERS[:5])
    assert profile is None
    assert similarity == 0.5


def test_identical_header_set_wins_over_partial_cover():
    subset = SimpleNamespace(code="SUB", column_fingerprint=MIL_HEADERS[:5])
    _, normalized = calculate_fingerprint(MIL_HEADERS)
    exact = SimpleNamespace(code="MIL", column_fingerprint=normalized)

    profile, similarity = find_matching_profile([subset, exact], MIL_HEADERS)

    assert profile is exact
    assert similarity == 1.0


def test_profiles_without_fingerprint_are_skipped():
    empty = SimpleNamespace(code="NEW", column_fingerprint=None)

    assert find_matching_profile([empty], MIL_HEADERS) == (None, 0.0)


def test_generate_company_code():
    assert generate_company_code("Millennium") == "MIL"
    assert generate_company_code("Insurance Partners Inc") == "IPI"
    assert generate_company_code("US Field Services of America") == "FSA"
    assert generate_company_code("A B") == "NEW"
