from inspectsync.domain.imports.processors.csv_processor import read_csv_headers, read_csv_records


def test_read_csv_headers_keeps_positions_and_strips_bom():
    content = "\ufeffAddress, ,City,\n1 Elm,,Springfield,\n".encode("utf-8")

    assert read_csv_headers(content) == ["Address", "", "City", ""]


def test_read_csv_records_keeps_strings_and_skips_blank_rows():
    content = (
        b'\xef\xbb\xbfAddress,City,Insured,Zip\n'
        b'"123 Main St, Unit 4",Springfield,"Doe, Jane",01234\n'
        b'\n'
        b',,,\n'
        b'9 Oak Ave,Shelbyville\n'
        b'1 Elm,Capital,Smith,99999,overflow\n'
    )

    headers, rows = read_csv_records(content)

    assert headers == ["Address", "City", "Insured", "Zip"]
    assert len(rows) == 3
    assert rows[0] == {
        "Address": "123 Main St, Unit 4",
        "City": "Springfield",
        "Insured": "Doe, Jane",
        "Zip": "01234",
    }
    assert rows[1]["Insured"] is None
    assert rows[1]["Zip"] is None
    assert rows[2]["Zip"] == "99999"


def test_columns_with_blank_headers_are_dropped():
    headers, rows = read_csv_records('Address, ,City\n1 Elm St,ignored, Springfield \n')

    assert headers == ["Address", "City"]
    assert rows == [{"Address": "1 Elm St", "City": "Springfield"}]


def test_quoted_cells_unescape_doubled_quotes():
    _, rows = read_csv_records('Address,Notes\n1 Elm St,"He said ""call first"""\n')

    assert rows[0]["Notes"] == 'He said "call first"'


def test_header_only_content_has_no_rows():
    assert read_csv_records("Address,City\n") == (["Address", "City"], [])


def test_read_csv_records_empty_content():
    assert read_csv_records("") == ([], [])
    assert read_csv_records(b"") == ([], [])
