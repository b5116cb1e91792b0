import pandas as pd
from pandas.errors import EmptyDataError
from typing import Any, Dict, List, Tuple, Union
import io
import logging

logger = logging.getLogger(__name__)

# Every cell stays a string so leading zeros in ZIP codes and claim numbers
# survive; utf-8-sig strips the BOM Excel puts in front of the first header.
# The python engine is the one that accepts a callable for bad lines.
_READ_OPTIONS = dict(
    dtype=str,
    keep_default_na=False,
    skipinitialspace=True,
    encoding='utf-8-sig',
    engine='python',
)


def _cell(value: Any) -> str:
    if value is None or pd.isna(value):
        return ""
    return str(value).strip()


def read_csv_headers(file_content: bytes) -> List[str]:
    """Return the raw header row, blank cells kept in place."""
    try:
        df = pd.read_csv(io.BytesIO(file_content), header=None, nrows=1, **_READ_OPTIONS)
    except EmptyDataError:
        return []
    if df.empty:
        return []
    return [_cell(value) for value in df.iloc[0].tolist()]


def read_csv_records(content: Union[str, bytes]) -> Tuple[List[str], List[Dict[str, Any]]]:
    """
    Read CSV content into (headers, rows).

    Empty cells become None and rows that are entirely empty are skipped.
    Short rows are padded with None; cells beyond the header width are
    dropped with a warning. Columns with a blank header are left out.
    """
    file_content = content.encode('utf-8') if isinstance(content, str) else content
    raw_headers = read_csv_headers(file_content)
    if not raw_headers:
        return [], []

    width = len(raw_headers)
    overflow_rows = 0

    def _truncate(cells: List[str]) -> List[str]:
        nonlocal overflow_rows
        overflow_rows += 1
        return cells[:width]

    try:
        df = pd.read_csv(
            io.BytesIO(file_content),
            header=None,
            skiprows=1,
            names=list(range(width)),
            index_col=False,
            on_bad_lines=_truncate,
            **_READ_OPTIONS,
        )
        rows = df.to_dict('records')
    except EmptyDataError:
        rows = []

    records: List[Dict[str, Any]] = []
    for row in rows:
        cells = [_cell(row.get(index)) for index in range(width)]
        if not any(cells):
            continue
        records.append({
            header: value or None
            for header, value in zip(raw_headers, cells)
            if header
        })

    headers = [header for header in raw_headers if header]
    if overflow_rows:
        logger.warning("Ignored extra cells on %d CSV rows wider than the header", overflow_rows)
    logger.info("Parsed CSV with %d rows and %d columns", len(records), len(headers))
    return headers, records
