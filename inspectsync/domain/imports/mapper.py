from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
import logging
import re

from inspectsync.api.schemas.shared import CanonicalRecord, RowError
from inspectsync.core.config import settings
from inspectsync.domain.imports.fields import (
    FIELD_KEYWORDS,
    FIELD_LABELS,
    FIELD_PRIORITY,
    REQUIRED_FIELDS,
    CanonicalField,
)
from inspectsync.utils.date import (
    days_remaining,
    parse_flexible_date,
    split_schedule,
    urgency_for_days,
)

logger = logging.getLogger(__name__)

ColumnMapping = Dict[CanonicalField, Optional[str]]

_TRUTHY_FLAGS = {"y", "yes", "true", "t", "1", "x", "required", "needed", "call ahead", "call", "appt"}
_FALSY_FLAGS = {"n", "no", "false", "f", "0", "none", "not required", "n/a", "na"}

# Range of the INTEGER columns backing numeric fields.
_INT_MIN, _INT_MAX = -2**31, 2**31 - 1


@dataclass
class MappingInference:
    """Best-effort header assignment for one import session."""
    mapping: ColumnMapping
    missing_required: List[CanonicalField] = field(default_factory=list)
    unmapped: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.missing_required

    @property
    def missing_labels(self) -> List[str]:
        return [FIELD_LABELS[f] for f in self.missing_required]

    def mapping_by_name(self) -> Dict[str, Optional[str]]:
        return {f.value: header for f, header in self.mapping.items()}


def score_header(
    header: str,
    keyword: str,
    *,
    exact_score: Optional[float] = None,
    partial_weight: Optional[float] = None,
) -> float:
    """
    Score one header against one synonym.

    An exact case-insensitive match scores ``exact_score``; containment in
    either direction scores the length ratio of the shorter to the longer
    string times ``partial_weight``; anything else scores 0.
    """
    exact_score = settings.mapping_exact_score if exact_score is None else exact_score
    partial_weight = settings.mapping_partial_weight if partial_weight is None else partial_weight

    header_lower = header.lower().strip()
    if not header_lower:
        return 0.0
    if header_lower == keyword:
        return exact_score
    if keyword in header_lower or header_lower in keyword:
        shorter = min(len(keyword), len(header_lower))
        longer = max(len(keyword), len(header_lower))
        return shorter / longer * partial_weight
    return 0.0


def suggest_mappings(
    headers: Sequence[str],
    *,
    exact_score: Optional[float] = None,
    partial_weight: Optional[float] = None,
    min_score: Optional[float] = None,
) -> ColumnMapping:
    """
    Greedily assign one header per canonical field.

    Fields are visited in priority order and each claims its best-scoring
    unused header. A claimed header is unavailable to later fields, so ties
    between fields always go to the higher-priority one.
    """
    min_score = settings.mapping_min_score if min_score is None else min_score

    mappings: ColumnMapping = {}
    used_headers = set()

    for canonical_field in FIELD_PRIORITY:
        best_match: Optional[str] = None
        best_score = 0.0

        for header in headers:
            if header in used_headers:
                continue
            for keyword in FIELD_KEYWORDS[canonical_field]:
                score = score_header(
                    header, keyword, exact_score=exact_score, partial_weight=partial_weight
                )
                if score > best_score:
                    best_score = score
                    best_match = header

        if best_match is not None and best_score > min_score:
            mappings[canonical_field] = best_match
            used_headers.add(best_match)
        else:
            mappings[canonical_field] = None

    return mappings


def get_unmapped_columns(headers: Sequence[str], mappings: Mapping[CanonicalField, Optional[str]]) -> List[str]:
    """Headers not assigned to any canonical field, in input order."""
    mapped_headers = {header for header in mappings.values() if header}
    return [header for header in headers if header not in mapped_headers]


def validate_mappings(mappings: Mapping[CanonicalField, Optional[str]]) -> Tuple[bool, List[CanonicalField]]:
    missing = [f for f in REQUIRED_FIELDS if not mappings.get(f)]
    return not missing, missing


def infer_mapping(headers: Sequence[str], **scoring: Any) -> MappingInference:
    """
    Propose a column mapping for a header list and validate it.

    Incomplete mappings are reported through ``missing_required`` rather than
    raised so the caller can prompt for manual assignment.
    """
    mapping = suggest_mappings(headers, **scoring)
    _, missing = validate_mappings(mapping)
    unmapped = get_unmapped_columns(headers, mapping)

    logger.info(
        "Inferred mapping for %d headers: %d fields mapped, %d required missing, %d headers unmapped",
        len(headers),
        sum(1 for header in mapping.values() if header),
        len(missing),
        len(unmapped),
    )
    return MappingInference(mapping=mapping, missing_required=missing, unmapped=unmapped)


def coerce_mapping(raw: Mapping[str, Optional[str]]) -> ColumnMapping:
    """
    Convert a field-name keyed mapping (API payloads, saved profiles) into a
    full ColumnMapping. Unknown field names are ignored.
    """
    mapping: ColumnMapping = {f: None for f in FIELD_PRIORITY}
    for name, header in (raw or {}).items():
        try:
            canonical_field = CanonicalField(name)
        except ValueError:
            logger.warning("Ignoring unknown canonical field '%s' in mapping", name)
            continue
        mapping[canonical_field] = header or None
    return mapping


def format_mapping_for_storage(mappings: Mapping[CanonicalField, Optional[str]]) -> Dict[str, str]:
    """Drop unmapped fields so only confirmed assignments are persisted."""
    return {f.value: header for f, header in mappings.items() if header}


def _build_row_error(
    *,
    error_type: str,
    message: str,
    canonical_field: CanonicalField,
    column: Optional[str],
    value: Any,
    record_number: int,
) -> RowError:
    if value is not None and not isinstance(value, (int, float, str, bool)):
        value = str(value)
    return RowError(
        type=error_type,
        message=message,
        column=column,
        field=canonical_field.value,
        value=value,
        record_number=record_number,
    )


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_int(value: str) -> Optional[int]:
    normalized = value.replace(",", "").strip()
    normalized = re.sub(r'\s*(sq\.?\s*ft\.?|sqft|ft2)$', '', normalized, flags=re.IGNORECASE)
    number = float(normalized)
    if not number.is_integer():
        raise ValueError(f"'{value}' is not a whole number")
    if not _INT_MIN <= number <= _INT_MAX:
        raise ValueError(f"'{value}' is out of range")
    return int(number)


def _parse_flag(value: str) -> Optional[bool]:
    lowered = value.strip().lower()
    if lowered in _TRUTHY_FLAGS:
        return True
    if lowered in _FALSY_FLAGS:
        return False
    return None


def map_row(
    row: Mapping[str, Any],
    mapping: Mapping[CanonicalField, Optional[str]],
    *,
    company: Optional[str] = None,
    record_number: int = 1,
    today: Optional[date] = None,
) -> Tuple[CanonicalRecord, List[RowError]]:
    """
    Build one CanonicalRecord from a raw row.

    A cell that cannot be parsed leaves its field empty and produces a
    RowError; the record itself is always returned so a bad cell never hides
    the row from conflict detection.
    """
    errors: List[RowError] = []
    values: Dict[CanonicalField, Optional[str]] = {}
    for canonical_field, header in mapping.items():
        values[canonical_field] = _clean_text(row.get(header)) if header else None

    def fail(error_type: str, canonical_field: CanonicalField, message: str) -> None:
        errors.append(_build_row_error(
            error_type=error_type,
            message=message,
            canonical_field=canonical_field,
            column=mapping.get(canonical_field),
            value=values.get(canonical_field),
            record_number=record_number,
        ))

    record: Dict[str, Any] = {
        "company": company.strip().upper() if company else None,
        "address": values.get(CanonicalField.ADDRESS),
        "city": values.get(CanonicalField.CITY),
        "state": values.get(CanonicalField.STATE),
        "zip": values.get(CanonicalField.ZIP),
        "first_name": values.get(CanonicalField.FIRST_NAME),
        "last_name": values.get(CanonicalField.LAST_NAME),
        "company_name": values.get(CanonicalField.COMPANY_NAME),
        "inspection_type": values.get(CanonicalField.INSPECTION_TYPE),
        "notes": values.get(CanonicalField.NOTES),
        "policy_number": values.get(CanonicalField.POLICY_NUMBER),
        "claim_number": values.get(CanonicalField.CLAIM_NUMBER),
        "phone": values.get(CanonicalField.PHONE),
        "email": values.get(CanonicalField.EMAIL),
        "property_type": values.get(CanonicalField.PROPERTY_TYPE),
    }

    insured = values.get(CanonicalField.INSURED)
    if not insured:
        split_name = " ".join(
            part for part in (record["first_name"], record["last_name"]) if part
        )
        insured = split_name or record["company_name"]
    record["insured_name"] = insured

    raw_due = values.get(CanonicalField.DUE_DATE)
    due_date = None
    if raw_due:
        due_date = parse_flexible_date(raw_due, log_context="due_date")
        if due_date is None:
            fail("invalid_date", CanonicalField.DUE_DATE, f"Could not parse due date '{raw_due}'")
    record["due_date"] = due_date

    appointment_date = None
    appointment_time = None
    raw_appt_date = values.get(CanonicalField.APPOINTMENT_DATE)
    if raw_appt_date:
        appointment_date, appointment_time = split_schedule(raw_appt_date, log_context="appointment_date")
        if appointment_date is None and appointment_time is None:
            fail("invalid_date", CanonicalField.APPOINTMENT_DATE, f"Could not parse appointment date '{raw_appt_date}'")

    raw_schedule = values.get(CanonicalField.SCHEDULE_FOR)
    if raw_schedule:
        scheduled_date, scheduled_time = split_schedule(raw_schedule, log_context="schedule_for")
        if scheduled_date is None and scheduled_time is None:
            fail("invalid_date", CanonicalField.SCHEDULE_FOR, f"Could not parse appointment date-time '{raw_schedule}'")
        appointment_date = scheduled_date or appointment_date
        appointment_time = scheduled_time or appointment_time

    record["appointment_date"] = appointment_date
    record["appointment_time"] = appointment_time

    appointment_flag = None
    raw_flag = values.get(CanonicalField.APPOINTMENT_FLAG)
    if raw_flag:
        appointment_flag = _parse_flag(raw_flag)
        if appointment_flag is None:
            fail("invalid_flag", CanonicalField.APPOINTMENT_FLAG, f"Unrecognised appointment flag '{raw_flag}'")
    if appointment_flag is None and (appointment_date or appointment_time):
        appointment_flag = True
    record["appointment_flag"] = appointment_flag

    for canonical_field in (CanonicalField.SQUARE_FEET, CanonicalField.YEAR_BUILT):
        raw_number = values.get(canonical_field)
        parsed_number = None
        if raw_number:
            try:
                parsed_number = _parse_int(raw_number)
            except ValueError:
                fail("type_mismatch", canonical_field, f"Expected a whole number for {FIELD_LABELS[canonical_field]}, got '{raw_number}'")
        record[canonical_field.value] = parsed_number

    record["urgency"] = urgency_for_days(days_remaining(due_date, today))

    mapped_headers = {header for header in mapping.values() if header}
    record["raw_data"] = {
        key: value
        for key, value in row.items()
        if key not in mapped_headers and _clean_text(value) is not None
    }

    return CanonicalRecord(**record), errors


def map_rows(
    rows: Sequence[Mapping[str, Any]],
    mapping: Mapping[CanonicalField, Optional[str]],
    *,
    company: Optional[str] = None,
    today: Optional[date] = None,
) -> Tuple[List[CanonicalRecord], List[RowError]]:
    """
    Map every raw row onto a CanonicalRecord.

    Returns:
        Tuple of (records, list_of_all_row_errors). ``records`` has exactly
        one entry per input row.
    """
    records: List[CanonicalRecord] = []
    all_errors: List[RowError] = []

    for record_number, row in enumerate(rows, start=1):
        record, errors = map_row(
            row, mapping, company=company, record_number=record_number, today=today
        )
        records.append(record)
        all_errors.extend(errors)

    if all_errors:
        logger.warning(
            "Mapped %d rows with %d cell errors; affected fields were left empty",
            len(records),
            len(all_errors),
        )
    return records, all_errors
