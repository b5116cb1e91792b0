"""
Conflict classification for incoming import rows.

Each conflict type is a predicate over an (incoming, existing) pair. Rules
are evaluated in precedence order and the first rule that matches any
existing record decides the conflict, so a row that is both a duplicate and
an address match is reported once, as a duplicate.
"""
import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from inspectsync.api.schemas.shared import CanonicalRecord, ConflictItem
from inspectsync.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassifierOptions:
    time_window_minutes: int
    precedence: Tuple[str, ...]

    @classmethod
    def from_settings(
        cls,
        time_window_minutes: Optional[int] = None,
        precedence: Optional[Sequence[str]] = None,
    ) -> "ClassifierOptions":
        window = settings.conflict_time_window_minutes if time_window_minutes is None else time_window_minutes
        order = tuple(precedence or settings.conflict_precedence)
        unknown = [name for name in order if name not in CONFLICT_RULES]
        if unknown:
            logger.warning("Ignoring unknown conflict rules in precedence: %s", unknown)
        return cls(
            time_window_minutes=window,
            precedence=tuple(name for name in order if name in CONFLICT_RULES),
        )


ConflictRule = Callable[[CanonicalRecord, CanonicalRecord, ClassifierOptions], bool]


def normalize_text(value: Optional[str]) -> str:
    """Lower-case, strip punctuation and collapse whitespace."""
    if not value:
        return ""
    return " ".join(re.sub(r'[^a-z0-9]+', ' ', str(value).lower()).split())


def same_address(a: CanonicalRecord, b: CanonicalRecord) -> bool:
    """
    Streets must match; city, state and ZIP only count when both records
    carry them, so an export without a city column can still collide with a
    stored record that has one.
    """
    street_a = normalize_text(a.address)
    if not street_a or street_a != normalize_text(b.address):
        return False
    for part_a, part_b in ((a.city, b.city), (a.state, b.state)):
        if part_a and part_b and normalize_text(part_a) != normalize_text(part_b):
            return False
    zip_a = re.sub(r'\D', '', a.zip or "")[:5]
    zip_b = re.sub(r'\D', '', b.zip or "")[:5]
    if zip_a and zip_b and zip_a != zip_b:
        return False
    return True


def same_company(a: CanonicalRecord, b: CanonicalRecord) -> bool:
    return normalize_text(a.company) == normalize_text(b.company)


def _differs(left: Optional[str], right: Optional[str]) -> bool:
    left_key, right_key = normalize_text(left), normalize_text(right)
    return bool(left_key and right_key and left_key != right_key)


def different_identity(a: CanonicalRecord, b: CanonicalRecord) -> bool:
    """True when both records name a claim or insured and those disagree."""
    return _differs(a.claim_number, b.claim_number) or _differs(a.insured_name, b.insured_name)


def _minutes_of_day(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        hours, minutes = value.split(":")[:2]
        return int(hours) * 60 + int(minutes)
    except ValueError:
        return None


def is_duplicate(incoming: CanonicalRecord, existing: CanonicalRecord, options: ClassifierOptions) -> bool:
    return existing.is_open and same_address(incoming, existing) and same_company(incoming, existing)


def is_time_overlap(incoming: CanonicalRecord, existing: CanonicalRecord, options: ClassifierOptions) -> bool:
    if not existing.is_open:
        return False
    if incoming.appointment_date is None or incoming.appointment_date != existing.appointment_date:
        return False
    incoming_minutes = _minutes_of_day(incoming.appointment_time)
    existing_minutes = _minutes_of_day(existing.appointment_time)
    if incoming_minutes is None or existing_minutes is None:
        return False
    if abs(incoming_minutes - existing_minutes) > options.time_window_minutes:
        return False
    return not same_address(incoming, existing)


def is_address_match(incoming: CanonicalRecord, existing: CanonicalRecord, options: ClassifierOptions) -> bool:
    if not (incoming.is_open and existing.is_open):
        return False
    if not same_address(incoming, existing):
        return False
    return not same_company(incoming, existing) or different_identity(incoming, existing)


CONFLICT_RULES: Mapping[str, ConflictRule] = MappingProxyType({
    "duplicate": is_duplicate,
    "time_overlap": is_time_overlap,
    "address_match": is_address_match,
})

SUGGESTED_ACTIONS: Mapping[str, str] = MappingProxyType({
    "duplicate": "use_new",  # fresher export supersedes
    "time_overlap": "keep_both",
    "address_match": "keep_existing",
})


def classify_conflict(
    incoming: CanonicalRecord,
    existing_records: Iterable[CanonicalRecord],
    *,
    options: Optional[ClassifierOptions] = None,
    incoming_index: Optional[int] = None,
) -> Optional[ConflictItem]:
    """
    Return the highest-precedence conflict between ``incoming`` and any
    existing record, or None when the row can be committed directly.

    Within one rule the first matching existing record wins, so results are
    deterministic for a given snapshot order.
    """
    options = options or ClassifierOptions.from_settings()
    existing_records = [record for record in existing_records if record.id != incoming.id or incoming.id is None]

    for conflict_type in options.precedence:
        rule = CONFLICT_RULES[conflict_type]
        for existing in existing_records:
            if rule(incoming, existing, options):
                return ConflictItem(
                    type=conflict_type,
                    existing=existing,
                    incoming=incoming,
                    suggested_action=SUGGESTED_ACTIONS[conflict_type],
                    incoming_index=incoming_index,
                )
    return None


def partition_incoming(
    incoming: Sequence[CanonicalRecord],
    existing: Sequence[CanonicalRecord],
    *,
    options: Optional[ClassifierOptions] = None,
) -> Tuple[List[ConflictItem], List[Tuple[int, CanonicalRecord]]]:
    """
    Split an import batch into conflicts and rows that are safe to commit.

    Returns:
        (conflicts, clean) where ``clean`` holds (batch index, record) pairs.
    """
    options = options or ClassifierOptions.from_settings()
    open_existing = [record for record in existing if record.is_open]

    conflicts: List[ConflictItem] = []
    clean: List[Tuple[int, CanonicalRecord]] = []
    for index, record in enumerate(incoming):
        conflict = classify_conflict(record, open_existing, options=options, incoming_index=index)
        if conflict is None:
            clean.append((index, record))
        else:
            conflicts.append(conflict)

    if conflicts:
        logger.info(
            "Classified %d of %d incoming records as conflicts (%s)",
            len(conflicts),
            len(incoming),
            ", ".join(f"{name}={count}" for name, count in tally_conflict_types(conflicts).items() if count),
        )
    return conflicts, clean


def classify_conflicts(
    incoming: Sequence[CanonicalRecord],
    existing: Sequence[CanonicalRecord],
    *,
    options: Optional[ClassifierOptions] = None,
) -> List[ConflictItem]:
    """Classify every incoming record; records without a collision are omitted."""
    conflicts, _ = partition_incoming(incoming, existing, options=options)
    return conflicts


def tally_conflict_types(conflicts: Iterable[ConflictItem]) -> dict:
    counts = {name: 0 for name in CONFLICT_RULES}
    for conflict in conflicts:
        counts[conflict.type] += 1
    return counts
