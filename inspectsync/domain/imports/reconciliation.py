"""
Reconciliation of a company's full re-export against tracked open work.

A record that was open before but no longer appears in the latest export has
been finished or withdrawn upstream. The operator decides which, and the
store applies the decisions as two bulk status updates.
"""
import logging
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Sequence

from inspectsync.api.schemas.shared import (
    CanonicalRecord,
    MissingInspection,
    ReconciliationDecisionSet,
    ReconciliationResult,
)
from inspectsync.db.store import InspectionStore, StoreOperationError
from inspectsync.domain.imports.conflicts import normalize_text, same_address
from inspectsync.utils.date import days_remaining, urgency_for_days

logger = logging.getLogger(__name__)

RECONCILIATION_STATUSES = ("completed", "removed")


def same_identity(previous: CanonicalRecord, current: CanonicalRecord) -> bool:
    """
    Address plus claim identity. A claim number only disqualifies a match
    when both sides carry one.
    """
    if not same_address(previous, current):
        return False
    previous_claim = normalize_text(previous.claim_number)
    current_claim = normalize_text(current.claim_number)
    return not (previous_claim and current_claim and previous_claim != current_claim)


def _to_missing(record: CanonicalRecord, today: Optional[date]) -> MissingInspection:
    remaining = days_remaining(record.due_date, today)
    return MissingInspection(
        id=record.id,
        company=record.company,
        address=record.full_address,
        insured_name=record.insured_name,
        claim_number=record.claim_number,
        urgency=urgency_for_days(remaining) if record.due_date else (record.urgency or "UNKNOWN"),
        days_remaining=remaining,
    )


def reconcile(
    latest_export: Sequence[CanonicalRecord],
    previously_open: Sequence[CanonicalRecord],
    *,
    today: Optional[date] = None,
) -> List[MissingInspection]:
    """
    Return every previously open record absent from ``latest_export``.

    Records that are already completed or cancelled are never reported, even
    when the caller passes them in. Each result defaults to ``completed``.
    """
    missing: List[MissingInspection] = []
    for record in previously_open:
        if not record.is_open or record.id is None:
            continue
        if any(same_identity(record, current) for current in latest_export):
            continue
        missing.append(_to_missing(record, today))

    logger.info(
        "Reconciliation found %d of %d open inspections missing from an export of %d rows",
        len(missing),
        len(previously_open),
        len(latest_export),
    )
    return missing


class ReconciliationSession:
    """Operator toggles between completed and removed for each missing record."""

    def __init__(self, missing: Sequence[MissingInspection]):
        self.missing: List[MissingInspection] = list(missing)
        self._statuses: Dict[str, str] = {item.id: item.decision for item in self.missing}

    def toggle(self, record_id: str) -> str:
        if record_id not in self._statuses:
            raise KeyError(record_id)
        self.set_status(record_id, "removed" if self._statuses[record_id] == "completed" else "completed")
        return self._statuses[record_id]

    def set_status(self, record_id: str, status: str) -> None:
        if status not in RECONCILIATION_STATUSES:
            raise ValueError(f"Unknown reconciliation status '{status}'")
        if record_id not in self._statuses:
            raise KeyError(record_id)
        self._statuses[record_id] = status

    def tally(self) -> Dict[str, int]:
        counts = {status: 0 for status in RECONCILIATION_STATUSES}
        for status in self._statuses.values():
            counts[status] += 1
        return counts

    def confirm(self) -> ReconciliationDecisionSet:
        decisions = ReconciliationDecisionSet()
        for item in self.missing:
            if self._statuses[item.id] == "completed":
                decisions.completed_ids.append(item.id)
            else:
                decisions.removed_ids.append(item.id)
        return decisions


def _not_updated(requested: Sequence[str], updated: Sequence[str]) -> List[str]:
    # Unknown, foreign or already closed ids.
    updated = set(updated)
    return [record_id for record_id in requested if record_id not in updated]


def apply_reconciliation(
    store: InspectionStore,
    user_id: str,
    decisions: ReconciliationDecisionSet,
    *,
    now: Optional[datetime] = None,
) -> ReconciliationResult:
    """
    Mark completed records COMPLETED (stamped with ``now``) and removed
    records CANCELLED. Only open records change; ids that are unknown or
    already closed come back in ``skipped_ids``. The two updates commit
    independently; a failure in one is reported without undoing the other.
    """
    overlap = set(decisions.completed_ids) & set(decisions.removed_ids)
    if overlap:
        raise ValueError(f"Inspections cannot be both completed and removed: {sorted(overlap)}")

    now = now or datetime.now(timezone.utc)
    result = ReconciliationResult(success=True)

    try:
        completed = store.bulk_update_status(user_id, decisions.completed_ids, "COMPLETED", completed_at=now)
    except StoreOperationError as exc:
        result.failed_ids.extend(decisions.completed_ids)
        result.errors.append(exc.message)
    else:
        result.completed_count = len(completed)
        result.skipped_ids.extend(_not_updated(decisions.completed_ids, completed))

    try:
        removed = store.bulk_update_status(user_id, decisions.removed_ids, "CANCELLED")
    except StoreOperationError as exc:
        result.failed_ids.extend(decisions.removed_ids)
        result.errors.append(exc.message)
    else:
        result.removed_count = len(removed)
        result.skipped_ids.extend(_not_updated(decisions.removed_ids, removed))

    result.success = not result.errors
    logger.info(
        "Reconciliation committed: %d completed, %d removed, %d skipped, %d failed",
        result.completed_count,
        result.removed_count,
        len(result.skipped_ids),
        len(result.failed_ids),
    )
    return result
