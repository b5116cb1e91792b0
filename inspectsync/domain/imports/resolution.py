"""
Conflict resolution protocol.

An operator reviews the conflicts of one import batch, each pre-set to its
suggested action, may override any of them (including ``skip``), and the
resulting decisions are committed one item at a time.
"""
import logging
from typing import Dict, List, Optional, Sequence

from inspectsync.api.schemas.shared import (
    ConflictItem,
    ConflictResolution,
    ResolutionOutcome,
)
from inspectsync.db.store import InspectionStore, StoreOperationError

logger = logging.getLogger(__name__)

RESOLUTION_ACTIONS = ("keep_existing", "use_new", "keep_both", "skip")


def tally_actions(actions: Sequence[str]) -> Dict[str, int]:
    counts = {action: 0 for action in RESOLUTION_ACTIONS}
    for action in actions:
        counts[action] += 1
    return counts


class ResolutionSession:
    """Per-batch operator decisions, seeded from the suggested actions."""

    def __init__(self, conflicts: Sequence[ConflictItem]):
        self.conflicts: List[ConflictItem] = list(conflicts)
        self._actions: List[str] = [conflict.suggested_action for conflict in self.conflicts]

    def __len__(self) -> int:
        return len(self.conflicts)

    def action_for(self, index: int) -> str:
        return self._actions[index]

    def set_action(self, index: int, action: str) -> None:
        if action not in RESOLUTION_ACTIONS:
            raise ValueError(f"Unknown resolution action '{action}'. Expected one of {RESOLUTION_ACTIONS}.")
        if not 0 <= index < len(self._actions):
            raise IndexError(f"No conflict at position {index}")
        self._actions[index] = action

    def tally(self) -> Dict[str, int]:
        """How many items are currently slated for each action."""
        return tally_actions(self._actions)

    def resolutions(self) -> List[ConflictResolution]:
        return [
            ConflictResolution(
                existing_id=conflict.existing.id,
                incoming_id=conflict.incoming.id,
                incoming_index=conflict.incoming_index,
                action=action,
            )
            for conflict, action in zip(self.conflicts, self._actions)
        ]


def build_session(
    conflicts: Sequence[ConflictItem],
    resolutions: Optional[Sequence[ConflictResolution]] = None,
) -> ResolutionSession:
    """
    Pair submitted resolutions with their conflicts by position.

    Raises:
        ValueError: when the counts differ or a resolution names a different
            existing record than the conflict at the same position.
    """
    session = ResolutionSession(conflicts)
    if resolutions is None:
        return session

    if len(resolutions) != len(conflicts):
        raise ValueError(
            f"Expected {len(conflicts)} resolutions, received {len(resolutions)}."
        )
    for index, (conflict, resolution) in enumerate(zip(conflicts, resolutions)):
        if resolution.existing_id != conflict.existing.id:
            raise ValueError(
                f"Resolution {index} targets '{resolution.existing_id}' but the conflict "
                f"concerns existing record '{conflict.existing.id}'."
            )
        session.set_action(index, resolution.action)
    return session


def apply_resolution(
    store: InspectionStore,
    user_id: str,
    conflict: ConflictItem,
    action: str,
) -> ResolutionOutcome:
    """
    Commit one resolution. Store failures are reported on the outcome, never
    raised, so one bad item does not stop the rest of the batch.
    """
    existing_id = conflict.existing.id
    outcome = ResolutionOutcome(
        existing_id=existing_id,
        incoming_index=conflict.incoming_index,
        action=action,
        success=True,
    )

    try:
        if action == "use_new":
            updated = store.update_record(user_id, existing_id, conflict.incoming)
            outcome.record_id = updated.id
        elif action == "keep_both":
            inserted = store.insert_record(user_id, conflict.incoming.model_copy(update={"id": None}))
            outcome.record_id = inserted.id
        elif action == "keep_existing":
            outcome.record_id = existing_id
        # skip: the incoming row is dropped without a trace
    except StoreOperationError as exc:
        logger.error("Failed to apply '%s' for inspection %s: %s", action, existing_id, exc.message)
        outcome.success = False
        outcome.error = exc.message
        outcome.record_id = None

    return outcome


def apply_resolutions(
    store: InspectionStore,
    user_id: str,
    session: ResolutionSession,
) -> List[ResolutionOutcome]:
    """Commit every decision in ``session``; earlier commits survive later failures."""
    outcomes = [
        apply_resolution(store, user_id, conflict, session.action_for(index))
        for index, conflict in enumerate(session.conflicts)
    ]
    failed = sum(1 for outcome in outcomes if not outcome.success)
    logger.info(
        "Applied %d conflict resolutions (%d failed): %s",
        len(outcomes),
        failed,
        session.tally(),
    )
    return outcomes
