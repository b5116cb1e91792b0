"""
Record store backed by SQLAlchemy.

Every mutation commits on its own, so a failure part-way through a batch
leaves earlier items committed. Callers retry failed items individually.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inspectsync.api.schemas.shared import OPEN_STATUSES, CanonicalRecord
from inspectsync.db.models import CompanyProfile, Inspection

logger = logging.getLogger(__name__)

# Fields owned by the store rather than by an import row.
_PROTECTED_FIELDS = {"id"}


class StoreOperationError(Exception):
    """Raised when a store mutation fails and has been rolled back."""

    def __init__(self, operation: str, message: str = None):
        self.operation = operation
        self.message = message or f"Store operation '{operation}' failed."
        super().__init__(self.message)


class RecordNotFoundError(StoreOperationError):
    """Raised when a record id does not exist for the requesting user."""

    def __init__(self, record_id: str, message: str = None):
        self.record_id = record_id
        super().__init__("lookup", message or f"Inspection '{record_id}' not found.")


def _record_values(record: CanonicalRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.model_dump().items()
        if key not in _PROTECTED_FIELDS
    }


class InspectionStore:
    """User-scoped CRUD over inspections and company profiles."""

    def __init__(self, db: Session):
        self.db = db

    def _commit(self, operation: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Store operation '%s' failed: %s", operation, exc)
            raise StoreOperationError(operation, f"Store operation '{operation}' failed: {exc}") from exc

    def _get_row(self, user_id: str, record_id: str) -> Inspection:
        row = (
            self.db.query(Inspection)
            .filter(Inspection.user_id == user_id, Inspection.id == record_id)
            .first()
        )
        if row is None:
            raise RecordNotFoundError(record_id)
        return row

    # -- inspections ---------------------------------------------------------

    def get_record(self, user_id: str, record_id: str) -> CanonicalRecord:
        return CanonicalRecord.model_validate(self._get_row(user_id, record_id))

    def fetch_open_records(self, user_id: str) -> List[CanonicalRecord]:
        rows = (
            self.db.query(Inspection)
            .filter(Inspection.user_id == user_id, Inspection.status.in_(OPEN_STATUSES))
            .order_by(Inspection.created_at, Inspection.id)
            .all()
        )
        return [CanonicalRecord.model_validate(row) for row in rows]

    def fetch_open_records_by_company(self, user_id: str, company: str) -> List[CanonicalRecord]:
        rows = (
            self.db.query(Inspection)
            .filter(
                Inspection.user_id == user_id,
                Inspection.company == company.strip().upper(),
                Inspection.status.in_(OPEN_STATUSES),
            )
            .order_by(Inspection.created_at, Inspection.id)
            .all()
        )
        return [CanonicalRecord.model_validate(row) for row in rows]

    def count_records(self, user_id: str) -> int:
        return self.db.query(Inspection).filter(Inspection.user_id == user_id).count()

    def insert_record(self, user_id: str, record: CanonicalRecord) -> CanonicalRecord:
        row = Inspection(user_id=user_id, **_record_values(record))
        self.db.add(row)
        self._commit("insert")
        self.db.refresh(row)
        return CanonicalRecord.model_validate(row)

    def update_record(self, user_id: str, record_id: str, record: CanonicalRecord) -> CanonicalRecord:
        """Replace every field of a stored record with ``record``'s, keeping its id."""
        row = self._get_row(user_id, record_id)
        for key, value in _record_values(record).items():
            setattr(row, key, value)
        self._commit("update")
        self.db.refresh(row)
        return CanonicalRecord.model_validate(row)

    def bulk_update_status(
        self,
        user_id: str,
        record_ids: Iterable[str],
        status: str,
        completed_at: Optional[datetime] = None,
    ) -> List[str]:
        """
        Set ``status`` (and optionally ``completed_at``) on the given records
        that are still open. Returns the ids actually updated; completed or
        cancelled records are left untouched.
        """
        record_ids = list(record_ids)
        if not record_ids:
            return []
        values: Dict[str, Any] = {"status": status}
        if completed_at is not None:
            values["completed_at"] = completed_at
        try:
            query = self.db.query(Inspection).filter(
                Inspection.user_id == user_id,
                Inspection.id.in_(record_ids),
                Inspection.status.in_(OPEN_STATUSES),
            )
            updated_ids = [row_id for (row_id,) in query.with_entities(Inspection.id).all()]
            if updated_ids:
                query.update(values, synchronize_session=False)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreOperationError("bulk_update_status", f"Bulk status update failed: {exc}") from exc
        self._commit("bulk_update_status")
        logger.info("Set status %s on %d of %d inspections", status, len(updated_ids), len(record_ids))
        return updated_ids

    # -- company profiles ----------------------------------------------------

    def list_company_profiles(self) -> List[CompanyProfile]:
        return self.db.query(CompanyProfile).order_by(CompanyProfile.name).all()

    def get_company_profile(self, code: str) -> Optional[CompanyProfile]:
        if not code:
            return None
        return self.db.query(CompanyProfile).filter(CompanyProfile.code == code.strip().upper()).first()

    def save_company_profile(self, code: str, **values: Any) -> CompanyProfile:
        """Insert or update the profile identified by ``code``."""
        code = code.strip().upper()
        profile = self.get_company_profile(code)
        if profile is None:
            profile = CompanyProfile(code=code)
            self.db.add(profile)
        for key, value in values.items():
            setattr(profile, key, value)
        self._commit("save_company_profile")
        self.db.refresh(profile)
        return profile
