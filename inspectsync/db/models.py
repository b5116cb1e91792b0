"""
ORM models for the record store.

The store is keyed by user and record id. Column layout mirrors the canonical
inspection record so rows can be converted back and forth without loss.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Integer, String, Text

from inspectsync.db.session import Base


def _utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class Inspection(Base):
    """One tracked inspection work order."""
    __tablename__ = "inspections"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String, index=True, nullable=False)
    company = Column(String, index=True, nullable=True)

    address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    zip = Column(String, nullable=True)

    insured_name = Column(String, nullable=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    company_name = Column(String, nullable=True)

    due_date = Column(Date, nullable=True)
    appointment_flag = Column(Boolean, nullable=True)
    appointment_date = Column(Date, nullable=True)
    appointment_time = Column(String(5), nullable=True)

    inspection_type = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    policy_number = Column(String, nullable=True)
    claim_number = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    square_feet = Column(Integer, nullable=True)
    year_built = Column(Integer, nullable=True)
    property_type = Column(String, nullable=True)

    urgency = Column(String, nullable=True)
    status = Column(String, nullable=False, default="PENDING", index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    raw_data = Column(JSON, nullable=True, default=dict)

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class CompanyProfile(Base):
    """Saved column mapping and header fingerprint for one export source."""
    __tablename__ = "company_profiles"

    id = Column(String(36), primary_key=True, default=_new_id)
    code = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    column_mappings = Column(JSON, nullable=True)
    column_fingerprint = Column(JSON, nullable=True)
    appointment_type = Column(String, nullable=True)
    default_duration_minutes = Column(Integer, nullable=True)
    high_value_duration_minutes = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
