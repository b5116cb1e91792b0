"""
Shared dependencies for the API routers.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from inspectsync.db.session import get_db
from inspectsync.db.store import InspectionStore


def get_store(db: Session = Depends(get_db)) -> InspectionStore:
    """Request-scoped record store bound to the request's database session."""
    return InspectionStore(db)
