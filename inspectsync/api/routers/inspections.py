"""
Read access to a user's tracked inspections.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from inspectsync.api.dependencies import get_store
from inspectsync.api.schemas.shared import InspectionListResponse, InspectionResponse
from inspectsync.db.store import InspectionStore, RecordNotFoundError

router = APIRouter(prefix="/inspections", tags=["inspections"])


@router.get("", response_model=InspectionListResponse)
async def list_open_inspections(
    user_id: str,
    company: Optional[str] = None,
    store: InspectionStore = Depends(get_store),
):
    """
    List the user's open inspections, optionally for one company.

    ``total_records`` counts every inspection the user has, closed ones
    included.
    """
    if company and company.strip():
        records = store.fetch_open_records_by_company(user_id, company)
    else:
        records = store.fetch_open_records(user_id)

    return InspectionListResponse(success=True, total_records=store.count_records(user_id), open_records=records)


@router.get("/{record_id}", response_model=InspectionResponse)
async def get_inspection(
    record_id: str,
    user_id: str,
    store: InspectionStore = Depends(get_store),
):
    try:
        record = store.get_record(user_id, record_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)

    return InspectionResponse(success=True, record=record)
