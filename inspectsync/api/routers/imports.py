"""
Import endpoints: scan a batch (JSON rows or an uploaded CSV export) for
conflicts, then apply operator resolutions.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pandas.errors import ParserError

from inspectsync.api.dependencies import get_store
from inspectsync.api.schemas.shared import (
    ImportResolveRequest,
    ImportResolveResponse,
    ImportScanRequest,
    ImportScanResponse,
)
from inspectsync.db.store import InspectionStore, StoreOperationError
from inspectsync.domain.imports.orchestrator import scan_import
from inspectsync.domain.imports.processors.csv_processor import read_csv_records
from inspectsync.domain.imports.resolution import apply_resolutions, build_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/imports", tags=["imports"])


@router.post("/scan", response_model=ImportScanResponse)
async def scan_import_endpoint(
    request: ImportScanRequest,
    store: InspectionStore = Depends(get_store),
):
    """
    Map a batch of export rows and check them against the user's open inspections.

    Rows without a conflict are committed immediately; conflicting rows are
    returned with a suggested action and are not stored until resolved.
    A mapping that misses required fields returns ``success: false`` with
    the missing fields and commits nothing.
    """
    if not request.headers:
        raise HTTPException(status_code=400, detail="At least one header is required")

    try:
        result = scan_import(
            store,
            request.user_id,
            request.headers,
            request.rows,
            company=request.company,
            mapping=request.mapping,
            use_company_profile=request.use_company_profile,
        )
    except StoreOperationError as e:
        raise HTTPException(status_code=500, detail=e.message)

    return _scan_response(result)


def _scan_response(result) -> ImportScanResponse:
    return ImportScanResponse(
        success=result.inference.is_valid,
        company=result.company,
        mapping=result.inference.mapping_by_name(),
        missing_required=[f.value for f in result.inference.missing_required],
        unmapped=result.inference.unmapped,
        records_parsed=result.records_parsed,
        committed_ids=result.committed_ids,
        conflicts=result.conflicts,
        conflict_tally=result.conflict_tally,
        row_errors=result.row_errors,
        commit_errors=result.commit_errors,
    )


@router.post("/upload", response_model=ImportScanResponse)
async def upload_import_endpoint(
    file: UploadFile = File(...),
    user_id: str = Form(...),
    company: Optional[str] = Form(None),
    use_company_profile: bool = Form(True),
    store: InspectionStore = Depends(get_store),
):
    """
    Scan an uploaded CSV export the same way as ``/imports/scan``.

    The mapping comes from the company profile or is inferred from the
    file's header row.
    """
    if file.filename and not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV exports are supported")

    file_content = await file.read()
    try:
        headers, rows = read_csv_records(file_content)
    except (UnicodeDecodeError, ParserError) as e:
        raise HTTPException(status_code=400, detail=f"Could not read CSV: {e}")
    if not headers:
        raise HTTPException(status_code=400, detail="The uploaded file has no header row")

    logger.info("Received %s with %d rows for user %s", file.filename, len(rows), user_id)
    try:
        result = scan_import(
            store,
            user_id,
            headers,
            rows,
            company=company,
            use_company_profile=use_company_profile,
        )
    except StoreOperationError as e:
        raise HTTPException(status_code=500, detail=e.message)

    return _scan_response(result)


@router.post("/resolve", response_model=ImportResolveResponse)
async def resolve_conflicts_endpoint(
    request: ImportResolveRequest,
    store: InspectionStore = Depends(get_store),
):
    """
    Apply one decision per conflict returned by ``/imports/scan``.

    Parameters:
    - conflicts: the conflict items exactly as returned by the scan
    - resolutions: one per conflict, in the same order; omit to accept
      every suggested action

    Each decision commits independently and reports its own outcome.
    """
    try:
        session = build_session(request.conflicts, request.resolutions)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    outcomes = apply_resolutions(store, request.user_id, session)
    failed = sum(1 for outcome in outcomes if not outcome.success)

    return ImportResolveResponse(
        success=failed == 0,
        outcomes=outcomes,
        applied_count=len(outcomes) - failed,
        failed_count=failed,
        tally=session.tally(),
    )
