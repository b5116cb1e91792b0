"""
Reconciliation endpoints for finding tracked inspections that dropped out of
a company's latest full export.
"""
from fastapi import APIRouter, Depends, HTTPException

from inspectsync.api.dependencies import get_store
from inspectsync.api.schemas.shared import (
    ReconciliationConfirmRequest,
    ReconciliationDecisionSet,
    ReconciliationResult,
    ReconciliationScanRequest,
    ReconciliationScanResponse,
)
from inspectsync.db.store import InspectionStore, StoreOperationError
from inspectsync.domain.imports.orchestrator import scan_reconciliation
from inspectsync.domain.imports.reconciliation import ReconciliationSession, apply_reconciliation

router = APIRouter(prefix="/reconciliation", tags=["reconciliation"])


@router.post("/scan", response_model=ReconciliationScanResponse)
async def scan_reconciliation_endpoint(
    request: ReconciliationScanRequest,
    store: InspectionStore = Depends(get_store),
):
    """
    List open inspections of ``company`` that are absent from its full export.

    Nothing is written; each missing inspection defaults to ``completed``.
    """
    if not request.headers:
        raise HTTPException(status_code=400, detail="At least one header is required")

    try:
        result = scan_reconciliation(
            store,
            request.user_id,
            request.company,
            request.headers,
            request.rows,
            mapping=request.mapping,
        )
    except StoreOperationError as e:
        raise HTTPException(status_code=500, detail=e.message)

    if not result.inference.is_valid:
        raise HTTPException(
            status_code=400,
            detail=f"Export is missing required fields: {', '.join(result.inference.missing_labels)}",
        )

    return ReconciliationScanResponse(
        success=True,
        company=result.company,
        export_records=result.export_records,
        previously_open=result.previously_open,
        missing=result.missing,
        tally=ReconciliationSession(result.missing).tally(),
    )


def _decisions_for(request: ReconciliationConfirmRequest) -> ReconciliationDecisionSet:
    if request.missing is None:
        return ReconciliationDecisionSet(
            completed_ids=request.completed_ids,
            removed_ids=request.removed_ids,
        )
    session = ReconciliationSession(request.missing)
    for record_id in request.toggle_ids:
        try:
            session.toggle(record_id)
        except KeyError:
            raise ValueError(f"Inspection '{record_id}' is not among the missing inspections")
    return session.confirm()


@router.post("/confirm", response_model=ReconciliationResult)
async def confirm_reconciliation_endpoint(
    request: ReconciliationConfirmRequest,
    store: InspectionStore = Depends(get_store),
):
    """
    Commit the operator's decisions: completed ids are marked COMPLETED with a
    completion timestamp of now, removed ids are marked CANCELLED.

    Either send the id lists directly, or send back the scanned ``missing``
    list with the ids whose default decision the operator flipped.
    """
    try:
        decisions = _decisions_for(request)
        return apply_reconciliation(store, request.user_id, decisions)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
