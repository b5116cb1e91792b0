"""
Mapping inference endpoints for suggesting how export headers map onto
canonical inspection fields.
"""
from fastapi import APIRouter, HTTPException

from inspectsync.api.schemas.shared import InferMappingRequest, InferMappingResponse
from inspectsync.domain.imports.mapper import infer_mapping

router = APIRouter(prefix="/mapping", tags=["mapping"])


@router.post("/infer", response_model=InferMappingResponse)
async def infer_mapping_endpoint(request: InferMappingRequest):
    """
    Suggest a column mapping for a list of export headers.

    Parameters:
    - headers: Header cells from the first row of the export

    Returns:
    - mapping: canonical field -> header (null when unmapped)
    - is_valid: whether every required field was resolved
    - missing_required / missing_labels: unresolved required fields
    - unmapped: headers no field claimed
    """
    if not request.headers:
        raise HTTPException(status_code=400, detail="At least one header is required")

    inference = infer_mapping(request.headers)
    return InferMappingResponse(
        success=True,
        mapping=inference.mapping_by_name(),
        is_valid=inference.is_valid,
        missing_required=[f.value for f in inference.missing_required],
        missing_labels=inference.missing_labels,
        unmapped=inference.unmapped,
    )
