"""
Saved company profiles: confirmed column mappings plus the header fingerprint
used to recognise the company's next export.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from inspectsync.api.dependencies import get_store
from inspectsync.api.schemas.shared import (
    CompanyProfileCreate,
    CompanyProfileListResponse,
    CompanyProfileRecord,
    CompanyProfileResponse,
    DetectCompanyResponse,
    InferMappingRequest,
)
from inspectsync.db.store import InspectionStore, StoreOperationError
from inspectsync.domain.imports.fingerprinting import (
    calculate_fingerprint,
    find_matching_profile,
    generate_company_code,
)
from inspectsync.domain.imports.mapper import coerce_mapping, format_mapping_for_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/company-profiles", tags=["company-profiles"])


@router.get("", response_model=CompanyProfileListResponse)
async def list_company_profiles(store: InspectionStore = Depends(get_store)):
    """List saved company profiles ordered by name."""
    profiles = [CompanyProfileRecord.model_validate(p) for p in store.list_company_profiles()]
    return CompanyProfileListResponse(success=True, profiles=profiles)


@router.post("", response_model=CompanyProfileResponse)
async def save_company_profile(
    request: CompanyProfileCreate,
    store: InspectionStore = Depends(get_store),
):
    """
    Create or update a company profile.

    The code defaults to one generated from the name. Unmapped fields are
    dropped from ``column_mappings`` before saving, and the fingerprint is
    stored as normalised, sorted column names.
    """
    code = (request.code or generate_company_code(request.name)).strip().upper()
    fingerprint_hash, columns = calculate_fingerprint(request.column_fingerprint)
    try:
        profile = store.save_company_profile(
            code,
            name=request.name,
            column_mappings=format_mapping_for_storage(coerce_mapping(request.column_mappings)),
            column_fingerprint=columns,
            appointment_type=request.appointment_type,
            default_duration_minutes=request.default_duration_minutes,
            high_value_duration_minutes=request.high_value_duration_minutes,
        )
    except StoreOperationError as e:
        raise HTTPException(status_code=500, detail=e.message)

    logger.info("Saved company profile %s (%d columns, fingerprint %s)", code, len(columns), fingerprint_hash[:12])
    return CompanyProfileResponse(success=True, profile=CompanyProfileRecord.model_validate(profile))


@router.post("/detect", response_model=DetectCompanyResponse)
async def detect_company_profile(
    request: InferMappingRequest,
    store: InspectionStore = Depends(get_store),
):
    """Identify the company whose saved header fingerprint matches ``headers``."""
    if not request.headers:
        raise HTTPException(status_code=400, detail="At least one header is required")

    profile, similarity = find_matching_profile(store.list_company_profiles(), request.headers)
    return DetectCompanyResponse(
        success=True,
        profile=CompanyProfileRecord.model_validate(profile) if profile is not None else None,
        similarity=similarity,
    )
