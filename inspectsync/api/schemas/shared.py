from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


InspectionStatus = Literal["PENDING", "PLANNED", "COMPLETED", "CANCELLED"]
UrgencyTier = Literal["CRITICAL", "URGENT", "SOON", "NORMAL", "UNKNOWN"]
ConflictType = Literal["duplicate", "time_overlap", "address_match"]
SuggestedAction = Literal["keep_existing", "use_new", "keep_both"]
ResolutionAction = Literal["keep_existing", "use_new", "keep_both", "skip"]
ReconciliationStatus = Literal["completed", "removed"]
AppointmentType = Literal["none", "call_ahead", "date_only", "datetime"]

OPEN_STATUSES = ("PENDING", "PLANNED")


class CanonicalRecord(BaseModel):
    """Parsed shape of one inspection row, shared by every pipeline stage."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    company: Optional[str] = None

    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None

    insured_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None

    due_date: Optional[date] = None
    appointment_flag: Optional[bool] = None
    appointment_date: Optional[date] = None
    appointment_time: Optional[str] = None  # 24h "HH:MM"

    inspection_type: Optional[str] = None
    notes: Optional[str] = None
    policy_number: Optional[str] = None
    claim_number: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    square_feet: Optional[int] = None
    year_built: Optional[int] = None
    property_type: Optional[str] = None

    urgency: Optional[UrgencyTier] = None
    status: InspectionStatus = "PENDING"
    completed_at: Optional[datetime] = None
    raw_data: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    @property
    def full_address(self) -> str:
        locality = " ".join(part for part in (self.state, self.zip) if part)
        parts = [part for part in (self.address, self.city, locality) if part]
        return ", ".join(parts)


class RowError(BaseModel):
    """Structured information about a cell that could not be parsed."""
    type: str
    message: str
    column: Optional[str] = None
    field: Optional[str] = None
    value: Optional[Any] = None
    record_number: Optional[int] = None


class ConflictItem(BaseModel):
    type: ConflictType
    existing: CanonicalRecord
    incoming: CanonicalRecord
    suggested_action: SuggestedAction
    incoming_index: Optional[int] = None  # Position of the incoming row in its batch


class ConflictResolution(BaseModel):
    existing_id: str
    incoming_id: Optional[str] = None
    incoming_index: Optional[int] = None
    action: ResolutionAction


class ResolutionOutcome(BaseModel):
    """Result of committing one conflict resolution to the store."""
    existing_id: str
    incoming_index: Optional[int] = None
    action: ResolutionAction
    success: bool
    record_id: Optional[str] = None
    error: Optional[str] = None


class MissingInspection(BaseModel):
    id: str
    company: Optional[str] = None
    address: str
    insured_name: Optional[str] = None
    claim_number: Optional[str] = None
    urgency: UrgencyTier = "UNKNOWN"
    days_remaining: Optional[int] = None
    decision: ReconciliationStatus = "completed"


class ReconciliationDecisionSet(BaseModel):
    completed_ids: List[str] = Field(default_factory=list)
    removed_ids: List[str] = Field(default_factory=list)


class ReconciliationResult(BaseModel):
    success: bool
    completed_count: int = 0
    removed_count: int = 0
    skipped_ids: List[str] = Field(default_factory=list)
    failed_ids: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


# --- Request / response payloads ---------------------------------------------


class InferMappingRequest(BaseModel):
    headers: List[str]

    @field_validator("headers")
    def strip_headers(cls, value: List[str]) -> List[str]:
        """Trim headers and drop blanks; duplicates keep their first occurrence."""
        seen = set()
        cleaned = []
        for header in value:
            header = (header or "").strip()
            if header and header not in seen:
                seen.add(header)
                cleaned.append(header)
        return cleaned


class InferMappingResponse(BaseModel):
    success: bool
    mapping: Dict[str, Optional[str]]
    is_valid: bool
    missing_required: List[str]
    missing_labels: List[str]
    unmapped: List[str]


class ImportScanRequest(InferMappingRequest):
    user_id: str
    company: Optional[str] = None
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    mapping: Optional[Dict[str, Optional[str]]] = None
    use_company_profile: bool = True


class ImportScanResponse(BaseModel):
    success: bool
    company: Optional[str] = None
    mapping: Dict[str, Optional[str]]
    missing_required: List[str] = Field(default_factory=list)
    unmapped: List[str] = Field(default_factory=list)
    records_parsed: int = 0
    committed_ids: List[str] = Field(default_factory=list)
    conflicts: List[ConflictItem] = Field(default_factory=list)
    conflict_tally: Dict[str, int] = Field(default_factory=dict)
    row_errors: List[RowError] = Field(default_factory=list)
    commit_errors: List[str] = Field(default_factory=list)


class ImportResolveRequest(BaseModel):
    user_id: str
    conflicts: List[ConflictItem]
    resolutions: Optional[List[ConflictResolution]] = None  # None applies suggested actions


class ImportResolveResponse(BaseModel):
    success: bool
    outcomes: List[ResolutionOutcome]
    applied_count: int
    failed_count: int
    tally: Dict[str, int]


class ReconciliationScanRequest(InferMappingRequest):
    user_id: str
    company: str
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    mapping: Optional[Dict[str, Optional[str]]] = None


class ReconciliationScanResponse(BaseModel):
    success: bool
    company: str
    export_records: int
    previously_open: int
    missing: List[MissingInspection]
    tally: Dict[str, int] = Field(default_factory=dict)


class ReconciliationConfirmRequest(BaseModel):
    user_id: str
    completed_ids: List[str] = Field(default_factory=list)
    removed_ids: List[str] = Field(default_factory=list)
    # Scan results sent back instead of ids; their decisions are the defaults.
    missing: Optional[List[MissingInspection]] = None
    toggle_ids: List[str] = Field(default_factory=list)


class CompanyProfileCreate(BaseModel):
    name: str
    code: Optional[str] = None
    column_mappings: Dict[str, Optional[str]] = Field(default_factory=dict)
    column_fingerprint: List[str] = Field(default_factory=list)
    appointment_type: AppointmentType = "none"
    default_duration_minutes: int = 30
    high_value_duration_minutes: int = 60

    @field_validator("name")
    def validate_name(cls, value: str) -> str:
        normalized = (value or "").strip()
        if not normalized:
            raise ValueError("name cannot be blank")
        return normalized


class CompanyProfileRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    name: str
    column_mappings: Optional[Dict[str, str]] = None
    column_fingerprint: Optional[List[str]] = None
    appointment_type: Optional[str] = None
    default_duration_minutes: Optional[int] = None
    high_value_duration_minutes: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CompanyProfileListResponse(BaseModel):
    success: bool
    profiles: List[CompanyProfileRecord]


class CompanyProfileResponse(BaseModel):
    success: bool
    profile: CompanyProfileRecord


class DetectCompanyResponse(BaseModel):
    success: bool
    profile: Optional[CompanyProfileRecord] = None
    similarity: float = 0.0


class InspectionListResponse(BaseModel):
    success: bool
    total_records: int
    open_records: List[CanonicalRecord]


class InspectionResponse(BaseModel):
    success: bool
    record: CanonicalRecord
