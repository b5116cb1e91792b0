"""
Import and reconciliation pipelines.

Both pipelines take a snapshot of the user's open records once at the start
of the run. A second import from the same user running at the same time is
not seen by this snapshot, so conflicts it introduces go undetected.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from inspectsync.api.schemas.shared import (
    CanonicalRecord,
    ConflictItem,
    MissingInspection,
    RowError,
)
from inspectsync.db.store import InspectionStore, StoreOperationError
from inspectsync.domain.imports.conflicts import (
    ClassifierOptions,
    partition_incoming,
    tally_conflict_types,
)
from inspectsync.domain.imports.fingerprinting import find_matching_profile
from inspectsync.domain.imports.mapper import (
    ColumnMapping,
    MappingInference,
    coerce_mapping,
    get_unmapped_columns,
    infer_mapping,
    map_rows,
    validate_mappings,
)
from inspectsync.domain.imports.reconciliation import reconcile

logger = logging.getLogger(__name__)


@dataclass
class ImportScanResult:
    company: Optional[str]
    inference: MappingInference
    records_parsed: int = 0
    committed_ids: List[str] = field(default_factory=list)
    conflicts: List[ConflictItem] = field(default_factory=list)
    row_errors: List[RowError] = field(default_factory=list)
    commit_errors: List[str] = field(default_factory=list)

    @property
    def conflict_tally(self) -> Dict[str, int]:
        return tally_conflict_types(self.conflicts)


@dataclass
class ReconciliationScanResult:
    company: str
    inference: MappingInference
    export_records: int = 0
    previously_open: int = 0
    missing: List[MissingInspection] = field(default_factory=list)


def resolve_mapping(
    store: InspectionStore,
    headers: Sequence[str],
    *,
    company: Optional[str] = None,
    mapping: Optional[Mapping[str, Optional[str]]] = None,
    use_company_profile: bool = True,
) -> Tuple[MappingInference, Optional[str]]:
    """
    Pick the column mapping for a batch.

    An explicit mapping wins; otherwise a saved company profile (by code, or
    detected from the header fingerprint) is reused; otherwise the mapping is
    inferred from the headers.

    Returns:
        (MappingInference, company_code)
    """
    if mapping:
        column_mapping = coerce_mapping(mapping)
        return _inference_for(headers, column_mapping), company

    if use_company_profile:
        profile = store.get_company_profile(company) if company else None
        if profile is None and not company:
            profile, _ = find_matching_profile(store.list_company_profiles(), headers)
        if profile is not None and profile.column_mappings:
            column_mapping = coerce_mapping(profile.column_mappings)
            inference = _inference_for(headers, column_mapping)
            if inference.is_valid:
                logger.info("Using saved column mapping for company %s", profile.code)
                return inference, company or profile.code
            logger.warning(
                "Saved mapping for company %s no longer covers required fields %s; inferring instead",
                profile.code,
                inference.missing_labels,
            )
            company = company or profile.code

    return infer_mapping(headers), company


def _inference_for(headers: Sequence[str], column_mapping: ColumnMapping) -> MappingInference:
    # A mapped header the export does not carry counts as unmapped.
    present = set(headers)
    for canonical_field, header in column_mapping.items():
        if header and header not in present:
            logger.warning("Mapped header '%s' for %s is not in the export", header, canonical_field.value)
            column_mapping[canonical_field] = None
    _, missing = validate_mappings(column_mapping)
    return MappingInference(
        mapping=column_mapping,
        missing_required=missing,
        unmapped=get_unmapped_columns(headers, column_mapping),
    )


def scan_import(
    store: InspectionStore,
    user_id: str,
    headers: Sequence[str],
    rows: Sequence[Mapping[str, Any]],
    *,
    company: Optional[str] = None,
    mapping: Optional[Mapping[str, Optional[str]]] = None,
    use_company_profile: bool = True,
    options: Optional[ClassifierOptions] = None,
    today: Optional[date] = None,
) -> ImportScanResult:
    """
    Map a batch, classify every row against the open-record snapshot and
    commit the rows that collide with nothing.

    Conflicting rows are returned, uncommitted, for operator resolution. When
    the mapping misses a required field nothing is parsed or committed.
    """
    company = company.strip().upper() if company and company.strip() else None
    inference, company = resolve_mapping(
        store,
        headers,
        company=company,
        mapping=mapping,
        use_company_profile=use_company_profile,
    )
    result = ImportScanResult(company=company, inference=inference)
    if not inference.is_valid:
        logger.info("Import blocked: required fields unmapped (%s)", ", ".join(inference.missing_labels))
        return result

    records, row_errors = map_rows(rows, inference.mapping, company=company, today=today)
    result.records_parsed = len(records)
    result.row_errors = row_errors

    snapshot = store.fetch_open_records(user_id)
    conflicts, clean = partition_incoming(records, snapshot, options=options)
    result.conflicts = conflicts

    for index, record in clean:
        try:
            inserted = store.insert_record(user_id, record)
        except StoreOperationError as exc:
            result.commit_errors.append(f"Row {index + 1}: {exc.message}")
            continue
        result.committed_ids.append(inserted.id)

    logger.info(
        "Import scan for user %s: %d parsed, %d committed, %d conflicts, %d commit failures",
        user_id,
        len(records),
        len(result.committed_ids),
        len(conflicts),
        len(result.commit_errors),
    )
    return result


def scan_reconciliation(
    store: InspectionStore,
    user_id: str,
    company: str,
    headers: Sequence[str],
    rows: Sequence[Mapping[str, Any]],
    *,
    mapping: Optional[Mapping[str, Optional[str]]] = None,
    today: Optional[date] = None,
) -> ReconciliationScanResult:
    """
    Compare a company's complete export against its open records.

    An export whose mapping misses a required field is not reconciled; every
    open record would otherwise look missing.
    """
    company = company.strip().upper()
    inference, _ = resolve_mapping(store, headers, company=company, mapping=mapping)
    result = ReconciliationScanResult(company=company, inference=inference)
    if not inference.is_valid:
        logger.info("Reconciliation blocked: required fields unmapped (%s)", ", ".join(inference.missing_labels))
        return result

    export_records: List[CanonicalRecord]
    export_records, _ = map_rows(rows, inference.mapping, company=company, today=today)
    previously_open = store.fetch_open_records_by_company(user_id, company)

    result.export_records = len(export_records)
    result.previously_open = len(previously_open)
    result.missing = reconcile(export_records, previously_open, today=today)
    return result
