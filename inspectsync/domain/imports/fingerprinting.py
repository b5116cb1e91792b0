"""
Company detection from export headers.

A saved company profile keeps the normalised header list of the export it
was built from. An incoming export is attributed to the profile whose
headers it covers best, and an identical header set short-circuits the
search through its SHA-256 fingerprint.
"""
import hashlib
import logging
import re
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from inspectsync.core.config import settings

logger = logging.getLogger(__name__)


def normalize_column_name(name: str) -> str:
    """Normalize column name: lowercase, alphanumeric only."""
    if not name:
        return ""
    return re.sub(r'[^a-z0-9]', '', str(name).lower())


def calculate_fingerprint(columns: Sequence[str]) -> Tuple[str, List[str]]:
    """
    Calculate a deterministic fingerprint for a list of columns.
    Returns (fingerprint_hash, normalized_sorted_columns).
    """
    normalized = [normalize_column_name(c) for c in columns if c]
    normalized = sorted({n for n in normalized if n})

    content = "|".join(normalized)
    fingerprint_hash = hashlib.sha256(content.encode('utf-8')).hexdigest()

    return fingerprint_hash, normalized


def fingerprint_coverage(fingerprint: Iterable[str], headers: Iterable[str]) -> float:
    """
    Share of a stored fingerprint's columns present in an incoming header list.

    Extra incoming columns do not lower the score; an export that gained a
    column still belongs to the same company.
    """
    stored = {normalize_column_name(c) for c in fingerprint if normalize_column_name(c)}
    if not stored:
        return 0.0
    incoming = {normalize_column_name(h) for h in headers}
    return len(stored & incoming) / len(stored)


def find_matching_profile(
    profiles: Iterable[Any],
    headers: Sequence[str],
    threshold: Optional[float] = None,
) -> Tuple[Optional[Any], float]:
    """
    Find the saved company profile whose header fingerprint best covers ``headers``.

    ``profiles`` are objects exposing ``code`` and ``column_fingerprint``.

    Returns:
        (profile, similarity); profile is None when no profile reaches the
        threshold.
    """
    threshold = settings.fingerprint_match_threshold if threshold is None else threshold
    if not headers:
        return None, 0.0

    incoming_hash, _ = calculate_fingerprint(headers)
    best_match = None
    best_score = 0.0
    for profile in profiles:
        fingerprint = getattr(profile, "column_fingerprint", None) or []
        if not fingerprint:
            continue
        if calculate_fingerprint(fingerprint)[0] == incoming_hash:
            logger.info("Headers match company profile '%s' exactly", getattr(profile, "code", "?"))
            return profile, 1.0
        similarity = fingerprint_coverage(fingerprint, headers)
        if similarity > best_score:
            best_score = similarity
            best_match = profile

    if best_match is not None and best_score >= threshold:
        logger.info(
            "Headers matched company profile '%s' (coverage %.0f%%)",
            getattr(best_match, "code", "?"),
            best_score * 100,
        )
        return best_match, best_score

    return None, best_score


def generate_company_code(name: str) -> str:
    """
    Derive a short company code from a company name.

    One significant word gives its first three letters ("Millennium" -> MIL);
    several give the initials of the first three ("Insurance Partners Inc"
    -> IPI). Words of two characters or fewer are ignored.
    """
    words = [w for w in (name or "").split() if len(w) > 2]
    if not words:
        return "NEW"
    if len(words) == 1:
        return words[0][:3].upper()
    return "".join(w[0] for w in words[:3]).upper()
