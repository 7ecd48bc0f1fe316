import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from catalog import INTEREST_CODES
from models import Occupation

logger = logging.getLogger(__name__)

MAX_TOP_CODES = 3
DEFAULT_SUGGESTION_LIMIT = 5


class OccupationLookupError(Exception):
    """The reference occupation table could not be queried."""


# ---------------------------------------------------------
# OCCUPATION TABLE ACCESS
# ---------------------------------------------------------
class SqlOccupationLookup:
    """Equality-filtered queries against the reference occupations table."""

    def __init__(self, db: Session):
        self.db = db

    def find_codes(self, riasec_code: str, limit: int, exclude: Sequence[str] = ()) -> List[str]:
        query = self.db.query(Occupation.code).filter(Occupation.riasec_code == riasec_code)
        if exclude:
            query = query.filter(Occupation.code.notin_(list(exclude)))
        try:
            rows = query.order_by(Occupation.code).limit(limit).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise OccupationLookupError(str(e)) from e
        return [code for (code,) in rows]


# ---------------------------------------------------------
# TOP HOLLAND CODES
# ---------------------------------------------------------
def top_interest_codes(riasec_scores: Dict[str, int], n: int = MAX_TOP_CODES) -> List[str]:
    """Codes with a positive tally, highest first; ties keep R, I, A, S, E, C order."""
    scored = [(riasec_scores.get(code, 0), idx, code) for idx, code in enumerate(INTEREST_CODES)]
    scored = [s for s in scored if s[0] > 0]
    scored.sort(key=lambda x: (-x[0], x[1]))
    return [code for _, _, code in scored[:n]]


@dataclass
class SuggestionResult:
    top_interest_codes: List[str] = field(default_factory=list)
    suggested_occupation_codes: List[str] = field(default_factory=list)
    # False when a lookup failed and the list may be partial
    complete: bool = True

    @property
    def summary(self) -> Optional[dict]:
        if not self.top_interest_codes:
            return None
        return {"holland_codes": list(self.top_interest_codes)}


def _dedupe(codes: Sequence[str]) -> List[str]:
    seen = set()
    out = []
    for c in codes:
        if c not in seen:
            seen.add(c)
            out.append(c)
    return out


# ---------------------------------------------------------
# MAIN ENTRYPOINT: SUGGEST OCCUPATIONS
# ---------------------------------------------------------
def suggest_occupations(riasec_scores: Dict[str, int], lookup, limit: int = DEFAULT_SUGGESTION_LIMIT) -> SuggestionResult:
    """Match the dominant interest codes against the occupation table.

    Primary-code matches come first; the secondary code is only queried when
    the primary one did not fill ``limit``. Lookup failures are logged and
    leave the list empty or partial; they never raise.
    """
    result = SuggestionResult(top_interest_codes=top_interest_codes(riasec_scores))
    if not result.top_interest_codes:
        logger.info("No Holland codes found to generate occupation suggestions")
        return result

    primary = result.top_interest_codes[0]
    secondary = result.top_interest_codes[1] if len(result.top_interest_codes) > 1 else None
    logger.info("Generating occupation codes for Holland codes: primary=%s secondary=%s", primary, secondary)

    codes: List[str] = []
    try:
        codes.extend(lookup.find_codes(primary, limit))
        logger.info("Found %d primary matches for code %s", len(codes), primary)
    except OccupationLookupError as e:
        logger.error("Error fetching primary occupation suggestions (riasec_code=%s, limit=%d): %s", primary, limit, e)
        result.complete = False

    codes = _dedupe(codes)[:limit]
    if len(codes) < limit and secondary:
        remaining = limit - len(codes)
        try:
            found = lookup.find_codes(secondary, remaining, exclude=list(codes))
            logger.info("Found %d secondary matches for code %s", len(found), secondary)
            codes.extend(found)
        except OccupationLookupError as e:
            logger.error(
                "Error fetching secondary occupation suggestions (riasec_code=%s, exclude=%s, limit=%d): %s",
                secondary, codes, remaining, e,
            )
            result.complete = False

    result.suggested_occupation_codes = _dedupe(codes)[:limit]
    logger.info("Final suggested occupation codes: %s", ", ".join(result.suggested_occupation_codes))
    return result
