"""Process-and-save entry point for a user's stored assessment answers.

Safe to call from the intake completion flow or as a repair/backfill job:
the result depends only on the stored section records, and every write is a
whole-row upsert.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from catalog import CATALOG, SECTION_ORDER, Catalog
from config import get_config
from persistence import PersistenceError, PersistenceGateway
from recommendation import SqlOccupationLookup, suggest_occupations
from schemas import ScoreBundle, SuggestedProfile
from scoring import score_answers

logger = logging.getLogger(__name__)

_SECTION_RANK = {s.value: i for i, s in enumerate(SECTION_ORDER)}


@dataclass
class ProcessResult:
    success: bool
    error: Optional[str] = None
    # one of: load, scoring, save_scores, suggestions
    failed_step: Optional[str] = None
    bundle: Optional[ScoreBundle] = None
    profile: Optional[SuggestedProfile] = None
    # the store was unreachable, as opposed to a data problem
    storage_error: bool = False


def merge_sections(sections: List[Tuple[str, Dict[str, object]]]) -> Dict[str, object]:
    """Combine section payloads into one answer set, independent of storage order."""
    ordered = sorted(sections, key=lambda s: (_SECTION_RANK.get(s[0], len(_SECTION_RANK)), s[0]))
    answers: Dict[str, object] = {}
    for section_id, data in ordered:
        if not isinstance(data, dict):
            logger.warning("Unexpected response_data format for section %s: %r", section_id, data)
            continue
        answers.update(data)
    return answers


def process_and_save_profile(db, user_id: str, assessment_id: Optional[str] = None,
                             catalog: Catalog = CATALOG, lookup=None) -> ProcessResult:
    """Score the stored answers and store the bundle and the suggested profile."""
    if not user_id:
        return ProcessResult(success=False, error="User ID is required for profile generation.", failed_step="load")

    config = get_config()
    assessment_id = assessment_id or config.assessment.default_assessment_id
    gateway = PersistenceGateway(db)

    try:
        sections = gateway.load_sections(user_id, assessment_id)
    except PersistenceError as e:
        logger.error("Could not load vocational responses for user %s: %s", user_id, e)
        return ProcessResult(success=False, error=str(e), failed_step="load", storage_error=True)
    if not sections:
        return ProcessResult(
            success=False, error="No vocational responses found to generate profile.", failed_step="load",
        )

    answers = merge_sections(sections)
    try:
        bundle = score_answers(answers, catalog)
    except ValidationError as e:
        logger.error("Scoring failed for user %s: %s", user_id, e)
        return ProcessResult(success=False, error=str(e), failed_step="scoring")

    try:
        gateway.save_score_bundle(user_id, bundle)
    except PersistenceError as e:
        return ProcessResult(success=False, error=str(e), failed_step="save_scores", bundle=bundle,
                             storage_error=True)

    suggestions = suggest_occupations(
        bundle.riasec_scores,
        lookup or SqlOccupationLookup(db),
        limit=config.assessment.suggestion_limit,
    )
    profile = SuggestedProfile(
        user_id=user_id,
        top_interest_codes=suggestions.top_interest_codes,
        suggested_occupation_codes=suggestions.suggested_occupation_codes,
    )
    try:
        gateway.save_suggested_profile(profile)
    except PersistenceError as e:
        # the bundle is already stored; re-running this function repairs the profile
        return ProcessResult(success=False, error=str(e), failed_step="suggestions", bundle=bundle,
                             storage_error=True)

    try:
        stored = gateway.load_suggested_profile(user_id)
    except PersistenceError as e:
        logger.warning("Could not re-read vocational profile for user %s: %s", user_id, e)
        stored = None
    return ProcessResult(success=True, bundle=bundle, profile=stored or profile)
