"""Hand-off of computed scores to downstream prose generation.

The generator itself (an LLM client or anything else that turns text into
text) is a collaborator passed in by the caller. This module prepares its
input, runs the structured report and the narrative story side by side, and
stores whatever came back. A failed half is stored as an explicit marker.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple

from catalog import VALUE_ITEMS
from config import get_config
from persistence import PersistenceError, PersistenceGateway
from processing import process_and_save_profile
from schemas import ScoreBundle
from scoring import NOT_DETERMINED

logger = logging.getLogger(__name__)

STORY_FAILED = "Personalized story generation failed."

_VALUE_LABELS = {item.id: item.label for item in VALUE_ITEMS}


class ReportGenerator(Protocol):
    def structured_report(self, assessment_data: str) -> str: ...

    def narrative_story(self, assessment_data: str) -> str: ...


@dataclass
class AnalysisOutcome:
    success: bool
    structured_report: Optional[str] = None
    narrative_story: Optional[str] = None
    error: Optional[str] = None


def format_assessment_data(bundle: Optional[ScoreBundle], sections: List[Tuple[str, dict]]) -> str:
    lines = ["**1. Calculated Profile Scores (if available):**"]
    if bundle is not None:
        ranked = ", ".join(_VALUE_LABELS.get(v, v) for v in (bundle.work_values or [])) or "Not ranked"
        lines += [
            "- RIASEC Scores (Interests - Realistic, Investigative, Artistic, Social, Enterprising, "
            f"Conventional): {json.dumps(bundle.riasec_scores)}",
            "- Personality (Big Five - Openness, Conscientiousness, Extraversion, Agreeableness, "
            f"Neuroticism): {json.dumps(bundle.personality_scores)}",
            f"- Aptitude Scores (Correct answers): {json.dumps(bundle.aptitude_scores.model_dump())}",
            f"- Top Work Values (Ranked): {ranked}",
            f"- Preferred Learning Style (VARK): {bundle.learning_style or NOT_DETERMINED}",
        ]
    else:
        lines.append("(Calculated profile data was not available or failed to load.)")
    lines += ["", "**2. Raw Answers Provided by Student:**"]
    for section_id, data in sections:
        lines.append(f"- Section: {section_id}")
        lines.append(f"  Responses: {json.dumps(data) if data else '[No data]'}")
    return "\n".join(lines)


def _run(fn, data: str) -> Tuple[Optional[str], Optional[str]]:
    try:
        text = fn(data)
    except Exception as e:  # any generator failure becomes a marker
        return None, str(e) or e.__class__.__name__
    if not text or not str(text).strip():
        return None, "Empty response from generator."
    return str(text), None


def generate_and_save_analysis(db, user_id: str, generator: ReportGenerator,
                               assessment_id: Optional[str] = None) -> AnalysisOutcome:
    assessment_id = assessment_id or get_config().assessment.default_assessment_id
    gateway = PersistenceGateway(db)

    processed = process_and_save_profile(db, user_id, assessment_id)
    if not processed.success:
        message = f"Prerequisite profile calculation failed: {processed.error}"
        logger.error("Profile generation failed before analysis for user %s: %s", user_id, processed.error)
        try:
            gateway.save_analysis(user_id, assessment_id, f"Error: {message}", STORY_FAILED, False)
        except PersistenceError:
            logger.error("Could not record analysis failure for user %s", user_id)
        return AnalysisOutcome(success=False, error=message)

    try:
        sections = gateway.load_sections(user_id, assessment_id)
    except PersistenceError as e:
        logger.error("Could not load raw answers for analysis of user %s: %s", user_id, e)
        return AnalysisOutcome(success=False, error=f"Failed to load assessment data: {e}")
    data = format_assessment_data(processed.bundle, sections)

    with ThreadPoolExecutor(max_workers=2) as pool:
        report_future = pool.submit(_run, generator.structured_report, data)
        story_future = pool.submit(_run, generator.narrative_story, data)
        report, report_error = report_future.result()
        story, story_error = story_future.result()

    success = True
    if report_error is not None:
        logger.error("Error generating structured report for user %s: %s", user_id, report_error)
        report = f"Error generating structured report: {report_error}"
        success = False
    if story_error is not None:
        logger.error("Error generating narrative story for user %s: %s", user_id, story_error)
        story = f"Error generating narrative story: {story_error}"
        success = False

    try:
        gateway.save_analysis(user_id, assessment_id, report, story, success)
    except PersistenceError as e:
        return AnalysisOutcome(success=False, structured_report=report, narrative_story=story,
                               error=f"Failed to save results: {e}")

    return AnalysisOutcome(
        success=success,
        structured_report=report,
        narrative_story=story,
        error=None if success else "Error during report generation.",
    )
