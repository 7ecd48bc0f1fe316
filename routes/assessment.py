import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from catalog import (
    CATALOG,
    DEFAULT_INTRO,
    SECTION_INTROS,
    InvalidAnswerError,
    ScaleType,
    SectionId,
    scale_labels,
    section_title,
    serialize_question,
    validate_answer,
)
from config import get_config
from database import get_db
from persistence import PersistenceError, PersistenceGateway
from processing import process_and_save_profile
from schemas import ProfileResponse, SectionAnswersSchema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assessment", tags=["assessment"])


def _result_payload(result) -> dict:
    return {
        "status": "success",
        "scores": result.bundle.model_dump(),
        "suggestions": result.profile.model_dump(mode="json") if result.profile else None,
    }


@router.get("/questions")
def list_questions():
    return {
        "sections": [
            {
                "id": s.value,
                "title": section_title(s),
                "intro": SECTION_INTROS.get(s, DEFAULT_INTRO),
            }
            for s in CATALOG.sections
        ],
        "questions": [serialize_question(q) for q in CATALOG],
        "scales": {s.value: scale_labels(s) for s in ScaleType},
    }


@router.put("/{user_id}/sections/{section_id}")
def save_section(user_id: str, section_id: SectionId, data: SectionAnswersSchema, db: Session = Depends(get_db)):
    assessment_id = data.assessment_id or get_config().assessment.default_assessment_id
    answers = {}
    try:
        for question_id, value in data.answers.items():
            question = CATALOG.get(question_id)
            if question is None or question.section_id != section_id:
                raise HTTPException(
                    status_code=422,
                    detail=f"{question_id} is not a question of the {section_id.value} section",
                )
            answers[question_id] = validate_answer(question, value, data.answers)
    except InvalidAnswerError as e:
        raise HTTPException(status_code=422, detail=str(e))

    # keep catalog order inside the stored payload
    answers = CATALOG.section_answers(section_id, answers)
    try:
        saved = PersistenceGateway(db).save_section(user_id, assessment_id, section_id.value, answers)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail={"error": str(e), "retryable": True})

    return {"status": "success", "saved": saved, "section_id": section_id.value, "answers": len(answers)}


@router.post("/{user_id}/process")
def process_profile(user_id: str, assessment_id: Optional[str] = None, db: Session = Depends(get_db)):
    logger.info("Assessment reprocessing request received for user: %s", user_id)
    result = process_and_save_profile(db, user_id, assessment_id)
    if not result.success:
        if result.storage_error:
            status = 503
        elif result.failed_step == "load":
            status = 404
        else:
            status = 500
        detail = {"error": result.error, "failed_step": result.failed_step}
        if result.storage_error:
            detail["retryable"] = True
        raise HTTPException(status_code=status, detail=detail)
    return _result_payload(result)


@router.get("/{user_id}/profile", response_model=ProfileResponse)
def read_profile(user_id: str, db: Session = Depends(get_db)):
    gateway = PersistenceGateway(db)
    try:
        bundle = gateway.load_score_bundle(user_id)
        suggestions = gateway.load_suggested_profile(user_id) if bundle is not None else None
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail={"error": str(e), "retryable": True})
    if bundle is None:
        raise HTTPException(status_code=404, detail="No assessment profile for this user.")

    if suggestions is None:
        # bundle written but profile missing: the pipeline is safe to re-run
        logger.warning("Suggested profile missing for user %s; recomputing", user_id)
        result = process_and_save_profile(db, user_id)
        if result.success:
            bundle, suggestions = result.bundle, result.profile

    return ProfileResponse(user_id=user_id, scores=bundle, suggestions=suggestions)
