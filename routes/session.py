import logging

from fastapi import APIRouter, HTTPException, Request

from config import get_config
from database import SessionLocal
from intake import (
    AnswerRequiredError,
    IntakeMachine,
    IntakeSession,
    InvalidAnswerError,
    InvalidTransitionError,
    SaveInProgressError,
    SectionSaveError,
)
from persistence import PersistenceGateway
from processing import process_and_save_profile
from schemas import AnswerSchema, StartIntakeSchema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/intake", tags=["intake"])


def save_section(user_id, assessment_id, section_id, answers):
    db = SessionLocal()
    try:
        return PersistenceGateway(db).save_section(user_id, assessment_id, section_id, answers)
    finally:
        db.close()


def complete(user_id, assessment_id):
    db = SessionLocal()
    try:
        return process_and_save_profile(db, user_id, assessment_id)
    finally:
        db.close()


def _machine(request: Request, session_id: str) -> IntakeMachine:
    machine = request.app.state.intake.get(session_id)
    if machine is None:
        raise HTTPException(status_code=404, detail="Unknown intake session.")
    return machine


def _run(machine: IntakeMachine, op, *args):
    try:
        op(*args)
    except (AnswerRequiredError, InvalidAnswerError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    except (InvalidTransitionError, SaveInProgressError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SectionSaveError as e:
        raise HTTPException(status_code=503, detail={"error": str(e), "retryable": True})
    return machine.describe()


@router.post("")
def create_session(data: StartIntakeSchema, request: Request):
    session = IntakeSession(
        user_id=data.user_id,
        assessment_id=data.assessment_id or get_config().assessment.default_assessment_id,
    )
    machine = request.app.state.intake.add(IntakeMachine(session, save_section, complete))
    logger.info("Intake session %s created for user %s", session.session_id, session.user_id)
    return machine.describe()


@router.get("/{session_id}")
def get_session(session_id: str, request: Request):
    return _machine(request, session_id).describe()


@router.post("/{session_id}/start")
def start(session_id: str, request: Request):
    machine = _machine(request, session_id)
    return _run(machine, machine.start)


@router.post("/{session_id}/answer")
def answer(session_id: str, data: AnswerSchema, request: Request):
    machine = _machine(request, session_id)
    return _run(machine, machine.answer, data.value)


@router.post("/{session_id}/next")
def advance(session_id: str, request: Request):
    machine = _machine(request, session_id)
    return _run(machine, machine.advance)


@router.post("/{session_id}/back")
def retreat(session_id: str, request: Request):
    machine = _machine(request, session_id)
    return _run(machine, machine.retreat)


@router.post("/{session_id}/continue")
def continue_from_interstitial(session_id: str, request: Request):
    machine = _machine(request, session_id)
    return _run(machine, machine.continue_from_interstitial)


@router.post("/{session_id}/finish")
def finish(session_id: str, request: Request):
    machine = _machine(request, session_id)
    try:
        result = machine.finish()
    except (AnswerRequiredError, InvalidAnswerError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    except (InvalidTransitionError, SaveInProgressError) as e:
        raise HTTPException(status_code=409, detail=str(e))

    view = machine.describe()
    view["completion"] = {
        "success": result.success,
        "failed_step": result.failed_step,
        "error": result.error,
        "retryable": result.retryable,
    }
    if result.success:
        request.app.state.intake.discard(session_id)
        view["scores"] = result.outcome.bundle.model_dump()
        view["suggestions"] = result.outcome.profile.model_dump(mode="json")
    return view
