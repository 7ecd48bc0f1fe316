"""Section-sequenced intake for the vocational assessment.

An :class:`IntakeMachine` walks the catalog one question at a time:

    NOT_STARTED -> IN_SECTION -> INTERSTITIAL -> IN_SECTION -> ... -> FINISHED

Leaving a section saves that section's answers as one payload. The
interstitial is entered only after the save succeeded; a failed save leaves
the machine on the last question of the section so the user can retry.
Navigation backward stays inside the current section: earlier sections are
already persisted and are not reopened.

Each machine owns its :class:`IntakeSession`; nothing is shared between
sessions.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional

from catalog import (
    CATALOG,
    DEFAULT_INTRO,
    SECTION_INTROS,
    Catalog,
    InvalidAnswerError,
    Question,
    SectionId,
    is_answered,
    section_title,
    serialize_question,
    validate_answer,
)
from persistence import PersistenceError

logger = logging.getLogger(__name__)

__all__ = [
    "AnswerRequiredError",
    "CompletionResult",
    "IntakeError",
    "IntakeMachine",
    "IntakeRegistry",
    "IntakeSession",
    "IntakeState",
    "InvalidAnswerError",
    "InvalidTransitionError",
    "SaveInProgressError",
    "SectionSaveError",
]


class IntakeState(str, Enum):
    NOT_STARTED = "not_started"
    IN_SECTION = "in_section"
    INTERSTITIAL = "interstitial"
    FINISHED = "finished"


class IntakeError(Exception):
    retryable = False


class AnswerRequiredError(IntakeError):
    def __init__(self, question_id: str):
        super().__init__(f"An answer is required for {question_id} before moving on.")
        self.question_id = question_id


class InvalidTransitionError(IntakeError):
    pass


class SaveInProgressError(IntakeError):
    retryable = True

    def __init__(self):
        super().__init__("A section save is already in progress.")


class SectionSaveError(IntakeError):
    retryable = True

    def __init__(self, section_id: SectionId, reason: str):
        super().__init__(f"Failed to save {section_id.value} section: {reason}")
        self.section_id = section_id
        self.reason = reason


@dataclass
class IntakeSession:
    user_id: str
    assessment_id: str
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: IntakeState = IntakeState.NOT_STARTED
    index: int = 0
    next_section: Optional[SectionId] = None
    answers: Dict[str, object] = field(default_factory=dict)
    last_error: Optional[str] = None


@dataclass
class CompletionResult:
    success: bool
    # save_section, scoring or suggestions
    failed_step: Optional[str] = None
    error: Optional[str] = None
    retryable: bool = False
    outcome: object = None


# (user_id, assessment_id, section_id, answers) -> truthy when a row was written
SectionSaver = Callable[[str, str, str, Dict[str, object]], object]
# (user_id, assessment_id) -> processing.ProcessResult
Completer = Callable[[str, str], object]

_SCORING_STEPS = {"load", "scoring", "save_scores"}


class IntakeMachine:
    def __init__(self, session: IntakeSession, save_section: SectionSaver, complete: Completer,
                 catalog: Catalog = CATALOG):
        if not len(catalog):
            raise ValueError("catalog has no questions")
        self.session = session
        self.catalog = catalog
        self._save_section = save_section
        self._complete = complete
        self._saving = threading.Lock()

    # -----------------------------------------------------
    # VIEW
    # -----------------------------------------------------
    @property
    def state(self) -> IntakeState:
        return self.session.state

    @property
    def current_question(self) -> Optional[Question]:
        if self.session.state is not IntakeState.IN_SECTION:
            return None
        return self.catalog.questions[self.session.index]

    @property
    def is_last_question(self) -> bool:
        return self.session.index == len(self.catalog) - 1

    def describe(self) -> dict:
        s = self.session
        view = {
            "session_id": s.session_id,
            "user_id": s.user_id,
            "assessment_id": s.assessment_id,
            "state": s.state.value,
            "index": s.index,
            "total": len(self.catalog),
            "error": s.last_error,
        }
        q = self.current_question
        if q is not None:
            view["section_id"] = q.section_id.value
            view["question"] = serialize_question(q)
            view["answer"] = s.answers.get(q.id)
            view["is_last"] = self.is_last_question
        if s.state is IntakeState.INTERSTITIAL and s.next_section is not None:
            view["section_id"] = s.next_section.value
            view["interstitial"] = {
                "title": section_title(s.next_section),
                "intro": SECTION_INTROS.get(s.next_section, DEFAULT_INTRO),
            }
        return view

    # -----------------------------------------------------
    # OPERATIONS
    # -----------------------------------------------------
    def start(self) -> None:
        self._require(IntakeState.NOT_STARTED, "start")
        self.session.state = IntakeState.IN_SECTION
        self.session.index = 0

    def answer(self, value) -> None:
        """Record (or replace) the answer to the current question."""
        question = self._current_or_raise("answer")
        if not is_answered(value):
            raise AnswerRequiredError(question.id)
        self.session.answers[question.id] = validate_answer(question, value, self.session.answers)
        self.session.last_error = None

    def advance(self, value=None) -> None:
        question = self._prepare_move("advance", value)
        if self.is_last_question:
            raise InvalidTransitionError("This is the last question; finish the assessment instead.")

        next_question = self.catalog.questions[self.session.index + 1]
        if next_question.section_id == question.section_id:
            self.session.index += 1
            return

        self._save_current_section(question.section_id)
        self.session.next_section = next_question.section_id
        self.session.state = IntakeState.INTERSTITIAL
        logger.info("Session %s: section %s saved, entering interstitial for %s",
                    self.session.session_id, question.section_id.value, next_question.section_id.value)

    def continue_from_interstitial(self) -> None:
        self._require(IntakeState.INTERSTITIAL, "continue")
        self.session.index = self.catalog.first_index_of(self.session.next_section)
        self.session.next_section = None
        self.session.state = IntakeState.IN_SECTION
        self.session.last_error = None

    def retreat(self) -> None:
        question = self._current_or_raise("retreat")
        if self.session.index == 0:
            raise InvalidTransitionError("Already at the first question.")
        previous = self.catalog.questions[self.session.index - 1]
        if previous.section_id != question.section_id:
            raise InvalidTransitionError(
                f"Cannot go back into the completed {previous.section_id.value} section."
            )
        self.session.index -= 1
        self.session.last_error = None

    def finish(self, value=None) -> CompletionResult:
        if self.session.state is not IntakeState.FINISHED:
            question = self._prepare_move("finish", value)
            if not self.is_last_question:
                raise InvalidTransitionError("Finish is only available on the last question.")
            try:
                self._save_current_section(question.section_id)
            except SectionSaveError as e:
                return CompletionResult(success=False, failed_step="save_section", error=str(e), retryable=True)
            self.session.state = IntakeState.FINISHED
            # stored sections are the source of truth from here on
            self.session.answers.clear()

        outcome = self._complete(self.session.user_id, self.session.assessment_id)
        if getattr(outcome, "success", False):
            self.session.last_error = None
            return CompletionResult(success=True, outcome=outcome)

        step = "scoring" if getattr(outcome, "failed_step", None) in _SCORING_STEPS else "suggestions"
        error = getattr(outcome, "error", None) or "Profile processing failed."
        self.session.last_error = f"{step} failed: {error}"
        logger.error("Session %s: completion failed at %s: %s", self.session.session_id, step, error)
        return CompletionResult(success=False, failed_step=step, error=error, retryable=True, outcome=outcome)

    # -----------------------------------------------------
    # HELPERS
    # -----------------------------------------------------
    def _require(self, state: IntakeState, op: str) -> None:
        if self.session.state is not state:
            raise InvalidTransitionError(f"Cannot {op} while {self.session.state.value}.")

    def _current_or_raise(self, op: str) -> Question:
        self._require(IntakeState.IN_SECTION, op)
        return self.catalog.questions[self.session.index]

    def _prepare_move(self, op: str, value) -> Question:
        question = self._current_or_raise(op)
        if value is not None:
            self.answer(value)
        recorded = self.session.answers.get(question.id)
        if not is_answered(recorded):
            raise AnswerRequiredError(question.id)
        # earlier answers may have changed since this one was recorded (ranking eligibility)
        validate_answer(question, recorded, self.session.answers)
        return question

    def _save_current_section(self, section_id: SectionId) -> None:
        if not self._saving.acquire(blocking=False):
            raise SaveInProgressError()
        try:
            payload = self.catalog.section_answers(section_id, self.session.answers)
            self._save_section(self.session.user_id, self.session.assessment_id, section_id.value, payload)
        except PersistenceError as e:
            self.session.last_error = str(SectionSaveError(section_id, str(e)))
            logger.error("Session %s: saving section %s failed: %s",
                         self.session.session_id, section_id.value, e)
            raise SectionSaveError(section_id, str(e)) from e
        finally:
            self._saving.release()
        self.session.last_error = None


class IntakeRegistry:
    """In-process store of running intake machines, keyed by session id."""

    def __init__(self):
        self._machines: Dict[str, IntakeMachine] = {}
        self._lock = threading.Lock()

    def add(self, machine: IntakeMachine) -> IntakeMachine:
        with self._lock:
            self._machines[machine.session.session_id] = machine
        return machine

    def get(self, session_id: str) -> Optional[IntakeMachine]:
        with self._lock:
            return self._machines.get(session_id)

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._machines.pop(session_id, None)
