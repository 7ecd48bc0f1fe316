"""Persistence gateway for section answers and derived profiles.

All writes are whole-row upserts: a section is keyed by
(user, assessment, section), the score bundle and the suggested profile by
user alone. On PostgreSQL and SQLite the upsert is a single
``INSERT ... ON CONFLICT DO UPDATE`` statement, so a row is never half written.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import AnalysisRecord, ScoreBundleRecord, SectionRecord, SuggestedProfileRecord
from schemas import ScoreBundle, SuggestedProfile

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class PersistenceError(Exception):
    """A write or read against the relational store failed."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PersistenceGateway:
    def __init__(self, db: Session):
        self.db = db

    # -----------------------------------------------------
    # GENERIC UPSERT
    # -----------------------------------------------------
    def _upsert(self, model, values: dict, key_columns: Sequence[str]) -> None:
        insert = _DIALECT_INSERTS.get(self.db.get_bind().dialect.name)
        try:
            if insert is not None:
                stmt = insert(model).values(**values)
                stmt = stmt.on_conflict_do_update(
                    index_elements=list(key_columns),
                    set_={k: stmt.excluded[k] for k in values if k not in key_columns},
                )
                self.db.execute(stmt)
            else:
                existing = self.db.query(model).filter_by(**{k: values[k] for k in key_columns}).one_or_none()
                if existing is None:
                    self.db.add(model(**values))
                else:
                    for k, v in values.items():
                        setattr(existing, k, v)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Upsert into %s failed for key %s", model.__tablename__,
                         {k: values[k] for k in key_columns}, exc_info=True)
            raise PersistenceError(str(e)) from e

    def _read(self, query_fn):
        try:
            return query_fn()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Read from the assessment store failed: %s", e)
            raise PersistenceError(str(e)) from e

    def _get(self, model, key):
        return self._read(lambda: self.db.get(model, key))

    # -----------------------------------------------------
    # SECTION RECORDS
    # -----------------------------------------------------
    def save_section(self, user_id: str, assessment_id: str, section_id: str, answers: Mapping[str, object]) -> bool:
        """Upsert one section's answers. Returns False when there was nothing to save."""
        if not user_id or not assessment_id or not section_id:
            raise ValueError("user_id, assessment_id and section_id are required")
        if not answers:
            logger.info("No answers to save for user %s section %s", user_id, section_id)
            return False
        self._upsert(
            SectionRecord,
            {
                "user_id": user_id,
                "assessment_id": assessment_id,
                "section_id": section_id,
                "response_data": dict(answers),
                "updated_at": _now(),
            },
            ("user_id", "assessment_id", "section_id"),
        )
        logger.info("Vocational response saved for user %s, section %s (%d answers)", user_id, section_id, len(answers))
        return True

    def load_sections(self, user_id: str, assessment_id: str) -> List[Tuple[str, Dict[str, object]]]:
        rows = self._read(
            lambda: self.db.query(SectionRecord.section_id, SectionRecord.response_data)
            .filter(SectionRecord.user_id == user_id, SectionRecord.assessment_id == assessment_id)
            .all()
        )
        return [(section_id, data) for section_id, data in rows]

    def users_with_sections(self, assessment_id: str) -> List[str]:
        rows = self._read(
            lambda: self.db.query(SectionRecord.user_id)
            .filter(SectionRecord.assessment_id == assessment_id)
            .distinct()
            .order_by(SectionRecord.user_id)
            .all()
        )
        return [user_id for (user_id,) in rows]

    # -----------------------------------------------------
    # SCORE BUNDLE
    # -----------------------------------------------------
    def save_score_bundle(self, user_id: str, bundle: ScoreBundle) -> None:
        self._upsert(
            ScoreBundleRecord,
            {
                "user_id": user_id,
                "riasec_scores": bundle.riasec_scores,
                "personality_scores": bundle.personality_scores,
                "aptitude_scores": bundle.aptitude_scores.model_dump(),
                "work_values": {"ranked": bundle.work_values} if bundle.work_values is not None else None,
                "learning_style": bundle.learning_style,
                "raw_responses_snapshot": bundle.raw_responses_snapshot,
                "updated_at": _now(),
            },
            ("user_id",),
        )
        logger.info("Assessment score bundle saved for user %s", user_id)

    def load_score_bundle(self, user_id: str) -> Optional[ScoreBundle]:
        row = self._get(ScoreBundleRecord, user_id)
        if row is None:
            return None
        return ScoreBundle(
            riasec_scores=row.riasec_scores,
            personality_scores=row.personality_scores,
            aptitude_scores=row.aptitude_scores,
            learning_style=row.learning_style,
            work_values=(row.work_values or {}).get("ranked"),
            raw_responses_snapshot=row.raw_responses_snapshot or {},
        )

    # -----------------------------------------------------
    # SUGGESTED PROFILE
    # -----------------------------------------------------
    def save_suggested_profile(self, profile: SuggestedProfile) -> None:
        self._upsert(
            SuggestedProfileRecord,
            {
                "user_id": profile.user_id,
                "assessment_summary": {"holland_codes": profile.top_interest_codes} if profile.top_interest_codes else None,
                "suggested_onet_codes": profile.suggested_occupation_codes or None,
                "updated_at": profile.updated_at or _now(),
            },
            ("user_id",),
        )
        logger.info("Vocational profile updated for user %s: %s", profile.user_id, profile.suggested_occupation_codes)

    def load_suggested_profile(self, user_id: str) -> Optional[SuggestedProfile]:
        row = self._get(SuggestedProfileRecord, user_id)
        if row is None:
            return None
        return SuggestedProfile(
            user_id=row.user_id,
            top_interest_codes=(row.assessment_summary or {}).get("holland_codes", []),
            suggested_occupation_codes=row.suggested_onet_codes or [],
            updated_at=row.updated_at,
        )

    # -----------------------------------------------------
    # DOWNSTREAM ANALYSIS TEXT
    # -----------------------------------------------------
    def save_analysis(self, user_id: str, assessment_id: str, structured_report: str,
                      narrative_story: str, success: bool) -> None:
        self._upsert(
            AnalysisRecord,
            {
                "user_id": user_id,
                "assessment_id": assessment_id,
                "structured_report": structured_report,
                "narrative_story": narrative_story,
                "success": success,
                "updated_at": _now(),
            },
            ("user_id", "assessment_id"),
        )

    def load_analysis(self, user_id: str, assessment_id: str) -> Optional[AnalysisRecord]:
        return self._read(
            lambda: self.db.query(AnalysisRecord)
            .filter(AnalysisRecord.user_id == user_id, AnalysisRecord.assessment_id == assessment_id)
            .one_or_none()
        )
