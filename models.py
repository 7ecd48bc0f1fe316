from sqlalchemy import JSON, Boolean, Column, Integer, String, Text, TIMESTAMP, UniqueConstraint
from sqlalchemy.sql import func

from database import Base


class SectionRecord(Base):
    """Raw answers for one (user, assessment, section); re-saving overwrites."""

    __tablename__ = "vocational_responses"
    __table_args__ = (
        UniqueConstraint("user_id", "assessment_id", "section_id", name="uq_vocational_responses_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    assessment_id = Column(String, nullable=False)
    section_id = Column(String, nullable=False)

    response_data = Column(JSON, nullable=False)

    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now())


class ScoreBundleRecord(Base):
    """The current computed score bundle; one row per user."""

    __tablename__ = "user_assessment_profiles"

    user_id = Column(String, primary_key=True)

    # {"R": int, "I": int, ...}
    riasec_scores = Column(JSON, nullable=False)
    # {"O": int, "C": int, "E": int, "A": int, "N": int}
    personality_scores = Column(JSON, nullable=False)
    aptitude_scores = Column(JSON, nullable=False)
    # {"ranked": [value ids]} or NULL
    work_values = Column(JSON)
    learning_style = Column(String, nullable=False)
    raw_responses_snapshot = Column(JSON, nullable=False)

    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now())


class SuggestedProfileRecord(Base):
    __tablename__ = "vocational_profile"

    user_id = Column(String, primary_key=True)

    # {"holland_codes": [...]} or NULL when no interest code scored
    assessment_summary = Column(JSON)
    suggested_onet_codes = Column(JSON)

    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now())


class AnalysisRecord(Base):
    """Prose generated downstream from the score bundle."""

    __tablename__ = "vocational_results"
    __table_args__ = (
        UniqueConstraint("user_id", "assessment_id", name="uq_vocational_results_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    assessment_id = Column(String, nullable=False)

    structured_report = Column(Text, nullable=False)
    narrative_story = Column(Text, nullable=False)
    success = Column(Boolean, nullable=False)

    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now())


class Occupation(Base):
    """Reference occupation table (O*NET-SOC), loaded by a separate job."""

    __tablename__ = "occupations"

    code = Column(String, primary_key=True)
    title = Column(String)
    description = Column(String)

    # dominant Holland code for the occupation: one of R, I, A, S, E, C
    riasec_code = Column(String(1), index=True)
