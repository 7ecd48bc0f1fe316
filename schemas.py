from datetime import datetime
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

# option id, 1-5 rating, ranked value ids, or free text
AnswerValue = Union[int, str, List[str]]


class AptitudeScores(BaseModel):
    verbalCorrect: int = 0
    numericalCorrect: int = 0
    abstractCorrect: int = 0
    totalCorrect: int = 0
    totalAttempted: int = 0


class ScoreBundle(BaseModel):
    riasec_scores: Dict[str, int]
    personality_scores: Dict[str, int]
    aptitude_scores: AptitudeScores
    learning_style: str
    work_values: Optional[List[str]] = None
    raw_responses_snapshot: Dict[str, AnswerValue] = Field(default_factory=dict)


class SuggestedProfile(BaseModel):
    user_id: str
    top_interest_codes: List[str] = Field(default_factory=list, max_length=3)
    suggested_occupation_codes: List[str] = Field(default_factory=list, max_length=10)
    updated_at: Optional[datetime] = None


class SectionAnswersSchema(BaseModel):
    answers: Dict[str, AnswerValue]
    assessment_id: Optional[str] = None


class StartIntakeSchema(BaseModel):
    user_id: str = Field(min_length=1)
    assessment_id: Optional[str] = None


class AnswerSchema(BaseModel):
    value: AnswerValue


class ProfileResponse(BaseModel):
    user_id: str
    scores: ScoreBundle
    suggestions: Optional[SuggestedProfile] = None
