from datetime import datetime
from typing import Dict, List, Optional, Union

from pydantic import ConfigDict

from questionnaire_api.models.models import QuestionType
from questionnaire_api.schemas.base import CamelModel
from questionnaire_api.schemas.questionnaire import QuestionOut

AnswerValue = Union[List[str], str]


class AnswerIn(CamelModel):
    """One answer of a submitted run"""
    question_id: Optional[str] = None
    value: Optional[AnswerValue] = None

    model_config = ConfigDict(extra="ignore")


class ResponseIn(CamelModel):
    """Response submission body"""
    questionnaire_id: Optional[str] = None
    answers: Optional[List[AnswerIn]] = None
    completion_time: Optional[float] = None

    model_config = ConfigDict(extra="ignore")


class AnswerOut(CamelModel):
    question_id: str
    value: AnswerValue


class ResponseOut(CamelModel):
    """Stored response"""
    id: str
    questionnaire_id: str
    answers: List[AnswerOut]
    completion_time: int
    question_snapshot: List[QuestionOut] = []
    created_at: datetime


class QuestionStats(CamelModel):
    """Answer frequencies for one question"""
    question_id: str
    question_text: str
    type: QuestionType
    answer_distribution: Dict[str, int]


class ResponseStats(CamelModel):
    """Aggregates over all responses of one questionnaire"""
    total_responses: int
    average_completion_time: Union[int, float]
    question_stats: List[QuestionStats]
