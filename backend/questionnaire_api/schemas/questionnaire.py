from typing import List, Optional, Union

from pydantic import ConfigDict, Field

from questionnaire_api.models.models import QuestionType
from questionnaire_api.schemas.base import CamelModel, IdentifiedBase


class QuestionIn(CamelModel):
    """
    Question as sent by the builder.

    Fields only constrain shape; presence, type membership and options
    are checked by the questionnaire service.
    """
    id: Optional[Union[int, str]] = Field(None, description="Builder-local temporary id, discarded on save")
    type: Optional[str] = None
    text: Optional[str] = None
    options: Optional[List[str]] = None

    model_config = ConfigDict(extra="ignore")


class QuestionnaireIn(CamelModel):
    """Questionnaire create/update body"""
    title: Optional[str] = None
    description: Optional[str] = None
    questions: Optional[List[QuestionIn]] = None

    model_config = ConfigDict(extra="ignore")


class QuestionOut(CamelModel):
    """Question embedded in a stored questionnaire"""
    id: str
    type: QuestionType
    text: str
    options: Optional[List[str]] = None


class QuestionnaireOut(IdentifiedBase):
    """Questionnaire output schema"""
    title: str
    description: str
    number: int
    questions: List[QuestionOut]


class QuestionnaireSummary(QuestionnaireOut):
    """Catalog entry with counts joined from responses"""
    question_count: int = Field(0, description="Number of questions")
    completion_count: int = Field(0, description="Number of stored responses")


class QuestionnairePage(CamelModel):
    """One catalog page"""
    questionnaires: List[QuestionnaireSummary]
    total: int
    page: int
    total_pages: int
