import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, JSON
from sqlalchemy.orm import relationship

from questionnaire_api.db.base_class import Base


def generate_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuestionType(str, Enum):
    """Question type enum"""
    TEXT = "text"
    SINGLE_CHOICE = "single_choice"
    MULTIPLE_CHOICE = "multiple_choice"


CHOICE_TYPES = (QuestionType.SINGLE_CHOICE.value, QuestionType.MULTIPLE_CHOICE.value)


class Questionnaire(Base):
    """Questionnaire document; questions are embedded as an ordered JSON list"""
    __tablename__ = "questionnaires"

    id = Column(String(36), primary_key=True, default=generate_id)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    number = Column(Integer, nullable=False, index=True)
    questions = Column(JSON, nullable=False, default=list)  # [{id, type, text, options?}]

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    responses = relationship("Response", back_populates="questionnaire", passive_deletes=True)


class Response(Base):
    """Completed run of a questionnaire, immutable once stored"""
    __tablename__ = "responses"

    id = Column(String(36), primary_key=True, default=generate_id)
    questionnaire_id = Column(
        String(36), ForeignKey("questionnaires.id", ondelete="CASCADE"), nullable=False, index=True
    )
    answers = Column(JSON, nullable=False)  # [{questionId, value}]
    question_snapshot = Column(JSON, nullable=False, default=list)  # questions as answered
    completion_time = Column(Integer, nullable=False)  # seconds

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    questionnaire = relationship("Questionnaire", back_populates="responses")
