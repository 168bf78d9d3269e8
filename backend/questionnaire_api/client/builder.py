import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from questionnaire_api.client.api_client import APIClientError, QuestionnaireAPIClient

CHOICE_TYPES = ("single_choice", "multiple_choice")


def timestamp_ids() -> Callable[[], int]:
    """Millisecond timestamps, bumped so two questions added at once never share an id"""
    previous = [0]

    def next_id() -> int:
        candidate = int(time.time() * 1000)
        if candidate <= previous[0]:
            candidate = previous[0] + 1
        previous[0] = candidate
        return candidate

    return next_id


@dataclass
class DraftQuestion:
    """Question being edited; temp_id only correlates edits inside the builder"""
    temp_id: Any
    type: str = "text"
    text: str = ""
    options: Optional[List[str]] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.type, "text": self.text}
        if self.type in CHOICE_TYPES:
            payload["options"] = list(self.options or [])
        return payload


@dataclass
class QuestionnaireDraft:
    """
    Author screen state.

    Creates a questionnaire when questionnaire_id is unset, updates it otherwise.
    """
    title: str = ""
    description: str = ""
    questionnaire_id: Optional[str] = None
    questions: List[DraftQuestion] = field(default_factory=list)
    id_source: Callable[[], Any] = field(default_factory=timestamp_ids, repr=False)
    error: Optional[str] = None
    is_submitting: bool = False

    @classmethod
    def from_questionnaire(cls, data: Dict[str, Any]) -> "QuestionnaireDraft":
        """Draft for editing a stored questionnaire"""
        draft = cls(title=data["title"], description=data["description"], questionnaire_id=data["id"])
        for question in data["questions"]:
            draft.questions.append(DraftQuestion(
                temp_id=question["id"],
                type=question["type"],
                text=question["text"],
                options=list(question["options"]) if question.get("options") is not None else None,
            ))
        return draft

    @classmethod
    async def load(cls, client: QuestionnaireAPIClient, questionnaire_id: str) -> "QuestionnaireDraft":
        try:
            data = await client.get_questionnaire(questionnaire_id)
        except APIClientError as e:
            draft = cls(questionnaire_id=questionnaire_id)
            draft.error = e.message
            return draft
        return cls.from_questionnaire(data)

    def _find(self, temp_id: Any) -> DraftQuestion:
        for question in self.questions:
            if question.temp_id == temp_id:
                return question
        raise KeyError(temp_id)

    def add_question(self, question_type: str = "text") -> DraftQuestion:
        question = DraftQuestion(
            temp_id=self.id_source(),
            type=question_type,
            options=[""] if question_type in CHOICE_TYPES else None,
        )
        self.questions.append(question)
        return question

    def remove_question(self, temp_id: Any) -> None:
        self.questions = [q for q in self.questions if q.temp_id != temp_id]

    def update_question(self, temp_id: Any, **changes: Any) -> DraftQuestion:
        question = self._find(temp_id)
        for name, value in changes.items():
            if name not in ("type", "text", "options"):
                raise AttributeError(f"Unknown question field: {name}")
            setattr(question, name, value)
        if question.type in CHOICE_TYPES and question.options is None:
            question.options = [""]
        return question

    def add_option(self, temp_id: Any) -> None:
        question = self._find(temp_id)
        question.options = [*(question.options or []), ""]

    def update_option(self, temp_id: Any, index: int, value: str) -> None:
        question = self._find(temp_id)
        question.options[index] = value

    def remove_option(self, temp_id: Any, index: int) -> None:
        question = self._find(temp_id)
        del question.options[index]

    def validate(self) -> Optional[str]:
        """First problem that would stop a save, or None"""
        if not self.title.strip():
            return "Title is required"
        if not self.description.strip():
            return "Description is required"
        if not self.questions:
            return "At least one question is required"

        for question in self.questions:
            if not question.text.strip():
                return "All questions must have text"
            if question.type in CHOICE_TYPES:
                if not question.options:
                    return "Choice questions must have at least one option"
                if any(not option.strip() for option in question.options):
                    return "All options must have text"
        return None

    def to_payload(self) -> Dict[str, Any]:
        """Request body; builder ids are left out"""
        return {
            "title": self.title,
            "description": self.description,
            "questions": [q.to_payload() for q in self.questions],
        }

    async def save(self, client: QuestionnaireAPIClient) -> Optional[Dict[str, Any]]:
        """
        Create or update the questionnaire.

        Returns:
            The stored questionnaire, or None when validation or the request failed
        """
        self.error = self.validate()
        if self.error:
            return None

        self.is_submitting = True
        try:
            if self.questionnaire_id:
                saved = await client.update_questionnaire(self.questionnaire_id, self.to_payload())
            else:
                saved = await client.create_questionnaire(self.to_payload())
        except APIClientError as e:
            self.error = e.message
            return None
        finally:
            self.is_submitting = False

        self.questionnaire_id = saved["id"]
        return saved
