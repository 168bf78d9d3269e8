import time
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from questionnaire_api.client.api_client import APIClientError, QuestionnaireAPIClient


class RunnerState(str, Enum):
    """Runner wizard states"""
    LOADING = "loading"
    READY = "ready"
    SUBMITTING = "submitting"
    DONE = "done"
    ERROR = "error"


def is_unanswered(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


class QuestionnaireRunner:
    """
    Take-a-questionnaire wizard.

    Walks the questions one at a time, keeps answers locally and posts them
    with the elapsed time once the last question is passed. The clock starts
    when the runner is created.
    """

    def __init__(
            self,
            client: QuestionnaireAPIClient,
            questionnaire_id: str,
            clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.questionnaire_id = questionnaire_id
        self.clock = clock
        self.started_at = clock()

        self.state = RunnerState.LOADING
        self.questionnaire: Optional[Dict[str, Any]] = None
        self.index = 0
        self.answers: Dict[str, Any] = {}
        self.validation_message: Optional[str] = None
        self.error: Optional[str] = None
        self.response: Optional[Dict[str, Any]] = None

    @property
    def questions(self) -> List[Dict[str, Any]]:
        return self.questionnaire["questions"] if self.questionnaire else []

    @property
    def current_question(self) -> Optional[Dict[str, Any]]:
        if self.state != RunnerState.READY or not self.questions:
            return None
        return self.questions[self.index]

    @property
    def is_first(self) -> bool:
        return self.index == 0

    @property
    def is_last(self) -> bool:
        return self.index == len(self.questions) - 1

    def elapsed_seconds(self) -> int:
        return round(self.clock() - self.started_at)

    async def load(self) -> RunnerState:
        """Fetch the questionnaire and show its first question"""
        self.state = RunnerState.LOADING
        self.error = None
        try:
            self.questionnaire = await self.client.get_questionnaire(self.questionnaire_id)
        except APIClientError as e:
            self.error = e.message
            self.state = RunnerState.ERROR
            return self.state

        self.index = 0
        self.state = RunnerState.READY
        return self.state

    def answer(self, value: Any) -> None:
        """Record the answer to the current question"""
        question = self.current_question
        if question is None:
            raise RuntimeError(f"Cannot answer while {self.state.value}")
        self.answers[question["id"]] = value
        self.validation_message = None

    def toggle_option(self, option: str) -> None:
        """Select or clear one option of a multiple choice question"""
        question = self.current_question
        if question is None:
            raise RuntimeError(f"Cannot answer while {self.state.value}")
        selected = list(self.answers.get(question["id"]) or [])
        if option in selected:
            selected.remove(option)
        else:
            selected.append(option)
        self.answer(selected)

    def previous(self) -> None:
        """Go back one question; answers are kept and not re-checked"""
        if self.state == RunnerState.READY and not self.is_first:
            self.validation_message = None
            self.index -= 1

    async def next(self) -> RunnerState:
        """
        Advance past the current question, submitting after the last one.

        An unanswered question keeps the runner in place with a validation
        message naming it.
        """
        if self.state != RunnerState.READY:
            return self.state

        question = self.questions[self.index]
        if is_unanswered(self.answers.get(question["id"])):
            self._require(self.index)
            return self.state

        self.validation_message = None
        if not self.is_last:
            self.index += 1
            return self.state

        for position, pending in enumerate(self.questions):
            if is_unanswered(self.answers.get(pending["id"])):
                self._require(position)
                return self.state

        return await self._submit()

    def _require(self, position: int) -> None:
        question = self.questions[position]
        self.validation_message = f"Please answer question {position + 1}: {question['text']}"

    def format_answers(self) -> List[Dict[str, Any]]:
        """Answers in question order, shaped for the responses endpoint"""
        formatted = []
        for question in self.questions:
            value = self.answers[question["id"]]
            if question["type"] == "single_choice":
                formatted_value = value
            elif isinstance(value, (list, tuple)):
                formatted_value = list(value)
            else:
                formatted_value = [value]
            formatted.append({"questionId": question["id"], "value": formatted_value})
        return formatted

    async def _submit(self) -> RunnerState:
        self.state = RunnerState.SUBMITTING
        completion_time = self.elapsed_seconds()
        try:
            self.response = await self.client.submit_response(
                self.questionnaire_id, self.format_answers(), completion_time
            )
        except APIClientError as e:
            logger.warning(f"Submitting questionnaire {self.questionnaire_id} failed: {e.message}")
            self.error = e.message
            self.state = RunnerState.ERROR
            return self.state

        self.state = RunnerState.DONE
        return self.state
