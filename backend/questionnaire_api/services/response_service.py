import math
from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from questionnaire_api.core.exceptions import ValidationError
from questionnaire_api.crud.crud_questionnaire import questionnaire_crud
from questionnaire_api.crud.crud_response import response_crud
from questionnaire_api.db.transaction import transaction
from questionnaire_api.models.models import QuestionType, Response
from questionnaire_api.schemas.response import AnswerIn, ResponseIn, ResponseStats

# Largest value the completion_time column holds
MAX_COMPLETION_TIME = 2 ** 31 - 1


class ResponseService:
    """Service for recording completed runs and aggregating them"""

    def check_answer(self, position: int, question: Dict[str, Any], value: Any) -> Any:
        """
        Check one answer value against its question and return the value to store.

        Args:
            position: 1-based position of the answer
            question: Stored question the answer belongs to
            value: Submitted value

        Raises:
            ValidationError: If the value doesn't fit the question type
        """
        options = question.get("options") or []

        if question["type"] == QuestionType.TEXT.value:
            # A bare string is accepted as a one-item text answer
            values = [value] if isinstance(value, str) else value
            if not values or not isinstance(values[0], str) or not values[0].strip():
                raise ValidationError(f"Text answer required for question {position}")
            return values

        if question["type"] == QuestionType.SINGLE_CHOICE.value:
            if not isinstance(value, str) or value not in options:
                raise ValidationError(f"Invalid option for question {position}")
            return value

        if not isinstance(value, list) or len(value) == 0:
            raise ValidationError(f"At least one option required for question {position}")
        for option in value:
            if option not in options:
                raise ValidationError(f"Invalid option for question {position}")
        return value

    def check_answers(self, questions: List[Dict[str, Any]], answers: List[AnswerIn]) -> List[Dict[str, Any]]:
        """
        Check submitted answers against the questionnaire's current question list.

        Answers must line up with the questions one to one, in order.

        Returns:
            Answers as stored documents
        """
        if len(answers) != len(questions):
            raise ValidationError(f"Expected {len(questions)} answers, got {len(answers)}")

        stored = []
        for position, (answer, question) in enumerate(zip(answers, questions), start=1):
            if not answer.question_id or answer.question_id != question["id"]:
                raise ValidationError(f"Invalid question ID for answer {position}")

            value = self.check_answer(position, question, answer.value)
            stored.append({"questionId": question["id"], "value": value})

        return stored

    async def submit_response(self, db: AsyncSession, payload: ResponseIn) -> Response:
        """
        Validate and store a completed run.

        Raises:
            ValidationError: If the body is incomplete or an answer is invalid
            ResourceNotFoundError: If the questionnaire doesn't exist
        """
        if not payload.questionnaire_id or payload.answers is None or payload.completion_time is None:
            raise ValidationError("Questionnaire ID, answers array, and completion time are required")

        if not math.isfinite(payload.completion_time) or payload.completion_time > MAX_COMPLETION_TIME:
            raise ValidationError("Completion time is out of range")

        if payload.completion_time < 0:
            raise ValidationError("Completion time must be a non-negative number of seconds")

        questionnaire = await questionnaire_crud.get_or_404(db, id=payload.questionnaire_id)
        questions = list(questionnaire.questions or [])

        try:
            answers = self.check_answers(questions, payload.answers)
        except ValidationError as e:
            logger.warning(f"Rejected response to questionnaire {questionnaire.id}: {e.detail}")
            raise

        async with transaction(db):
            response = await response_crud.create(
                db,
                obj_in={
                    "questionnaire_id": questionnaire.id,
                    "answers": answers,
                    "question_snapshot": questions,
                    "completion_time": int(round(payload.completion_time)),
                },
            )

        logger.info(f"Stored response {response.id} for questionnaire {questionnaire.id}")
        return response

    async def list_responses(self, db: AsyncSession, questionnaire_id: str) -> List[Response]:
        """All responses to a questionnaire, newest first"""
        return await response_crud.get_by_questionnaire(db, questionnaire_id)

    async def get_stats(self, db: AsyncSession, questionnaire_id: str) -> ResponseStats:
        """
        Aggregate the responses of one questionnaire.

        Answers are looked up by question id, so responses that predate a
        question are left out of that question's distribution.

        Raises:
            ResourceNotFoundError: If the questionnaire doesn't exist
        """
        questionnaire = await questionnaire_crud.get_or_404(db, id=questionnaire_id)
        responses = await response_crud.get_by_questionnaire(db, questionnaire_id)

        total = len(responses)
        average = sum(r.completion_time for r in responses) / total if total else 0
        if float(average).is_integer():
            average = int(average)

        question_stats = []
        for question in questionnaire.questions or []:
            distribution: Dict[str, int] = {}
            for response in responses:
                value = self._find_value(response, question["id"])
                if value is None or value == "":
                    continue
                for key in self._bucket_keys(question["type"], value):
                    distribution[key] = distribution.get(key, 0) + 1

            question_stats.append({
                "question_id": question["id"],
                "question_text": question["text"],
                "type": question["type"],
                "answer_distribution": distribution,
            })

        return ResponseStats.model_validate({
            "total_responses": total,
            "average_completion_time": average,
            "question_stats": question_stats,
        })

    @staticmethod
    def _find_value(response: Response, question_id: str) -> Optional[Any]:
        for answer in response.answers or []:
            if answer.get("questionId") == question_id:
                return answer.get("value")
        return None

    @staticmethod
    def _bucket_keys(question_type: str, value: Any) -> List[str]:
        if question_type == QuestionType.MULTIPLE_CHOICE.value:
            return [str(v) for v in value] if isinstance(value, list) else [str(value)]
        if isinstance(value, list):
            return [",".join(str(v) for v in value)]
        return [str(value)]


# Create singleton instance
response_service = ResponseService()
