from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi_pagination import Params
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from questionnaire_api.core.exceptions import ValidationError
from questionnaire_api.crud.crud_questionnaire import questionnaire_crud
from questionnaire_api.crud.crud_response import response_crud
from questionnaire_api.db.transaction import transaction
from questionnaire_api.models.models import CHOICE_TYPES, QuestionType, Questionnaire, generate_id
from questionnaire_api.schemas.questionnaire import QuestionIn, QuestionnaireIn, QuestionnairePage
from questionnaire_api.utils.pagination import total_pages

QUESTION_TYPES = [t.value for t in QuestionType]


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


class QuestionnaireService:
    """Service for validating, storing and listing questionnaires"""

    def validate(self, payload: QuestionnaireIn) -> None:
        """
        Check a create/update body, raising on the first problem found.

        Args:
            payload: Parsed request body

        Raises:
            ValidationError: If a field is missing or a question is malformed
        """
        if _is_blank(payload.title) or _is_blank(payload.description) or payload.questions is None:
            raise ValidationError("Title, description, and questions array are required")

        if not payload.questions:
            raise ValidationError("Questionnaire must contain at least one question")

        for position, question in enumerate(payload.questions, start=1):
            if not question.type or _is_blank(question.text):
                raise ValidationError(f"Question {position} must have a type and text")

            if question.type not in QUESTION_TYPES:
                raise ValidationError(
                    f"Invalid type for question {position}. Must be text, single_choice, or multiple_choice"
                )

            if question.type in CHOICE_TYPES and not question.options:
                raise ValidationError(f"Choice question {position} must have at least one option")

    def build_questions(self, questions: List[QuestionIn]) -> List[Dict[str, Any]]:
        """
        Turn validated builder questions into stored questions.

        Builder ids are discarded and every question gets a fresh id;
        text questions carry no options.
        """
        stored = []
        for question in questions:
            item = {"id": generate_id(), "type": question.type, "text": question.text}
            if question.type in CHOICE_TYPES:
                item["options"] = list(question.options)
            stored.append(item)
        return stored

    async def list_questionnaires(self, db: AsyncSession, params: Params) -> QuestionnairePage:
        """
        Get one catalog page ordered by number.

        Args:
            db: Database session
            params: Page and page size

        Returns:
            The page, with totals
        """
        raw = params.to_raw_params()
        items = await questionnaire_crud.get_multi_with_counts(db, skip=raw.offset, limit=raw.limit)
        total = await questionnaire_crud.count(db)

        return QuestionnairePage.model_validate({
            "questionnaires": items,
            "total": total,
            "page": params.page,
            "total_pages": total_pages(total, params.size),
        })

    async def get_questionnaire(self, db: AsyncSession, questionnaire_id: str) -> Questionnaire:
        return await questionnaire_crud.get_or_404(db, id=questionnaire_id)

    async def create_questionnaire(self, db: AsyncSession, payload: QuestionnaireIn) -> Questionnaire:
        """
        Validate and store a new questionnaire.

        Raises:
            ValidationError: If the body is invalid
        """
        try:
            self.validate(payload)
        except ValidationError as e:
            logger.warning(f"Rejected questionnaire: {e.detail}")
            raise

        async with transaction(db):
            number = await questionnaire_crud.next_number(db)
            questionnaire = await questionnaire_crud.create(
                db,
                obj_in={
                    "title": payload.title,
                    "description": payload.description,
                    "questions": self.build_questions(payload.questions),
                    "number": number,
                },
            )

        logger.info(f"Created questionnaire {questionnaire.id} (#{number}) with {len(questionnaire.questions)} questions")
        return questionnaire

    async def update_questionnaire(
            self, db: AsyncSession, questionnaire_id: str, payload: QuestionnaireIn
    ) -> Questionnaire:
        """
        Replace title, description and questions of a stored questionnaire.

        Raises:
            ResourceNotFoundError: If the questionnaire doesn't exist
            ValidationError: If the body is invalid
        """
        questionnaire = await questionnaire_crud.get_or_404(db, id=questionnaire_id)

        try:
            self.validate(payload)
        except ValidationError as e:
            logger.warning(f"Rejected update of questionnaire {questionnaire_id}: {e.detail}")
            raise

        async with transaction(db):
            questionnaire = await questionnaire_crud.update(
                db,
                db_obj=questionnaire,
                obj_in={
                    "title": payload.title,
                    "description": payload.description,
                    "questions": self.build_questions(payload.questions),
                    "updated_at": datetime.now(timezone.utc),
                },
            )

        logger.info(f"Updated questionnaire {questionnaire.id}")
        return questionnaire

    async def delete_questionnaire(self, db: AsyncSession, questionnaire_id: str) -> int:
        """
        Delete a questionnaire together with its responses.

        Responses go first, then the questionnaire, in one transaction.

        Returns:
            Number of responses removed
        """
        await questionnaire_crud.get_or_404(db, id=questionnaire_id)

        async with transaction(db):
            removed = await response_crud.remove_by_questionnaire(db, questionnaire_id)
            await questionnaire_crud.remove(db, id=questionnaire_id)

        logger.info(f"Deleted questionnaire {questionnaire_id} and {removed} responses")
        return removed


# Create singleton instance
questionnaire_service = QuestionnaireService()
