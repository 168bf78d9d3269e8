from typing import Any

from fastapi import APIRouter, Path, status

from questionnaire_api.api.deps import DbSession, PageParams
from questionnaire_api.schemas.base import MessageOut
from questionnaire_api.schemas.questionnaire import QuestionnaireIn, QuestionnaireOut, QuestionnairePage
from questionnaire_api.services.questionnaire_service import questionnaire_service

router = APIRouter()


@router.get("", response_model=QuestionnairePage, response_model_exclude_none=True)
async def read_questionnaires(db: DbSession, params: PageParams) -> Any:
    """
    Retrieve one catalog page, ordered by questionnaire number.
    """
    return await questionnaire_service.list_questionnaires(db, params)


@router.get("/{questionnaire_id}", response_model=QuestionnaireOut, response_model_exclude_none=True)
async def read_questionnaire(
        db: DbSession,
        questionnaire_id: str = Path(..., description="The ID of the questionnaire to retrieve"),
) -> Any:
    """
    Get questionnaire by ID.
    """
    return await questionnaire_service.get_questionnaire(db, questionnaire_id)


@router.post(
    "",
    response_model=QuestionnaireOut,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_questionnaire(questionnaire_in: QuestionnaireIn, db: DbSession) -> Any:
    """
    Create a new questionnaire.
    """
    return await questionnaire_service.create_questionnaire(db, questionnaire_in)


@router.put("/{questionnaire_id}", response_model=QuestionnaireOut, response_model_exclude_none=True)
async def update_questionnaire(
        questionnaire_in: QuestionnaireIn,
        db: DbSession,
        questionnaire_id: str = Path(..., description="The ID of the questionnaire to update"),
) -> Any:
    """
    Replace title, description and questions of a questionnaire.
    """
    return await questionnaire_service.update_questionnaire(db, questionnaire_id, questionnaire_in)


@router.delete("/{questionnaire_id}", response_model=MessageOut)
async def delete_questionnaire(
        db: DbSession,
        questionnaire_id: str = Path(..., description="The ID of the questionnaire to delete"),
) -> Any:
    """
    Delete questionnaire and every response to it.
    """
    await questionnaire_service.delete_questionnaire(db, questionnaire_id)
    return {"message": "Questionnaire and associated responses deleted successfully"}
