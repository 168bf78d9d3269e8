from typing import Any, List

from fastapi import APIRouter, Path, status

from questionnaire_api.api.deps import DbSession
from questionnaire_api.schemas.response import ResponseIn, ResponseOut, ResponseStats
from questionnaire_api.services.response_service import response_service

router = APIRouter()


@router.post(
    "",
    response_model=ResponseOut,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def submit_response(response_in: ResponseIn, db: DbSession) -> Any:
    """
    Record a completed questionnaire run.
    """
    return await response_service.submit_response(db, response_in)


@router.get(
    "/questionnaire/{questionnaire_id}",
    response_model=List[ResponseOut],
    response_model_exclude_none=True,
)
async def read_responses(
        db: DbSession,
        questionnaire_id: str = Path(..., description="The questionnaire whose responses to list"),
) -> Any:
    """
    List responses to a questionnaire, newest first.
    """
    return await response_service.list_responses(db, questionnaire_id)


@router.get("/stats/{questionnaire_id}", response_model=ResponseStats)
async def read_stats(
        db: DbSession,
        questionnaire_id: str = Path(..., description="The questionnaire to aggregate"),
) -> Any:
    """
    Response count, average completion time and per-question answer distributions.
    """
    return await response_service.get_stats(db, questionnaire_id)
