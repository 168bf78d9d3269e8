from typing import Any, List, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from questionnaire_api.crud.base import CRUDBase
from questionnaire_api.models.models import Response


class CRUDResponse(CRUDBase[Response]):
    """CRUD operations for Response model"""

    def default_order(self) -> Sequence[Any]:
        # Newest first
        return [Response.created_at.desc(), Response.id.desc()]

    async def get_by_questionnaire(self, db: AsyncSession, questionnaire_id: str) -> List[Response]:
        return await self.get_by_condition(db, condition=Response.questionnaire_id == questionnaire_id)

    async def count_by_questionnaire(self, db: AsyncSession, questionnaire_id: str) -> int:
        return await self.count(db, condition=Response.questionnaire_id == questionnaire_id)

    async def remove_by_questionnaire(self, db: AsyncSession, questionnaire_id: str) -> int:
        return await self.remove_by_condition(db, condition=Response.questionnaire_id == questionnaire_id)


response_crud = CRUDResponse(Response)
