from typing import Any, Dict, List, Sequence

from loguru import logger
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from questionnaire_api.core.exceptions import DatabaseError
from questionnaire_api.crud.base import CRUDBase
from questionnaire_api.models.models import Questionnaire, Response


class CRUDQuestionnaire(CRUDBase[Questionnaire]):
    """CRUD operations for Questionnaire model"""

    def default_order(self) -> Sequence[Any]:
        # Catalog order; created_at and id keep pages stable when numbers collide
        return [Questionnaire.number.asc(), Questionnaire.created_at.asc(), Questionnaire.id.asc()]

    async def next_number(self, db: AsyncSession) -> int:
        """Catalog number for a questionnaire created now"""
        try:
            result = await db.execute(select(func.max(Questionnaire.number)))
            current = result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Error reading highest questionnaire number: {e}")
            raise DatabaseError("Error retrieving Questionnaire")
        return (current or 0) + 1

    async def get_multi_with_counts(
            self,
            db: AsyncSession,
            *,
            skip: int = 0,
            limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """Get a page of questionnaires with question and completion counts"""
        questionnaires = await self.get_multi(db, skip=skip, limit=limit)

        if not questionnaires:
            return []

        # One grouped count for the whole page
        ids = [q.id for q in questionnaires]
        try:
            result = await db.execute(
                select(Response.questionnaire_id, func.count())
                .where(Response.questionnaire_id.in_(ids))
                .group_by(Response.questionnaire_id)
            )
            counts = dict(result.all())
        except Exception as e:
            logger.error(f"Error counting responses for questionnaire page: {e}")
            raise DatabaseError("Error counting Response records")

        result_list = []
        for q in questionnaires:
            q_dict = {
                **q.__dict__,
                "question_count": len(q.questions or []),
                "completion_count": counts.get(q.id, 0),
            }

            # Remove SQLAlchemy state attributes
            q_dict.pop('_sa_instance_state', None)

            result_list.append(q_dict)

        return result_list


questionnaire_crud = CRUDQuestionnaire(Questionnaire)
