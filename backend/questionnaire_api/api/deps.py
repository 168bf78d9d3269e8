from typing import Annotated

from fastapi import Depends
from fastapi_pagination import Params
from sqlalchemy.ext.asyncio import AsyncSession

from questionnaire_api.db.session import get_db
from questionnaire_api.utils.pagination import get_pagination_params

# Session opened per request from the application's store handle
DbSession = Annotated[AsyncSession, Depends(get_db)]

# Catalog page parameters, lenient about malformed values
PageParams = Annotated[Params, Depends(get_pagination_params)]
