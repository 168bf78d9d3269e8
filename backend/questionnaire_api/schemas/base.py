from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema exchanging camelCase keys on the wire"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class TimestampedBase(CamelModel):
    """Base schema for models with timestamps"""
    created_at: datetime
    updated_at: Optional[datetime] = None


class IdentifiedBase(TimestampedBase):
    """Base schema for models with ID and timestamps"""
    id: str


class MessageOut(BaseModel):
    """Plain confirmation or error message"""
    message: str
