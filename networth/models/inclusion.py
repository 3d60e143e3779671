from pydantic import BaseModel, Field
from typing import List
from datetime import datetime

from networth.db.core import WorthEntityType


# ===== NET WORTH INCLUSION MODELS =====

class InclusionSet(BaseModel):
    include_in_net_worth: bool


class InclusionUpdate(BaseModel):
    entity_type: WorthEntityType
    entity_id: int = Field(..., ge=1)
    include_in_net_worth: bool


class InclusionBulkUpdate(BaseModel):
    updates: List[InclusionUpdate] = Field(..., min_length=1)


class InclusionResponse(BaseModel):
    id: int
    user_id: int
    entity_type: WorthEntityType
    entity_id: int
    include_in_net_worth: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class InclusionStatusResponse(BaseModel):
    """Effective inclusion of one entity; `exists` is False when the default applies"""
    entity_type: WorthEntityType
    entity_id: int
    include_in_net_worth: bool
    exists: bool


class InclusionResetResponse(BaseModel):
    deleted_count: int
