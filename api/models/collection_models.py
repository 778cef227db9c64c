# File: api/models/collection_models.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class CreateCollectionRequest(BaseModel):
    name: str = Field(min_length=1)
    parent_id: Optional[str] = None


class UpdateCollectionRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    parent_id: Optional[str] = None


class CollectionResponse(BaseModel):
    id: str
    user_id: str
    name: str
    parent_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
