from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PatientCreate(BaseModel):
    owner_id: UUID
    name: str = Field(min_length=1, max_length=255)
    species: str | None = Field(default=None, max_length=100)


class PatientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: UUID
    name: str
    species: str | None = None
    created_at: datetime
