from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class TeamUpdate(TeamCreate):
    pass


class TeamOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    member_count: int = 0
    created_at: datetime


class TeamListResponse(BaseModel):
    total: int
    teams: List[TeamOut]


class TeamMemberCreate(BaseModel):
    user_id: UUID


class TeamMemberOut(BaseModel):
    id: UUID
    team_id: UUID
    user_id: UUID
    full_name: str
    email: Optional[str] = None
    role: Optional[str] = None
    created_at: datetime
