# assignment_eval/schemas/rubric.py
from datetime import datetime

from pydantic import BaseModel, Field


class CriterionIn(BaseModel):
    id: str | None = None
    name: str = Field(min_length=1)
    description: str = ""
    max_score: float = Field(ge=0)
    weight: float = Field(ge=0)  # percentage, all criteria sum to 100


class Criterion(CriterionIn):
    id: str


class RubricCreate(BaseModel):
    title: str
    description: str | None = None
    criteria: list[CriterionIn]
    is_public: bool = False


class RubricUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    criteria: list[CriterionIn] | None = None
    is_public: bool | None = None


class RubricPublic(BaseModel):
    id: int
    teacher_id: int
    teacher_name: str | None = None
    title: str
    description: str | None = None
    criteria: list[Criterion]
    max_total_score: float
    is_public: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
