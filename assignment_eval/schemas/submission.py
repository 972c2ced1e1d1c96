# assignment_eval/schemas/submission.py
from datetime import datetime

from pydantic import BaseModel, Field

from assignment_eval.models.enums import SubmissionStatus


class SubmissionBase(BaseModel):
    title: str
    description: str | None = None
    content: str
    rubric_id: int | None = None


class SubmissionCreate(SubmissionBase):
    file_url: str | None = None
    file_name: str | None = None
    file_type: str | None = None


class SubmissionUpdate(BaseModel):
    """Partial update; only fields that are set are applied."""
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    content: str | None = Field(default=None, min_length=1)
    rubric_id: int | None = None
    status: SubmissionStatus | None = None
    file_url: str | None = None
    file_name: str | None = None
    file_type: str | None = None


class SubmissionPublic(SubmissionBase):
    id: int
    student_id: int
    student_name: str | None = None
    file_url: str | None = None
    file_name: str | None = None
    file_type: str | None = None
    status: SubmissionStatus
    current_version: int

    created_at: datetime
    updated_at: datetime
    submitted_at: datetime | None = None

    model_config = {"from_attributes": True}


class SubmissionVersionPublic(BaseModel):
    id: int
    submission_id: int
    version: int
    content: str
    file_url: str | None = None
    file_name: str | None = None
    created_at: datetime
    created_by: int

    model_config = {"from_attributes": True}
