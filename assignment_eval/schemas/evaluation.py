# assignment_eval/schemas/evaluation.py
from datetime import datetime

from pydantic import BaseModel

from assignment_eval.models.enums import EvaluationStatus, EvaluatorType


class CriterionScore(BaseModel):
    criterion_id: str
    criterion_name: str
    score: float
    max_score: float
    feedback: str = ""


class EvaluationCreate(BaseModel):
    submission_id: int
    rubric_id: int | None = None
    evaluator_type: EvaluatorType = EvaluatorType.TEACHER


class EvaluationUpdate(BaseModel):
    status: EvaluationStatus | None = None
    criteria_scores: list[CriterionScore] | None = None
    total_score: float | None = None
    grammar_feedback: str | None = None
    clarity_feedback: str | None = None
    structure_feedback: str | None = None
    content_feedback: str | None = None
    overall_feedback: str | None = None
    suggestions: list[str] | None = None


class EvaluationComplete(BaseModel):
    overall_feedback: str | None = None


class EvaluationPublic(BaseModel):
    id: int
    submission_id: int
    submission_version: int
    rubric_id: int | None = None
    evaluator_id: int | None = None
    evaluator_type: EvaluatorType
    status: EvaluationStatus

    criteria_scores: list[CriterionScore] | None = None
    total_score: float | None = None
    max_possible_score: float | None = None
    percentage_score: float | None = None

    grammar_feedback: str | None = None
    clarity_feedback: str | None = None
    structure_feedback: str | None = None
    content_feedback: str | None = None
    overall_feedback: str | None = None
    suggestions: list[str] | None = None

    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None

    model_config = {"from_attributes": True}
