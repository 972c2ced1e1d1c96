# assignment_eval/schemas/ai.py
from datetime import datetime

from pydantic import BaseModel

from assignment_eval.models.enums import EvaluationStatus


class AIEvaluationStarted(BaseModel):
    evaluation_id: int


class AIEvaluationStatus(BaseModel):
    status: EvaluationStatus
    completed_at: datetime | None = None
    has_results: bool


class QuickFeedbackRequest(BaseModel):
    text: str


class QuickFeedback(BaseModel):
    grammar_feedback: str
    clarity_feedback: str
    suggestions: list[str]
