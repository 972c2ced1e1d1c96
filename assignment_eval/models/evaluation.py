# assignment_eval/models/evaluation.py
from sqlalchemy import Column, Integer, Float, String, Text, DateTime, ForeignKey, JSON

from assignment_eval.db.base_class import Base, utcnow


class Evaluation(Base):
    __tablename__ = "evaluations"

    id = Column(Integer, primary_key=True, index=True)

    # weak references, looked up by id
    submission_id = Column(Integer, nullable=False, index=True)
    submission_version = Column(Integer, nullable=False)
    rubric_id = Column(Integer, nullable=True)

    # NULL for the AI evaluator
    evaluator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    evaluator_type = Column(String(20), nullable=False, index=True)  # teacher / ai

    # pending / in_progress / completed
    status = Column(String(20), nullable=False, default="pending", index=True)

    # [{"criterion_id", "criterion_name", "score", "max_score", "feedback"}, ...]
    criteria_scores = Column(JSON, nullable=True)
    total_score = Column(Float, nullable=True)
    max_possible_score = Column(Float, nullable=True)
    percentage_score = Column(Float, nullable=True)

    grammar_feedback = Column(Text, nullable=True)
    clarity_feedback = Column(Text, nullable=True)
    structure_feedback = Column(Text, nullable=True)
    content_feedback = Column(Text, nullable=True)
    overall_feedback = Column(Text, nullable=True)
    suggestions = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)
