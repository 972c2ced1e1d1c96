# assignment_eval/models/rubric.py
from sqlalchemy import Boolean, Column, Integer, Float, String, Text, DateTime, ForeignKey, JSON

from assignment_eval.db.base_class import Base, utcnow


class Rubric(Base):
    __tablename__ = "rubrics"

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    teacher_name = Column(String(100), nullable=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # [{"id", "name", "description", "max_score", "weight"}, ...]
    criteria = Column(JSON, nullable=False, default=list)
    # always sum(max_score) over criteria
    max_total_score = Column(Float, nullable=False, default=0)

    is_public = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
