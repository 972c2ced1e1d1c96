# assignment_eval/models/submission.py
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from assignment_eval.db.base_class import Base, utcnow


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)

    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    student_name = Column(String(100), nullable=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    content = Column(Text, nullable=False)

    # reference returned by the file store, never the bytes
    file_url = Column(String(500), nullable=True)
    file_name = Column(String(255), nullable=True)
    file_type = Column(String(100), nullable=True)

    # draft / submitted / under_review / evaluated / returned
    status = Column(String(20), nullable=False, default="draft", index=True)
    current_version = Column(Integer, nullable=False, default=1)

    # weak reference: no FK, rubric deletion is refused while referenced
    rubric_id = Column(Integer, nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    submitted_at = Column(DateTime(timezone=True), nullable=True)

    versions = relationship(
        "SubmissionVersion",
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="SubmissionVersion.version.desc()",
    )


class SubmissionVersion(Base):
    __tablename__ = "submission_versions"
    __table_args__ = (
        UniqueConstraint("submission_id", "version", name="uq_submission_version"),
    )

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(
        Integer,
        ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)
    file_url = Column(String(500), nullable=True)
    file_name = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)

    submission = relationship("Submission", back_populates="versions")
