# assignment_eval/services/submission_service.py
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from assignment_eval.core.errors import (
    InvalidStateTransition,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from assignment_eval.core.security import ActorContext
from assignment_eval.db.base_class import utcnow
from assignment_eval.models.enums import EDITABLE_SUBMISSION_STATUSES, SubmissionStatus
from assignment_eval.models.rubric import Rubric
from assignment_eval.models.submission import Submission, SubmissionVersion
from assignment_eval.schemas.common import Page
from assignment_eval.schemas.submission import SubmissionCreate, SubmissionUpdate

logger = logging.getLogger(__name__)

# statuses a student may move their own submission into via a generic update
_STUDENT_SETTABLE_STATUSES = (SubmissionStatus.DRAFT, SubmissionStatus.SUBMITTED)

_NON_NULLABLE_FIELDS = ("title", "content", "status")


def is_editable(submission: Submission) -> bool:
    return submission.status in {s.value for s in EDITABLE_SUBMISSION_STATUSES}


def _get_or_404(db: Session, submission_id: int) -> Submission:
    submission: Optional[Submission] = db.get(Submission, submission_id)
    if submission is None:
        raise NotFound("Submission not found")
    return submission


def _check_read_access(actor: ActorContext, submission: Submission) -> None:
    if actor.is_student and submission.student_id != actor.id:
        raise PermissionDenied("Access denied")


def _check_rubric_exists(db: Session, rubric_id: int | None) -> None:
    if rubric_id is not None and db.get(Rubric, rubric_id) is None:
        raise NotFound("Rubric not found")


def create_submission(
    db: Session,
    *,
    actor: ActorContext,
    obj_in: SubmissionCreate,
) -> Submission:
    """
    Student creates a draft.
    The submission and its version 1 are committed together.
    """
    if not actor.is_student:
        raise PermissionDenied("Only students can create submissions")
    if not obj_in.title.strip() or not obj_in.content.strip():
        raise ValidationError("Title and content are required")
    _check_rubric_exists(db, obj_in.rubric_id)

    submission = Submission(
        student_id=actor.id,
        student_name=actor.name or "Unknown Student",
        title=obj_in.title,
        description=obj_in.description or "",
        content=obj_in.content,
        file_url=obj_in.file_url,
        file_name=obj_in.file_name,
        file_type=obj_in.file_type,
        rubric_id=obj_in.rubric_id,
        status=SubmissionStatus.DRAFT.value,
        current_version=1,
    )
    submission.versions.append(
        SubmissionVersion(
            version=1,
            content=obj_in.content,
            file_url=obj_in.file_url,
            file_name=obj_in.file_name,
            created_by=actor.id,
        )
    )

    db.add(submission)
    db.commit()
    db.refresh(submission)

    logger.info(f"Created submission {submission.id} for student {actor.id}")
    return submission


def get_submission(db: Session, *, actor: ActorContext, submission_id: int) -> Submission:
    submission = _get_or_404(db, submission_id)
    _check_read_access(actor, submission)
    return submission


def list_submissions(
    db: Session,
    *,
    actor: ActorContext,
    status: SubmissionStatus | None = None,
    student_id: int | None = None,
    page: int = 1,
    limit: int = 10,
) -> Page[Submission]:
    """
    Students only ever see their own submissions; staff see everything,
    optionally narrowed to one student.
    """
    query = db.query(Submission)
    if actor.is_student:
        query = query.filter(Submission.student_id == actor.id)
    elif student_id is not None:
        query = query.filter(Submission.student_id == student_id)
    if status is not None:
        query = query.filter(Submission.status == status.value)

    total = query.count()
    items = (
        query.order_by(Submission.created_at.desc(), Submission.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return Page(items, page=page, limit=limit, total=total)


def update_submission(
    db: Session,
    *,
    actor: ActorContext,
    submission_id: int,
    obj_in: SubmissionUpdate,
) -> Submission:
    submission = _get_or_404(db, submission_id)

    # explicit nulls clear description, rubric and file reference; title,
    # content and status cannot be cleared
    update_data = obj_in.model_dump(exclude_unset=True)
    for field in _NON_NULLABLE_FIELDS:
        if update_data.get(field, "") is None:
            del update_data[field]
    new_status: SubmissionStatus | None = update_data.pop("status", None)
    new_content: str | None = update_data.pop("content", None)

    if actor.is_student:
        if submission.student_id != actor.id:
            raise PermissionDenied("Access denied")
        if not is_editable(submission):
            raise InvalidStateTransition("Cannot edit a submitted assignment")
        if new_status is not None and new_status not in _STUDENT_SETTABLE_STATUSES:
            raise InvalidStateTransition(
                f"Students cannot move a submission to '{new_status.value}'"
            )
    if update_data.get("rubric_id") is not None:
        _check_rubric_exists(db, update_data["rubric_id"])

    now = utcnow()

    # version first, then the remaining fields
    if new_content is not None and new_content != submission.content:
        next_version = submission.current_version + 1
        submission.versions.append(
            SubmissionVersion(
                version=next_version,
                content=new_content,
                file_url=update_data.get("file_url", submission.file_url),
                file_name=update_data.get("file_name", submission.file_name),
                created_by=actor.id,
            )
        )
        submission.current_version = next_version
        submission.content = new_content
        logger.info(f"Submission {submission.id} advanced to version {next_version}")

    for field, value in update_data.items():
        setattr(submission, field, value)

    if new_status is not None:
        if (
            new_status == SubmissionStatus.SUBMITTED
            and submission.status != SubmissionStatus.SUBMITTED.value
        ):
            submission.submitted_at = now
        submission.status = new_status.value

    submission.updated_at = now
    db.add(submission)
    db.commit()
    db.refresh(submission)
    return submission


def submit_submission(db: Session, *, actor: ActorContext, submission_id: int) -> Submission:
    submission = _get_or_404(db, submission_id)

    if submission.student_id != actor.id:
        raise PermissionDenied("Access denied")
    if not is_editable(submission):
        raise InvalidStateTransition("Submission is already submitted")

    now = utcnow()
    submission.status = SubmissionStatus.SUBMITTED.value
    submission.submitted_at = now
    submission.updated_at = now
    db.add(submission)
    db.commit()
    db.refresh(submission)

    logger.info(f"Submission {submission.id} submitted by student {actor.id}")
    return submission


def delete_submission(db: Session, *, actor: ActorContext, submission_id: int) -> None:
    """
    Students may delete their own drafts; staff may delete anything.
    Versions go with the submission in the same commit.
    """
    submission = _get_or_404(db, submission_id)

    if actor.is_student:
        if submission.student_id != actor.id:
            raise PermissionDenied("Access denied")
        if submission.status != SubmissionStatus.DRAFT.value:
            raise InvalidStateTransition("Cannot delete a submitted assignment")

    db.delete(submission)
    db.commit()
    logger.info(f"Deleted submission {submission_id} (actor {actor.id})")


def list_versions(
    db: Session,
    *,
    actor: ActorContext,
    submission_id: int,
) -> List[SubmissionVersion]:
    submission = _get_or_404(db, submission_id)
    _check_read_access(actor, submission)
    return (
        db.query(SubmissionVersion)
        .filter(SubmissionVersion.submission_id == submission.id)
        .order_by(SubmissionVersion.version.desc())
        .all()
    )


def set_status(db: Session, submission: Submission, status: SubmissionStatus) -> None:
    """Status change driven by the evaluation pipeline; caller commits."""
    submission.status = status.value
    submission.updated_at = utcnow()
    db.add(submission)
