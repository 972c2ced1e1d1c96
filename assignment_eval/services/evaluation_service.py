# assignment_eval/services/evaluation_service.py
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from assignment_eval.core.errors import (
    ConflictError,
    InvalidStateTransition,
    NotFound,
    PermissionDenied,
)
from assignment_eval.core.security import ActorContext
from assignment_eval.db.base_class import utcnow
from assignment_eval.models.enums import (
    ACTIVE_EVALUATION_STATUSES,
    EvaluationStatus,
    EvaluatorType,
    SubmissionStatus,
)
from assignment_eval.models.evaluation import Evaluation
from assignment_eval.models.rubric import Rubric
from assignment_eval.models.submission import Submission
from assignment_eval.schemas.common import Page
from assignment_eval.schemas.evaluation import EvaluationCreate, EvaluationUpdate
from assignment_eval.services import submission_service

logger = logging.getLogger(__name__)

_STATUS_ORDER = [
    EvaluationStatus.PENDING.value,
    EvaluationStatus.IN_PROGRESS.value,
    EvaluationStatus.COMPLETED.value,
]


def percentage(total_score: float, max_possible_score: float | None) -> float | None:
    if not max_possible_score:
        return None
    return (total_score / max_possible_score) * 100


def _get_or_404(db: Session, evaluation_id: int) -> Evaluation:
    evaluation: Optional[Evaluation] = db.get(Evaluation, evaluation_id)
    if evaluation is None:
        raise NotFound("Evaluation not found")
    return evaluation


def _get_submission_or_404(db: Session, submission_id: int) -> Submission:
    submission: Optional[Submission] = db.get(Submission, submission_id)
    if submission is None:
        raise NotFound("Submission not found")
    return submission


def check_read_access(db: Session, actor: ActorContext, evaluation: Evaluation) -> None:
    """Students may only read evaluations of submissions they own."""
    if not actor.is_student:
        return
    submission = _get_submission_or_404(db, evaluation.submission_id)
    if submission.student_id != actor.id:
        raise PermissionDenied("Access denied")


def ensure_evaluable(submission: Submission) -> None:
    if submission.status == SubmissionStatus.DRAFT.value:
        raise InvalidStateTransition("Cannot evaluate a draft submission")


def find_active_evaluation(
    db: Session,
    *,
    submission_id: int,
    evaluator_type: EvaluatorType,
) -> Evaluation | None:
    return (
        db.query(Evaluation)
        .filter(
            Evaluation.submission_id == submission_id,
            Evaluation.evaluator_type == evaluator_type.value,
            Evaluation.status.in_([s.value for s in ACTIVE_EVALUATION_STATUSES]),
        )
        .first()
    )


def ensure_single_flight(db: Session, *, submission_id: int, evaluator_type: EvaluatorType) -> None:
    """
    At most one pending/in_progress evaluation per (submission, evaluator type).

    This is a check-then-insert: two requests racing between the check and the
    commit can both pass.
    """
    existing = find_active_evaluation(
        db, submission_id=submission_id, evaluator_type=evaluator_type
    )
    if existing is not None:
        raise ConflictError("An evaluation is already in progress for this submission")


def begin_review(db: Session, submission: Submission) -> None:
    if submission.status == SubmissionStatus.SUBMITTED.value:
        submission_service.set_status(db, submission, SubmissionStatus.UNDER_REVIEW)


def start_evaluation(
    db: Session,
    *,
    actor: ActorContext,
    obj_in: EvaluationCreate,
) -> Evaluation:
    """
    Teacher starts a review pass.

    - freezes submission_version at the submission's current version
    - status 'pending'
    - submission: 'submitted' -> 'under_review'
    """
    if not actor.is_staff:
        raise PermissionDenied("Only teachers can start evaluations")

    submission = _get_submission_or_404(db, obj_in.submission_id)
    ensure_evaluable(submission)
    ensure_single_flight(
        db, submission_id=submission.id, evaluator_type=obj_in.evaluator_type
    )

    rubric: Rubric | None = None
    if obj_in.rubric_id is not None:
        rubric = db.get(Rubric, obj_in.rubric_id)
        if rubric is None:
            raise NotFound("Rubric not found")
    elif submission.rubric_id is not None:
        rubric = db.get(Rubric, submission.rubric_id)

    evaluation = Evaluation(
        submission_id=submission.id,
        submission_version=submission.current_version,
        rubric_id=obj_in.rubric_id or submission.rubric_id,
        evaluator_id=actor.id if obj_in.evaluator_type == EvaluatorType.TEACHER else None,
        evaluator_type=obj_in.evaluator_type.value,
        status=EvaluationStatus.PENDING.value,
        max_possible_score=rubric.max_total_score if rubric is not None else None,
    )
    db.add(evaluation)
    begin_review(db, submission)
    db.commit()
    db.refresh(evaluation)

    logger.info(
        f"Started {evaluation.evaluator_type} evaluation {evaluation.id} "
        f"for submission {submission.id} v{evaluation.submission_version}"
    )
    return evaluation


def _check_mutable(actor: ActorContext, evaluation: Evaluation) -> None:
    # completed is terminal for everybody, admins included
    if evaluation.status == EvaluationStatus.COMPLETED.value:
        raise InvalidStateTransition("Cannot update a completed evaluation")
    if evaluation.evaluator_id != actor.id and not actor.is_admin:
        raise PermissionDenied("Access denied")


def mark_completed(
    db: Session,
    evaluation: Evaluation,
    *,
    overall_feedback: str | None = None,
    submission_status: SubmissionStatus = SubmissionStatus.EVALUATED,
) -> None:
    """
    Single completion routine shared by update, complete and the AI worker.
    Keeps any earlier overall feedback when none is given now. Caller commits.
    """
    now = utcnow()
    evaluation.status = EvaluationStatus.COMPLETED.value
    evaluation.overall_feedback = overall_feedback or evaluation.overall_feedback
    evaluation.completed_at = now
    evaluation.updated_at = now
    db.add(evaluation)

    submission = db.get(Submission, evaluation.submission_id)
    if submission is not None:
        submission_service.set_status(db, submission, submission_status)
    else:
        logger.warning(
            f"Evaluation {evaluation.id} completed but submission "
            f"{evaluation.submission_id} no longer exists"
        )


def update_evaluation(
    db: Session,
    *,
    actor: ActorContext,
    evaluation_id: int,
    obj_in: EvaluationUpdate,
) -> Evaluation:
    evaluation = _get_or_404(db, evaluation_id)
    _check_mutable(actor, evaluation)

    update_data = obj_in.model_dump(exclude_unset=True, exclude_none=True, mode="json")
    new_status = update_data.pop("status", None)
    overall_feedback = update_data.pop("overall_feedback", None)

    # pending -> in_progress -> completed, never backwards
    if new_status is not None and (
        _STATUS_ORDER.index(new_status) < _STATUS_ORDER.index(evaluation.status)
    ):
        raise InvalidStateTransition(
            f"Cannot move an evaluation from '{evaluation.status}' back to '{new_status}'"
        )

    for field, value in update_data.items():
        setattr(evaluation, field, value)

    if "total_score" in update_data:
        pct = percentage(update_data["total_score"], evaluation.max_possible_score)
        if pct is not None:
            evaluation.percentage_score = pct

    if new_status == EvaluationStatus.COMPLETED.value:
        mark_completed(db, evaluation, overall_feedback=overall_feedback)
    else:
        if overall_feedback is not None:
            evaluation.overall_feedback = overall_feedback
        if new_status is not None:
            evaluation.status = new_status
        evaluation.updated_at = utcnow()
        db.add(evaluation)

    db.commit()
    db.refresh(evaluation)
    return evaluation


def complete_evaluation(
    db: Session,
    *,
    actor: ActorContext,
    evaluation_id: int,
    overall_feedback: str | None = None,
) -> Evaluation:
    evaluation = _get_or_404(db, evaluation_id)
    _check_mutable(actor, evaluation)

    mark_completed(db, evaluation, overall_feedback=overall_feedback)
    db.commit()
    db.refresh(evaluation)

    logger.info(f"Evaluation {evaluation.id} completed by {actor.id}")
    return evaluation


def get_evaluation(db: Session, *, actor: ActorContext, evaluation_id: int) -> Evaluation:
    evaluation = _get_or_404(db, evaluation_id)
    check_read_access(db, actor, evaluation)
    return evaluation


def list_evaluations(
    db: Session,
    *,
    actor: ActorContext,
    submission_id: int | None = None,
    evaluator_type: EvaluatorType | None = None,
    status: EvaluationStatus | None = None,
    page: int = 1,
    limit: int = 10,
) -> Page[Evaluation]:
    query = db.query(Evaluation)
    if submission_id is not None:
        query = query.filter(Evaluation.submission_id == submission_id)
    if evaluator_type is not None:
        query = query.filter(Evaluation.evaluator_type == evaluator_type.value)
    if status is not None:
        query = query.filter(Evaluation.status == status.value)

    if actor.is_student:
        own_ids = select(Submission.id).where(Submission.student_id == actor.id)
        query = query.filter(Evaluation.submission_id.in_(own_ids))

    total = query.count()
    items = (
        query.order_by(Evaluation.updated_at.desc(), Evaluation.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return Page(items, page=page, limit=limit, total=total)


def list_for_submission(
    db: Session,
    *,
    actor: ActorContext,
    submission_id: int,
) -> List[Evaluation]:
    submission = _get_submission_or_404(db, submission_id)
    if actor.is_student and submission.student_id != actor.id:
        raise PermissionDenied("Access denied")

    return (
        db.query(Evaluation)
        .filter(Evaluation.submission_id == submission.id)
        .order_by(Evaluation.updated_at.desc(), Evaluation.id.desc())
        .all()
    )
