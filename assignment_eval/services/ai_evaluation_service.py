# assignment_eval/services/ai_evaluation_service.py
"""
Two-phase AI evaluation.

``request_ai_evaluation`` is the admit phase: it validates, writes an
``in_progress`` evaluation and returns straight away. ``run_ai_evaluation``
is the run phase, executed later by a worker; it calls the feedback engine and
always leaves the evaluation ``completed``, falling back to a canned result and
putting the submission back to ``submitted`` when the engine fails.
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from assignment_eval.core.config import settings
from assignment_eval.core.errors import (
    EngineFailure,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from assignment_eval.core.security import ActorContext
from assignment_eval.models.enums import EvaluationStatus, EvaluatorType, SubmissionStatus
from assignment_eval.models.evaluation import Evaluation
from assignment_eval.models.rubric import Rubric
from assignment_eval.models.submission import Submission, SubmissionVersion
from assignment_eval.schemas.ai import AIEvaluationStatus, QuickFeedback
from assignment_eval.services import evaluation_service, feedback_engine, rubric_service

logger = logging.getLogger(__name__)

FALLBACK_OVERALL_FEEDBACK = (
    "AI evaluation encountered an error. Please try again or request a manual review."
)
FALLBACK_SUGGESTIONS = ["Request a manual review from your teacher"]


def request_ai_evaluation(
    db: Session,
    *,
    actor: ActorContext,
    submission_id: int,
) -> Evaluation:
    """
    Admit phase. Teachers can request any submission, students only their own.

    - submission must not be a draft
    - no other pending/in_progress AI evaluation for the submission
    - evaluation created 'in_progress', submission -> 'under_review'
    """
    submission: Optional[Submission] = db.get(Submission, submission_id)
    if submission is None:
        raise NotFound("Submission not found")
    if actor.is_student and submission.student_id != actor.id:
        raise PermissionDenied("Access denied")

    evaluation_service.ensure_evaluable(submission)
    evaluation_service.ensure_single_flight(
        db, submission_id=submission.id, evaluator_type=EvaluatorType.AI
    )

    evaluation = Evaluation(
        submission_id=submission.id,
        submission_version=submission.current_version,
        rubric_id=submission.rubric_id,
        evaluator_id=None,
        evaluator_type=EvaluatorType.AI.value,
        status=EvaluationStatus.IN_PROGRESS.value,
        max_possible_score=feedback_engine.MAX_SCORE,
    )
    db.add(evaluation)
    evaluation_service.begin_review(db, submission)
    db.commit()
    db.refresh(evaluation)

    logger.info(
        f"AI evaluation {evaluation.id} admitted for submission {submission.id} "
        f"(requested by {actor.id})"
    )
    return evaluation


def _rubric_context_for(db: Session, rubric_id: int | None) -> str | None:
    if rubric_id is None:
        return None
    rubric: Optional[Rubric] = db.get(Rubric, rubric_id)
    if rubric is None:
        return None
    return rubric_service.rubric_context(rubric)


def _evaluated_content(db: Session, submission: Submission, version: int) -> str:
    """Text of the version frozen at admit; the live content may have moved on."""
    frozen: Optional[SubmissionVersion] = (
        db.query(SubmissionVersion)
        .filter(
            SubmissionVersion.submission_id == submission.id,
            SubmissionVersion.version == version,
        )
        .first()
    )
    if frozen is None:
        logger.warning(
            f"Submission {submission.id} has no version {version}, using current content"
        )
        return submission.content
    return frozen.content


def _complete_with_fallback(db: Session, evaluation: Evaluation) -> None:
    evaluation.suggestions = list(FALLBACK_SUGGESTIONS)
    evaluation_service.mark_completed(
        db,
        evaluation,
        overall_feedback=FALLBACK_OVERALL_FEEDBACK,
        submission_status=SubmissionStatus.SUBMITTED,
    )
    db.commit()


def run_ai_evaluation(db: Session, evaluation_id: int) -> Evaluation:
    """
    Run phase, called from the worker.

    Engine errors never propagate: the evaluation is completed with fallback
    feedback and the submission is reverted to 'submitted'.

    Raises:
        NotFound: the evaluation id does not exist
    """
    evaluation: Optional[Evaluation] = db.get(Evaluation, evaluation_id)
    if evaluation is None:
        raise NotFound(f"Evaluation {evaluation_id} not found")
    if evaluation.status == EvaluationStatus.COMPLETED.value:
        logger.warning(f"AI evaluation {evaluation_id} already completed, skipping")
        return evaluation

    try:
        submission: Optional[Submission] = db.get(Submission, evaluation.submission_id)
        if submission is None:
            raise NotFound(f"Submission {evaluation.submission_id} not found")

        logger.info(
            f"Starting AI evaluation for submission {submission.id} "
            f"v{evaluation.submission_version}"
        )
        result = feedback_engine.evaluate_submission(
            _evaluated_content(db, submission, evaluation.submission_version),
            _rubric_context_for(db, evaluation.rubric_id),
        )

        evaluation.grammar_feedback = result.grammar_feedback
        evaluation.clarity_feedback = result.clarity_feedback
        evaluation.structure_feedback = result.structure_feedback
        evaluation.content_feedback = result.content_feedback
        evaluation.suggestions = result.suggestions
        evaluation.total_score = result.total_score
        evaluation.max_possible_score = result.max_possible_score
        evaluation.percentage_score = result.percentage_score
        evaluation_service.mark_completed(
            db, evaluation, overall_feedback=result.overall_feedback
        )
        db.commit()
        logger.info(f"AI evaluation completed for submission {submission.id}")

    except Exception as e:
        logger.error(f"AI evaluation {evaluation_id} failed: {e}", exc_info=True)
        db.rollback()
        _complete_with_fallback(db, evaluation)

    db.refresh(evaluation)
    return evaluation


def abort_ai_evaluation(db: Session, evaluation_id: int) -> Evaluation | None:
    """
    Finish an admitted evaluation that will never run (dispatch failed, or the
    worker died outside run_ai_evaluation) with the same fallback result, so
    neither the evaluation nor the submission stays in flight.
    """
    db.rollback()
    evaluation: Optional[Evaluation] = db.get(Evaluation, evaluation_id)
    if evaluation is None or evaluation.status == EvaluationStatus.COMPLETED.value:
        return evaluation

    logger.warning(f"Aborting AI evaluation {evaluation_id} with fallback result")
    _complete_with_fallback(db, evaluation)
    db.refresh(evaluation)
    return evaluation


def check_status(db: Session, *, actor: ActorContext, evaluation_id: int) -> AIEvaluationStatus:
    """Idempotent read used by polling clients."""
    evaluation: Optional[Evaluation] = db.get(Evaluation, evaluation_id)
    if evaluation is None:
        raise NotFound("Evaluation not found")
    evaluation_service.check_read_access(db, actor, evaluation)

    completed = evaluation.status == EvaluationStatus.COMPLETED.value
    return AIEvaluationStatus(
        status=evaluation.status,
        completed_at=evaluation.completed_at,
        has_results=completed and bool(evaluation.overall_feedback),
    )


def quick_feedback(text: str | None) -> QuickFeedback:
    """
    Synchronous feedback on a scratch text; nothing is persisted.

    Raises:
        ValidationError: fewer than QUICK_FEEDBACK_MIN_CHARS characters
        EngineFailure: the engine could not produce a result
    """
    if not text or len(text.strip()) < settings.QUICK_FEEDBACK_MIN_CHARS:
        raise ValidationError(
            f"Please provide at least {settings.QUICK_FEEDBACK_MIN_CHARS} "
            "characters of text for analysis"
        )

    truncated = text[: settings.QUICK_FEEDBACK_MAX_CHARS]
    try:
        result = feedback_engine.evaluate_submission(truncated)
    except EngineFailure:
        raise
    except Exception as e:
        logger.error(f"Quick feedback failed: {e}", exc_info=True)
        raise EngineFailure("Failed to generate feedback") from e

    return QuickFeedback(
        grammar_feedback=result.grammar_feedback,
        clarity_feedback=result.clarity_feedback,
        suggestions=result.suggestions[: settings.QUICK_FEEDBACK_MAX_SUGGESTIONS],
    )
