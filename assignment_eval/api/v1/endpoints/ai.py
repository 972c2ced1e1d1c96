# assignment_eval/api/v1/endpoints/ai.py
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from assignment_eval.core.errors import EngineFailure
from assignment_eval.core.security import ActorContext, get_current_actor
from assignment_eval.db.session import get_db
from assignment_eval.schemas.ai import (
    AIEvaluationStarted,
    AIEvaluationStatus,
    QuickFeedback,
    QuickFeedbackRequest,
)
from assignment_eval.schemas.common import ApiResponse
from assignment_eval.services import ai_evaluation_service
from assignment_eval.workers.queue import dispatch_ai_evaluation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post(
    "/evaluate/{submission_id}",
    response_model=ApiResponse[AIEvaluationStarted],
    status_code=status.HTTP_202_ACCEPTED,
)
def evaluate_submission(
    submission_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    """
    Start an AI evaluation and return its id right away.
    The engine runs on a worker; poll /ai/status/{evaluation_id} for the outcome.
    """
    evaluation = ai_evaluation_service.request_ai_evaluation(
        db, actor=actor, submission_id=submission_id
    )
    try:
        dispatch_ai_evaluation(background_tasks, evaluation.id)
    except Exception as e:
        logger.error(f"Could not dispatch AI evaluation {evaluation.id}: {e}", exc_info=True)
        ai_evaluation_service.abort_ai_evaluation(db, evaluation.id)
        raise EngineFailure(
            "AI evaluation could not be started. Please try again or request a manual review."
        ) from e
    return ApiResponse[AIEvaluationStarted](
        data=AIEvaluationStarted(evaluation_id=evaluation.id),
        message="AI evaluation started. This may take a minute...",
    )


@router.get("/status/{evaluation_id}", response_model=ApiResponse[AIEvaluationStatus])
def get_evaluation_status(
    evaluation_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = ai_evaluation_service.check_status(db, actor=actor, evaluation_id=evaluation_id)
    return ApiResponse[AIEvaluationStatus](data=result)


@router.post("/quick-feedback", response_model=ApiResponse[QuickFeedback])
def quick_feedback(
    payload: QuickFeedbackRequest,
    actor: ActorContext = Depends(get_current_actor),  # any signed-in user
):
    """
    Feedback on a scratch text without saving anything.
    """
    result = ai_evaluation_service.quick_feedback(payload.text)
    return ApiResponse[QuickFeedback](data=result)
