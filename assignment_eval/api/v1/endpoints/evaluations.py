# assignment_eval/api/v1/endpoints/evaluations.py
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from assignment_eval.api.v1.deps import PageParams, get_page_params
from assignment_eval.core.security import ActorContext, get_current_actor, get_current_teacher
from assignment_eval.db.session import get_db
from assignment_eval.models.enums import EvaluationStatus, EvaluatorType
from assignment_eval.schemas.common import ApiResponse, PaginatedResponse
from assignment_eval.schemas.evaluation import (
    EvaluationComplete,
    EvaluationCreate,
    EvaluationPublic,
    EvaluationUpdate,
)
from assignment_eval.services import evaluation_service

router = APIRouter(prefix="/evaluations", tags=["evaluations"])


@router.get("/", response_model=PaginatedResponse[EvaluationPublic])
def list_evaluations(
    submission_id: int | None = None,
    evaluator_type: EvaluatorType | None = None,
    status_filter: EvaluationStatus | None = Query(None, alias="status"),
    paging: PageParams = Depends(get_page_params),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = evaluation_service.list_evaluations(
        db,
        actor=actor,
        submission_id=submission_id,
        evaluator_type=evaluator_type,
        status=status_filter,
        page=paging.page,
        limit=paging.limit,
    )
    return PaginatedResponse[EvaluationPublic](
        data=[EvaluationPublic.model_validate(e) for e in result.items],
        pagination=result.pagination,
    )


@router.get(
    "/submission/{submission_id}",
    response_model=ApiResponse[List[EvaluationPublic]],
)
def list_evaluations_for_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    evaluations = evaluation_service.list_for_submission(
        db, actor=actor, submission_id=submission_id
    )
    return ApiResponse[List[EvaluationPublic]](
        data=[EvaluationPublic.model_validate(e) for e in evaluations]
    )


@router.get("/{evaluation_id}", response_model=ApiResponse[EvaluationPublic])
def get_evaluation(
    evaluation_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    evaluation = evaluation_service.get_evaluation(db, actor=actor, evaluation_id=evaluation_id)
    return ApiResponse[EvaluationPublic](data=EvaluationPublic.model_validate(evaluation))


@router.post(
    "/",
    response_model=ApiResponse[EvaluationPublic],
    status_code=status.HTTP_201_CREATED,
)
def start_evaluation(
    obj_in: EvaluationCreate,
    db: Session = Depends(get_db),
    current_teacher: ActorContext = Depends(get_current_teacher),
):
    """
    Teacher starts a manual review; the submission moves to under_review.
    """
    evaluation = evaluation_service.start_evaluation(db, actor=current_teacher, obj_in=obj_in)
    return ApiResponse[EvaluationPublic](
        data=EvaluationPublic.model_validate(evaluation),
        message="Evaluation started successfully",
    )


@router.put("/{evaluation_id}", response_model=ApiResponse[EvaluationPublic])
def update_evaluation(
    evaluation_id: int,
    obj_in: EvaluationUpdate,
    db: Session = Depends(get_db),
    current_teacher: ActorContext = Depends(get_current_teacher),
):
    """
    Add scores / feedback. Setting status=completed completes the evaluation
    exactly like POST /{id}/complete.
    """
    evaluation = evaluation_service.update_evaluation(
        db, actor=current_teacher, evaluation_id=evaluation_id, obj_in=obj_in
    )
    return ApiResponse[EvaluationPublic](
        data=EvaluationPublic.model_validate(evaluation),
        message="Evaluation updated successfully",
    )


@router.post("/{evaluation_id}/complete", response_model=ApiResponse[EvaluationPublic])
def complete_evaluation(
    evaluation_id: int,
    obj_in: EvaluationComplete | None = None,
    db: Session = Depends(get_db),
    current_teacher: ActorContext = Depends(get_current_teacher),
):
    evaluation = evaluation_service.complete_evaluation(
        db,
        actor=current_teacher,
        evaluation_id=evaluation_id,
        overall_feedback=obj_in.overall_feedback if obj_in else None,
    )
    return ApiResponse[EvaluationPublic](
        data=EvaluationPublic.model_validate(evaluation),
        message="Evaluation completed successfully",
    )
