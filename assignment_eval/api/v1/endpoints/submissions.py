# assignment_eval/api/v1/endpoints/submissions.py
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from assignment_eval.api.v1.deps import PageParams, get_page_params
from assignment_eval.core.security import ActorContext, get_current_actor, get_current_student
from assignment_eval.db.session import get_db
from assignment_eval.models.enums import SubmissionStatus
from assignment_eval.schemas.common import ApiResponse, PaginatedResponse
from assignment_eval.schemas.submission import (
    SubmissionCreate,
    SubmissionUpdate,
    SubmissionPublic,
    SubmissionVersionPublic,
)
from assignment_eval.services import submission_service

router = APIRouter(prefix="/submissions", tags=["submissions"])


@router.get("/", response_model=PaginatedResponse[SubmissionPublic])
def list_submissions(
    status_filter: SubmissionStatus | None = Query(None, alias="status"),
    student_id: int | None = None,
    paging: PageParams = Depends(get_page_params),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    """
    Students see their own submissions, teachers and admins see all.
    """
    result = submission_service.list_submissions(
        db,
        actor=actor,
        status=status_filter,
        student_id=student_id,
        page=paging.page,
        limit=paging.limit,
    )
    return PaginatedResponse[SubmissionPublic](
        data=[SubmissionPublic.model_validate(s) for s in result.items],
        pagination=result.pagination,
    )


@router.get("/{submission_id}", response_model=ApiResponse[SubmissionPublic])
def get_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    sub = submission_service.get_submission(db, actor=actor, submission_id=submission_id)
    return ApiResponse[SubmissionPublic](data=SubmissionPublic.model_validate(sub))


@router.post(
    "/",
    response_model=ApiResponse[SubmissionPublic],
    status_code=status.HTTP_201_CREATED,
)
def create_submission(
    obj_in: SubmissionCreate,
    db: Session = Depends(get_db),
    current_student: ActorContext = Depends(get_current_student),
):
    """
    Student creates a draft; version 1 is recorded with it.
    """
    sub = submission_service.create_submission(db, actor=current_student, obj_in=obj_in)
    return ApiResponse[SubmissionPublic](
        data=SubmissionPublic.model_validate(sub),
        message="Submission created successfully",
    )


@router.put("/{submission_id}", response_model=ApiResponse[SubmissionPublic])
def update_submission(
    submission_id: int,
    obj_in: SubmissionUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    sub = submission_service.update_submission(
        db, actor=actor, submission_id=submission_id, obj_in=obj_in
    )
    return ApiResponse[SubmissionPublic](
        data=SubmissionPublic.model_validate(sub),
        message="Submission updated successfully",
    )


@router.post("/{submission_id}/submit", response_model=ApiResponse[SubmissionPublic])
def submit_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    current_student: ActorContext = Depends(get_current_student),
):
    sub = submission_service.submit_submission(
        db, actor=current_student, submission_id=submission_id
    )
    return ApiResponse[SubmissionPublic](
        data=SubmissionPublic.model_validate(sub),
        message="Assignment submitted successfully",
    )


@router.delete("/{submission_id}", response_model=ApiResponse)
def delete_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    submission_service.delete_submission(db, actor=actor, submission_id=submission_id)
    return ApiResponse(message="Submission deleted successfully")


@router.get(
    "/{submission_id}/versions",
    response_model=ApiResponse[List[SubmissionVersionPublic]],
)
def list_versions(
    submission_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    """
    Version history, newest first.
    """
    versions = submission_service.list_versions(db, actor=actor, submission_id=submission_id)
    return ApiResponse[List[SubmissionVersionPublic]](
        data=[SubmissionVersionPublic.model_validate(v) for v in versions]
    )
