# assignment_eval/api/v1/endpoints/rubrics.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from assignment_eval.api.v1.deps import PageParams, get_page_params
from assignment_eval.core.security import ActorContext, get_current_actor, get_current_teacher
from assignment_eval.db.session import get_db
from assignment_eval.schemas.common import ApiResponse, PaginatedResponse
from assignment_eval.schemas.rubric import RubricCreate, RubricUpdate, RubricPublic
from assignment_eval.services import rubric_service

router = APIRouter(prefix="/rubrics", tags=["rubrics"])


@router.get("/", response_model=PaginatedResponse[RubricPublic])
def list_rubrics(
    paging: PageParams = Depends(get_page_params),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),  # students get public ones only
):
    result = rubric_service.list_rubrics(db, actor=actor, page=paging.page, limit=paging.limit)
    return PaginatedResponse[RubricPublic](
        data=[RubricPublic.model_validate(r) for r in result.items],
        pagination=result.pagination,
    )


@router.get("/mine", response_model=ApiResponse[List[RubricPublic]])
def list_my_rubrics(
    db: Session = Depends(get_db),
    current_teacher: ActorContext = Depends(get_current_teacher),
):
    """
    Rubrics created by the current teacher.
    """
    rubrics = rubric_service.list_my_rubrics(db, actor=current_teacher)
    return ApiResponse[List[RubricPublic]](
        data=[RubricPublic.model_validate(r) for r in rubrics]
    )


@router.get("/{rubric_id}", response_model=ApiResponse[RubricPublic])
def get_rubric(
    rubric_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    rubric = rubric_service.get_rubric(db, actor=actor, rubric_id=rubric_id)
    return ApiResponse[RubricPublic](data=RubricPublic.model_validate(rubric))


@router.post("/", response_model=ApiResponse[RubricPublic], status_code=status.HTTP_201_CREATED)
def create_rubric(
    obj_in: RubricCreate,
    db: Session = Depends(get_db),
    current_teacher: ActorContext = Depends(get_current_teacher),
):
    rubric = rubric_service.create_rubric(db, actor=current_teacher, obj_in=obj_in)
    return ApiResponse[RubricPublic](
        data=RubricPublic.model_validate(rubric),
        message="Rubric created successfully",
    )


@router.put("/{rubric_id}", response_model=ApiResponse[RubricPublic])
def update_rubric(
    rubric_id: int,
    obj_in: RubricUpdate,
    db: Session = Depends(get_db),
    current_teacher: ActorContext = Depends(get_current_teacher),
):
    """
    Owner (or an admin) updates a rubric. New criteria are re-validated.
    """
    rubric = rubric_service.update_rubric(
        db, actor=current_teacher, rubric_id=rubric_id, obj_in=obj_in
    )
    return ApiResponse[RubricPublic](
        data=RubricPublic.model_validate(rubric),
        message="Rubric updated successfully",
    )


@router.delete("/{rubric_id}", response_model=ApiResponse)
def delete_rubric(
    rubric_id: int,
    db: Session = Depends(get_db),
    current_teacher: ActorContext = Depends(get_current_teacher),
):
    rubric_service.delete_rubric(db, actor=current_teacher, rubric_id=rubric_id)
    return ApiResponse(message="Rubric deleted successfully")
