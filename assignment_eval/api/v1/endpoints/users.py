# assignment_eval/api/v1/endpoints/users.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from assignment_eval.core.security import get_current_user, get_password_hash
from assignment_eval.db.session import get_db
from assignment_eval.models.user import User
from assignment_eval.schemas.user import UserPublic, UserUpdate

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserPublic)
def read_me(
    current_user: User = Depends(get_current_user),
):
    return current_user


@router.put("/me", response_model=UserPublic)
def update_me(
    obj_in: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if obj_in.name:
        current_user.name = obj_in.name
    if obj_in.password:
        current_user.password_hash = get_password_hash(obj_in.password)
    db.add(current_user)
    db.commit()
    db.refresh(current_user)
    return current_user
