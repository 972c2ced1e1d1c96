# assignment_eval/services/rubric_service.py
import logging
import uuid
from typing import Any, List, Optional, Sequence

from sqlalchemy.orm import Session

from assignment_eval.core.errors import ConflictError, NotFound, PermissionDenied, ValidationError
from assignment_eval.core.security import ActorContext
from assignment_eval.models.rubric import Rubric
from assignment_eval.models.submission import Submission
from assignment_eval.schemas.common import Page
from assignment_eval.schemas.rubric import CriterionIn, RubricCreate, RubricUpdate

logger = logging.getLogger(__name__)

REQUIRED_WEIGHT_TOTAL = 100


def validate_criteria(criteria: Sequence[CriterionIn]) -> tuple[list[dict[str, Any]], float]:
    """
    Check the weight invariant and normalise criteria for storage.

    Weights must sum to exactly 100; there is no tolerance band. Criteria
    that already carry an id keep it, the rest get a fresh one.

    Returns:
        (criteria as dicts, max_total_score)
    """
    if not criteria:
        raise ValidationError("At least one criterion is required")

    total_weight = sum(c.weight for c in criteria)
    if total_weight != REQUIRED_WEIGHT_TOTAL:
        raise ValidationError("Criteria weights must sum to 100")

    normalised = [
        {
            "id": c.id or uuid.uuid4().hex,
            "name": c.name,
            "description": c.description,
            "max_score": c.max_score,
            "weight": c.weight,
        }
        for c in criteria
    ]
    max_total_score = sum(c["max_score"] for c in normalised)
    return normalised, max_total_score


def rubric_context(rubric: Rubric) -> str:
    """Flatten criteria into the one-line description sent to the feedback engine."""
    return "; ".join(f"{c['name']}: {c.get('description', '')}" for c in rubric.criteria)


def _get_or_404(db: Session, rubric_id: int) -> Rubric:
    rubric: Optional[Rubric] = db.get(Rubric, rubric_id)
    if rubric is None:
        raise NotFound("Rubric not found")
    return rubric


def _check_owner(actor: ActorContext, rubric: Rubric) -> None:
    if rubric.teacher_id != actor.id and not actor.is_admin:
        raise PermissionDenied("Access denied")


def create_rubric(
    db: Session,
    *,
    actor: ActorContext,
    obj_in: RubricCreate,
) -> Rubric:
    if not actor.is_staff:
        raise PermissionDenied("Only teachers can create rubrics")
    if not obj_in.title.strip():
        raise ValidationError("Title and at least one criterion are required")

    criteria, max_total_score = validate_criteria(obj_in.criteria)

    db_obj = Rubric(
        teacher_id=actor.id,
        teacher_name=actor.name or "Unknown Teacher",
        title=obj_in.title,
        description=obj_in.description or "",
        criteria=criteria,
        max_total_score=max_total_score,
        is_public=obj_in.is_public,
    )
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    logger.info(f"Teacher {actor.id} created rubric {db_obj.id}")
    return db_obj


def get_rubric(db: Session, *, actor: ActorContext, rubric_id: int) -> Rubric:
    rubric = _get_or_404(db, rubric_id)
    if actor.is_student and not rubric.is_public:
        raise PermissionDenied("Access denied")
    return rubric


def list_rubrics(
    db: Session,
    *,
    actor: ActorContext,
    page: int = 1,
    limit: int = 10,
) -> Page[Rubric]:
    """
    students: public rubrics only
    teachers / admins: every rubric
    """
    query = db.query(Rubric)
    if actor.is_student:
        query = query.filter(Rubric.is_public.is_(True))

    total = query.count()
    items = (
        query.order_by(Rubric.created_at.desc(), Rubric.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return Page(items, page=page, limit=limit, total=total)


def list_my_rubrics(db: Session, *, actor: ActorContext) -> List[Rubric]:
    return (
        db.query(Rubric)
        .filter(Rubric.teacher_id == actor.id)
        .order_by(Rubric.created_at.desc(), Rubric.id.desc())
        .all()
    )


def update_rubric(
    db: Session,
    *,
    actor: ActorContext,
    rubric_id: int,
    obj_in: RubricUpdate,
) -> Rubric:
    rubric = _get_or_404(db, rubric_id)
    _check_owner(actor, rubric)

    update_data = obj_in.model_dump(exclude_unset=True)

    # validate before touching anything
    criteria_in = update_data.pop("criteria", None)
    if criteria_in is not None:
        criteria, max_total_score = validate_criteria(obj_in.criteria)

    if update_data.get("title"):
        rubric.title = update_data["title"]
    if "description" in update_data:
        rubric.description = update_data["description"] or ""
    if update_data.get("is_public") is not None:
        rubric.is_public = update_data["is_public"]
    if criteria_in is not None:
        rubric.criteria = criteria
        rubric.max_total_score = max_total_score

    db.add(rubric)
    db.commit()
    db.refresh(rubric)
    return rubric


def delete_rubric(db: Session, *, actor: ActorContext, rubric_id: int) -> None:
    rubric = _get_or_404(db, rubric_id)
    _check_owner(actor, rubric)

    in_use = (
        db.query(Submission.id)
        .filter(Submission.rubric_id == rubric.id)
        .first()
    )
    if in_use is not None:
        raise ConflictError("Cannot delete rubric that is in use by submissions")

    db.delete(rubric)
    db.commit()
    logger.info(f"Deleted rubric {rubric_id} (actor {actor.id})")
