# assignment_eval/models/enums.py
from enum import Enum


class UserRole(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class SubmissionStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    EVALUATED = "evaluated"
    RETURNED = "returned"


class EvaluationStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class EvaluatorType(str, Enum):
    TEACHER = "teacher"
    AI = "ai"


# a student may edit, delete (draft only) or (re)submit from these
EDITABLE_SUBMISSION_STATUSES = (SubmissionStatus.DRAFT, SubmissionStatus.RETURNED)

ACTIVE_EVALUATION_STATUSES = (EvaluationStatus.PENDING, EvaluationStatus.IN_PROGRESS)
