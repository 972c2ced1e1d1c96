# assignment_eval/db/base.py
# Import every model so Base.metadata is complete for create_all / alembic
from assignment_eval.db.base_class import Base  # noqa
from assignment_eval.models.user import User  # noqa
from assignment_eval.models.submission import Submission, SubmissionVersion  # noqa
from assignment_eval.models.rubric import Rubric  # noqa
from assignment_eval.models.evaluation import Evaluation  # noqa
