from assignment_eval.models.user import User  # noqa
from assignment_eval.models.submission import Submission, SubmissionVersion  # noqa
from assignment_eval.models.rubric import Rubric  # noqa
from assignment_eval.models.evaluation import Evaluation  # noqa
