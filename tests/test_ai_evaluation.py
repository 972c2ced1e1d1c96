"""
Two-phase AI evaluation: admit, run on the worker, fallback on engine failure.
"""
import pytest

from assignment_eval.core.errors import (
    ConflictError,
    EngineFailure,
    InvalidStateTransition,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from assignment_eval.models.enums import EvaluationStatus, SubmissionStatus
from assignment_eval.models.evaluation import Evaluation
from assignment_eval.models.submission import Submission
from assignment_eval.schemas.submission import SubmissionUpdate
from assignment_eval.services import ai_evaluation_service, feedback_engine, submission_service
from assignment_eval.services.feedback_engine import EvaluationResult
from assignment_eval.workers import tasks
from assignment_eval.workers.tasks import ai_evaluation_task


def _fake_result(*_args, **_kwargs):
    return EvaluationResult(
        grammar_feedback="grammar ok",
        clarity_feedback="clear enough",
        structure_feedback="well organised",
        content_feedback="solid content",
        overall_feedback="Nice work overall.",
        suggestions=["one", "two", "three", "four"],
        total_score=85,
        max_possible_score=100,
        percentage_score=85.0,
    )


@pytest.fixture
def fake_engine(monkeypatch):
    calls = []

    def _evaluate(content, rubric_context=None):
        calls.append((content, rubric_context))
        return _fake_result()

    monkeypatch.setattr(feedback_engine, "evaluate_submission", _evaluate)
    return calls


@pytest.fixture
def broken_engine(monkeypatch):
    def _evaluate(content, rubric_context=None):
        raise EngineFailure("model unavailable")

    monkeypatch.setattr(feedback_engine, "evaluate_submission", _evaluate)


class TestRequestAIEvaluation:

    def test_admit_creates_in_progress_evaluation(
        self, db_session, student, actor_of, make_submission
    ):
        sub = make_submission(student, status="submitted")
        evaluation = ai_evaluation_service.request_ai_evaluation(
            db_session, actor=actor_of(student), submission_id=sub.id
        )
        assert evaluation.status == EvaluationStatus.IN_PROGRESS.value
        assert evaluation.evaluator_type == "ai"
        assert evaluation.evaluator_id is None
        assert evaluation.submission_version == 1

        db_session.expire_all()
        assert db_session.get(Submission, sub.id).status == SubmissionStatus.UNDER_REVIEW.value

    def test_draft_rejected(self, db_session, student, actor_of, make_submission):
        sub = make_submission(student)
        with pytest.raises(InvalidStateTransition):
            ai_evaluation_service.request_ai_evaluation(
                db_session, actor=actor_of(student), submission_id=sub.id
            )
        assert db_session.query(Evaluation).count() == 0

    def test_other_student_denied(
        self, db_session, student, other_student, actor_of, make_submission
    ):
        sub = make_submission(student, status="submitted")
        with pytest.raises(PermissionDenied):
            ai_evaluation_service.request_ai_evaluation(
                db_session, actor=actor_of(other_student), submission_id=sub.id
            )

    def test_teacher_may_request(self, db_session, student, teacher, actor_of, make_submission):
        sub = make_submission(student, status="submitted")
        evaluation = ai_evaluation_service.request_ai_evaluation(
            db_session, actor=actor_of(teacher), submission_id=sub.id
        )
        assert evaluation.evaluator_id is None

    def test_single_flight(self, db_session, student, actor_of, make_submission):
        sub = make_submission(student, status="submitted")
        ai_evaluation_service.request_ai_evaluation(
            db_session, actor=actor_of(student), submission_id=sub.id
        )
        with pytest.raises(ConflictError):
            ai_evaluation_service.request_ai_evaluation(
                db_session, actor=actor_of(student), submission_id=sub.id
            )

    def test_missing_submission(self, db_session, student, actor_of):
        with pytest.raises(NotFound):
            ai_evaluation_service.request_ai_evaluation(
                db_session, actor=actor_of(student), submission_id=404
            )


class TestRunAIEvaluation:

    def test_scenario_poll_until_completed(
        self, db_session, student, actor_of, make_submission, fake_engine
    ):
        actor = actor_of(student)
        sub = make_submission(student, status="submitted", content="Essay body.")
        evaluation = ai_evaluation_service.request_ai_evaluation(
            db_session, actor=actor, submission_id=sub.id
        )

        before = ai_evaluation_service.check_status(db_session, actor=actor, evaluation_id=evaluation.id)
        assert before.status == EvaluationStatus.IN_PROGRESS
        assert before.has_results is False
        assert before.completed_at is None

        ai_evaluation_service.run_ai_evaluation(db_session, evaluation.id)

        after = ai_evaluation_service.check_status(db_session, actor=actor, evaluation_id=evaluation.id)
        assert after.status == EvaluationStatus.COMPLETED
        assert after.has_results is True
        assert after.completed_at is not None

        db_session.expire_all()
        assert db_session.get(Submission, sub.id).status == SubmissionStatus.EVALUATED.value
        assert fake_engine == [("Essay body.", None)]

    def test_results_are_stored(self, db_session, student, actor_of, make_submission, fake_engine):
        sub = make_submission(student, status="submitted")
        evaluation = ai_evaluation_service.request_ai_evaluation(
            db_session, actor=actor_of(student), submission_id=sub.id
        )
        evaluation = ai_evaluation_service.run_ai_evaluation(db_session, evaluation.id)

        assert evaluation.grammar_feedback == "grammar ok"
        assert evaluation.overall_feedback == "Nice work overall."
        assert evaluation.suggestions == ["one", "two", "three", "four"]
        assert evaluation.total_score == 85
        assert evaluation.percentage_score == 85.0

    def test_rubric_context_passed_to_engine(
        self, db_session, student, teacher, actor_of, make_submission, make_rubric, fake_engine
    ):
        rubric = make_rubric(teacher)
        sub = make_submission(student, status="submitted", rubric_id=rubric.id)
        evaluation = ai_evaluation_service.request_ai_evaluation(
            db_session, actor=actor_of(student), submission_id=sub.id
        )
        ai_evaluation_service.run_ai_evaluation(db_session, evaluation.id)
        assert fake_engine[0][1] == "Argument: Strength of argument; Style: Writing style"

    def test_engine_failure_completes_with_fallback_and_reverts(
        self, db_session, student, actor_of, make_submission, broken_engine
    ):
        sub = make_submission(student, status="submitted")
        evaluation = ai_evaluation_service.request_ai_evaluation(
            db_session, actor=actor_of(student), submission_id=sub.id
        )
        evaluation = ai_evaluation_service.run_ai_evaluation(db_session, evaluation.id)

        print(f"fallback evaluation: {evaluation.status} / {evaluation.overall_feedback}")
        assert evaluation.status == EvaluationStatus.COMPLETED.value
        assert evaluation.overall_feedback == ai_evaluation_service.FALLBACK_OVERALL_FEEDBACK
        assert evaluation.suggestions == ai_evaluation_service.FALLBACK_SUGGESTIONS
        assert evaluation.completed_at is not None

        db_session.expire_all()
        assert db_session.get(Submission, sub.id).status == SubmissionStatus.SUBMITTED.value

    def test_after_fallback_a_new_request_is_allowed(
        self, db_session, student, actor_of, make_submission, broken_engine
    ):
        sub = make_submission(student, status="submitted")
        first = ai_evaluation_service.request_ai_evaluation(
            db_session, actor=actor_of(student), submission_id=sub.id
        )
        ai_evaluation_service.run_ai_evaluation(db_session, first.id)

        second = ai_evaluation_service.request_ai_evaluation(
            db_session, actor=actor_of(student), submission_id=sub.id
        )
        assert second.id != first.id

    def test_rerun_of_completed_is_noop(
        self, db_session, student, actor_of, make_submission, fake_engine
    ):
        sub = make_submission(student, status="submitted")
        evaluation = ai_evaluation_service.request_ai_evaluation(
            db_session, actor=actor_of(student), submission_id=sub.id
        )
        ai_evaluation_service.run_ai_evaluation(db_session, evaluation.id)
        ai_evaluation_service.run_ai_evaluation(db_session, evaluation.id)
        assert len(fake_engine) == 1

    def test_scores_the_version_frozen_at_admit(
        self, db_session, student, teacher, actor_of, make_submission, fake_engine
    ):
        sub = make_submission(student, status="submitted", content="Version one text.")
        evaluation = ai_evaluation_service.request_ai_evaluation(
            db_session, actor=actor_of(student), submission_id=sub.id
        )

        # staff edit while the AI run is still queued
        edited = submission_service.update_submission(
            db_session,
            actor=actor_of(teacher),
            submission_id=sub.id,
            obj_in=SubmissionUpdate(content="Version two text."),
        )
        assert edited.current_version == 2

        evaluation = ai_evaluation_service.run_ai_evaluation(db_session, evaluation.id)
        assert evaluation.submission_version == 1
        assert fake_engine == [("Version one text.", None)]

    def test_unknown_evaluation(self, db_session):
        with pytest.raises(NotFound):
            ai_evaluation_service.run_ai_evaluation(db_session, 999)


class TestWorkerTask:

    def test_task_runs_with_its_own_session(
        self, db_session, student, actor_of, make_submission, fake_engine
    ):
        sub = make_submission(student, status="submitted")
        evaluation = ai_evaluation_service.request_ai_evaluation(
            db_session, actor=actor_of(student), submission_id=sub.id
        )

        result = ai_evaluation_task(evaluation.id)
        print(f"task result: {result}")
        assert result["status"] == "success"
        assert result["evaluation_status"] == "completed"
        assert result["total_score"] == 85

        db_session.expire_all()
        assert db_session.get(Evaluation, evaluation.id).status == "completed"

    def test_task_reports_missing_evaluation(self, db_session):
        result = ai_evaluation_task(12345)
        assert result["status"] == "error"
        assert result["evaluation_id"] == 12345


class TestQuickFeedback:

    def test_too_short(self):
        with pytest.raises(ValidationError):
            ai_evaluation_service.quick_feedback("too short")

    def test_empty(self):
        with pytest.raises(ValidationError):
            ai_evaluation_service.quick_feedback("")

    def test_truncates_and_limits_suggestions(self, monkeypatch):
        seen = []

        def _evaluate(content, rubric_context=None):
            seen.append(content)
            return _fake_result()

        monkeypatch.setattr(feedback_engine, "evaluate_submission", _evaluate)

        result = ai_evaluation_service.quick_feedback("a" * 1500)
        assert len(seen[0]) == 1000
        assert result.grammar_feedback == "grammar ok"
        assert result.clarity_feedback == "clear enough"
        assert result.suggestions == ["one", "two", "three"]

    def test_engine_failure_propagates(self, broken_engine):
        with pytest.raises(EngineFailure):
            ai_evaluation_service.quick_feedback("word " * 20)

    def test_unexpected_error_becomes_engine_failure(self, monkeypatch):
        def _evaluate(content, rubric_context=None):
            raise RuntimeError("boom")

        monkeypatch.setattr(feedback_engine, "evaluate_submission", _evaluate)
        with pytest.raises(EngineFailure):
            ai_evaluation_service.quick_feedback("word " * 20)


class TestAbortAIEvaluation:

    def test_abort_completes_with_fallback_and_reverts(
        self, db_session, student, actor_of, make_submission
    ):
        sub = make_submission(student, status="submitted")
        evaluation = ai_evaluation_service.request_ai_evaluation(
            db_session, actor=actor_of(student), submission_id=sub.id
        )

        evaluation = ai_evaluation_service.abort_ai_evaluation(db_session, evaluation.id)
        assert evaluation.status == EvaluationStatus.COMPLETED.value
        assert evaluation.overall_feedback == ai_evaluation_service.FALLBACK_OVERALL_FEEDBACK
        assert evaluation.suggestions == ai_evaluation_service.FALLBACK_SUGGESTIONS

        db_session.expire_all()
        assert db_session.get(Submission, sub.id).status == SubmissionStatus.SUBMITTED.value

        # no longer blocks a new request
        again = ai_evaluation_service.request_ai_evaluation(
            db_session, actor=actor_of(student), submission_id=sub.id
        )
        assert again.id != evaluation.id

    def test_abort_leaves_completed_alone(
        self, db_session, student, actor_of, make_submission, fake_engine
    ):
        sub = make_submission(student, status="submitted")
        evaluation = ai_evaluation_service.request_ai_evaluation(
            db_session, actor=actor_of(student), submission_id=sub.id
        )
        ai_evaluation_service.run_ai_evaluation(db_session, evaluation.id)

        evaluation = ai_evaluation_service.abort_ai_evaluation(db_session, evaluation.id)
        assert evaluation.overall_feedback == "Nice work overall."
        db_session.expire_all()
        assert db_session.get(Submission, sub.id).status == SubmissionStatus.EVALUATED.value

    def test_worker_error_outside_run_phase_is_aborted(
        self, db_session, student, actor_of, make_submission, monkeypatch
    ):
        sub = make_submission(student, status="submitted")
        evaluation = ai_evaluation_service.request_ai_evaluation(
            db_session, actor=actor_of(student), submission_id=sub.id
        )

        def _crash(db, evaluation_id):
            raise RuntimeError("database went away")

        monkeypatch.setattr(tasks, "run_ai_evaluation", _crash)
        result = tasks.ai_evaluation_task(evaluation.id)
        print(f"task result: {result}")
        assert result["status"] == "error"

        db_session.expire_all()
        stored = db_session.get(Evaluation, evaluation.id)
        assert stored.status == EvaluationStatus.COMPLETED.value
        assert stored.overall_feedback == ai_evaluation_service.FALLBACK_OVERALL_FEEDBACK
        assert db_session.get(Submission, sub.id).status == SubmissionStatus.SUBMITTED.value
