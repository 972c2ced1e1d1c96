"""
Client-side polling helper.
"""
import httpx
import pytest

from assignment_eval.client import TIMED_OUT, wait_for_ai_evaluation
from assignment_eval.core.config import settings


class ScriptedHttp:
    """Answers status polls from a fixed script of statuses."""

    def __init__(self, statuses):
        self.statuses = list(statuses)
        self.urls = []

    def get(self, url):
        self.urls.append(url)
        status = self.statuses.pop(0) if self.statuses else "in_progress"
        completed = status == "completed"
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {
                    "status": status,
                    "completed_at": "2026-01-01T00:00:00" if completed else None,
                    "has_results": completed,
                },
            },
            request=httpx.Request("GET", f"http://testserver{url}"),
        )


class TestWaitForAIEvaluation:

    def test_returns_when_completed(self):
        http = ScriptedHttp(["in_progress", "in_progress", "completed"])
        result = wait_for_ai_evaluation(http, 7, interval=0, max_attempts=5)

        assert result.status == "completed"
        assert result.has_results is True
        assert result.attempts == 3
        assert not result.timed_out
        assert http.urls == ["/api/v1/ai/status/7"] * 3

    def test_times_out_after_cap(self):
        http = ScriptedHttp([])
        result = wait_for_ai_evaluation(http, 7, interval=0, max_attempts=4)

        assert result.status == TIMED_OUT
        assert result.timed_out
        assert result.attempts == 4
        assert len(http.urls) == 4

    def test_http_error_raised(self):
        class Failing:
            def get(self, url):
                return httpx.Response(
                    404,
                    json={"success": False, "error": "Evaluation not found"},
                    request=httpx.Request("GET", f"http://testserver{url}"),
                )

        with pytest.raises(httpx.HTTPStatusError):
            wait_for_ai_evaluation(Failing(), 1, interval=0, max_attempts=2)

    def test_against_running_app(self, client, student, headers_for, make_submission):
        sub = make_submission(student, status="submitted")
        client.headers.update(headers_for(student))

        started = client.post(f"{settings.API_V1_PREFIX}/ai/evaluate/{sub.id}")
        evaluation_id = started.json()["data"]["evaluation_id"]

        # offline engine: category fallbacks, still a completed evaluation
        result = wait_for_ai_evaluation(client, evaluation_id, interval=0, max_attempts=3)
        assert result.status == "completed"
        assert result.has_results is True
        assert result.attempts == 1
