# assignment_eval/client.py
"""
Client-side helper for the asynchronous AI evaluation.

The server never times out an AI evaluation; how long to wait is the
caller's decision. Giving up here only stops polling.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict

import httpx

logger = logging.getLogger(__name__)

TIMED_OUT = "timed_out"

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_MAX_ATTEMPTS = 30


@dataclass
class PollResult:
    status: str
    attempts: int
    completed_at: str | None = None
    has_results: bool = False

    @property
    def timed_out(self) -> bool:
        return self.status == TIMED_OUT


def wait_for_ai_evaluation(
    http: httpx.Client,
    evaluation_id: int,
    interval: float = DEFAULT_POLL_INTERVAL,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    *,
    status_path: str = "/api/v1/ai/status/{evaluation_id}",
) -> PollResult:
    """
    Poll the status endpoint until the evaluation is completed.

    ``http`` must already carry the caller's Authorization header (an
    ``httpx.Client`` or FastAPI ``TestClient``).

    Returns a PollResult with status ``timed_out`` after ``max_attempts``
    polls without completion.

    Raises:
        httpx.HTTPStatusError: the status endpoint answered with an error
    """
    url = status_path.format(evaluation_id=evaluation_id)

    for attempt in range(1, max_attempts + 1):
        response = http.get(url)
        response.raise_for_status()
        data: Dict[str, Any] = response.json()["data"]

        if data["status"] == "completed":
            return PollResult(
                status=data["status"],
                attempts=attempt,
                completed_at=data.get("completed_at"),
                has_results=data.get("has_results", False),
            )

        if attempt < max_attempts:
            time.sleep(interval)

    logger.warning(
        f"AI evaluation {evaluation_id} still running after {max_attempts} attempts"
    )
    return PollResult(status=TIMED_OUT, attempts=max_attempts)
