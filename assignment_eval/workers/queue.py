# assignment_eval/workers/queue.py

from typing import Any, Callable

from fastapi import BackgroundTasks
from redis import Redis
from rq import Queue

from assignment_eval.core.config import settings

_DEFAULT_QUEUE_NAME = "default"

_redis_conn: Redis | None = None


def get_redis_connection() -> Redis:
    global _redis_conn
    if _redis_conn is None:
        redis_url = settings.REDIS_URL
        _redis_conn = Redis.from_url(redis_url)
    return _redis_conn


def get_queue(name: str = _DEFAULT_QUEUE_NAME) -> Queue:
    return Queue(name, connection=get_redis_connection())


def enqueue_job(
    func: Callable[..., Any],
    *args: Any,
    queue_name: str = _DEFAULT_QUEUE_NAME,
    **kwargs: Any,
) -> str:

    q = get_queue(queue_name)
    job = q.enqueue(func, *args, **kwargs)
    return job.id


def enqueue_ai_evaluation_task(evaluation_id: int) -> str:
    from assignment_eval.workers.tasks import ai_evaluation_task

    return enqueue_job(
        ai_evaluation_task,
        evaluation_id,
        queue_name=settings.AI_EVALUATION_QUEUE,
        job_timeout=settings.AI_JOB_TIMEOUT,
    )


def dispatch_ai_evaluation(background_tasks: BackgroundTasks, evaluation_id: int) -> str | None:
    """
    Hand the run phase to a worker.
    Returns the RQ job id, or None when it runs in-process after the response.
    """
    if settings.TASK_QUEUE_BACKEND == "inline":
        from assignment_eval.workers.tasks import ai_evaluation_task

        background_tasks.add_task(ai_evaluation_task, evaluation_id)
        return None
    return enqueue_ai_evaluation_task(evaluation_id)
