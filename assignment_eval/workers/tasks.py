"""
AI Evaluation Tasks for Worker
These tasks are executed by RQ workers (or FastAPI background tasks in
inline mode) to evaluate submissions asynchronously.
"""

import logging
from assignment_eval.core.errors import NotFound
from assignment_eval.db import session as db_session
from assignment_eval.services.ai_evaluation_service import abort_ai_evaluation, run_ai_evaluation

logger = logging.getLogger(__name__)


def ai_evaluation_task(evaluation_id: int) -> dict:
    """
    Worker task that runs the feedback engine for one evaluation.

    This task:
    1. Creates a database session
    2. Calls ai_evaluation_service.run_ai_evaluation
    3. Returns a result summary (stored by RQ as the job result)

    Engine failures are absorbed by run_ai_evaluation, so an "error" result
    here means the evaluation itself could not be loaded or saved.
    """
    db = db_session.SessionLocal()
    try:
        logger.info(f"Starting AI evaluation task for evaluation {evaluation_id}")

        evaluation = run_ai_evaluation(db, evaluation_id)

        logger.info(
            f"Completed AI evaluation task for evaluation {evaluation_id}: "
            f"score={evaluation.total_score}"
        )
        return {
            "status": "success",
            "evaluation_id": evaluation.id,
            "submission_id": evaluation.submission_id,
            "evaluation_status": evaluation.status,
            "total_score": evaluation.total_score,
            "message": f"Finished AI evaluation {evaluation_id}",
        }

    except NotFound as e:
        logger.error(f"AI evaluation task failed for evaluation {evaluation_id}: {e}")
        return {
            "status": "error",
            "evaluation_id": evaluation_id,
            "error": str(e),
            "message": f"AI evaluation {evaluation_id} not found",
        }

    except Exception as e:
        logger.error(
            f"Unexpected error during AI evaluation task {evaluation_id}: {e}",
            exc_info=True
        )
        try:
            abort_ai_evaluation(db, evaluation_id)
        except Exception as abort_error:
            logger.error(
                f"Could not abort AI evaluation {evaluation_id}: {abort_error}",
                exc_info=True
            )
        return {
            "status": "error",
            "evaluation_id": evaluation_id,
            "error": str(e),
            "message": "Unexpected error during AI evaluation",
        }

    finally:
        db.close()
