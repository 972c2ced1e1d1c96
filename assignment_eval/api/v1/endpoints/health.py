# assignment_eval/api/v1/endpoints/health.py
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from assignment_eval.core.config import settings
from assignment_eval.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
def liveness_probe():
    return {"status": "ok", "environment": settings.ENVIRONMENT}


@router.get("/ready")
def readiness_probe(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        database = "unavailable"

    return {
        "status": "ready" if database == "ok" else "degraded",
        "services": {
            "database": database,
            "ai": "configured" if settings.HF_API_KEY else "not configured",
            "task_queue": settings.TASK_QUEUE_BACKEND,
        },
    }
