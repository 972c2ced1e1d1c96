# assignment_eval/api/v1/deps.py
from dataclasses import dataclass

from fastapi import Query

from assignment_eval.core.config import settings


@dataclass
class PageParams:
    page: int
    limit: int


def get_page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
) -> PageParams:
    return PageParams(page=page, limit=limit)
