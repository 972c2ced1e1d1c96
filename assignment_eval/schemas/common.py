# assignment_eval/schemas/common.py
import math
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> "Pagination":
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if limit else 0,
        )


class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every endpoint."""
    success: bool = True
    data: T | None = None
    message: str | None = None


class PaginatedResponse(BaseModel, Generic[T]):
    success: bool = True
    data: list[T]
    pagination: Pagination


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class Page(Generic[T]):
    """Service-level result of a paginated listing."""

    def __init__(self, items: list[T], *, page: int, limit: int, total: int):
        self.items = items
        self.pagination = Pagination.build(page=page, limit=limit, total=total)
