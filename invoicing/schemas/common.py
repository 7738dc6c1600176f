from typing import Generic, List, TypeVar, Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class PaginationMeta(CamelModel):
    page: int
    per_page: int
    total: int
    total_pages: int
    has_prev: bool
    has_next: bool
    q: Optional[str] = None


class PaginatedResponse(CamelModel, Generic[T]):
    data: List[T] = Field(default_factory=list)  # type: ignore[assignment]
    meta: PaginationMeta


class SuccessResponse(BaseModel):
    success: bool = True


def build_pagination(page: int, per_page: int, total: int, q: Optional[str] = None) -> PaginationMeta:
    total_pages = max(1, (total + per_page - 1) // per_page)
    return PaginationMeta(
        page=page,
        per_page=per_page,
        total=total,
        total_pages=total_pages,
        has_prev=page > 1,
        has_next=page < total_pages,
        q=q or None,
    )
