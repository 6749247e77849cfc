"""Pagination helpers shared by the list endpoints."""

from typing import Any, Dict

from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select


class PaginationParams(BaseModel):
    """Page number and size, 1-based."""

    page: int = Field(default=1, ge=1, description="Page number (1-based)")
    size: int = Field(default=20, ge=1, le=100, description="Page size")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


async def paginate(db: AsyncSession, query: Select, pagination: PaginationParams) -> Dict[str, Any]:
    """
    Run one page of a select and count the whole result set.

    Args:
        db: Database session
        query: Ordered SQLAlchemy select of ORM entities
        pagination: Pagination parameters

    Returns:
        Dictionary with ``items`` and the page counters
    """
    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    total_pages = -(-total // pagination.size)

    result = await db.execute(query.offset(pagination.offset).limit(pagination.size))

    return {
        "items": list(result.unique().scalars().all()),
        "total": total,
        "page": pagination.page,
        "size": pagination.size,
        "has_next": pagination.page < total_pages,
        "has_prev": pagination.page > 1,
        "total_pages": total_pages,
    }


def page_envelope(result: Dict[str, Any], key: str, schema: type[BaseModel]) -> Dict[str, Any]:
    """Serialize a ``paginate`` result into the ``data`` block of a response."""
    return {
        key: [schema.model_validate(item).model_dump(mode="json") for item in result["items"]],
        "total": result["total"],
        "page": result["page"],
        "size": result["size"],
        "has_next": result["has_next"],
        "has_prev": result["has_prev"],
    }
