import math
from typing import Any, List, Tuple

from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession


class Pagination(BaseModel):
    total: int = 0
    total_pages: int = Field(0, alias="totalPages")
    current_page: int = Field(1, alias="currentPage")
    per_page: int = Field(20, alias="perPage")
    has_next: bool = Field(False, alias="hasNext")
    has_prev: bool = Field(False, alias="hasPrev")

    class Config:
        populate_by_name = True

    @classmethod
    def build(cls, total: int, page: int, per_page: int) -> "Pagination":
        total_pages = math.ceil(total / per_page) if per_page else 0
        return cls(
            total=total,
            total_pages=total_pages,
            current_page=page,
            per_page=per_page,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


def clamp_page(page: Any, default: int = 1) -> int:
    try:
        value = int(page)
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


async def paginate(db: AsyncSession, stmt, page: int, per_page: int) -> Tuple[List[Any], Pagination]:
    """COUNT(*) over the filtered select, then the LIMIT/OFFSET page.

    Rows come back as Row objects so joined/computed columns stay addressable by label.
    """
    page = clamp_page(page)
    per_page = max(int(per_page), 1)
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = int((await db.execute(count_stmt)).scalar() or 0)
    result = await db.execute(stmt.limit(per_page).offset((page - 1) * per_page))
    return list(result.all()), Pagination.build(total, page, per_page)
