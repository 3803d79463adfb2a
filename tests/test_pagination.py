import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lms_admin.core.models import Position
from lms_admin.db.pagination import Pagination, clamp_page, paginate
from lms_admin.db.record_store import RecordStore


def test_build_computes_page_flags() -> None:
    p = Pagination.build(total=45, page=2, per_page=20)

    assert p.total_pages == 3
    assert p.has_next is True
    assert p.has_prev is True

    last = Pagination.build(total=45, page=3, per_page=20)
    assert last.has_next is False

    empty = Pagination.build(total=0, page=1, per_page=20)
    assert empty.total_pages == 0
    assert empty.has_next is False
    assert empty.has_prev is False


def test_pagination_serializes_camel_case() -> None:
    data = Pagination.build(total=5, page=1, per_page=2).model_dump(by_alias=True)

    assert data == {
        "total": 5,
        "totalPages": 3,
        "currentPage": 1,
        "perPage": 2,
        "hasNext": True,
        "hasPrev": False,
    }


@pytest.mark.parametrize(
    "raw, expected",
    [(None, 1), ("", 1), ("abc", 1), ("0", 1), ("-3", 1), ("4", 4), (7, 7)],
)
def test_clamp_page(raw, expected) -> None:
    assert clamp_page(raw) == expected


@pytest.mark.asyncio
async def test_paginate_returns_the_requested_slice(db_session: AsyncSession) -> None:
    store = RecordStore(Position, db_session)
    for i in range(45):
        await store.create({"name": f"Position {i:02d}"})

    stmt = select(Position).where(Position.deleted_at.is_(None)).order_by(Position.id)
    rows, pagination = await paginate(db_session, stmt, page=3, per_page=20)

    assert pagination.total == 45
    assert pagination.total_pages == 3
    assert len(rows) == 5
    assert rows[0].Position.name == "Position 40"
