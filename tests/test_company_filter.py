import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lms_admin.core.company import company_condition, normalize_company
from lms_admin.core.models import User


@pytest.fixture()
async def users(db_session: AsyncSession):
    for i, company in enumerate([None, "", "makro", "other"]):
        db_session.add(User(employee_id=f"E{i}", first_name=f"User{i}", company=company))
    await db_session.commit()


async def _count(db: AsyncSession, company: str) -> int:
    stmt = select(func.count(User.id)).where(company_condition(User.company, company))
    return (await db.execute(stmt)).scalar()


@pytest.mark.asyncio
async def test_lotus_covers_null_empty_and_non_makro(db_session: AsyncSession, users) -> None:
    assert await _count(db_session, "lotus") == 3


@pytest.mark.asyncio
async def test_makro_is_exact_match(db_session: AsyncSession, users) -> None:
    assert await _count(db_session, "makro") == 1


@pytest.mark.asyncio
async def test_all_applies_no_filter(db_session: AsyncSession, users) -> None:
    assert await _count(db_session, "all") == 4


@pytest.mark.asyncio
async def test_lotus_and_makro_partition_all_users(db_session: AsyncSession, users) -> None:
    total = await _count(db_session, "all")
    assert await _count(db_session, "lotus") + await _count(db_session, "makro") == total


def test_normalize_company() -> None:
    assert normalize_company("MAKRO ") == "makro"
    assert normalize_company("all") == "all"
    assert normalize_company(None) == "lotus"
    assert normalize_company("unknown") == "lotus"
    assert normalize_company(None, default="all") == "all"
