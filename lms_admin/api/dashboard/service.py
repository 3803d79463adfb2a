"""
Dashboard statistics over the enrollment (class_student) data.

Every statistic is computed by one aggregate query and cached under
``dashboard:<statistic>[:<year>:<company>]`` for ``ttl`` seconds. The cache is
only an optimization: when it is down or erroring, queries run directly.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlalchemy import case, extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lms_admin.core.cache import CacheClient, cache_or_fetch, clear_namespace
from lms_admin.core.company import company_condition, normalize_company
from lms_admin.core.enums import CourseStatus, FinishedState, UserStatus, UserType
from lms_admin.core.models import ClassStudent, Course, User

from .schemas import (
    CourseSummary,
    DashboardSnapshot,
    LearningSummary,
    MonthlyPoint,
    RecentCompletion,
    TopCourse,
    UserSummary,
)

logger = logging.getLogger(__name__)

CACHE_NAMESPACE = "dashboard"
TOP_COURSES_LIMIT = 10
RECENT_COMPLETIONS_LIMIT = 10
AVAILABLE_YEARS_LIMIT = 10
# datetime(year + 1, 1, 1) must stay representable.
MIN_YEAR = 1
MAX_YEAR = 9998


def _year_range(year: int):
    """Half-open [Jan 1 year, Jan 1 year+1) bounds on class_student.created_at."""
    return (
        ClassStudent.created_at >= datetime(year, 1, 1),
        ClassStudent.created_at < datetime(year + 1, 1, 1),
    )


def _avg(column):
    return func.round(func.avg(column), 1)


def _float(value) -> Optional[float]:
    return float(value) if value is not None else None


_completed = case((ClassStudent.is_finished == FinishedState.COMPLETED, 1), else_=0)


class DashboardStats:
    """
    Statistics aggregator bound to a session factory and an optional cache.

    Each statistic opens its own session so :meth:`get_all_stats` can run them
    concurrently. Pass ``concurrent=False`` to run them one after another.
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker,
        cache: Optional[CacheClient] = None,
        ttl: int = 300,
        concurrent: bool = True,
    ) -> None:
        self.sessionmaker = sessionmaker
        self.cache = cache
        self.ttl = ttl
        self.concurrent = concurrent

    async def _cached(self, key: str, query: Callable[[AsyncSession], Awaitable[Any]]) -> Any:
        async def fetch():
            async with self.sessionmaker() as db:
                return await query(db)

        return await cache_or_fetch(self.cache, key, self.ttl, fetch)

    async def user_stats(self, company: str = "lotus") -> UserSummary:
        async def query(db: AsyncSession) -> Dict[str, Any]:
            stmt = select(
                func.count(User.id).label("total"),
                func.sum(case(((User.status == UserStatus.ACTIVE) & (User.is_inactive == 0), 1), else_=0)).label(
                    "active"
                ),
                func.sum(case((User.type.in_([int(UserType.ADMIN), int(UserType.SUPER_ADMIN)]), 1), else_=0)).label(
                    "admins"
                ),
            ).where(User.deleted_at.is_(None), company_condition(User.company, company))
            row = (await db.execute(stmt)).one()
            return {"total": row.total or 0, "active": row.active or 0, "admins": row.admins or 0}

        return UserSummary(**await self._cached(f"{CACHE_NAMESPACE}:users:{company}", query))

    async def learning_stats(self, year: int, company: str = "lotus") -> LearningSummary:
        async def query(db: AsyncSession) -> Dict[str, Any]:
            stmt = (
                select(
                    func.count(ClassStudent.id).label("total_records"),
                    func.sum(_completed).label("completed"),
                    func.sum(
                        case(
                            (
                                (ClassStudent.is_finished == FinishedState.IN_PROGRESS)
                                | ClassStudent.is_finished.is_(None),
                                1,
                            ),
                            else_=0,
                        )
                    ).label("in_progress"),
                    func.sum(
                        case((ClassStudent.is_finished == FinishedState.PENDING_REVIEW, 1), else_=0)
                    ).label("pending_review"),
                    _avg(ClassStudent.posttest).label("avg_posttest"),
                    _avg(ClassStudent.pretest).label("avg_pretest"),
                )
                .outerjoin(User, User.id == ClassStudent.user_id)
                .where(
                    ClassStudent.deleted_at.is_(None),
                    *_year_range(year),
                    company_condition(User.company, company),
                )
            )
            row = (await db.execute(stmt)).one()
            return {
                "total_records": row.total_records or 0,
                "completed": row.completed or 0,
                "in_progress": row.in_progress or 0,
                "pending_review": row.pending_review or 0,
                "avg_posttest": _float(row.avg_posttest),
                "avg_pretest": _float(row.avg_pretest),
            }

        return LearningSummary(**await self._cached(f"{CACHE_NAMESPACE}:learning:{year}:{company}", query))

    async def course_stats(self) -> CourseSummary:
        async def query(db: AsyncSession) -> Dict[str, Any]:
            stmt = select(
                func.count(Course.id).label("total"),
                func.sum(case((Course.status == CourseStatus.ACTIVE, 1), else_=0)).label("active"),
            ).where(Course.deleted_at.is_(None))
            row = (await db.execute(stmt)).one()
            return {"total": row.total or 0, "active": row.active or 0}

        return CourseSummary(**await self._cached(f"{CACHE_NAMESPACE}:courses", query))

    async def top_courses(self, year: int, company: str = "lotus", limit: int = TOP_COURSES_LIMIT) -> List[TopCourse]:
        async def query(db: AsyncSession) -> List[Dict[str, Any]]:
            total = func.count(ClassStudent.id).label("total_enrollments")
            stmt = (
                select(
                    ClassStudent.course_id,
                    func.max(Course.name).label("course_name"),
                    total,
                    func.sum(_completed).label("completed_count"),
                    _avg(ClassStudent.posttest).label("avg_posttest"),
                )
                .outerjoin(Course, Course.id == ClassStudent.course_id)
                .outerjoin(User, User.id == ClassStudent.user_id)
                .where(
                    ClassStudent.deleted_at.is_(None),
                    ClassStudent.course_id.is_not(None),
                    *_year_range(year),
                    company_condition(User.company, company),
                )
                .group_by(ClassStudent.course_id)
                .order_by(total.desc(), ClassStudent.course_id.asc())
                .limit(limit)
            )
            result = await db.execute(stmt)
            return [
                {
                    "course_id": r.course_id,
                    "course_name": r.course_name,
                    "total_enrollments": r.total_enrollments or 0,
                    "completed_count": r.completed_count or 0,
                    "avg_posttest": _float(r.avg_posttest),
                }
                for r in result.all()
            ]

        rows = await self._cached(f"{CACHE_NAMESPACE}:topCourses:{year}:{company}", query)
        return [TopCourse(**r) for r in rows]

    async def monthly_stats(self, year: int, company: str = "lotus") -> List[MonthlyPoint]:
        """Enrollments and completions per month; all 12 months, zero when idle."""

        async def query(db: AsyncSession) -> List[Dict[str, Any]]:
            month = extract("month", ClassStudent.created_at)
            stmt = (
                select(
                    month.label("month"),
                    func.count(ClassStudent.id).label("enrollments"),
                    func.sum(_completed).label("completions"),
                )
                .outerjoin(User, User.id == ClassStudent.user_id)
                .where(
                    ClassStudent.deleted_at.is_(None),
                    *_year_range(year),
                    company_condition(User.company, company),
                )
                .group_by(month)
            )
            result = await db.execute(stmt)
            by_month = {int(r.month): r for r in result.all()}
            series = []
            for m in range(1, 13):
                row = by_month.get(m)
                series.append(
                    {
                        "month": m,
                        "enrollments": (row.enrollments or 0) if row else 0,
                        "completions": (row.completions or 0) if row else 0,
                    }
                )
            return series

        rows = await self._cached(f"{CACHE_NAMESPACE}:monthly:{year}:{company}", query)
        return [MonthlyPoint(**r) for r in rows]

    async def recent_completions(
        self, year: int, company: str = "lotus", limit: int = RECENT_COMPLETIONS_LIMIT
    ) -> List[RecentCompletion]:
        async def query(db: AsyncSession) -> List[Dict[str, Any]]:
            stmt = (
                select(
                    ClassStudent.id,
                    ClassStudent.user_id,
                    ClassStudent.course_id,
                    ClassStudent.score,
                    ClassStudent.total_score,
                    ClassStudent.posttest,
                    ClassStudent.updated_at,
                    User.employee_id,
                    User.first_name,
                    User.last_name,
                    User.name_thai,
                    User.company,
                    Course.name.label("course_name"),
                )
                .outerjoin(User, User.id == ClassStudent.user_id)
                .outerjoin(Course, Course.id == ClassStudent.course_id)
                .where(
                    ClassStudent.deleted_at.is_(None),
                    ClassStudent.is_finished == FinishedState.COMPLETED,
                    *_year_range(year),
                    company_condition(User.company, company),
                )
                .order_by(ClassStudent.updated_at.desc(), ClassStudent.id.desc())
                .limit(limit)
            )
            result = await db.execute(stmt)
            return [RecentCompletion(**r._mapping).model_dump(mode="json") for r in result.all()]

        rows = await self._cached(f"{CACHE_NAMESPACE}:recentCompletions:{year}:{company}", query)
        return [RecentCompletion(**r) for r in rows]

    async def available_years(self) -> List[int]:
        async def query(db: AsyncSession) -> List[int]:
            year = extract("year", ClassStudent.created_at)
            stmt = (
                select(year.label("year"))
                .where(ClassStudent.deleted_at.is_(None), ClassStudent.created_at.is_not(None))
                .group_by(year)
                .order_by(year.desc())
                .limit(AVAILABLE_YEARS_LIMIT)
            )
            result = await db.execute(stmt)
            return [int(y) for y in result.scalars().all()]

        return await self._cached(f"{CACHE_NAMESPACE}:availableYears", query)

    async def get_all_stats(self, year: Optional[int] = None, company: Optional[str] = None) -> DashboardSnapshot:
        if not year or not MIN_YEAR <= year <= MAX_YEAR:
            year = datetime.now().year
        company = normalize_company(company)
        calls = (
            lambda: self.user_stats(company),
            lambda: self.learning_stats(year, company),
            self.course_stats,
            lambda: self.top_courses(year, company),
            lambda: self.monthly_stats(year, company),
            lambda: self.recent_completions(year, company),
            self.available_years,
        )
        if self.concurrent:
            results = await asyncio.gather(*(call() for call in calls))
        else:
            results = [await call() for call in calls]
        users, learning, courses, top, monthly, recent, years = results
        return DashboardSnapshot(
            users=users,
            learning=learning,
            courses=courses,
            top_courses=top,
            monthly_data=monthly,
            recent_completions=recent,
            available_years=years,
            selected_year=year,
            selected_company=company,
        )

    async def clear_cache(self) -> bool:
        cleared = await clear_namespace(self.cache, CACHE_NAMESPACE)
        if cleared:
            logger.info("Dashboard cache cleared")
        return cleared
