from datetime import datetime

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lms_admin.api.dashboard.service import DashboardStats
from lms_admin.core.enums import FinishedState
from lms_admin.core.models import ClassStudent, Course, User


@pytest.fixture()
async def enrollments(db_session: AsyncSession):
    """Lotus learner with four 2024 records, one Makro learner, one 2023 record."""
    safety = Course(name="Food Safety", status=1, type=1)
    fire = Course(name="Fire Drill", status=2, type=1)
    lotus = User(employee_id="L1", first_name="Anan", company=None)
    makro = User(employee_id="M1", first_name="Boon", company="makro")
    db_session.add_all([safety, fire, lotus, makro])
    await db_session.flush()

    def record(user, course, when, finished, pretest=None, posttest=None):
        return ClassStudent(
            user_id=user.id,
            course_id=course.id,
            is_finished=finished,
            pretest=pretest,
            posttest=posttest,
            created_at=when,
            updated_at=when,
        )

    db_session.add_all(
        [
            record(lotus, safety, datetime(2024, 3, 2), FinishedState.COMPLETED, 40, 80),
            record(lotus, safety, datetime(2024, 3, 20), FinishedState.COMPLETED, 60, 90),
            record(lotus, fire, datetime(2024, 7, 1), FinishedState.PENDING_REVIEW),
            record(lotus, fire, datetime(2024, 7, 15), None),
            record(makro, fire, datetime(2024, 7, 9), FinishedState.IN_PROGRESS),
            record(lotus, safety, datetime(2023, 12, 31, 23, 59, 59), FinishedState.COMPLETED),
        ]
    )
    await db_session.commit()
    return {"safety": safety, "fire": fire, "lotus": lotus, "makro": makro}


@pytest.fixture()
def stats(session_factory: async_sessionmaker, cache) -> DashboardStats:
    return DashboardStats(session_factory, cache, ttl=120)


@pytest.mark.asyncio
async def test_monthly_series_is_zero_filled(stats: DashboardStats, enrollments) -> None:
    series = await stats.monthly_stats(2024, "lotus")

    assert [p.month for p in series] == list(range(1, 13))
    assert (series[2].enrollments, series[2].completions) == (2, 2)
    assert (series[6].enrollments, series[6].completions) == (2, 0)
    assert sum(p.enrollments for p in series) == 4
    assert all(p.enrollments == 0 for i, p in enumerate(series) if i not in (2, 6))


@pytest.mark.asyncio
async def test_learning_stats_counts_states_and_averages(stats: DashboardStats, enrollments) -> None:
    learning = await stats.learning_stats(2024, "lotus")

    assert learning.total_records == 4
    assert learning.completed == 2
    assert learning.in_progress == 1
    assert learning.pending_review == 1
    assert learning.avg_posttest == 85.0
    assert learning.avg_pretest == 50.0


@pytest.mark.asyncio
async def test_year_boundary_is_exclusive(stats: DashboardStats, enrollments) -> None:
    learning_2023 = await stats.learning_stats(2023, "lotus")

    assert learning_2023.total_records == 1
    assert learning_2023.avg_posttest is None


@pytest.mark.asyncio
async def test_company_split(stats: DashboardStats, enrollments) -> None:
    makro = await stats.learning_stats(2024, "makro")
    everyone = await stats.learning_stats(2024, "all")

    assert makro.total_records == 1
    assert makro.in_progress == 1
    assert everyone.total_records == 5

    users = await stats.user_stats("makro")
    assert (users.total, users.active, users.admins) == (1, 1, 0)


@pytest.mark.asyncio
async def test_top_courses_and_recent_completions(stats: DashboardStats, enrollments) -> None:
    top = await stats.top_courses(2024, "all")

    assert [(t.course_name, t.total_enrollments, t.completed_count) for t in top] == [
        ("Fire Drill", 3, 0),
        ("Food Safety", 2, 2),
    ]
    assert top[1].avg_posttest == 85.0

    recent = await stats.recent_completions(2024, "lotus")
    assert [r.posttest for r in recent] == [90, 80]
    assert recent[0].course_name == "Food Safety"
    assert recent[0].employee_id == "L1"


@pytest.mark.asyncio
async def test_course_stats_and_years(stats: DashboardStats, enrollments) -> None:
    courses = await stats.course_stats()

    assert (courses.total, courses.active) == (2, 1)
    assert await stats.available_years() == [2024, 2023]


@pytest.mark.asyncio
async def test_second_snapshot_is_served_from_cache(stats: DashboardStats, cache, enrollments) -> None:
    first = await stats.get_all_stats(2024, "lotus")
    sets_after_first = cache.sets

    second = await stats.get_all_stats(2024, "lotus")

    assert sets_after_first == 7
    assert cache.sets == sets_after_first
    assert second == first
    assert "dashboard:monthly:2024:lotus" in cache.store
    assert cache.ttls["dashboard:courses"] == 120


@pytest.mark.asyncio
async def test_clear_cache_forces_recompute(stats: DashboardStats, cache, enrollments) -> None:
    await stats.get_all_stats(2024, "lotus")
    cache.store["session:other"] = "keep"

    assert await stats.clear_cache() is True

    assert list(cache.store) == ["session:other"]
    await stats.get_all_stats(2024, "lotus")
    assert cache.sets == 14


@pytest.mark.asyncio
async def test_sequential_mode_matches_concurrent(session_factory: async_sessionmaker, enrollments) -> None:
    concurrent = await DashboardStats(session_factory).get_all_stats(2024, "all")
    sequential = await DashboardStats(session_factory, concurrent=False).get_all_stats(2024, "all")

    assert concurrent == sequential
    assert concurrent.selected_company == "all"


@pytest.mark.asyncio
async def test_defaults_to_current_year_and_lotus(session_factory: async_sessionmaker) -> None:
    snapshot = await DashboardStats(session_factory).get_all_stats()

    assert snapshot.selected_year == datetime.now().year
    assert snapshot.selected_company == "lotus"
    assert len(snapshot.monthly_data) == 12
    assert snapshot.top_courses == []


# ----- HTTP -----


@pytest.mark.asyncio
async def test_stats_api_uses_camel_case_keys(auth_client: AsyncClient, enrollments) -> None:
    response = await auth_client.get("/api/dashboard/stats", params={"year": "2024", "company": "all"})

    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["selectedYear"] == 2024
    assert data["selectedCompany"] == "all"
    assert len(data["monthlyData"]) == 12
    assert data["topCourses"][0]["course_name"] == "Fire Drill"
    assert data["availableYears"] == [2024, 2023]


@pytest.mark.asyncio
async def test_dashboard_page_renders(auth_client: AsyncClient, enrollments) -> None:
    response = await auth_client.get("/dashboard", params={"year": "2024"})

    assert response.status_code == 200
    assert "Food Safety" in response.text


@pytest.mark.asyncio
async def test_cache_clear_requires_admin_role(auth_client: AsyncClient) -> None:
    response = await auth_client.post("/api/dashboard/cache/clear")

    assert response.status_code == 403
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_manager_clears_cache(admin_client: AsyncClient, cache) -> None:
    cache.store["dashboard:courses"] = "{}"

    response = await admin_client.post("/api/dashboard/cache/clear")

    assert response.json() == {"success": True, "message": "Dashboard cache cleared"}
    assert cache.store == {}


@pytest.mark.asyncio
async def test_cache_clear_when_redis_is_down(admin_client: AsyncClient, cache) -> None:
    cache.is_open = False

    response = await admin_client.post("/api/dashboard/cache/clear")

    assert response.status_code == 503
    assert response.json()["error"] == "Cache is not available"


@pytest.mark.asyncio
@pytest.mark.parametrize("year", ["9999", "-3", "0"])
async def test_out_of_range_year_falls_back_to_current(auth_client: AsyncClient, year: str) -> None:
    api = await auth_client.get("/api/dashboard/stats", params={"year": year})

    assert api.status_code == 200
    body = api.json()
    assert body["success"] is True
    assert body["data"]["selectedYear"] == datetime.now().year

    page = await auth_client.get("/dashboard", params={"year": year})
    assert page.status_code == 200
