from datetime import datetime

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from lms_admin.api.users import service
from lms_admin.api.users.schemas import UserUpdate
from lms_admin.core.enums import UserType
from lms_admin.core.models import ClassRoom, ClassStudent, Course, Format, User


@pytest.fixture()
async def people(db_session: AsyncSession):
    hyper = Format(name="Hypermarket")
    db_session.add(hyper)
    await db_session.flush()
    users = [
        User(employee_id="L001", first_name="Anan", last_name="Dee", company=None, format_id=hyper.id),
        User(employee_id="L002", first_name="Boon", name_thai="บุญ", company="lotus", is_inactive=1),
        User(employee_id="M001", first_name="Chai", company="makro", type=int(UserType.ADMIN)),
        User(employee_id="M002", first_name="Dao", company="makro", status=0),
    ]
    db_session.add_all(users)
    await db_session.commit()
    return users


@pytest.mark.asyncio
async def test_list_filters_by_company(db_session: AsyncSession, people) -> None:
    lotus = await service.list_users(db_session, company="lotus")
    makro = await service.list_users(db_session, company="makro")
    everyone = await service.list_users(db_session, company="all")

    assert sorted(u.employee_id for u in lotus.data) == ["L001", "L002"]
    assert sorted(u.employee_id for u in makro.data) == ["M001", "M002"]
    assert everyone.pagination.total == 4


@pytest.mark.asyncio
async def test_list_keyword_and_format_name(db_session: AsyncSession, people) -> None:
    page = await service.list_users(db_session, keyword="Anan", company="all")

    assert [u.employee_id for u in page.data] == ["L001"]
    assert page.data[0].format_name == "Hypermarket"


@pytest.mark.asyncio
async def test_stats_per_company(db_session: AsyncSession, people) -> None:
    lotus = await service.user_stats(db_session, "lotus")
    makro = await service.user_stats(db_session, "makro")

    assert (lotus.total, lotus.active, lotus.inactive, lotus.admins) == (2, 1, 1, 0)
    assert (makro.total, makro.active, makro.inactive, makro.admins) == (2, 1, 0, 1)


@pytest.mark.asyncio
async def test_search_and_lookup_by_employee_id(db_session: AsyncSession, people) -> None:
    results = await service.search_users(db_session, "M00")
    assert [r.text for r in results] == ["M001 - Chai", "M002 - Dao"]

    thai = await service.search_users(db_session, "L002")
    assert thai[0].name == "บุญ"

    found = await service.get_user_by_employee_id(db_session, "L001")
    assert found is not None and found.first_name == "Anan"
    assert await service.get_user_by_employee_id(db_session, "X999") is None


@pytest.mark.asyncio
async def test_update_only_changes_submitted_fields(db_session: AsyncSession, people) -> None:
    user_id = people[0].id
    payload = UserUpdate.from_form({"phone": " 0812345678 ", "status": "", "company": "makro", "last_name": "Dee"})

    updated = await service.update_user(db_session, user_id, payload)

    assert updated.phone == "0812345678"
    assert updated.status == 1
    assert updated.company is None
    assert updated.first_name == "Anan"


@pytest.mark.asyncio
async def test_course_history_and_enrollment_detail(db_session: AsyncSession, people) -> None:
    course = Course(name="Fresh Food", status=1, type=1)
    room = ClassRoom(course_id=None, user_id=99, is_finished=0)
    db_session.add_all([course, room])
    await db_session.flush()
    older = ClassStudent(
        user_id=people[0].id, class_id=room.id, course_id=course.id, is_finished=1, posttest=90,
        created_at=datetime(2024, 1, 5),
    )
    newer = ClassStudent(
        user_id=people[0].id, class_id=room.id, course_id=course.id, is_finished=0,
        created_at=datetime(2024, 6, 1),
    )
    db_session.add_all([older, newer])
    await db_session.commit()

    history = await service.course_history(db_session, people[0].id)

    assert history.pagination.total == 2
    assert [h.class_student_id for h in history.data] == [newer.id, older.id]
    assert history.data[0].course_name == "Fresh Food"
    assert history.data[0].class_creator_id == 99

    detail = await service.get_class_student(db_session, older.id)
    assert detail.employee_id == "L001"
    assert detail.posttest == 90
    assert await service.get_class_student(db_session, 12345) is None


# ----- HTTP -----


@pytest.mark.asyncio
async def test_list_page_defaults_to_lotus(auth_client: AsyncClient, people) -> None:
    response = await auth_client.get("/user")

    assert response.status_code == 200
    assert "L001" in response.text
    assert "M001" not in response.text


@pytest.mark.asyncio
async def test_api_stats_defaults_to_all(auth_client: AsyncClient, people) -> None:
    body = (await auth_client.get("/user/api/stats")).json()

    assert body["success"] is True
    assert body["data"]["total"] == 4


@pytest.mark.asyncio
async def test_api_search_needs_two_characters(auth_client: AsyncClient, people) -> None:
    short = await auth_client.get("/user/api/search", params={"q": "M"})
    assert short.json() == {"success": True, "data": []}

    longer = await auth_client.get("/user/api/search", params={"q": "M0"})
    assert len(longer.json()["data"]) == 2


@pytest.mark.asyncio
async def test_api_lookups(auth_client: AsyncClient, people) -> None:
    by_employee = await auth_client.get("/user/api/employee/M002")
    assert by_employee.json()["data"]["first_name"] == "Dao"

    missing = await auth_client.get("/user/api/enrollment/777")
    assert missing.status_code == 404
    assert missing.json()["error"] == "Enrollment not found"

    not_a_user = await auth_client.get("/user/api/999")
    assert not_a_user.status_code == 404


@pytest.mark.asyncio
async def test_edit_form_post_redirects_to_profile(auth_client: AsyncClient, people) -> None:
    user_id = people[1].id

    response = await auth_client.post(f"/user/{user_id}/edit", data={"position": "Cashier", "is_inactive": "0"})

    assert response.status_code == 302
    assert response.headers["location"] == f"/user/{user_id}?success=updated"
    profile = await auth_client.get(f"/user/{user_id}")
    assert profile.status_code == 200
    assert "Cashier" in profile.text


@pytest.mark.asyncio
async def test_delete_is_role_gated(auth_client: AsyncClient, people) -> None:
    response = await auth_client.post(f"/user/{people[0].id}/delete")

    assert response.status_code == 403
    assert (await auth_client.get(f"/user/api/{people[0].id}")).status_code == 200


@pytest.mark.asyncio
async def test_manager_can_delete(admin_client: AsyncClient, people) -> None:
    user_id = people[0].id

    response = await admin_client.post(f"/user/{user_id}/delete")

    assert response.status_code == 302
    assert response.headers["location"] == "/user?success=deleted"
    assert (await admin_client.get(f"/user/api/{user_id}")).status_code == 404
