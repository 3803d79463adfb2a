import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from lms_admin.api.course import service
from lms_admin.api.course.schemas import CourseForm
from lms_admin.core.enums import CourseStatus, CourseType
from lms_admin.core.exceptions import NotFoundError, ValidationError
from lms_admin.core.models import Document, Position
from lms_admin.db.record_store import RecordStore


def _form(**values) -> CourseForm:
    return CourseForm.from_form(values)


def test_form_status_action_wins_and_invalid_values_fall_back() -> None:
    form = _form(name="Safety", status="1", status_action="2", type="99", pretest="1", is_register="on")

    assert form.status == CourseStatus.DRAFT
    assert form.type == CourseType.NORMAL
    assert form.pretest == 1
    assert form.posttest == 0
    assert form.is_register == 1


def test_form_accepts_inactive_status() -> None:
    assert _form(name="Old", status="0").status == CourseStatus.INACTIVE


@pytest.mark.asyncio
async def test_create_requires_name(db_session: AsyncSession) -> None:
    with pytest.raises(ValidationError) as exc:
        await service.create_course(db_session, _form(name="  "))
    assert exc.value.message == "Course name is required"


@pytest.mark.asyncio
async def test_course_code_is_unique_among_live_courses(db_session: AsyncSession) -> None:
    first = await service.create_course(db_session, _form(name="Food Safety", course_code="FS-01"))

    with pytest.raises(ValidationError) as exc:
        await service.create_course(db_session, _form(name="Another", course_code="FS-01"))
    assert exc.value.message == "Course code already exists"

    await service.delete_course(db_session, first.id)
    again = await service.create_course(db_session, _form(name="Food Safety v2", course_code="FS-01"))
    assert again.course_code == "FS-01"


@pytest.mark.asyncio
async def test_update_keeps_own_code_and_rejects_missing(db_session: AsyncSession) -> None:
    course = await service.create_course(db_session, _form(name="Fire Drill", course_code="FD"))

    course_id = course.id
    assert await service.update_course(db_session, course_id, _form(name="Fire Drill 2", course_code="FD", status="1"))
    db_session.expire_all()
    updated = await service.get_course(db_session, course_id)
    assert updated.name == "Fire Drill 2"
    assert updated.status == CourseStatus.ACTIVE

    with pytest.raises(NotFoundError):
        await service.update_course(db_session, 404, _form(name="Ghost"))


@pytest.mark.asyncio
async def test_duplicate_creates_draft_copy(db_session: AsyncSession) -> None:
    course = await service.create_course(db_session, _form(name="Onboarding", course_code="ONB", status="1"))

    copy = await service.duplicate_course(db_session, course.id)

    assert copy.id != course.id
    assert copy.name == "Onboarding (Copy)"
    assert copy.course_code == "ONB-copy"
    assert copy.status == CourseStatus.DRAFT
    assert await service.duplicate_course(db_session, 999) is None


@pytest.mark.asyncio
async def test_list_counts_only_live_document_links(db_session: AsyncSession) -> None:
    course = await service.create_course(db_session, _form(name="Hygiene"))
    docs = RecordStore(Document, db_session)
    video = await docs.create({"name": "Intro video", "type": 2})
    pdf = await docs.create({"name": "Handbook", "type": 5})

    await service.add_document(db_session, course.id, video.id)
    await service.add_document(db_session, course.id, video.id)
    await service.add_document(db_session, course.id, pdf.id)
    await service.remove_document(db_session, course.id, pdf.id)

    page = await service.list_courses(db_session)
    assert page.pagination.total == 1
    assert page.data[0].document_count == 1


@pytest.mark.asyncio
async def test_reorder_documents_assigns_positions(db_session: AsyncSession) -> None:
    course = await service.create_course(db_session, _form(name="Ordering"))
    docs = RecordStore(Document, db_session)
    ids = [(await docs.create({"name": f"Doc {i}", "type": 1})).id for i in range(3)]
    for document_id in ids:
        await service.add_document(db_session, course.id, document_id)

    await service.reorder_documents(db_session, course.id, list(reversed(ids)))

    items = await service.course_documents(db_session, course.id)
    assert [i.document_id for i in items] == list(reversed(ids))
    assert [i.order for i in items] == [1, 2, 3]
    assert items[0].type_label == "Info"


@pytest.mark.asyncio
async def test_search_documents_excludes_linked(db_session: AsyncSession) -> None:
    course = await service.create_course(db_session, _form(name="Search"))
    docs = RecordStore(Document, db_session)
    linked = await docs.create({"name": "Guide A", "type": 1})
    free = await docs.create({"name": "Guide B", "type": 1})
    await service.add_document(db_session, course.id, linked.id)

    exclude = await service.document_ids(db_session, course.id)
    results = await service.search_documents(db_session, keyword="Guide", exclude_ids=exclude)

    assert [d.id for d in results] == [free.id]


@pytest.mark.asyncio
async def test_sync_positions_adds_and_removes(db_session: AsyncSession) -> None:
    course = await service.create_course(db_session, _form(name="Positions"))
    positions = RecordStore(Position, db_session)
    cashier = await positions.create({"name": "Cashier"})
    baker = await positions.create({"name": "Baker"})
    driver = await positions.create({"name": "Driver"})

    await service.sync_positions(db_session, course.id, [cashier.id, baker.id])
    await service.sync_positions(db_session, course.id, [baker.id, driver.id])

    linked = await service.course_positions(db_session, course.id)
    assert sorted(p.position_name for p in linked) == ["Baker", "Driver"]


# ----- HTTP -----


@pytest.mark.asyncio
async def test_pages_require_login(client: AsyncClient) -> None:
    response = await client.get("/course")
    assert response.status_code == 302
    assert response.headers["location"] == "/login"

    api = await client.get("/course/api/list")
    assert api.status_code == 401
    assert api.json() == {"success": False, "error": "Authentication required"}


@pytest.mark.asyncio
async def test_create_form_round_trip(auth_client: AsyncClient) -> None:
    invalid = await auth_client.post("/course/create", data={"name": ""})
    assert invalid.status_code == 200
    assert "Course name is required" in invalid.text

    created = await auth_client.post("/course/create", data={"name": "Cold Chain", "course_code": "CC-1", "status": "1"})
    assert created.status_code == 302
    assert created.headers["location"] == "/course?success=created"

    listing = await auth_client.get("/course/api/list")
    body = listing.json()
    assert body["success"] is True
    assert body["pagination"]["totalPages"] == 1
    assert body["data"][0]["name"] == "Cold Chain"
    assert body["data"][0]["user_id"] == 1

    page = await auth_client.get("/course")
    assert page.status_code == 200
    assert "Cold Chain" in page.text


@pytest.mark.asyncio
async def test_api_get_missing_course(auth_client: AsyncClient) -> None:
    response = await auth_client.get("/course/api/12345")
    assert response.status_code == 404
    assert response.json()["error"] == "Course not found"


@pytest.mark.asyncio
async def test_document_api_uses_camel_case(auth_client: AsyncClient, db_session: AsyncSession) -> None:
    course = await service.create_course(db_session, _form(name="API"))
    doc = await RecordStore(Document, db_session).create({"name": "Clip", "type": 2})

    response = await auth_client.post(f"/course/api/{course.id}/documents/add", json={"documentId": doc.id})

    body = response.json()
    assert body["success"] is True
    assert body["data"][0]["typeLabel"] == "Video"
    assert body["data"][0]["document_id"] == doc.id


@pytest.mark.asyncio
async def test_edit_unknown_course_redirects(auth_client: AsyncClient) -> None:
    response = await auth_client.get("/course/777/edit")
    assert response.status_code == 302
    assert response.headers["location"] == "/course?error=notfound"
