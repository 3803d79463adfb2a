import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from lms_admin.api.settings import service
from lms_admin.api.settings.schemas import OrgUnitForm
from lms_admin.core.exceptions import NotFoundError, ValidationError
from lms_admin.core.models import User


def _unit(name, parent_id=None, order=None, status=1) -> OrgUnitForm:
    values = {"name": name, "parent_id": parent_id, "status": status}
    if order is not None:
        values["order"] = order
    return OrgUnitForm(**values)


@pytest.fixture()
async def hierarchy(db_session: AsyncSession):
    hyper = await service.create_format(db_session, _unit("Hypermarket", order=1))
    express = await service.create_format(db_session, _unit("Express", order=2))
    fresh = await service.create_functions(db_session, _unit("Fresh Food", hyper.id, order=1))
    dry = await service.create_functions(db_session, _unit("Dry Grocery", hyper.id, order=2))
    bakery = await service.create_department(db_session, _unit("Bakery", fresh.id))
    butchery = await service.create_department(db_session, _unit("Butchery", fresh.id))
    return {
        "hyper": hyper,
        "express": express,
        "fresh": fresh,
        "dry": dry,
        "bakery": bakery,
        "butchery": butchery,
    }


def test_form_parsing() -> None:
    form = OrgUnitForm.from_form({"format_id": "3", "name": " Fresh ", "order": "", "status": "on"}, "format_id")

    assert form.parent_id == 3
    assert form.name == "Fresh"
    assert form.order == 999
    assert form.status == 1
    assert OrgUnitForm.from_form({"name": "x"}).status == 0


@pytest.mark.asyncio
async def test_format_names_are_unique(db_session: AsyncSession, hierarchy) -> None:
    with pytest.raises(ValidationError) as exc:
        await service.create_format(db_session, _unit("Hypermarket"))
    assert exc.value.message == "Format name already exists"

    with pytest.raises(ValidationError) as exc:
        await service.create_format(db_session, _unit(None))
    assert exc.value.message == "Format name is required"

    # Renaming to its own name is fine.
    assert await service.update_format(db_session, hierarchy["hyper"].id, _unit("Hypermarket", order=5))


@pytest.mark.asyncio
async def test_deleted_format_frees_its_name(db_session: AsyncSession, hierarchy) -> None:
    await service.delete_format(db_session, hierarchy["express"].id)

    again = await service.create_format(db_session, _unit("Express"))
    assert again.id != hierarchy["express"].id
    assert [f.name for f in await service.list_formats(db_session)] == ["Hypermarket", "Express"]


@pytest.mark.asyncio
async def test_format_detail_counts_functions(db_session: AsyncSession, hierarchy) -> None:
    detail = await service.get_format(db_session, hierarchy["hyper"].id)

    assert detail.functions_count == 2
    assert await service.get_format(db_session, 999) is None
    with pytest.raises(NotFoundError):
        await service.update_format(db_session, 999, _unit("Nope"))


@pytest.mark.asyncio
async def test_function_names_are_scoped_to_format(db_session: AsyncSession, hierarchy) -> None:
    with pytest.raises(ValidationError) as exc:
        await service.create_functions(db_session, _unit("Fresh Food", hierarchy["hyper"].id))
    assert exc.value.message == "Function name already exists in this format"

    with pytest.raises(ValidationError) as exc:
        await service.create_functions(db_session, _unit("Orphan"))
    assert exc.value.message == "Format and Function name are required"

    other = await service.create_functions(db_session, _unit("Fresh Food", hierarchy["express"].id))
    assert other.format_id == hierarchy["express"].id


@pytest.mark.asyncio
async def test_function_listing_and_detail(db_session: AsyncSession, hierarchy) -> None:
    listed = await service.list_functions(db_session)
    assert [(f.name, f.format_name) for f in listed] == [
        ("Fresh Food", "Hypermarket"),
        ("Dry Grocery", "Hypermarket"),
    ]

    detail = await service.get_functions(db_session, hierarchy["fresh"].id)
    assert detail.department_count == 2

    options = await service.functions_options(db_session)
    assert {o.name: o.format_name for o in options} == {"Fresh Food": "Hypermarket", "Dry Grocery": "Hypermarket"}


@pytest.mark.asyncio
async def test_department_names_are_scoped_to_function(db_session: AsyncSession, hierarchy) -> None:
    with pytest.raises(ValidationError) as exc:
        await service.create_department(db_session, _unit("Bakery", hierarchy["fresh"].id))
    assert exc.value.message == "Department name already exists in this function"

    with pytest.raises(ValidationError) as exc:
        await service.create_department(db_session, _unit("", hierarchy["fresh"].id))
    assert exc.value.message == "Function and Department name are required"

    moved = await service.create_department(db_session, _unit("Bakery", hierarchy["dry"].id))
    assert moved.functions_id == hierarchy["dry"].id


@pytest.mark.asyncio
async def test_department_detail_and_user_count(db_session: AsyncSession, hierarchy) -> None:
    bakery_id = hierarchy["bakery"].id
    db_session.add_all([User(employee_id="E1", department_id=bakery_id), User(employee_id="E2", department_id=bakery_id)])
    await db_session.commit()

    detail = await service.get_department(db_session, bakery_id)
    assert detail.functions_name == "Fresh Food"
    assert detail.format_name == "Hypermarket"
    assert detail.format_id == hierarchy["hyper"].id
    assert await service.department_user_count(db_session, bakery_id) == 2


@pytest.mark.asyncio
async def test_by_parent_only_returns_active_rows(db_session: AsyncSession, hierarchy) -> None:
    await service.create_functions(db_session, _unit("Closed", hierarchy["hyper"].id, status=0))
    await service.delete_department(db_session, hierarchy["butchery"].id)

    functions = await service.functions_by_format(db_session, hierarchy["hyper"].id)
    departments = await service.departments_by_function(db_session, hierarchy["fresh"].id)

    assert [f.name for f in functions] == ["Fresh Food", "Dry Grocery"]
    assert [d.name for d in departments] == ["Bakery"]


# ----- HTTP -----


@pytest.mark.asyncio
async def test_cascading_dropdown_api(auth_client: AsyncClient, hierarchy) -> None:
    functions = await auth_client.get(f"/settings/api/functions/{hierarchy['hyper'].id}")
    assert [f["name"] for f in functions.json()] == ["Fresh Food", "Dry Grocery"]

    departments = await auth_client.get(f"/settings/api/departments/{hierarchy['fresh'].id}")
    assert [d["name"] for d in departments.json()] == ["Bakery", "Butchery"]

    empty = await auth_client.get("/settings/api/departments/999")
    assert empty.json() == []


@pytest.mark.asyncio
async def test_format_pages(auth_client: AsyncClient) -> None:
    created = await auth_client.post("/settings/format/create", data={"name": "Mall", "order": "3", "status": "on"})
    assert created.status_code == 302
    assert created.headers["location"] == "/settings/format?success=created"

    duplicate = await auth_client.post("/settings/format/create", data={"name": "Mall"})
    assert duplicate.status_code == 200
    assert "Format name already exists" in duplicate.text

    listing = await auth_client.get("/settings/format")
    assert "Mall" in listing.text


@pytest.mark.asyncio
async def test_function_edit_and_delete(auth_client: AsyncClient, hierarchy) -> None:
    fresh_id = hierarchy["fresh"].id
    hyper_id = str(hierarchy["hyper"].id)

    clash = await auth_client.post(
        f"/settings/functions/{fresh_id}/edit", data={"format_id": hyper_id, "name": "Dry Grocery"}
    )
    assert clash.status_code == 200
    assert "Function name already exists in this format" in clash.text

    renamed = await auth_client.post(
        f"/settings/functions/{fresh_id}/edit", data={"format_id": hyper_id, "name": "Fresh", "status": "on"}
    )
    assert renamed.headers["location"] == "/settings/functions?success=updated"

    missing = await auth_client.post("/settings/functions/999/edit", data={"format_id": hyper_id, "name": "X"})
    assert missing.headers["location"] == "/settings/functions?error=notfound"

    deleted = await auth_client.post(f"/settings/functions/{fresh_id}/delete")
    assert deleted.headers["location"] == "/settings/functions?success=deleted"
    assert (await auth_client.get(f"/settings/functions/{fresh_id}/edit")).headers["location"] == (
        "/settings/functions?error=notfound"
    )


@pytest.mark.asyncio
async def test_department_edit_page_shows_hierarchy(auth_client: AsyncClient, hierarchy) -> None:
    response = await auth_client.get(f"/settings/department/{hierarchy['bakery'].id}/edit")

    assert response.status_code == 200
    assert "Bakery" in response.text
    assert "Fresh Food" in response.text
