"""Organization hierarchy administration: Format -> Functions -> Department."""

from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lms_admin.core.exceptions import NotFoundError, ValidationError
from lms_admin.core.models import Department, Format, Functions, User
from lms_admin.db.record_store import RecordStore

from .schemas import DepartmentResponse, FormatResponse, FunctionsResponse, OrgOption, OrgUnitForm


async def _name_taken(db: AsyncSession, model, name: str, exclude_id: Optional[int] = None, **scope) -> bool:
    """True when a live row of ``model`` already uses ``name`` within ``scope``."""
    stmt = select(func.count(model.id)).where(model.name == name, model.deleted_at.is_(None))
    for column, value in scope.items():
        stmt = stmt.where(getattr(model, column) == value)
    if exclude_id:
        stmt = stmt.where(model.id != exclude_id)
    return int((await db.execute(stmt)).scalar() or 0) > 0


# ----- Format -----


async def list_formats(db: AsyncSession) -> List[FormatResponse]:
    rows = await RecordStore(Format, db).find_all(order_by=["order", "id"])
    return [FormatResponse.model_validate(f) for f in rows]


async def format_options(db: AsyncSession) -> List[OrgOption]:
    rows = await RecordStore(Format, db).find_all(where={"status": 1}, order_by=["order", "name"])
    return [OrgOption(id=f.id, name=f.name) for f in rows]


async def get_format(db: AsyncSession, format_id: int) -> Optional[FormatResponse]:
    fmt = await RecordStore(Format, db).find_by_id(format_id)
    if not fmt:
        return None
    functions_count = await RecordStore(Functions, db).count({"format_id": format_id})
    return FormatResponse.model_validate(fmt).model_copy(update={"functions_count": functions_count})


async def format_name_exists(db: AsyncSession, name: str, exclude_id: Optional[int] = None) -> bool:
    return await _name_taken(db, Format, name, exclude_id)


async def _validate_format(db: AsyncSession, form: OrgUnitForm, exclude_id: Optional[int] = None) -> None:
    if not form.name:
        raise ValidationError("Format name is required")
    if await format_name_exists(db, form.name, exclude_id):
        raise ValidationError("Format name already exists")


async def create_format(db: AsyncSession, form: OrgUnitForm) -> FormatResponse:
    await _validate_format(db, form)
    fmt = await RecordStore(Format, db).create({"name": form.name, "order": form.order, "status": form.status})
    return FormatResponse.model_validate(fmt)


async def update_format(db: AsyncSession, format_id: int, form: OrgUnitForm) -> bool:
    store = RecordStore(Format, db)
    if not await store.find_by_id(format_id):
        raise NotFoundError("Format not found")
    await _validate_format(db, form, exclude_id=format_id)
    return await store.update(format_id, {"name": form.name, "order": form.order, "status": form.status})


async def delete_format(db: AsyncSession, format_id: int) -> bool:
    return await RecordStore(Format, db).delete(format_id)


# ----- Functions -----


def _functions_with_format():
    return select(Functions, Format.name.label("format_name")).outerjoin(Format, Format.id == Functions.format_id)


async def list_functions(db: AsyncSession) -> List[FunctionsResponse]:
    stmt = (
        _functions_with_format()
        .where(Functions.deleted_at.is_(None))
        .order_by(Functions.format_id.asc(), Functions.order.asc(), Functions.id.asc())
    )
    result = await db.execute(stmt)
    return [
        FunctionsResponse.model_validate(r.Functions).model_copy(update={"format_name": r.format_name})
        for r in result.all()
    ]


async def functions_by_format(db: AsyncSession, format_id: int) -> List[FunctionsResponse]:
    rows = await RecordStore(Functions, db).find_all(
        where={"format_id": format_id, "status": 1}, order_by=["order", "name"]
    )
    return [FunctionsResponse.model_validate(f) for f in rows]


async def functions_options(db: AsyncSession) -> List[OrgOption]:
    stmt = (
        select(Functions.id, Functions.name, Format.name.label("format_name"))
        .outerjoin(Format, Format.id == Functions.format_id)
        .where(Functions.deleted_at.is_(None), Functions.status == 1)
        .order_by(Format.name.asc(), Functions.name.asc())
    )
    result = await db.execute(stmt)
    return [OrgOption(**r._mapping) for r in result.all()]


async def get_functions(db: AsyncSession, functions_id: int) -> Optional[FunctionsResponse]:
    stmt = _functions_with_format().where(Functions.id == functions_id, Functions.deleted_at.is_(None))
    row = (await db.execute(stmt)).first()
    if not row:
        return None
    department_count = await RecordStore(Department, db).count({"functions_id": functions_id})
    return FunctionsResponse.model_validate(row.Functions).model_copy(
        update={"format_name": row.format_name, "department_count": department_count}
    )


async def functions_name_exists(
    db: AsyncSession, name: str, format_id: int, exclude_id: Optional[int] = None
) -> bool:
    return await _name_taken(db, Functions, name, exclude_id, format_id=format_id)


async def _validate_functions(db: AsyncSession, form: OrgUnitForm, exclude_id: Optional[int] = None) -> None:
    if not form.parent_id or not form.name:
        raise ValidationError("Format and Function name are required")
    if await functions_name_exists(db, form.name, form.parent_id, exclude_id):
        raise ValidationError("Function name already exists in this format")


async def create_functions(db: AsyncSession, form: OrgUnitForm) -> FunctionsResponse:
    await _validate_functions(db, form)
    row = await RecordStore(Functions, db).create(
        {"format_id": form.parent_id, "name": form.name, "order": form.order, "status": form.status}
    )
    return FunctionsResponse.model_validate(row)


async def update_functions(db: AsyncSession, functions_id: int, form: OrgUnitForm) -> bool:
    store = RecordStore(Functions, db)
    if not await store.find_by_id(functions_id):
        raise NotFoundError("Function not found")
    await _validate_functions(db, form, exclude_id=functions_id)
    return await store.update(
        functions_id,
        {"format_id": form.parent_id, "name": form.name, "order": form.order, "status": form.status},
    )


async def delete_functions(db: AsyncSession, functions_id: int) -> bool:
    return await RecordStore(Functions, db).delete(functions_id)


# ----- Department -----


def _department_with_hierarchy():
    return (
        select(
            Department,
            Functions.name.label("functions_name"),
            Functions.format_id.label("format_id"),
            Format.name.label("format_name"),
        )
        .outerjoin(Functions, Functions.id == Department.functions_id)
        .outerjoin(Format, Format.id == Functions.format_id)
    )


def _department_response(row) -> DepartmentResponse:
    return DepartmentResponse.model_validate(row.Department).model_copy(
        update={
            "functions_name": row.functions_name,
            "format_id": row.format_id,
            "format_name": row.format_name,
        }
    )


async def list_departments(db: AsyncSession) -> List[DepartmentResponse]:
    stmt = (
        _department_with_hierarchy()
        .where(Department.deleted_at.is_(None))
        .order_by(Format.id.asc(), Functions.id.asc(), Department.order.asc(), Department.id.asc())
    )
    result = await db.execute(stmt)
    return [_department_response(r) for r in result.all()]


async def departments_by_function(db: AsyncSession, functions_id: int) -> List[DepartmentResponse]:
    rows = await RecordStore(Department, db).find_all(
        where={"functions_id": functions_id, "status": 1}, order_by=["order", "name"]
    )
    return [DepartmentResponse.model_validate(d) for d in rows]


async def get_department(db: AsyncSession, department_id: int) -> Optional[DepartmentResponse]:
    stmt = _department_with_hierarchy().where(Department.id == department_id, Department.deleted_at.is_(None))
    row = (await db.execute(stmt)).first()
    return _department_response(row) if row else None


async def department_name_exists(
    db: AsyncSession, name: str, functions_id: int, exclude_id: Optional[int] = None
) -> bool:
    return await _name_taken(db, Department, name, exclude_id, functions_id=functions_id)


async def department_user_count(db: AsyncSession, department_id: int) -> int:
    return await RecordStore(User, db).count({"department_id": department_id})


async def _validate_department(db: AsyncSession, form: OrgUnitForm, exclude_id: Optional[int] = None) -> None:
    if not form.parent_id or not form.name:
        raise ValidationError("Function and Department name are required")
    if await department_name_exists(db, form.name, form.parent_id, exclude_id):
        raise ValidationError("Department name already exists in this function")


async def create_department(db: AsyncSession, form: OrgUnitForm) -> DepartmentResponse:
    await _validate_department(db, form)
    row = await RecordStore(Department, db).create(
        {"functions_id": form.parent_id, "name": form.name, "order": form.order, "status": form.status}
    )
    return DepartmentResponse.model_validate(row)


async def update_department(db: AsyncSession, department_id: int, form: OrgUnitForm) -> bool:
    store = RecordStore(Department, db)
    if not await store.find_by_id(department_id):
        raise NotFoundError("Department not found")
    await _validate_department(db, form, exclude_id=department_id)
    return await store.update(
        department_id,
        {"functions_id": form.parent_id, "name": form.name, "order": form.order, "status": form.status},
    )


async def delete_department(db: AsyncSession, department_id: int) -> bool:
    return await RecordStore(Department, db).delete(department_id)
