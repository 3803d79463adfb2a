import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lms_admin.api.responses import api_error, redirect
from lms_admin.auth.dependencies import require_auth
from lms_admin.core.exceptions import NotFoundError, ServiceError
from lms_admin.db.session import get_db
from lms_admin.templating import render

from . import service
from .schemas import OrgUnitForm

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"], dependencies=[Depends(require_auth)])


def _form_values(raw) -> dict:
    """Submitted values echoed back into a form after a validation error."""
    values = dict(raw)
    values["status"] = 1 if raw.get("status") == "on" else 0
    return values


# ----- JSON API (cascading dropdowns) -----


@router.get("/api/functions/{format_id}")
async def api_functions_by_format(format_id: int, db: AsyncSession = Depends(get_db)):
    try:
        return await service.functions_by_format(db, format_id)
    except SQLAlchemyError as e:
        logger.exception("Failed to fetch functions for format %s", format_id)
        return api_error(str(e))


@router.get("/api/departments/{functions_id}")
async def api_departments_by_function(functions_id: int, db: AsyncSession = Depends(get_db)):
    try:
        return await service.departments_by_function(db, functions_id)
    except SQLAlchemyError as e:
        logger.exception("Failed to fetch departments for function %s", functions_id)
        return api_error(str(e))


# ----- Format -----


@router.get("/format")
async def list_formats(request: Request, db: AsyncSession = Depends(get_db)):
    try:
        formats = await service.list_formats(db)
    except SQLAlchemyError:
        logger.exception("Failed to load formats")
        return render(
            request,
            "settings/format/list.html",
            {"page_title": "Format Management", "formats": [], "error": "Failed to load formats"},
        )
    return render(request, "settings/format/list.html", {"page_title": "Format Management", "formats": formats})


@router.get("/format/create")
async def create_format_form(request: Request):
    return render(
        request,
        "settings/format/form.html",
        {"page_title": "Create Format", "format": None, "action": "create"},
    )


@router.post("/format/create")
async def store_format(request: Request, db: AsyncSession = Depends(get_db)):
    raw = await request.form()
    try:
        await service.create_format(db, OrgUnitForm.from_form(raw))
    except ServiceError as e:
        return render(
            request,
            "settings/format/form.html",
            {"page_title": "Create Format", "format": _form_values(raw), "action": "create", "error": e.message},
        )
    except SQLAlchemyError:
        logger.exception("Failed to create format")
        return redirect("/settings/format?error=create")
    return redirect("/settings/format?success=created")


@router.get("/format/{format_id}/edit")
async def edit_format_form(format_id: int, request: Request, db: AsyncSession = Depends(get_db)):
    try:
        fmt = await service.get_format(db, format_id)
    except SQLAlchemyError:
        logger.exception("Failed to open format %s", format_id)
        return redirect("/settings/format?error=fetch")
    if not fmt:
        return redirect("/settings/format?error=notfound")
    return render(
        request,
        "settings/format/form.html",
        {"page_title": "Edit Format", "format": fmt, "action": "edit"},
    )


@router.post("/format/{format_id}/edit")
async def update_format(format_id: int, request: Request, db: AsyncSession = Depends(get_db)):
    raw = await request.form()
    try:
        await service.update_format(db, format_id, OrgUnitForm.from_form(raw))
    except NotFoundError:
        return redirect("/settings/format?error=notfound")
    except ServiceError as e:
        values = {**_form_values(raw), "id": format_id}
        return render(
            request,
            "settings/format/form.html",
            {"page_title": "Edit Format", "format": values, "action": "edit", "error": e.message},
        )
    except SQLAlchemyError:
        logger.exception("Failed to update format %s", format_id)
        return redirect("/settings/format?error=update")
    return redirect("/settings/format?success=updated")


@router.post("/format/{format_id}/delete")
async def delete_format(format_id: int, db: AsyncSession = Depends(get_db)):
    try:
        await service.delete_format(db, format_id)
    except SQLAlchemyError:
        logger.exception("Failed to delete format %s", format_id)
        return redirect("/settings/format?error=delete")
    return redirect("/settings/format?success=deleted")


# ----- Functions -----


@router.get("/functions")
async def list_functions(request: Request, db: AsyncSession = Depends(get_db)):
    try:
        functions = await service.list_functions(db)
    except SQLAlchemyError:
        logger.exception("Failed to load functions")
        return render(
            request,
            "settings/functions/list.html",
            {"page_title": "Function Management", "functions": [], "error": "Failed to load functions"},
        )
    return render(
        request, "settings/functions/list.html", {"page_title": "Function Management", "functions": functions}
    )


@router.get("/functions/create")
async def create_functions_form(request: Request, db: AsyncSession = Depends(get_db)):
    try:
        formats = await service.format_options(db)
    except SQLAlchemyError:
        logger.exception("Failed to open function create form")
        return redirect("/settings/functions?error=fetch")
    return render(
        request,
        "settings/functions/form.html",
        {"page_title": "Create Function", "functions": None, "formats": formats, "action": "create"},
    )


@router.post("/functions/create")
async def store_functions(request: Request, db: AsyncSession = Depends(get_db)):
    raw = await request.form()
    try:
        await service.create_functions(db, OrgUnitForm.from_form(raw, parent_field="format_id"))
    except ServiceError as e:
        return render(
            request,
            "settings/functions/form.html",
            {
                "page_title": "Create Function",
                "functions": _form_values(raw),
                "formats": await service.format_options(db),
                "action": "create",
                "error": e.message,
            },
        )
    except SQLAlchemyError:
        logger.exception("Failed to create function")
        return redirect("/settings/functions?error=create")
    return redirect("/settings/functions?success=created")


@router.get("/functions/{functions_id}/edit")
async def edit_functions_form(functions_id: int, request: Request, db: AsyncSession = Depends(get_db)):
    try:
        functions = await service.get_functions(db, functions_id)
        if not functions:
            return redirect("/settings/functions?error=notfound")
        formats = await service.format_options(db)
    except SQLAlchemyError:
        logger.exception("Failed to open function %s", functions_id)
        return redirect("/settings/functions?error=fetch")
    return render(
        request,
        "settings/functions/form.html",
        {"page_title": "Edit Function", "functions": functions, "formats": formats, "action": "edit"},
    )


@router.post("/functions/{functions_id}/edit")
async def update_functions(functions_id: int, request: Request, db: AsyncSession = Depends(get_db)):
    raw = await request.form()
    try:
        await service.update_functions(db, functions_id, OrgUnitForm.from_form(raw, parent_field="format_id"))
    except NotFoundError:
        return redirect("/settings/functions?error=notfound")
    except ServiceError as e:
        return render(
            request,
            "settings/functions/form.html",
            {
                "page_title": "Edit Function",
                "functions": {**_form_values(raw), "id": functions_id},
                "formats": await service.format_options(db),
                "action": "edit",
                "error": e.message,
            },
        )
    except SQLAlchemyError:
        logger.exception("Failed to update function %s", functions_id)
        return redirect("/settings/functions?error=update")
    return redirect("/settings/functions?success=updated")


@router.post("/functions/{functions_id}/delete")
async def delete_functions(functions_id: int, db: AsyncSession = Depends(get_db)):
    try:
        await service.delete_functions(db, functions_id)
    except SQLAlchemyError:
        logger.exception("Failed to delete function %s", functions_id)
        return redirect("/settings/functions?error=delete")
    return redirect("/settings/functions?success=deleted")


# ----- Department -----


@router.get("/department")
async def list_departments(request: Request, db: AsyncSession = Depends(get_db)):
    try:
        departments = await service.list_departments(db)
    except SQLAlchemyError:
        logger.exception("Failed to load departments")
        return render(
            request,
            "settings/department/list.html",
            {"page_title": "Department Management", "departments": [], "error": "Failed to load departments"},
        )
    return render(
        request,
        "settings/department/list.html",
        {"page_title": "Department Management", "departments": departments},
    )


@router.get("/department/create")
async def create_department_form(request: Request, db: AsyncSession = Depends(get_db)):
    try:
        formats = await service.format_options(db)
        functions = await service.functions_options(db)
    except SQLAlchemyError:
        logger.exception("Failed to open department create form")
        return redirect("/settings/department?error=fetch")
    return render(
        request,
        "settings/department/form.html",
        {
            "page_title": "Create Department",
            "department": None,
            "formats": formats,
            "functions": functions,
            "action": "create",
        },
    )


@router.post("/department/create")
async def store_department(request: Request, db: AsyncSession = Depends(get_db)):
    raw = await request.form()
    try:
        await service.create_department(db, OrgUnitForm.from_form(raw, parent_field="functions_id"))
    except ServiceError as e:
        return render(
            request,
            "settings/department/form.html",
            {
                "page_title": "Create Department",
                "department": _form_values(raw),
                "formats": await service.format_options(db),
                "functions": await service.functions_options(db),
                "action": "create",
                "error": e.message,
            },
        )
    except SQLAlchemyError:
        logger.exception("Failed to create department")
        return redirect("/settings/department?error=create")
    return redirect("/settings/department?success=created")


@router.get("/department/{department_id}/edit")
async def edit_department_form(department_id: int, request: Request, db: AsyncSession = Depends(get_db)):
    try:
        department = await service.get_department(db, department_id)
        if not department:
            return redirect("/settings/department?error=notfound")
        formats = await service.format_options(db)
        functions = await service.functions_options(db)
        user_count = await service.department_user_count(db, department_id)
    except SQLAlchemyError:
        logger.exception("Failed to open department %s", department_id)
        return redirect("/settings/department?error=fetch")
    return render(
        request,
        "settings/department/form.html",
        {
            "page_title": "Edit Department",
            "department": department,
            "formats": formats,
            "functions": functions,
            "user_count": user_count,
            "action": "edit",
        },
    )


@router.post("/department/{department_id}/edit")
async def update_department(department_id: int, request: Request, db: AsyncSession = Depends(get_db)):
    raw = await request.form()
    try:
        await service.update_department(db, department_id, OrgUnitForm.from_form(raw, parent_field="functions_id"))
    except NotFoundError:
        return redirect("/settings/department?error=notfound")
    except ServiceError as e:
        return render(
            request,
            "settings/department/form.html",
            {
                "page_title": "Edit Department",
                "department": {**_form_values(raw), "id": department_id},
                "formats": await service.format_options(db),
                "functions": await service.functions_options(db),
                "action": "edit",
                "error": e.message,
            },
        )
    except SQLAlchemyError:
        logger.exception("Failed to update department %s", department_id)
        return redirect("/settings/department?error=update")
    return redirect("/settings/department?success=updated")


@router.post("/department/{department_id}/delete")
async def delete_department(department_id: int, db: AsyncSession = Depends(get_db)):
    try:
        await service.delete_department(db, department_id)
    except SQLAlchemyError:
        logger.exception("Failed to delete department %s", department_id)
        return redirect("/settings/department?error=delete")
    return redirect("/settings/department?success=deleted")
