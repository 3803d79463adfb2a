import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lms_admin.api.responses import api_error, api_ok, redirect
from lms_admin.auth.dependencies import ADMIN_ROLES, require_auth, require_role
from lms_admin.core.company import normalize_company
from lms_admin.core.enums import Company
from lms_admin.core.forms import to_int
from lms_admin.core.models.user import display_name
from lms_admin.db.pagination import Pagination, clamp_page
from lms_admin.db.session import get_db
from lms_admin.templating import render

from . import service
from .schemas import UserStats, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["user"], dependencies=[Depends(require_auth)])


# API routes come first so "/api/..." never matches "/{user_id}".


@router.get("/api/search")
async def api_search(q: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    if not q or len(q) < service.SEARCH_MIN_LENGTH:
        return api_ok([])
    try:
        users = await service.search_users(db, q)
    except SQLAlchemyError as e:
        logger.exception("User search failed")
        return api_error(str(e))
    return api_ok(users)


@router.get("/api/stats")
async def api_stats(company: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    try:
        stats = await service.user_stats(db, normalize_company(company, default=Company.ALL.value))
    except SQLAlchemyError as e:
        logger.exception("Failed to fetch user stats")
        return api_error(str(e))
    return api_ok(stats)


@router.get("/api/employee/{employee_id}")
async def api_get_by_employee_id(employee_id: str, db: AsyncSession = Depends(get_db)):
    try:
        user = await service.get_user_by_employee_id(db, employee_id)
    except SQLAlchemyError as e:
        logger.exception("Failed to fetch employee %s", employee_id)
        return api_error(str(e))
    if not user:
        return api_error("User not found", status.HTTP_404_NOT_FOUND)
    return api_ok(user)


@router.get("/api/enrollment/{class_student_id}")
async def api_enrollment(class_student_id: int, db: AsyncSession = Depends(get_db)):
    try:
        record = await service.get_class_student(db, class_student_id)
    except SQLAlchemyError as e:
        logger.exception("Failed to fetch enrollment %s", class_student_id)
        return api_error(str(e))
    if not record:
        return api_error("Enrollment not found", status.HTTP_404_NOT_FOUND)
    return api_ok(record)


@router.get("/api/{user_id}")
async def api_get(user_id: int, db: AsyncSession = Depends(get_db)):
    try:
        user = await service.get_user(db, user_id)
    except SQLAlchemyError as e:
        logger.exception("Failed to fetch user %s", user_id)
        return api_error(str(e))
    if not user:
        return api_error("User not found", status.HTTP_404_NOT_FOUND)
    return api_ok(user)


@router.get("/api/{user_id}/courses")
async def api_course_history(user_id: int, page: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    try:
        history = await service.course_history(db, user_id, page=clamp_page(page))
    except SQLAlchemyError as e:
        logger.exception("Failed to fetch course history for user %s", user_id)
        return api_error(str(e))
    return api_ok(history)


@router.get("")
async def list_users(
    request: Request,
    k: Optional[str] = None,
    format_id: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    type_filter: Optional[str] = Query(None, alias="type"),
    is_inactive: Optional[str] = None,
    company: Optional[str] = None,
    page: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    company = normalize_company(company)
    filters = {
        "keyword": k,
        "format_id": format_id,
        "status": status_filter,
        "type": type_filter,
        "is_inactive": is_inactive,
        "company": company,
    }
    try:
        result = await service.list_users(
            db,
            keyword=k,
            format_id=to_int(format_id),
            status=to_int(status_filter),
            user_type=to_int(type_filter),
            is_inactive=to_int(is_inactive),
            company=company,
            page=clamp_page(page),
        )
        stats = await service.user_stats(db, company)
        formats = await service.formats_for_select(db)
    except SQLAlchemyError:
        logger.exception("Failed to load users")
        return render(
            request,
            "user/list.html",
            {
                "page_title": "User Management",
                "users": [],
                "pagination": Pagination.build(0, 1, service.PER_PAGE),
                "stats": UserStats(),
                "formats": [],
                "filters": {},
                "error": "Failed to load users",
            },
        )
    return render(
        request,
        "user/list.html",
        {
            "page_title": "User Management",
            "users": result.data,
            "pagination": result.pagination,
            "stats": stats,
            "formats": formats,
            "filters": filters,
        },
    )


@router.get("/{user_id}")
async def show_user(user_id: int, request: Request, page: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    try:
        user = await service.get_user(db, user_id)
        if not user:
            return redirect("/user?error=notfound")
        history = await service.course_history(db, user_id, page=clamp_page(page))
    except SQLAlchemyError:
        logger.exception("Failed to load user %s", user_id)
        return redirect("/user?error=fetch")
    return render(
        request,
        "user/view.html",
        {
            "page_title": f"User: {display_name(user)}",
            "profile": user,
            "course_history": history.data,
            "pagination": history.pagination,
        },
    )


@router.get("/{user_id}/edit")
async def edit_user(user_id: int, request: Request, db: AsyncSession = Depends(get_db)):
    try:
        user = await service.get_user(db, user_id)
        if not user:
            return redirect("/user?error=notfound")
        formats = await service.formats_for_select(db)
    except SQLAlchemyError:
        logger.exception("Failed to open user %s for editing", user_id)
        return redirect("/user?error=fetch")
    return render(
        request,
        "user/edit.html",
        {"page_title": f"Edit User: {display_name(user)}", "profile": user, "formats": formats},
    )


@router.post("/{user_id}/edit")
async def update_user(user_id: int, request: Request, db: AsyncSession = Depends(get_db)):
    payload = UserUpdate.from_form(await request.form())
    try:
        await service.update_user(db, user_id, payload)
    except SQLAlchemyError:
        logger.exception("Failed to update user %s", user_id)
        return redirect(f"/user/{user_id}/edit?error=update")
    return redirect(f"/user/{user_id}?success=updated")


@router.post("/{user_id}/delete", dependencies=[Depends(require_role(*ADMIN_ROLES))])
async def delete_user(user_id: int, db: AsyncSession = Depends(get_db)):
    try:
        await service.delete_user(db, user_id)
    except SQLAlchemyError:
        logger.exception("Failed to delete user %s", user_id)
        return redirect("/user?error=delete")
    return redirect("/user?success=deleted")
