import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lms_admin.api.responses import api_error, api_ok, redirect
from lms_admin.auth.dependencies import require_auth
from lms_admin.auth.schemas import SessionUser
from lms_admin.core.exceptions import NotFoundError, ServiceError
from lms_admin.core.forms import to_int
from lms_admin.db.pagination import Pagination, clamp_page
from lms_admin.db.session import get_db
from lms_admin.templating import render

from . import service
from .schemas import (
    CourseForm,
    CourseStats,
    DocumentLinkRequest,
    DocumentOrderRequest,
    PositionSyncRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/course", tags=["course"], dependencies=[Depends(require_auth)])


async def _form_context(db: AsyncSession, course_id: Optional[int] = None) -> dict:
    if course_id is None:
        return {
            "course_documents": [],
            "course_positions": [],
            "all_positions": await service.list_positions(db),
            "position_ids": [],
        }
    course_positions = await service.course_positions(db, course_id)
    return {
        "course_documents": await service.course_documents(db, course_id),
        "course_positions": course_positions,
        "all_positions": await service.list_positions(db),
        "position_ids": [p.position_id for p in course_positions],
    }


@router.get("")
async def list_courses(
    request: Request,
    k: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    type_filter: Optional[str] = Query(None, alias="type"),
    page: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    filters = {"keyword": k, "status": status_filter, "type": type_filter}
    try:
        result = await service.list_courses(
            db,
            keyword=k,
            status=to_int(status_filter),
            course_type=to_int(type_filter),
            page=clamp_page(page),
        )
        stats = await service.course_stats(db)
    except SQLAlchemyError:
        logger.exception("Failed to load courses")
        return render(
            request,
            "course/list.html",
            {
                "page_title": "Course Management",
                "courses": [],
                "pagination": Pagination.build(0, 1, service.PER_PAGE),
                "stats": CourseStats(),
                "filters": {},
                "error": "Failed to load courses",
            },
        )
    return render(
        request,
        "course/list.html",
        {
            "page_title": "Course Management",
            "courses": result.data,
            "pagination": result.pagination,
            "stats": stats,
            "filters": filters,
        },
    )


@router.get("/create")
async def create_form(request: Request, db: AsyncSession = Depends(get_db)):
    try:
        extra = await _form_context(db)
    except SQLAlchemyError:
        logger.exception("Failed to open course create form")
        return redirect("/course?error=fetch")
    return render(
        request,
        "course/form.html",
        {"page_title": "Create Course", "course": None, "action": "create", **extra},
    )


@router.post("/create")
async def store_course(
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(require_auth),
):
    raw = await request.form()
    form = CourseForm.from_form(raw)
    try:
        await service.create_course(db, form, user_id=current_user.id)
    except ServiceError as e:
        return render(
            request,
            "course/form.html",
            {
                "page_title": "Create Course",
                "course": dict(raw),
                "action": "create",
                "error": e.message,
                **await _form_context(db),
            },
        )
    except SQLAlchemyError as e:
        logger.exception("Failed to create course")
        await db.rollback()
        return render(
            request,
            "course/form.html",
            {
                "page_title": "Create Course",
                "course": dict(raw),
                "action": "create",
                "error": f"Failed to create course: {e}",
                **await _form_context(db),
            },
        )
    return redirect("/course?success=created")


@router.get("/{course_id}/edit")
async def edit_form(course_id: int, request: Request, db: AsyncSession = Depends(get_db)):
    try:
        course = await service.get_course(db, course_id)
        if not course:
            return redirect("/course?error=notfound")
        extra = await _form_context(db, course_id)
    except SQLAlchemyError:
        logger.exception("Failed to open course %s", course_id)
        return redirect("/course?error=fetch")
    return render(
        request,
        "course/form.html",
        {"page_title": "Edit Course", "course": course, "action": "edit", **extra},
    )


@router.post("/{course_id}/edit")
async def update_course(course_id: int, request: Request, db: AsyncSession = Depends(get_db)):
    raw = await request.form()
    form = CourseForm.from_form(raw)
    try:
        await service.update_course(db, course_id, form)
    except NotFoundError:
        return redirect("/course?error=notfound")
    except ServiceError as e:
        course = await service.get_course(db, course_id)
        merged = {**(course.model_dump() if course else {}), **dict(raw), "id": course_id}
        return render(
            request,
            "course/form.html",
            {
                "page_title": "Edit Course",
                "course": merged,
                "action": "edit",
                "error": e.message,
                **await _form_context(db, course_id),
            },
        )
    except SQLAlchemyError:
        logger.exception("Failed to update course %s", course_id)
        return redirect(f"/course/{course_id}/edit?error=update")
    return redirect("/course?success=updated")


@router.post("/{course_id}/delete")
async def delete_course(course_id: int, db: AsyncSession = Depends(get_db)):
    try:
        await service.delete_course(db, course_id)
    except SQLAlchemyError:
        logger.exception("Failed to delete course %s", course_id)
        return redirect("/course?error=delete")
    return redirect("/course?success=deleted")


@router.post("/{course_id}/duplicate")
async def duplicate_course(course_id: int, db: AsyncSession = Depends(get_db)):
    try:
        copy = await service.duplicate_course(db, course_id)
    except SQLAlchemyError:
        logger.exception("Failed to duplicate course %s", course_id)
        return redirect("/course?error=duplicate")
    if not copy:
        return redirect("/course?error=duplicate")
    return redirect(f"/course/{copy.id}/edit?success=duplicated")


# ----- JSON API -----


@router.get("/api/list")
async def api_list(
    keyword: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    type_filter: Optional[str] = Query(None, alias="type"),
    page: Optional[str] = None,
    per_page: Optional[str] = Query(None, alias="perPage"),
    db: AsyncSession = Depends(get_db),
):
    try:
        result = await service.list_courses(
            db,
            keyword=keyword,
            status=to_int(status_filter),
            course_type=to_int(type_filter),
            page=clamp_page(page),
            per_page=clamp_page(per_page, default=50),
        )
    except SQLAlchemyError:
        logger.exception("Failed to fetch courses")
        return api_error("Failed to fetch courses")
    return api_ok(result.data, pagination=result.pagination)


@router.get("/api/documents/search")
async def api_search_documents(
    k: Optional[str] = None,
    course_id: Optional[str] = Query(None, alias="courseId"),
    db: AsyncSession = Depends(get_db),
):
    try:
        course_id_value = to_int(course_id)
        exclude = await service.document_ids(db, course_id_value) if course_id_value else []
        documents = await service.search_documents(db, keyword=k, exclude_ids=exclude)
    except SQLAlchemyError:
        logger.exception("Failed to search documents")
        return api_error("Failed to search documents")
    return api_ok(documents)


@router.get("/api/positions/search")
async def api_search_positions(k: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    try:
        positions = await service.search_positions(db, k)
    except SQLAlchemyError:
        logger.exception("Failed to search positions")
        return api_error("Failed to search positions")
    return api_ok(positions)


@router.get("/api/{course_id}")
async def api_get(course_id: int, db: AsyncSession = Depends(get_db)):
    try:
        course = await service.get_course(db, course_id)
    except SQLAlchemyError:
        logger.exception("Failed to fetch course %s", course_id)
        return api_error("Failed to fetch course")
    if not course:
        return api_error("Course not found", status.HTTP_404_NOT_FOUND)
    return api_ok(course)


@router.get("/api/{course_id}/documents")
async def api_course_documents(course_id: int, db: AsyncSession = Depends(get_db)):
    try:
        documents = await service.course_documents(db, course_id)
    except SQLAlchemyError:
        logger.exception("Failed to fetch documents for course %s", course_id)
        return api_error("Failed to fetch documents")
    return api_ok(documents)


@router.post("/api/{course_id}/documents/add")
async def api_add_document(course_id: int, payload: DocumentLinkRequest, db: AsyncSession = Depends(get_db)):
    try:
        await service.add_document(db, course_id, payload.document_id)
        documents = await service.course_documents(db, course_id)
    except SQLAlchemyError:
        logger.exception("Failed to add document to course %s", course_id)
        return api_error("Failed to add document")
    return api_ok(documents)


@router.post("/api/{course_id}/documents/remove")
async def api_remove_document(course_id: int, payload: DocumentLinkRequest, db: AsyncSession = Depends(get_db)):
    try:
        await service.remove_document(db, course_id, payload.document_id)
        documents = await service.course_documents(db, course_id)
    except SQLAlchemyError:
        logger.exception("Failed to remove document from course %s", course_id)
        return api_error("Failed to remove document")
    return api_ok(documents)


@router.post("/api/{course_id}/documents/order")
async def api_document_order(course_id: int, payload: DocumentOrderRequest, db: AsyncSession = Depends(get_db)):
    try:
        await service.reorder_documents(db, course_id, payload.document_ids)
    except SQLAlchemyError:
        logger.exception("Failed to reorder documents for course %s", course_id)
        return api_error("Failed to update order")
    return api_ok()


@router.get("/api/{course_id}/positions")
async def api_course_positions(course_id: int, db: AsyncSession = Depends(get_db)):
    try:
        positions = await service.course_positions(db, course_id)
    except SQLAlchemyError:
        logger.exception("Failed to fetch positions for course %s", course_id)
        return api_error("Failed to fetch positions")
    return api_ok(positions)


@router.post("/api/{course_id}/positions/sync")
async def api_sync_positions(course_id: int, payload: PositionSyncRequest, db: AsyncSession = Depends(get_db)):
    try:
        await service.sync_positions(db, course_id, payload.position_ids)
        positions = await service.course_positions(db, course_id)
    except SQLAlchemyError:
        logger.exception("Failed to sync positions for course %s", course_id)
        return api_error("Failed to sync positions")
    return api_ok(positions, message="Positions updated")
