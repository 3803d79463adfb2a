import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lms_admin.api.course.service import courses_for_select
from lms_admin.api.responses import api_error, api_ok, redirect
from lms_admin.auth.dependencies import require_auth
from lms_admin.auth.schemas import SessionUser
from lms_admin.core.enums import QuizStatus
from lms_admin.core.exceptions import NotFoundError, ServiceError
from lms_admin.core.forms import to_int
from lms_admin.db.pagination import Pagination, clamp_page
from lms_admin.db.session import get_db
from lms_admin.templating import render

from . import service
from .schemas import (
    QuestionAbcdPayload,
    QuestionDeleteRequest,
    QuestionReorderRequest,
    QuizForm,
    QuizStats,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["quiz"], dependencies=[Depends(require_auth)])

SUBMIT_PUBLISH = {"publish": int(QuizStatus.PUBLISHED), "draft": int(QuizStatus.DRAFT)}


@router.get("/quiz")
async def list_quizzes(
    request: Request,
    k: Optional[str] = None,
    course_id: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    page: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    filters = {"keyword": k, "course_id": course_id, "status": status_filter}
    try:
        result = await service.list_quizzes(
            db,
            keyword=k,
            course_id=to_int(course_id),
            status=to_int(status_filter),
            page=clamp_page(page),
        )
        stats = await service.quiz_stats(db)
    except SQLAlchemyError:
        logger.exception("Failed to load quizzes")
        return render(
            request,
            "settings/quiz/list.html",
            {
                "page_title": "Quiz Management",
                "quizzes": [],
                "pagination": Pagination.build(0, 1, service.PER_PAGE),
                "stats": QuizStats(),
                "filters": {},
                "error": "Failed to load quizzes",
            },
        )
    return render(
        request,
        "settings/quiz/list.html",
        {
            "page_title": "Quiz Management",
            "quizzes": result.data,
            "pagination": result.pagination,
            "stats": stats,
            "filters": filters,
        },
    )


@router.get("/quiz/create")
async def create_form(request: Request, db: AsyncSession = Depends(get_db)):
    try:
        courses = await courses_for_select(db)
    except SQLAlchemyError:
        logger.exception("Failed to open quiz create form")
        return redirect("/settings/quiz?error=fetch")
    return render(
        request,
        "settings/quiz/form.html",
        {"page_title": "Create Quiz", "quiz": None, "action": "create", "courses": courses},
    )


@router.post("/quiz/create")
async def store_quiz(
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(require_auth),
):
    form = QuizForm.from_form(await request.form())
    try:
        quiz = await service.create_quiz(db, form, user_id=current_user.id)
    except ServiceError as e:
        return redirect(f"/settings/quiz/create?error={e.message}")
    except SQLAlchemyError:
        logger.exception("Failed to create quiz")
        return redirect("/settings/quiz/create?error=create_failed")
    return redirect(f"/settings/quiz/{quiz.id}/edit?success=created")


@router.get("/quiz/{quiz_id}/edit")
async def edit_form(quiz_id: int, request: Request, db: AsyncSession = Depends(get_db)):
    try:
        quiz = await service.get_quiz_with_questions(db, quiz_id)
        if not quiz:
            return redirect("/settings/quiz?error=notfound")
        courses = await courses_for_select(db)
    except SQLAlchemyError:
        logger.exception("Failed to open quiz %s", quiz_id)
        return redirect("/settings/quiz?error=fetch")
    return render(
        request,
        "settings/quiz/form.html",
        {"page_title": "Edit Quiz", "quiz": quiz, "action": "edit", "courses": courses},
    )


@router.post("/quiz/{quiz_id}/edit")
async def update_quiz(quiz_id: int, request: Request, db: AsyncSession = Depends(get_db)):
    raw = await request.form()
    submit = raw.get("submit")
    try:
        if submit == "duplicate":
            copy = await service.duplicate_quiz(db, quiz_id)
            if not copy:
                return redirect(f"/settings/quiz/{quiz_id}/edit?error=duplicate_failed")
            return redirect(f"/settings/quiz/{copy.id}/edit?success=duplicated")
        await service.update_quiz(db, quiz_id, QuizForm.from_form(raw), is_publish=SUBMIT_PUBLISH.get(submit))
    except NotFoundError:
        return redirect("/settings/quiz?error=notfound")
    except ServiceError as e:
        return redirect(f"/settings/quiz/{quiz_id}/edit?error={e.message}")
    except SQLAlchemyError:
        logger.exception("Failed to update quiz %s", quiz_id)
        return redirect(f"/settings/quiz/{quiz_id}/edit?error=update")
    return redirect(f"/settings/quiz/{quiz_id}/edit?success=updated")


@router.post("/quiz/{quiz_id}/delete")
async def delete_quiz(quiz_id: int, db: AsyncSession = Depends(get_db)):
    try:
        await service.delete_quiz(db, quiz_id)
    except SQLAlchemyError:
        logger.exception("Failed to delete quiz %s", quiz_id)
        return redirect("/settings/quiz?error=delete")
    return redirect("/settings/quiz?success=deleted")


# ----- question APIs -----


@router.post("/quiz/{quiz_id}/question/abcd")
async def api_create_question_abcd(quiz_id: int, payload: QuestionAbcdPayload, db: AsyncSession = Depends(get_db)):
    try:
        question = await service.create_question_abcd(db, quiz_id, payload)
        quiz = await service.get_quiz_with_questions(db, quiz_id)
    except ServiceError as e:
        return api_error(e.message, e.status_code)
    except SQLAlchemyError as e:
        logger.exception("Failed to create question for quiz %s", quiz_id)
        return api_error(str(e))
    return api_ok(question=question, questions=quiz.questions if quiz else [])


@router.get("/quiz/{quiz_id}/question/abcd/{question_id}")
async def api_get_question_abcd(quiz_id: int, question_id: int, db: AsyncSession = Depends(get_db)):
    try:
        question = await service.get_question_abcd(db, question_id)
    except SQLAlchemyError as e:
        logger.exception("Failed to fetch question %s", question_id)
        return api_error(str(e))
    if not question:
        return api_error("Question not found", status.HTTP_404_NOT_FOUND)
    return api_ok(question)


@router.put("/quiz/{quiz_id}/question/abcd/{question_id}")
async def api_update_question_abcd(
    quiz_id: int,
    question_id: int,
    payload: QuestionAbcdPayload,
    db: AsyncSession = Depends(get_db),
):
    try:
        question = await service.update_question_abcd(db, question_id, payload)
    except SQLAlchemyError as e:
        logger.exception("Failed to update question %s", question_id)
        return api_error(str(e))
    if not question:
        return api_error("Question not found", status.HTTP_404_NOT_FOUND)
    return api_ok(question=question)


@router.delete("/quiz/{quiz_id}/question/{question_id}")
async def api_delete_question(
    quiz_id: int,
    question_id: int,
    payload: QuestionDeleteRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        await service.delete_question(db, question_id, payload.type)
    except ServiceError as e:
        return api_error(e.message, e.status_code)
    except SQLAlchemyError as e:
        logger.exception("Failed to delete question %s", question_id)
        return api_error(str(e))
    return api_ok()


@router.post("/quiz/{quiz_id}/question/reorder")
async def api_reorder_questions(quiz_id: int, payload: QuestionReorderRequest, db: AsyncSession = Depends(get_db)):
    try:
        await service.reorder_questions(db, quiz_id, payload.orders)
    except SQLAlchemyError as e:
        logger.exception("Failed to reorder questions for quiz %s", quiz_id)
        return api_error(str(e))
    return api_ok()


# ----- JSON API -----


@router.get("/api/quiz")
async def api_list(
    keyword: Optional[str] = None,
    course_id: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    page: Optional[str] = None,
    per_page: Optional[str] = Query(None, alias="perPage"),
    db: AsyncSession = Depends(get_db),
):
    try:
        result = await service.list_quizzes(
            db,
            keyword=keyword,
            course_id=to_int(course_id),
            status=to_int(status_filter),
            page=clamp_page(page),
            per_page=clamp_page(per_page, default=50),
        )
    except SQLAlchemyError as e:
        logger.exception("Failed to fetch quizzes")
        return api_error(str(e))
    return api_ok(result.data, pagination=result.pagination)


@router.get("/api/quiz/{quiz_id}")
async def api_get(quiz_id: int, db: AsyncSession = Depends(get_db)):
    try:
        quiz = await service.get_quiz_with_questions(db, quiz_id)
    except SQLAlchemyError as e:
        logger.exception("Failed to fetch quiz %s", quiz_id)
        return api_error(str(e))
    if not quiz:
        return api_error("Quiz not found", status.HTTP_404_NOT_FOUND)
    return api_ok(quiz)
