import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lms_admin.core.enums import QuestionType, QuizStatus, question_type_name
from lms_admin.core.exceptions import NotFoundError, ValidationError
from lms_admin.core.models import QUESTION_DETAIL_MODELS, Course, Question, QuestionAbcd, Quiz
from lms_admin.db.pagination import paginate
from lms_admin.db.record_store import RecordStore

from .schemas import (
    QuestionAbcdPayload,
    QuestionAbcdResponse,
    QuestionItem,
    QuestionOrder,
    QuizDetail,
    QuizForm,
    QuizListItem,
    QuizListPage,
    QuizResponse,
    QuizStats,
)

logger = logging.getLogger(__name__)

PER_PAGE = 20
DEFAULT_QUESTION_ORDER = 9999

# Columns of a question detail row that are not copied on duplication.
_DETAIL_NOT_COPIED = {"id", "quiz_id", "created_at", "updated_at", "deleted_at"}

_ABCD_DEFAULTS = {
    "answer_a": "",
    "answer_a_correct": 0,
    "answer_b": "",
    "answer_b_correct": 0,
    "answer_c": "",
    "answer_c_correct": 0,
    "answer_d": "",
    "answer_d_correct": 0,
    "order": DEFAULT_QUESTION_ORDER,
    "media_type": 1,
    "is_random": 0,
    "weight": 1,
}


def _columns(obj) -> Dict[str, Any]:
    return {name: getattr(obj, name) for name in obj.__table__.columns.keys()}


def _question_count():
    return (
        select(func.count(Question.id))
        .where(Question.quiz_id == Quiz.id, Question.deleted_at.is_(None))
        .correlate(Quiz)
        .scalar_subquery()
        .label("question_count")
    )


async def list_quizzes(
    db: AsyncSession,
    keyword: Optional[str] = None,
    course_id: Optional[int] = None,
    status: Optional[int] = None,
    page: int = 1,
    per_page: int = PER_PAGE,
) -> QuizListPage:
    """``status`` filters on is_publish (0 draft, 1 published)."""
    stmt = (
        select(Quiz, Course.name.label("course_name"), _question_count())
        .outerjoin(Course, Course.id == Quiz.course_id)
        .where(Quiz.deleted_at.is_(None))
    )
    if keyword:
        pattern = f"%{keyword}%"
        stmt = stmt.where(or_(Quiz.title.like(pattern), Quiz.description.like(pattern)))
    if course_id:
        stmt = stmt.where(Quiz.course_id == course_id)
    if status is not None:
        stmt = stmt.where(Quiz.is_publish == status)
    stmt = stmt.order_by(Quiz.updated_at.desc(), Quiz.id.desc())

    rows, pagination = await paginate(db, stmt, page, per_page)
    data = [
        QuizListItem.model_validate(row.Quiz).model_copy(
            update={"course_name": row.course_name, "question_count": row.question_count or 0}
        )
        for row in rows
    ]
    return QuizListPage(data=data, pagination=pagination)


async def quiz_stats(db: AsyncSession) -> QuizStats:
    stmt = select(
        func.count(Quiz.id).label("total"),
        func.sum(case((Quiz.is_publish == QuizStatus.PUBLISHED, 1), else_=0)).label("published"),
        func.sum(case((Quiz.is_publish == QuizStatus.DRAFT, 1), else_=0)).label("draft"),
    ).where(Quiz.deleted_at.is_(None))
    row = (await db.execute(stmt)).one()
    return QuizStats(total=row.total or 0, published=row.published or 0, draft=row.draft or 0)


async def get_quiz(db: AsyncSession, quiz_id: int) -> Optional[QuizResponse]:
    stmt = (
        select(Quiz, Course.name.label("course_name"))
        .outerjoin(Course, Course.id == Quiz.course_id)
        .where(Quiz.id == quiz_id, Quiz.deleted_at.is_(None))
    )
    row = (await db.execute(stmt)).first()
    if not row:
        return None
    return QuizResponse.model_validate(row.Quiz).model_copy(update={"course_name": row.course_name})


async def _questions(db: AsyncSession, quiz_id: int) -> List[QuestionItem]:
    result = await db.execute(
        select(Question)
        .where(Question.quiz_id == quiz_id, Question.deleted_at.is_(None))
        .order_by(Question.order.asc(), Question.id.asc())
    )
    items = []
    for link in result.scalars().all():
        detail = None
        model = QUESTION_DETAIL_MODELS.get(link.type)
        if model is not None:
            detail_row = await db.get(model, link.question_id)
            detail = _columns(detail_row) if detail_row is not None else None
        items.append(
            QuestionItem(
                id=link.id,
                quiz_id=link.quiz_id,
                question_id=link.question_id,
                type=link.type,
                order=link.order,
                status=link.status,
                type_name=question_type_name(link.type),
                detail=detail,
            )
        )
    return items


async def get_quiz_with_questions(db: AsyncSession, quiz_id: int) -> Optional[QuizDetail]:
    quiz = await get_quiz(db, quiz_id)
    if not quiz:
        return None
    return QuizDetail(**quiz.model_dump(), questions=await _questions(db, quiz_id))


def _validate(form: QuizForm) -> None:
    if not form.title:
        raise ValidationError("title_required")
    if not form.course_id:
        raise ValidationError("course_required")


async def create_quiz(db: AsyncSession, form: QuizForm, user_id: Optional[int] = None) -> QuizResponse:
    _validate(form)
    data = form.model_dump()
    data.update(user_id=user_id or 1, is_publish=int(QuizStatus.DRAFT), status=1)
    quiz = await RecordStore(Quiz, db).create(data)
    logger.info("Quiz %s created (%s)", quiz.id, quiz.title)
    return QuizResponse.model_validate(quiz)


async def update_quiz(db: AsyncSession, quiz_id: int, form: QuizForm, is_publish: Optional[int] = None) -> bool:
    store = RecordStore(Quiz, db)
    if not await store.find_by_id(quiz_id):
        raise NotFoundError("Quiz not found")
    _validate(form)
    data = form.model_dump()
    if is_publish is not None:
        data["is_publish"] = is_publish
    return await store.update(quiz_id, data)


async def delete_quiz(db: AsyncSession, quiz_id: int) -> bool:
    return await RecordStore(Quiz, db).delete(quiz_id)


async def duplicate_quiz(db: AsyncSession, quiz_id: int) -> Optional[QuizResponse]:
    """Copy a quiz and all of its questions as a new draft, in one transaction.

    Each question's detail row is copied first, then a new link row pointing
    at the copy is written with the original order.
    """
    source = await RecordStore(Quiz, db).find_by_id(quiz_id)
    if not source:
        return None
    links = (
        await db.execute(
            select(Question)
            .where(Question.quiz_id == quiz_id, Question.deleted_at.is_(None))
            .order_by(Question.order.asc(), Question.id.asc())
        )
    ).scalars().all()

    now = datetime.utcnow()
    try:
        copy = Quiz(
            course_id=source.course_id,
            user_id=source.user_id,
            title=f"{source.title} (Copy)",
            description=source.description,
            score=source.score,
            is_publish=int(QuizStatus.DRAFT),
            is_random_question=source.is_random_question,
            is_show_answer=source.is_show_answer,
            type=source.type,
            video=source.video,
            status=1,
            created_at=now,
            updated_at=now,
        )
        db.add(copy)
        await db.flush()

        for link in links:
            model = QUESTION_DETAIL_MODELS.get(link.type)
            if model is None:
                continue
            detail = await db.get(model, link.question_id)
            if detail is None or detail.deleted_at is not None:
                continue
            values = {k: v for k, v in _columns(detail).items() if k not in _DETAIL_NOT_COPIED}
            detail_copy = model(**values, quiz_id=copy.id, created_at=now, updated_at=now)
            db.add(detail_copy)
            await db.flush()
            db.add(
                Question(
                    quiz_id=copy.id,
                    question_id=detail_copy.id,
                    type=link.type,
                    order=link.order,
                    status=1,
                    created_at=now,
                    updated_at=now,
                )
            )
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info("Quiz %s duplicated as %s with %d questions", quiz_id, copy.id, len(links))
    return await get_quiz(db, copy.id)


# ----- ABCD questions -----


async def get_question_abcd(db: AsyncSession, question_id: int) -> Optional[QuestionAbcdResponse]:
    question = await RecordStore(QuestionAbcd, db).find_by_id(question_id)
    if not question:
        return None
    return QuestionAbcdResponse.model_validate(question)


async def create_question_abcd(db: AsyncSession, quiz_id: int, payload: QuestionAbcdPayload) -> QuestionAbcdResponse:
    """Insert the detail row and its link row together."""
    if not payload.title:
        raise ValidationError("Question title is required")
    values = dict(_ABCD_DEFAULTS)
    values.update(payload.model_dump(exclude_none=True))
    now = datetime.utcnow()
    try:
        question = QuestionAbcd(**values, quiz_id=quiz_id, status=1, created_at=now, updated_at=now)
        db.add(question)
        await db.flush()
        db.add(
            Question(
                quiz_id=quiz_id,
                question_id=question.id,
                type=int(QuestionType.ABCD),
                order=values["order"],
                status=1,
                created_at=now,
                updated_at=now,
            )
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(question)
    return QuestionAbcdResponse.model_validate(question)


async def update_question_abcd(
    db: AsyncSession, question_id: int, payload: QuestionAbcdPayload
) -> Optional[QuestionAbcdResponse]:
    store = RecordStore(QuestionAbcd, db)
    values = payload.model_dump(exclude_unset=True)
    if values:
        await store.update(question_id, values)
    return await get_question_abcd(db, question_id)


def _question_type(value: Union[int, str]) -> Optional[QuestionType]:
    if isinstance(value, str) and not value.isdigit():
        for qtype in QuestionType:
            if question_type_name(qtype) == value:
                return qtype
        return None
    try:
        return QuestionType(int(value))
    except ValueError:
        return None


async def delete_question(db: AsyncSession, question_id: int, question_type: Union[int, str]) -> bool:
    """Soft-delete a detail row (by detail id) together with its link row."""
    qtype = _question_type(question_type)
    if qtype is None:
        raise ValidationError("Unknown question type")
    model = QUESTION_DETAIL_MODELS[qtype]
    now = datetime.utcnow()
    try:
        result = await db.execute(
            update(model).where(model.id == question_id).values(deleted_at=now, updated_at=now)
        )
        await db.execute(
            update(Question)
            .where(Question.question_id == question_id, Question.type == int(qtype))
            .values(deleted_at=now, updated_at=now)
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    return result.rowcount > 0


async def reorder_questions(db: AsyncSession, quiz_id: int, orders: List[QuestionOrder]) -> None:
    now = datetime.utcnow()
    try:
        for item in orders:
            await db.execute(
                update(Question)
                .where(Question.id == item.id, Question.quiz_id == quiz_id)
                .values(order=item.order, updated_at=now)
            )
        await db.commit()
    except Exception:
        await db.rollback()
        raise
