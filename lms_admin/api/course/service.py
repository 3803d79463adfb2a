import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lms_admin.core.enums import CourseStatus, document_type_icon, document_type_label
from lms_admin.core.exceptions import NotFoundError, ValidationError
from lms_admin.core.models import Course, CourseDocument, CoursePosition, Document, Position
from lms_admin.db.pagination import paginate
from lms_admin.db.record_store import RecordStore

from .schemas import (
    CourseDocumentItem,
    CourseForm,
    CourseListItem,
    CourseListPage,
    CourseOption,
    CoursePositionItem,
    CourseResponse,
    CourseStats,
    DocumentItem,
    PositionItem,
)

logger = logging.getLogger(__name__)

PER_PAGE = 20
DOCUMENT_SEARCH_LIMIT = 50
POSITION_SEARCH_LIMIT = 100
DEFAULT_DOCUMENT_ORDER = 999

# Columns never carried over when a course is duplicated.
_NOT_COPIED = {"id", "created_at", "updated_at", "deleted_at"}


def _course_conditions(keyword: Optional[str], status: Optional[int], course_type: Optional[int]) -> list:
    conditions = [Course.deleted_at.is_(None)]
    if keyword:
        pattern = f"%{keyword}%"
        conditions.append(
            or_(
                Course.name.like(pattern),
                Course.course_code.like(pattern),
                Course.keywords.like(pattern),
            )
        )
    if status is not None:
        conditions.append(Course.status == status)
    if course_type is not None:
        conditions.append(Course.type == course_type)
    return conditions


async def list_courses(
    db: AsyncSession,
    keyword: Optional[str] = None,
    status: Optional[int] = None,
    course_type: Optional[int] = None,
    page: int = 1,
    per_page: int = PER_PAGE,
) -> CourseListPage:
    document_count = (
        select(func.count(CourseDocument.id))
        .where(CourseDocument.course_id == Course.id, CourseDocument.deleted_at.is_(None))
        .correlate(Course)
        .scalar_subquery()
        .label("document_count")
    )
    stmt = (
        select(Course, document_count)
        .where(*_course_conditions(keyword, status, course_type))
        .order_by(Course.id.desc())
    )
    rows, pagination = await paginate(db, stmt, page, per_page)
    data = [
        CourseListItem.model_validate(row.Course).model_copy(update={"document_count": row.document_count or 0})
        for row in rows
    ]
    return CourseListPage(data=data, pagination=pagination)


async def course_stats(db: AsyncSession) -> CourseStats:
    stmt = select(
        func.count(Course.id).label("total"),
        func.sum(case((Course.status == CourseStatus.ACTIVE, 1), else_=0)).label("active"),
        func.sum(case((Course.status == CourseStatus.DRAFT, 1), else_=0)).label("draft"),
        func.sum(case((Course.status == CourseStatus.INACTIVE, 1), else_=0)).label("inactive"),
    ).where(Course.deleted_at.is_(None))
    row = (await db.execute(stmt)).one()
    return CourseStats(
        total=row.total or 0,
        active=row.active or 0,
        draft=row.draft or 0,
        inactive=row.inactive or 0,
    )


async def get_course(db: AsyncSession, course_id: int) -> Optional[CourseResponse]:
    course = await RecordStore(Course, db).find_by_id(course_id)
    if not course:
        return None
    return CourseResponse.model_validate(course)


async def courses_for_select(db: AsyncSession) -> List[CourseOption]:
    rows = await RecordStore(Course, db).find_all(where={"status": int(CourseStatus.ACTIVE)}, order_by="name")
    return [CourseOption.model_validate(c) for c in rows]


async def code_exists(db: AsyncSession, code: Optional[str], exclude_id: Optional[int] = None) -> bool:
    """Course codes are unique among non-deleted courses only."""
    if not code:
        return False
    stmt = select(Course.id).where(Course.course_code == code, Course.deleted_at.is_(None))
    if exclude_id:
        stmt = stmt.where(Course.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.first() is not None


async def _validate(db: AsyncSession, form: CourseForm, exclude_id: Optional[int] = None) -> None:
    if not form.name:
        raise ValidationError("Course name is required")
    if form.course_code and await code_exists(db, form.course_code, exclude_id):
        raise ValidationError("Course code already exists")


async def create_course(db: AsyncSession, form: CourseForm, user_id: Optional[int] = None) -> CourseResponse:
    await _validate(db, form)
    data = form.model_dump()
    data["user_id"] = user_id or 1
    data["department_id"] = 1
    course = await RecordStore(Course, db).create(data)
    logger.info("Course %s created (%s)", course.id, course.name)
    return CourseResponse.model_validate(course)


async def update_course(db: AsyncSession, course_id: int, form: CourseForm) -> bool:
    store = RecordStore(Course, db)
    if not await store.find_by_id(course_id):
        raise NotFoundError("Course not found")
    await _validate(db, form, exclude_id=course_id)
    return await store.update(course_id, form.model_dump())


async def delete_course(db: AsyncSession, course_id: int) -> bool:
    return await RecordStore(Course, db).delete(course_id)


async def duplicate_course(db: AsyncSession, course_id: int) -> Optional[CourseResponse]:
    """Copy a course as a new draft named "<name> (Copy)" with code "<code>-copy"."""
    store = RecordStore(Course, db)
    source = await store.find_by_id(course_id)
    if not source:
        return None
    data = {col: getattr(source, col) for col in store.columns if col not in _NOT_COPIED}
    data["name"] = f"{source.name} (Copy)"
    data["course_code"] = f"{source.course_code}-copy" if source.course_code else None
    data["status"] = int(CourseStatus.DRAFT)
    copy = await store.create(data)
    return CourseResponse.model_validate(copy)


# ----- documents -----


async def course_documents(db: AsyncSession, course_id: int) -> List[CourseDocumentItem]:
    stmt = (
        select(
            CourseDocument.id,
            CourseDocument.course_id,
            CourseDocument.document_id,
            CourseDocument.order,
            CourseDocument.status,
            Document.name,
            Document.type,
            Document.is_new,
        )
        .join(Document, (Document.id == CourseDocument.document_id) & Document.deleted_at.is_(None))
        .where(CourseDocument.course_id == course_id, CourseDocument.deleted_at.is_(None))
        .order_by(CourseDocument.order.asc(), CourseDocument.id.asc())
    )
    result = await db.execute(stmt)
    return [
        CourseDocumentItem(
            **row._mapping,
            type_label=document_type_label(row.type),
            type_icon=document_type_icon(row.type),
        )
        for row in result.all()
    ]


async def document_ids(db: AsyncSession, course_id: int) -> List[int]:
    rows = await RecordStore(CourseDocument, db).find_all(where={"course_id": course_id})
    return [r.document_id for r in rows]


async def search_documents(
    db: AsyncSession,
    keyword: Optional[str] = None,
    document_type: Optional[int] = None,
    exclude_ids: Iterable[int] = (),
    limit: int = DOCUMENT_SEARCH_LIMIT,
) -> List[DocumentItem]:
    """Active documents matching the keyword, skipping ones already linked."""
    stmt = select(Document).where(Document.deleted_at.is_(None), Document.status == 1)
    if keyword:
        stmt = stmt.where(Document.name.like(f"%{keyword}%"))
    if document_type:
        stmt = stmt.where(Document.type == document_type)
    exclude_ids = list(exclude_ids)
    if exclude_ids:
        stmt = stmt.where(Document.id.not_in(exclude_ids))
    result = await db.execute(stmt.order_by(Document.id.desc()).limit(limit))
    return [
        DocumentItem.model_validate(d).model_copy(
            update={"type_label": document_type_label(d.type), "type_icon": document_type_icon(d.type)}
        )
        for d in result.scalars().all()
    ]


async def add_document(
    db: AsyncSession, course_id: int, document_id: int, order: int = DEFAULT_DOCUMENT_ORDER
) -> CourseDocument:
    """Link a document to a course. Adding an already-linked document is a no-op."""
    store = RecordStore(CourseDocument, db)
    existing = await store.find_one({"course_id": course_id, "document_id": document_id})
    if existing:
        return existing
    return await store.create({"course_id": course_id, "document_id": document_id, "order": order, "status": 1})


async def remove_document(db: AsyncSession, course_id: int, document_id: int) -> None:
    await db.execute(
        update(CourseDocument)
        .where(
            CourseDocument.course_id == course_id,
            CourseDocument.document_id == document_id,
            CourseDocument.deleted_at.is_(None),
        )
        .values(deleted_at=datetime.utcnow())
    )
    await db.commit()


async def reorder_documents(db: AsyncSession, course_id: int, ordered_document_ids: List[int]) -> None:
    """Position i in the list gets order i + 1, in one transaction."""
    try:
        for index, document_id in enumerate(ordered_document_ids):
            await db.execute(
                update(CourseDocument)
                .where(
                    CourseDocument.course_id == course_id,
                    CourseDocument.document_id == document_id,
                    CourseDocument.deleted_at.is_(None),
                )
                .values(order=index + 1, updated_at=datetime.utcnow())
            )
        await db.commit()
    except Exception:
        await db.rollback()
        raise


# ----- positions -----


async def list_positions(db: AsyncSession) -> List[PositionItem]:
    rows = await RecordStore(Position, db).find_all(where={"status": 1}, order_by="name")
    return [PositionItem.model_validate(p) for p in rows]


async def search_positions(db: AsyncSession, keyword: Optional[str] = None) -> List[PositionItem]:
    if not keyword:
        return await list_positions(db)
    stmt = (
        select(Position)
        .where(Position.deleted_at.is_(None), Position.status == 1, Position.name.like(f"%{keyword}%"))
        .order_by(Position.name.asc())
        .limit(POSITION_SEARCH_LIMIT)
    )
    result = await db.execute(stmt)
    return [PositionItem.model_validate(p) for p in result.scalars().all()]


async def course_positions(db: AsyncSession, course_id: int) -> List[CoursePositionItem]:
    stmt = (
        select(
            CoursePosition.id,
            CoursePosition.course_id,
            CoursePosition.position_id,
            CoursePosition.status,
            Position.name.label("position_name"),
        )
        .join(Position, (Position.id == CoursePosition.position_id) & Position.deleted_at.is_(None))
        .where(CoursePosition.course_id == course_id, CoursePosition.deleted_at.is_(None))
        .order_by(Position.name.asc())
    )
    result = await db.execute(stmt)
    return [CoursePositionItem(**row._mapping) for row in result.all()]


async def sync_positions(db: AsyncSession, course_id: int, position_ids: Iterable[int]) -> None:
    """Make the course's live position links exactly ``position_ids``.

    Missing links are added, unwanted ones soft-deleted; all or nothing.
    """
    wanted = list(dict.fromkeys(position_ids))
    result = await db.execute(
        select(CoursePosition.position_id).where(
            CoursePosition.course_id == course_id, CoursePosition.deleted_at.is_(None)
        )
    )
    current = set(result.scalars().all())
    now = datetime.utcnow()
    try:
        for position_id in wanted:
            if position_id not in current:
                db.add(
                    CoursePosition(
                        course_id=course_id,
                        position_id=position_id,
                        status=1,
                        created_at=now,
                        updated_at=now,
                    )
                )
        removed = [pid for pid in current if pid not in wanted]
        if removed:
            await db.execute(
                update(CoursePosition)
                .where(
                    CoursePosition.course_id == course_id,
                    CoursePosition.position_id.in_(removed),
                    CoursePosition.deleted_at.is_(None),
                )
                .values(deleted_at=now)
            )
        await db.commit()
    except Exception:
        await db.rollback()
        raise
