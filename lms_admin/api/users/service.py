from typing import List, Optional

from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lms_admin.core.company import company_condition
from lms_admin.core.enums import UserStatus, UserType
from lms_admin.core.models import ClassRoom, ClassStudent, Course, Format, User
from lms_admin.core.models.user import display_name
from lms_admin.db.pagination import paginate
from lms_admin.db.record_store import RecordStore

from .schemas import (
    ClassStudentDetail,
    CourseHistoryItem,
    CourseHistoryPage,
    FormatOption,
    UserListPage,
    UserResponse,
    UserSearchResult,
    UserStats,
    UserUpdate,
)

PER_PAGE = 50
HISTORY_PER_PAGE = 20
SEARCH_LIMIT = 20
SEARCH_MIN_LENGTH = 2


def _with_format():
    return select(User, Format.name.label("format_name")).outerjoin(Format, Format.id == User.format_id)


def _to_response(row) -> UserResponse:
    return UserResponse.model_validate(row.User).model_copy(update={"format_name": row.format_name})


async def list_users(
    db: AsyncSession,
    keyword: Optional[str] = None,
    format_id: Optional[int] = None,
    status: Optional[int] = None,
    user_type: Optional[int] = None,
    is_inactive: Optional[int] = None,
    company: Optional[str] = None,
    page: int = 1,
    per_page: int = PER_PAGE,
) -> UserListPage:
    stmt = _with_format().where(User.deleted_at.is_(None), company_condition(User.company, company))
    if keyword:
        pattern = f"%{keyword}%"
        stmt = stmt.where(
            or_(
                User.employee_id.like(pattern),
                User.first_name.like(pattern),
                User.last_name.like(pattern),
                User.name_thai.like(pattern),
                User.email.like(pattern),
                User.phone.like(pattern),
            )
        )
    if format_id:
        stmt = stmt.where(User.format_id == format_id)
    if status is not None:
        stmt = stmt.where(User.status == status)
    if user_type is not None:
        stmt = stmt.where(User.type == user_type)
    if is_inactive is not None:
        stmt = stmt.where(User.is_inactive == is_inactive)
    stmt = stmt.order_by(User.updated_at.desc(), User.id.desc())

    rows, pagination = await paginate(db, stmt, page, per_page)
    return UserListPage(data=[_to_response(r) for r in rows], pagination=pagination)


async def get_user(db: AsyncSession, user_id: int) -> Optional[UserResponse]:
    row = (await db.execute(_with_format().where(User.id == user_id, User.deleted_at.is_(None)))).first()
    return _to_response(row) if row else None


async def get_user_by_employee_id(db: AsyncSession, employee_id: str) -> Optional[UserResponse]:
    stmt = _with_format().where(User.employee_id == employee_id, User.deleted_at.is_(None))
    row = (await db.execute(stmt)).first()
    return _to_response(row) if row else None


async def user_stats(db: AsyncSession, company: Optional[str] = None) -> UserStats:
    stmt = select(
        func.count(User.id).label("total"),
        func.sum(
            case(((User.status == UserStatus.ACTIVE) & (User.is_inactive == 0), 1), else_=0)
        ).label("active"),
        func.sum(case((User.is_inactive == 1, 1), else_=0)).label("inactive"),
        func.sum(
            case((User.type.in_([int(UserType.ADMIN), int(UserType.SUPER_ADMIN)]), 1), else_=0)
        ).label("admins"),
    ).where(User.deleted_at.is_(None), company_condition(User.company, company))
    row = (await db.execute(stmt)).one()
    return UserStats(
        total=row.total or 0,
        active=row.active or 0,
        inactive=row.inactive or 0,
        admins=row.admins or 0,
    )


async def course_history(
    db: AsyncSession, user_id: int, page: int = 1, per_page: int = HISTORY_PER_PAGE
) -> CourseHistoryPage:
    """Enrollment records of one user, newest first, with course name and class info."""
    stmt = (
        select(
            ClassStudent.id.label("class_student_id"),
            ClassStudent.user_id,
            ClassStudent.class_id,
            ClassStudent.course_id,
            ClassStudent.is_finished,
            ClassStudent.score,
            ClassStudent.total_score,
            ClassStudent.pretest,
            ClassStudent.posttest,
            ClassStudent.ontime,
            ClassStudent.created_at,
            ClassStudent.updated_at,
            Course.name.label("course_name"),
            ClassRoom.user_id.label("class_creator_id"),
            ClassRoom.is_finished.label("class_finished"),
        )
        .outerjoin(Course, Course.id == ClassStudent.course_id)
        .outerjoin(ClassRoom, ClassRoom.id == ClassStudent.class_id)
        .where(ClassStudent.user_id == user_id, ClassStudent.deleted_at.is_(None))
        .order_by(ClassStudent.created_at.desc(), ClassStudent.id.desc())
    )
    rows, pagination = await paginate(db, stmt, page, per_page)
    return CourseHistoryPage(data=[CourseHistoryItem(**r._mapping) for r in rows], pagination=pagination)


async def get_class_student(db: AsyncSession, class_student_id: int) -> Optional[ClassStudentDetail]:
    stmt = (
        select(
            ClassStudent.id,
            ClassStudent.user_id,
            ClassStudent.class_id,
            ClassStudent.course_id,
            ClassStudent.is_finished,
            ClassStudent.score,
            ClassStudent.total_score,
            ClassStudent.pretest,
            ClassStudent.posttest,
            ClassStudent.ontime,
            Course.name.label("course_name"),
            User.employee_id,
            User.first_name,
            User.last_name,
            User.name_thai,
        )
        .outerjoin(Course, Course.id == ClassStudent.course_id)
        .outerjoin(User, User.id == ClassStudent.user_id)
        .where(ClassStudent.id == class_student_id, ClassStudent.deleted_at.is_(None))
    )
    row = (await db.execute(stmt)).first()
    return ClassStudentDetail(**row._mapping) if row else None


async def update_user(db: AsyncSession, user_id: int, payload: UserUpdate) -> Optional[UserResponse]:
    values = payload.model_dump(exclude_unset=True)
    # Integer columns are NOT NULL; a blank select leaves them unchanged.
    values = {k: v for k, v in values.items() if not (v is None and k in ("status", "is_inactive", "type"))}
    if values:
        await RecordStore(User, db).update(user_id, values)
    return await get_user(db, user_id)


async def delete_user(db: AsyncSession, user_id: int) -> bool:
    return await RecordStore(User, db).delete(user_id)


async def search_users(db: AsyncSession, query: str, limit: int = SEARCH_LIMIT) -> List[UserSearchResult]:
    """Autocomplete over employee id and names."""
    pattern = f"%{query}%"
    stmt = (
        select(User)
        .where(
            User.deleted_at.is_(None),
            or_(
                User.employee_id.like(pattern),
                User.first_name.like(pattern),
                User.last_name.like(pattern),
                User.name_thai.like(pattern),
            ),
        )
        .order_by(User.employee_id)
        .limit(limit)
    )
    result = await db.execute(stmt)
    return [
        UserSearchResult(
            id=u.id,
            text=f"{u.employee_id} - {display_name(u)}",
            employee_id=u.employee_id,
            name=display_name(u),
            position=u.position,
            department=u.department,
        )
        for u in result.scalars().all()
    ]


async def formats_for_select(db: AsyncSession) -> List[FormatOption]:
    rows = await RecordStore(Format, db).find_all(order_by="name")
    return [FormatOption.model_validate(f) for f in rows]
