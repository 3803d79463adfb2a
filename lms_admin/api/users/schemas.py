from datetime import datetime
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel

from lms_admin.core.forms import text_or_none, to_int
from lms_admin.db.pagination import Pagination

# Only these columns may be changed from the edit form.
EDITABLE_FIELDS = (
    "first_name",
    "last_name",
    "name_thai",
    "email",
    "phone",
    "position",
    "department",
    "status",
    "is_inactive",
    "type",
)
_INT_FIELDS = {"status", "is_inactive", "type"}


class UserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name_thai: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    status: Optional[int] = None
    is_inactive: Optional[int] = None
    type: Optional[int] = None

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> "UserUpdate":
        """Keep only submitted editable fields; anything else in the form is ignored."""
        data = {}
        for field in EDITABLE_FIELDS:
            if field not in form:
                continue
            value = form.get(field)
            data[field] = to_int(value) if field in _INT_FIELDS else text_or_none(value)
        return cls(**data)


class UserResponse(BaseModel):
    id: int
    employee_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name_thai: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    department_id: Optional[int] = None
    format_id: Optional[int] = None
    format_name: Optional[str] = None
    status: int
    is_inactive: int = 0
    type: int
    company: Optional[str] = None
    avatar: Optional[str] = None
    avatar_path: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserListPage(BaseModel):
    data: List[UserResponse]
    pagination: Pagination


class UserStats(BaseModel):
    total: int = 0
    active: int = 0
    inactive: int = 0
    admins: int = 0


class CourseHistoryItem(BaseModel):
    class_student_id: int
    user_id: Optional[int] = None
    class_id: Optional[int] = None
    course_id: Optional[int] = None
    is_finished: Optional[int] = None
    score: Optional[float] = None
    total_score: Optional[float] = None
    pretest: Optional[float] = None
    posttest: Optional[float] = None
    ontime: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    course_name: Optional[str] = None
    class_creator_id: Optional[int] = None
    class_finished: Optional[int] = None


class CourseHistoryPage(BaseModel):
    data: List[CourseHistoryItem]
    pagination: Pagination


class ClassStudentDetail(BaseModel):
    id: int
    user_id: Optional[int] = None
    class_id: Optional[int] = None
    course_id: Optional[int] = None
    is_finished: Optional[int] = None
    score: Optional[float] = None
    total_score: Optional[float] = None
    pretest: Optional[float] = None
    posttest: Optional[float] = None
    ontime: Optional[int] = None
    course_name: Optional[str] = None
    employee_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name_thai: Optional[str] = None


class UserSearchResult(BaseModel):
    id: int
    text: str
    employee_id: Optional[str] = None
    name: str
    position: Optional[str] = None
    department: Optional[str] = None


class FormatOption(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True
