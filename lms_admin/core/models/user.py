from typing import Any

from sqlalchemy import Column, Integer, String

from lms_admin.core.enums import UserStatus, UserType
from lms_admin.core.models.mixins import TimestampMixin
from lms_admin.db.session import ELEARNING_SCHEMA, Base


class User(TimestampMixin, Base):
    """Learner/admin account. company NULL, empty or anything but 'makro' belongs to Lotus."""

    __tablename__ = "user"
    __table_args__ = {"schema": ELEARNING_SCHEMA}

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(String(50), nullable=True, index=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    name_thai = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    position = Column(String(255), nullable=True)
    department = Column(String(255), nullable=True)
    department_id = Column(Integer, nullable=True, index=True)
    format_id = Column(Integer, nullable=True, index=True)
    status = Column(Integer, nullable=False, default=int(UserStatus.ACTIVE))
    is_inactive = Column(Integer, nullable=False, default=0)
    type = Column(Integer, nullable=False, default=int(UserType.USER))
    company = Column(String(50), nullable=True)
    avatar = Column(String(255), nullable=True)
    avatar_path = Column(String(255), nullable=True)


def _get(user: Any, field: str):
    if isinstance(user, dict):
        return user.get(field)
    return getattr(user, field, None)


def display_name(user: Any) -> str:
    """Thai name when present, otherwise "first last", otherwise "-"."""
    thai = _get(user, "name_thai")
    if thai:
        return thai
    eng = " ".join(p for p in (_get(user, "first_name"), _get(user, "last_name")) if p)
    return eng or "-"


def status_label(user: Any) -> str:
    if _get(user, "is_inactive") == 1:
        return "Inactive"
    if _get(user, "status") == UserStatus.ACTIVE:
        return "Active"
    return "Inactive"


def status_badge(user: Any) -> str:
    if _get(user, "is_inactive") == 1:
        return "bg-label-danger"
    if _get(user, "status") == UserStatus.ACTIVE:
        return "bg-label-success"
    return "bg-label-warning"


def avatar_url(user: Any) -> str:
    if _get(user, "avatar_path"):
        return _get(user, "avatar_path")
    if _get(user, "avatar"):
        return f"/uploads/avatars/{_get(user, 'avatar')}"
    return "/img/avatar-placeholder.png"
