from datetime import datetime
from typing import Any, Mapping, Optional

from pydantic import BaseModel

from lms_admin.core.forms import text_or_none, to_int

DEFAULT_ORDER = 999


class OrgUnitForm(BaseModel):
    """Format / Functions / Department form. parent_id is format_id or functions_id."""

    parent_id: Optional[int] = None
    name: Optional[str] = None
    order: int = DEFAULT_ORDER
    status: int = 0

    @classmethod
    def from_form(cls, form: Mapping[str, Any], parent_field: Optional[str] = None) -> "OrgUnitForm":
        return cls(
            parent_id=to_int(form.get(parent_field)) if parent_field else None,
            name=text_or_none(form.get("name")),
            order=to_int(form.get("order")) or DEFAULT_ORDER,
            status=1 if form.get("status") == "on" else 0,
        )


class FormatResponse(BaseModel):
    id: int
    name: str
    order: int
    status: int
    functions_count: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FunctionsResponse(BaseModel):
    id: int
    format_id: int
    name: str
    order: int
    status: int
    format_name: Optional[str] = None
    department_count: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DepartmentResponse(BaseModel):
    id: int
    functions_id: int
    name: str
    order: int
    status: int
    functions_name: Optional[str] = None
    format_id: Optional[int] = None
    format_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrgOption(BaseModel):
    """Dropdown entry; format_name is set for functions options."""

    id: int
    name: str
    format_name: Optional[str] = None
