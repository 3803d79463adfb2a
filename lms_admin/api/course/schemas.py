from datetime import datetime
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, Field

from lms_admin.core.enums import CourseStatus, CourseType
from lms_admin.core.forms import is_checked, is_one, text_or_none, to_int
from lms_admin.db.pagination import Pagination

# Form fields copied verbatim (empty string -> None).
_TEXT_FIELDS = (
    "expire_at",
    "totaltopic",
    "keywords",
    "courselevel",
    "howtopass",
    "description",
    "toc",
    "howto",
    "targetlearner",
    "pre_testing",
    "pretest_description",
    "class_description",
    "post_testing",
    "posttest_description",
    "example_description",
    "evaluate_link",
    "email_template",
    "course_show",
    "course_access",
    "course_group",
)
# Yes/No selects: only "1" means yes.
_YES_NO_FIELDS = ("pretest", "posttest", "homework", "sendemail")
# Checkboxes: present means on.
_CHECKBOX_FIELDS = ("is_register", "delete_all", "fullscreen", "is_certificated", "is_document_lock")


class CourseForm(BaseModel):
    """Course create/edit form after coercion."""

    name: Optional[str] = None
    course_code: Optional[str] = None
    expire_at: Optional[str] = None
    totaltopic: Optional[str] = None
    keywords: Optional[str] = None
    courselevel: Optional[str] = None
    howtopass: Optional[str] = None
    description: Optional[str] = None
    toc: Optional[str] = None
    howto: Optional[str] = None
    targetlearner: Optional[str] = None
    pretest: int = 0
    pre_testing: Optional[str] = None
    pretest_description: Optional[str] = None
    class_description: Optional[str] = None
    posttest: int = 0
    post_testing: Optional[str] = None
    posttest_description: Optional[str] = None
    homework: int = 0
    example_description: Optional[str] = None
    sendemail: int = 0
    evaluate_link: Optional[str] = None
    email_template: Optional[str] = None
    status: int = int(CourseStatus.DRAFT)
    type: int = int(CourseType.NORMAL)
    course_show: Optional[str] = None
    course_access: Optional[str] = None
    course_group: Optional[str] = None
    is_register: int = 0
    delete_all: int = 0
    fullscreen: int = 0
    is_certificated: int = 0
    is_document_lock: int = 0

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> "CourseForm":
        # Publish / Save-as-draft buttons post status_action, which wins over the select.
        status_value = to_int(form.get("status_action")) if form.get("status_action") else to_int(form.get("status"))
        if status_value not in {s.value for s in CourseStatus}:
            status_value = int(CourseStatus.DRAFT)
        type_value = to_int(form.get("type"))
        if type_value not in {t.value for t in CourseType}:
            type_value = int(CourseType.NORMAL)

        data = {
            "name": text_or_none(form.get("name")),
            "course_code": text_or_none(form.get("course_code")),
            "status": status_value,
            "type": type_value,
        }
        for field in _TEXT_FIELDS:
            data[field] = form.get(field) or None
        for field in _YES_NO_FIELDS:
            data[field] = is_one(form.get(field))
        for field in _CHECKBOX_FIELDS:
            data[field] = is_checked(form.get(field))
        return cls(**data)


class CourseResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    department_id: Optional[int] = None
    name: str
    course_code: Optional[str] = None
    expire_at: Optional[str] = None
    totaltopic: Optional[str] = None
    keywords: Optional[str] = None
    courselevel: Optional[str] = None
    howtopass: Optional[str] = None
    description: Optional[str] = None
    toc: Optional[str] = None
    howto: Optional[str] = None
    targetlearner: Optional[str] = None
    pretest: int = 0
    pre_testing: Optional[str] = None
    pretest_description: Optional[str] = None
    class_description: Optional[str] = None
    posttest: int = 0
    post_testing: Optional[str] = None
    posttest_description: Optional[str] = None
    homework: int = 0
    example_description: Optional[str] = None
    sendemail: int = 0
    evaluate_link: Optional[str] = None
    email_template: Optional[str] = None
    status: int
    type: int
    course_show: Optional[str] = None
    course_access: Optional[str] = None
    course_group: Optional[str] = None
    is_register: int = 0
    delete_all: int = 0
    fullscreen: int = 0
    is_certificated: int = 0
    is_document_lock: int = 0
    icon: Optional[str] = None
    icon_path: Optional[str] = None
    cover: Optional[str] = None
    cover_path: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CourseListItem(CourseResponse):
    document_count: int = 0


class CourseListPage(BaseModel):
    data: List[CourseListItem]
    pagination: Pagination


class CourseStats(BaseModel):
    total: int = 0
    active: int = 0
    draft: int = 0
    inactive: int = 0


class CourseOption(BaseModel):
    id: int
    name: str
    course_code: Optional[str] = None

    class Config:
        from_attributes = True


class DocumentItem(BaseModel):
    id: int
    name: str
    type: int
    is_new: int = 0
    status: int = 1
    type_label: str = Field("", alias="typeLabel")
    type_icon: str = Field("", alias="typeIcon")

    class Config:
        from_attributes = True
        populate_by_name = True


class CourseDocumentItem(BaseModel):
    id: int
    course_id: int
    document_id: int
    order: int
    status: int
    name: str
    type: int
    is_new: int = 0
    type_label: str = Field("", alias="typeLabel")
    type_icon: str = Field("", alias="typeIcon")

    class Config:
        populate_by_name = True


class PositionItem(BaseModel):
    id: int
    name: str
    status: int = 1

    class Config:
        from_attributes = True


class CoursePositionItem(BaseModel):
    id: int
    course_id: int
    position_id: int
    status: int
    position_name: str


class DocumentLinkRequest(BaseModel):
    document_id: int = Field(..., alias="documentId")

    class Config:
        populate_by_name = True


class DocumentOrderRequest(BaseModel):
    document_ids: List[int] = Field(default_factory=list, alias="documentIds")

    class Config:
        populate_by_name = True


class PositionSyncRequest(BaseModel):
    position_ids: List[int] = Field(default_factory=list, alias="positionIds")

    class Config:
        populate_by_name = True
