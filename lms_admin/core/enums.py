from enum import Enum, IntEnum
from typing import Optional


class CourseStatus(IntEnum):
    INACTIVE = 0
    ACTIVE = 1
    DRAFT = 2


class CourseType(IntEnum):
    NORMAL = 1
    SCORM_12 = 2
    SCORM_2004_R2 = 3
    SCORM_2004_R3 = 4


class DocumentType(IntEnum):
    INFO = 1
    VIDEO = 2
    QUIZ = 3
    BOOK = 4
    PDF = 5


class QuizStatus(IntEnum):
    """Stored in quiz.is_publish."""

    DRAFT = 0
    PUBLISHED = 1


class QuizType(IntEnum):
    PRETEST = 1
    POSTTEST = 2


class QuestionType(IntEnum):
    ABCD = 1
    YN = 2
    WRITE = 3
    MATCH = 4
    MATCH_PICTURE = 5


class UserType(IntEnum):
    USER = 1
    ADMIN = 2
    SUPER_ADMIN = 3


class UserStatus(IntEnum):
    INACTIVE = 0
    ACTIVE = 1


class FinishedState(IntEnum):
    """class_student.is_finished. NULL is treated as IN_PROGRESS."""

    IN_PROGRESS = 0
    COMPLETED = 1
    PENDING_REVIEW = 2


class Company(str, Enum):
    LOTUS = "lotus"
    MAKRO = "makro"
    ALL = "all"


COURSE_STATUS_LABELS = {
    CourseStatus.INACTIVE: "Inactive",
    CourseStatus.ACTIVE: "Active",
    CourseStatus.DRAFT: "Draft",
}
COURSE_STATUS_BADGES = {
    CourseStatus.INACTIVE: "bg-label-secondary",
    CourseStatus.ACTIVE: "bg-label-success",
    CourseStatus.DRAFT: "bg-label-warning",
}
COURSE_TYPE_LABELS = {
    CourseType.NORMAL: "Normal",
    CourseType.SCORM_12: "SCORM 1.2",
    CourseType.SCORM_2004_R2: "SCORM 2004 2nd",
    CourseType.SCORM_2004_R3: "SCORM 2004 3rd",
}
DOCUMENT_TYPE_LABELS = {
    DocumentType.INFO: "Info",
    DocumentType.VIDEO: "Video",
    DocumentType.QUIZ: "Quiz",
    DocumentType.BOOK: "Book",
    DocumentType.PDF: "PDF",
}
DOCUMENT_TYPE_ICONS = {
    DocumentType.INFO: "ri-file-info-line",
    DocumentType.VIDEO: "ri-video-line",
    DocumentType.QUIZ: "ri-question-line",
    DocumentType.BOOK: "ri-book-line",
    DocumentType.PDF: "ri-file-pdf-line",
}
QUIZ_STATUS_LABELS = {
    QuizStatus.DRAFT: "Draft",
    QuizStatus.PUBLISHED: "Published",
}
QUIZ_STATUS_BADGES = {
    QuizStatus.DRAFT: "bg-label-warning",
    QuizStatus.PUBLISHED: "bg-label-success",
}
QUESTION_TYPE_NAMES = {
    QuestionType.ABCD: "abcd",
    QuestionType.YN: "yn",
    QuestionType.WRITE: "write",
    QuestionType.MATCH: "match",
    QuestionType.MATCH_PICTURE: "matchp",
}
USER_TYPE_LABELS = {
    UserType.USER: "User",
    UserType.ADMIN: "Admin",
    UserType.SUPER_ADMIN: "Super Admin",
}
USER_TYPE_BADGES = {
    UserType.USER: "bg-label-info",
    UserType.ADMIN: "bg-label-warning",
    UserType.SUPER_ADMIN: "bg-label-danger",
}


def course_status_label(value: Optional[int]) -> str:
    return COURSE_STATUS_LABELS.get(value, "Unknown")


def course_status_badge(value: Optional[int]) -> str:
    return COURSE_STATUS_BADGES.get(value, "bg-label-secondary")


def course_type_label(value: Optional[int]) -> str:
    return COURSE_TYPE_LABELS.get(value, "Normal")


def document_type_label(value: Optional[int]) -> str:
    return DOCUMENT_TYPE_LABELS.get(value, "Unknown")


def document_type_icon(value: Optional[int]) -> str:
    return DOCUMENT_TYPE_ICONS.get(value, "ri-file-line")


def quiz_status_label(value: Optional[int]) -> str:
    return QUIZ_STATUS_LABELS.get(value, "Unknown")


def quiz_status_badge(value: Optional[int]) -> str:
    return QUIZ_STATUS_BADGES.get(value, "bg-label-secondary")


def question_type_name(value: Optional[int]) -> Optional[str]:
    return QUESTION_TYPE_NAMES.get(value)


def user_type_label(value: Optional[int]) -> str:
    return USER_TYPE_LABELS.get(value, "Unknown")


def user_type_badge(value: Optional[int]) -> str:
    return USER_TYPE_BADGES.get(value, "bg-label-secondary")
