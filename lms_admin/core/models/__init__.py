from lms_admin.core.models.course import Course
from lms_admin.core.models.course_document import CourseDocument
from lms_admin.core.models.document import Document
from lms_admin.core.models.enrollment import ClassRoom, ClassStudent
from lms_admin.core.models.organization import Department, Format, Functions
from lms_admin.core.models.position import CoursePosition, Position
from lms_admin.core.models.quiz import (
    QUESTION_DETAIL_MODELS,
    Question,
    QuestionAbcd,
    QuestionMatch,
    QuestionMatchPicture,
    QuestionWrite,
    QuestionYn,
    Quiz,
)
from lms_admin.core.models.user import User

__all__ = [
    "ClassRoom",
    "ClassStudent",
    "Course",
    "CourseDocument",
    "CoursePosition",
    "Department",
    "Document",
    "Format",
    "Functions",
    "Position",
    "QUESTION_DETAIL_MODELS",
    "Question",
    "QuestionAbcd",
    "QuestionMatch",
    "QuestionMatchPicture",
    "QuestionWrite",
    "QuestionYn",
    "Quiz",
    "User",
]
