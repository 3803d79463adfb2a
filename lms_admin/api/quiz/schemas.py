from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel

from lms_admin.core.enums import QuizType
from lms_admin.core.forms import is_checked, text_or_none, to_int
from lms_admin.db.pagination import Pagination


class QuizForm(BaseModel):
    course_id: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    score: int = 80
    is_random_question: int = 0
    is_show_answer: int = 0
    type: int = int(QuizType.PRETEST)
    video: Optional[str] = None

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> "QuizForm":
        return cls(
            course_id=to_int(form.get("course_id")) or None,
            title=text_or_none(form.get("title")),
            description=form.get("description") or None,
            score=to_int(form.get("score")) or 80,
            is_random_question=is_checked(form.get("is_random_question")),
            is_show_answer=is_checked(form.get("is_show_answer")),
            type=to_int(form.get("type")) or int(QuizType.PRETEST),
            video=form.get("video") or None,
        )


class QuizResponse(BaseModel):
    id: int
    course_id: Optional[int] = None
    user_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    score: int
    is_publish: int
    is_random_question: int = 0
    is_show_answer: int = 0
    type: int
    video: Optional[str] = None
    status: int = 1
    course_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QuizListItem(QuizResponse):
    question_count: int = 0


class QuizListPage(BaseModel):
    data: List[QuizListItem]
    pagination: Pagination


class QuizStats(BaseModel):
    total: int = 0
    published: int = 0
    draft: int = 0


class QuestionItem(BaseModel):
    """Link row plus the type-specific detail row it points at."""

    id: int
    quiz_id: int
    question_id: int
    type: int
    order: int
    status: int = 1
    type_name: Optional[str] = None
    detail: Optional[Dict[str, Any]] = None


class QuizDetail(QuizResponse):
    questions: List[QuestionItem] = []


class QuestionAbcdResponse(BaseModel):
    id: int
    quiz_id: int
    title: str
    answer_a: str = ""
    answer_a_correct: int = 0
    answer_b: str = ""
    answer_b_correct: int = 0
    answer_c: str = ""
    answer_c_correct: int = 0
    answer_d: str = ""
    answer_d_correct: int = 0
    order: int = 9999
    path: Optional[str] = None
    image: Optional[str] = None
    video: Optional[str] = None
    media_type: int = 1
    is_random: int = 0
    weight: int = 1
    status: int = 1

    class Config:
        from_attributes = True


class QuestionAbcdPayload(BaseModel):
    """Create/update body for an ABCD question. Omitted fields are left untouched on update."""

    title: Optional[str] = None
    answer_a: Optional[str] = None
    answer_a_correct: Optional[int] = None
    answer_b: Optional[str] = None
    answer_b_correct: Optional[int] = None
    answer_c: Optional[str] = None
    answer_c_correct: Optional[int] = None
    answer_d: Optional[str] = None
    answer_d_correct: Optional[int] = None
    order: Optional[int] = None
    path: Optional[str] = None
    image: Optional[str] = None
    video: Optional[str] = None
    media_type: Optional[int] = None
    is_random: Optional[int] = None
    weight: Optional[int] = None


class QuestionDeleteRequest(BaseModel):
    type: Union[int, str] = 1


class QuestionOrder(BaseModel):
    id: int
    order: int


class QuestionReorderRequest(BaseModel):
    orders: List[QuestionOrder] = []
