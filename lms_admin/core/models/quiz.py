from sqlalchemy import Column, Integer, String, Text

from lms_admin.core.enums import QuestionType, QuizStatus, QuizType
from lms_admin.core.models.mixins import TimestampMixin
from lms_admin.db.session import ELEARNING_SCHEMA, Base


class Quiz(TimestampMixin, Base):
    __tablename__ = "quiz"
    __table_args__ = {"schema": ELEARNING_SCHEMA}

    id = Column(Integer, primary_key=True, autoincrement=True)
    course_id = Column(Integer, nullable=True, index=True)
    user_id = Column(Integer, nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    score = Column(Integer, nullable=False, default=80)  # pass threshold, percent
    is_publish = Column(Integer, nullable=False, default=int(QuizStatus.DRAFT))
    is_random_question = Column(Integer, nullable=False, default=0)
    is_show_answer = Column(Integer, nullable=False, default=0)
    type = Column(Integer, nullable=False, default=int(QuizType.PRETEST))
    video = Column(String(255), nullable=True)
    status = Column(Integer, nullable=False, default=1)


class Question(TimestampMixin, Base):
    """Link row: (type, question_id) points into the per-type detail table."""

    __tablename__ = "question"
    __table_args__ = {"schema": ELEARNING_SCHEMA}

    id = Column(Integer, primary_key=True, autoincrement=True)
    quiz_id = Column(Integer, nullable=False, index=True)
    question_id = Column(Integer, nullable=False)
    type = Column(Integer, nullable=False)
    order = Column(Integer, nullable=False, default=9999)
    status = Column(Integer, nullable=False, default=1)


class QuestionDetailMixin(TimestampMixin):
    id = Column(Integer, primary_key=True, autoincrement=True)
    quiz_id = Column(Integer, nullable=False, index=True)
    title = Column(Text, nullable=False)
    order = Column(Integer, nullable=False, default=9999)
    path = Column(String(255), nullable=True)
    image = Column(String(255), nullable=True)
    video = Column(String(255), nullable=True)
    media_type = Column(Integer, nullable=False, default=1)
    weight = Column(Integer, nullable=False, default=1)
    status = Column(Integer, nullable=False, default=1)


class QuestionAbcd(QuestionDetailMixin, Base):
    __tablename__ = "question_abcd"
    __table_args__ = {"schema": ELEARNING_SCHEMA}

    answer_a = Column(Text, nullable=False, default="")
    answer_a_correct = Column(Integer, nullable=False, default=0)
    answer_b = Column(Text, nullable=False, default="")
    answer_b_correct = Column(Integer, nullable=False, default=0)
    answer_c = Column(Text, nullable=False, default="")
    answer_c_correct = Column(Integer, nullable=False, default=0)
    answer_d = Column(Text, nullable=False, default="")
    answer_d_correct = Column(Integer, nullable=False, default=0)
    is_random = Column(Integer, nullable=False, default=0)


class QuestionYn(QuestionDetailMixin, Base):
    __tablename__ = "question_yn"
    __table_args__ = {"schema": ELEARNING_SCHEMA}

    answer = Column(Integer, nullable=False, default=1)  # 1 yes, 0 no


class QuestionWrite(QuestionDetailMixin, Base):
    __tablename__ = "question_write"
    __table_args__ = {"schema": ELEARNING_SCHEMA}

    answer = Column(Text, nullable=True)


class QuestionMatch(QuestionDetailMixin, Base):
    __tablename__ = "question_match"
    __table_args__ = {"schema": ELEARNING_SCHEMA}

    choices = Column(Text, nullable=True)  # JSON encoded pairs


class QuestionMatchPicture(QuestionDetailMixin, Base):
    __tablename__ = "question_match_picture"
    __table_args__ = {"schema": ELEARNING_SCHEMA}

    choices = Column(Text, nullable=True)  # JSON encoded image/label pairs


QUESTION_DETAIL_MODELS = {
    QuestionType.ABCD: QuestionAbcd,
    QuestionType.YN: QuestionYn,
    QuestionType.WRITE: QuestionWrite,
    QuestionType.MATCH: QuestionMatch,
    QuestionType.MATCH_PICTURE: QuestionMatchPicture,
}
