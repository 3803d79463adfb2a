from sqlalchemy import Column, Float, Integer

from lms_admin.core.models.mixins import TimestampMixin
from lms_admin.db.session import ELEARNING_SCHEMA, Base


class ClassRoom(TimestampMixin, Base):
    """A run of a course (table `class`)."""

    __tablename__ = "class"
    __table_args__ = {"schema": ELEARNING_SCHEMA}

    id = Column(Integer, primary_key=True, autoincrement=True)
    course_id = Column(Integer, nullable=True, index=True)
    user_id = Column(Integer, nullable=True)
    is_finished = Column(Integer, nullable=True, default=0)


class ClassStudent(TimestampMixin, Base):
    """Enrollment record; is_finished is 0/NULL in progress, 1 completed, 2 pending review."""

    __tablename__ = "class_student"
    __table_args__ = {"schema": ELEARNING_SCHEMA}

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=True, index=True)
    class_id = Column(Integer, nullable=True, index=True)
    course_id = Column(Integer, nullable=True, index=True)
    is_finished = Column(Integer, nullable=True, default=0)
    score = Column(Float, nullable=True)
    total_score = Column(Float, nullable=True)
    pretest = Column(Float, nullable=True)
    posttest = Column(Float, nullable=True)
    ontime = Column(Integer, nullable=True)
