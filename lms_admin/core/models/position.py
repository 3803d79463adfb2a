from sqlalchemy import Column, Integer, String

from lms_admin.core.models.mixins import TimestampMixin
from lms_admin.db.session import LMS_SCHEMA, Base


class Position(TimestampMixin, Base):
    """Job position (ตำแหน่งงาน); the target-learner dimension of a course."""

    __tablename__ = "position"
    __table_args__ = {"schema": LMS_SCHEMA}

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    status = Column(Integer, nullable=False, default=1)


class CoursePosition(TimestampMixin, Base):
    __tablename__ = "course_position"
    __table_args__ = {"schema": LMS_SCHEMA}

    id = Column(Integer, primary_key=True, autoincrement=True)
    course_id = Column(Integer, nullable=False, index=True)
    position_id = Column(Integer, nullable=False, index=True)
    status = Column(Integer, nullable=False, default=1)

