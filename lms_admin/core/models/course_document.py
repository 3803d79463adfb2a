from sqlalchemy import Column, Integer

from lms_admin.core.models.mixins import TimestampMixin
from lms_admin.db.session import LMS_SCHEMA, Base


class CourseDocument(TimestampMixin, Base):
    """Ordered course <-> document link."""

    __tablename__ = "course_document"
    __table_args__ = {"schema": LMS_SCHEMA}

    id = Column(Integer, primary_key=True, autoincrement=True)
    course_id = Column(Integer, nullable=False, index=True)
    document_id = Column(Integer, nullable=False, index=True)
    order = Column(Integer, nullable=False, default=999)
    status = Column(Integer, nullable=False, default=1)
