from sqlalchemy import Column, Integer, String, Text

from lms_admin.core.enums import CourseStatus, CourseType
from lms_admin.core.models.mixins import TimestampMixin
from lms_admin.db.session import LMS_SCHEMA, Base


class Course(TimestampMixin, Base):
    """Course (หลักสูตร). course_code is unique among non-deleted rows only, so no DB constraint."""

    __tablename__ = "course"
    __table_args__ = {"schema": LMS_SCHEMA}

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=True)
    department_id = Column(Integer, nullable=True)
    name = Column(String(255), nullable=False)
    course_code = Column(String(100), nullable=True, index=True)
    expire_at = Column(String(50), nullable=True)
    totaltopic = Column(String(50), nullable=True)
    keywords = Column(String(500), nullable=True)
    courselevel = Column(String(50), nullable=True)
    howtopass = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    toc = Column(Text, nullable=True)
    howto = Column(Text, nullable=True)
    targetlearner = Column(Text, nullable=True)
    pretest = Column(Integer, nullable=False, default=0)
    pre_testing = Column(String(255), nullable=True)
    pretest_description = Column(Text, nullable=True)
    class_description = Column(Text, nullable=True)
    posttest = Column(Integer, nullable=False, default=0)
    post_testing = Column(String(255), nullable=True)
    posttest_description = Column(Text, nullable=True)
    homework = Column(Integer, nullable=False, default=0)
    example_description = Column(Text, nullable=True)
    sendemail = Column(Integer, nullable=False, default=0)
    evaluate_link = Column(String(500), nullable=True)
    email_template = Column(Text, nullable=True)
    status = Column(Integer, nullable=False, default=int(CourseStatus.DRAFT))
    type = Column(Integer, nullable=False, default=int(CourseType.NORMAL))
    course_show = Column(String(50), nullable=True)
    course_access = Column(String(50), nullable=True)
    course_group = Column(String(100), nullable=True)
    is_register = Column(Integer, nullable=False, default=0)
    delete_all = Column(Integer, nullable=False, default=0)
    fullscreen = Column(Integer, nullable=False, default=0)
    is_certificated = Column(Integer, nullable=False, default=0)
    is_document_lock = Column(Integer, nullable=False, default=0)
    icon = Column(String(255), nullable=True)
    icon_path = Column(String(255), nullable=True)
    cover = Column(String(255), nullable=True)
    cover_path = Column(String(255), nullable=True)
