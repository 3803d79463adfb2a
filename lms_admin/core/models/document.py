from sqlalchemy import Column, Integer, String

from lms_admin.core.enums import DocumentType
from lms_admin.core.models.mixins import TimestampMixin
from lms_admin.db.session import LMS_SCHEMA, Base


class Document(TimestampMixin, Base):
    """Learning material (info page, video, quiz, book, pdf) attachable to courses."""

    __tablename__ = "document"
    __table_args__ = {"schema": LMS_SCHEMA}

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    type = Column(Integer, nullable=False, default=int(DocumentType.INFO))
    is_new = Column(Integer, nullable=False, default=0)
    status = Column(Integer, nullable=False, default=1)
