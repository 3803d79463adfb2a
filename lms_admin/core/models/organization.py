"""Organization hierarchy: Format -> Functions -> Department.

Names are unique within their parent (Format names globally) among non-deleted
rows; this is checked in the service layer because soft-deleted rows keep their names.
"""

from sqlalchemy import Column, Integer, String

from lms_admin.core.models.mixins import TimestampMixin
from lms_admin.db.session import LMS_SCHEMA, Base


class Format(TimestampMixin, Base):
    """Store format, e.g. Hypermarket, Express, DC, Head Office."""

    __tablename__ = "format"
    __table_args__ = {"schema": LMS_SCHEMA}

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    order = Column(Integer, nullable=False, default=999)
    status = Column(Integer, nullable=False, default=1)


class Functions(TimestampMixin, Base):
    __tablename__ = "functions"
    __table_args__ = {"schema": LMS_SCHEMA}

    id = Column(Integer, primary_key=True, autoincrement=True)
    format_id = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    order = Column(Integer, nullable=False, default=999)
    status = Column(Integer, nullable=False, default=1)


class Department(TimestampMixin, Base):
    __tablename__ = "department"
    __table_args__ = {"schema": LMS_SCHEMA}

    id = Column(Integer, primary_key=True, autoincrement=True)
    functions_id = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    order = Column(Integer, nullable=False, default=999)
    status = Column(Integer, nullable=False, default=1)
