"""Company partition (tenant split) applied to the user.company column.

lotus: NULL, empty string, or anything other than 'makro'.
makro: exactly 'makro'.
all:   no filter.
"""

from typing import Optional

from sqlalchemy import or_, true

from lms_admin.core.config import settings
from lms_admin.core.enums import Company


def normalize_company(value: Optional[str], default: Optional[str] = None) -> str:
    fallback = default or settings.default_company
    if value is None:
        return fallback
    value = str(value).strip().lower()
    if value in {c.value for c in Company}:
        return value
    return fallback


def company_condition(column, company: Optional[str]):
    company = normalize_company(company)
    if company == Company.MAKRO.value:
        return column == Company.MAKRO.value
    if company == Company.ALL.value:
        return true()
    return or_(column.is_(None), column == "", column != Company.MAKRO.value)
