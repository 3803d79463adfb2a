"""Login stubs.

There is no credential store: every login accepts any non-empty credentials
and fabricates a session user, and the SSO entry points hard-code one user per
organization. Replace with real verification before production use.
"""

import random
from typing import Optional

from .schemas import SessionUser

SSO_USERS = {
    "lotuss": SessionUser(
        id=1,
        name="Somchai Lotuss",
        email="somchai@lotuss.com",
        role="Student",
        organization="Lotuss",
        avatar="/theme/assets/img/avatars/1.png",
        department="Store Operations",
        employee_id="LTS-001234",
    ),
    "makro": SessionUser(
        id=2,
        name="Nattaya Makro",
        email="nattaya@makro.com",
        role="Manager",
        organization="Makro",
        avatar="/theme/assets/img/avatars/2.png",
        department="Warehouse",
        employee_id="MKR-005678",
    ),
}


def sso_user(organization: str) -> Optional[SessionUser]:
    return SSO_USERS.get(organization)


def makro_login(username: Optional[str], password: Optional[str]) -> Optional[SessionUser]:
    if not username or not password:
        return None
    return SessionUser(
        id=2,
        name=username,
        email=f"{username}@makro.com",
        role="Employee",
        organization="Makro",
        avatar="/theme/assets/img/avatars/2.png",
        department="Warehouse",
        employee_id=f"MKR-{random.randint(0, 99999):06d}",
    )


def form_login(email: Optional[str], password: Optional[str]) -> Optional[SessionUser]:
    if not email or not password:
        return None
    return SessionUser(
        id=3,
        name=email.split("@")[0] or "User",
        email=email,
        role="Student",
        organization="iLearn",
        avatar="/theme/assets/img/avatars/3.png",
        department="General",
        employee_id="ILN-000001",
    )
