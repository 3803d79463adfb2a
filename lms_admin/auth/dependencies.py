from typing import Optional

from fastapi import Depends, Request

from lms_admin.core.exceptions import AccessDenied, LoginRequired

from .schemas import SessionUser

SESSION_KEY = "user"

# Roles allowed to run administrative actions (user delete, cache clear).
ADMIN_ROLES = ("Manager", "Admin", "Super Admin")


def get_session_user(request: Request) -> Optional[SessionUser]:
    data = request.session.get(SESSION_KEY)
    if not data:
        return None
    return SessionUser.model_validate(data)


async def require_auth(request: Request) -> SessionUser:
    """Resolve the logged-in user or bounce to /login (401 JSON on API paths)."""
    user = get_session_user(request)
    if user is None:
        raise LoginRequired()
    return user


def require_role(*roles: str):
    """
    Dependency factory restricting a route to a role whitelist.

    Example:
        Depends(require_role(*ADMIN_ROLES))
    """

    async def _checker(current_user: SessionUser = Depends(require_auth)) -> SessionUser:
        if current_user.role not in roles:
            raise AccessDenied()
        return current_user

    return _checker


def login(request: Request, user: SessionUser) -> None:
    request.session[SESSION_KEY] = user.to_session()


def logout(request: Request) -> None:
    request.session.clear()
