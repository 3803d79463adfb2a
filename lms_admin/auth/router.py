from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse

from lms_admin.templating import render

from . import services
from .dependencies import get_session_user, login, logout

router = APIRouter(tags=["auth"])


def _already_logged_in(request: Request) -> bool:
    return get_session_user(request) is not None


@router.get("/login")
async def show_login(request: Request):
    if _already_logged_in(request):
        return RedirectResponse("/dashboard", status_code=302)
    return render(request, "login.html", {"error": None})


@router.get("/login-form")
async def show_login_form(request: Request):
    if _already_logged_in(request):
        return RedirectResponse("/dashboard", status_code=302)
    return render(request, "login-form.html", {"error": None})


@router.get("/auth/sso/{organization}")
async def sso_login(organization: str, request: Request):
    user = services.sso_user(organization)
    if user is None:
        return RedirectResponse("/login", status_code=302)
    login(request, user)
    return RedirectResponse("/dashboard", status_code=302)


@router.post("/auth/login/makro")
async def login_makro(request: Request):
    form = await request.form()
    user = services.makro_login(form.get("username"), form.get("password"))
    if user is None:
        return render(request, "login.html", {"error": "Please enter username and password"})
    login(request, user)
    return RedirectResponse("/dashboard", status_code=302)


@router.post("/auth/login")
async def login_form(request: Request):
    form = await request.form()
    user = services.form_login(form.get("email"), form.get("password"))
    if user is None:
        return render(request, "login-form.html", {"error": "Please enter email and password"})
    login(request, user)
    return RedirectResponse("/dashboard", status_code=302)


@router.get("/logout")
async def do_logout(request: Request):
    logout(request)
    return RedirectResponse("/login", status_code=302)
