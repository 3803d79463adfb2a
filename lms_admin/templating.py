from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates

from lms_admin.core import enums
from lms_admin.core.models import user as user_helpers

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals.update(
    course_status_label=enums.course_status_label,
    course_status_badge=enums.course_status_badge,
    course_type_label=enums.course_type_label,
    document_type_label=enums.document_type_label,
    document_type_icon=enums.document_type_icon,
    quiz_status_label=enums.quiz_status_label,
    quiz_status_badge=enums.quiz_status_badge,
    question_type_name=enums.question_type_name,
    user_type_label=enums.user_type_label,
    user_type_badge=enums.user_type_badge,
    user_display_name=user_helpers.display_name,
    user_status_label=user_helpers.status_label,
    user_status_badge=user_helpers.status_badge,
    user_avatar_url=user_helpers.avatar_url,
    CourseStatus=enums.CourseStatus,
    CourseType=enums.CourseType,
    QuizType=enums.QuizType,
    UserType=enums.UserType,
)


def render(
    request: Request,
    name: str,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 200,
):
    """Render a page with the session user and query string available to every template."""
    ctx = {
        "user": request.session.get("user") if "session" in request.scope else None,
        "query": dict(request.query_params),
    }
    ctx.update(context or {})
    return templates.TemplateResponse(request, name, ctx, status_code=status_code)
