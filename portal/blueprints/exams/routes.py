from flask import request
from flask_login import current_user, login_required

from ...actions import add_result, create_exam
from ...models import Role
from ...models.people import today
from ...services import courses, exams
from ..auth.routes import current_principal, respond
from . import bp


@bp.get("/")
@login_required
def index():
    principal = current_principal()
    payload = exams.exam_overview(principal, today())
    if principal.role_enum is not Role.STUDENT:
        payload["courses"] = [c.to_dict() for c in courses.courses_visible_to(principal)]
    return payload


@bp.post("/")
@login_required
def create():
    return respond(create_exam(request.form, current_user))


@bp.post("/results")
@login_required
def results():
    return respond(add_result(request.form, current_user))
