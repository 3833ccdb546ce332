from flask import request
from flask_login import current_user, login_required

from ...actions import create_course, drop_enrollment, enroll_student
from ...models import Role
from ...services import courses, enrollment, reporting
from ..auth.routes import current_principal, respond
from . import bp


@bp.get("/")
@login_required
def index():
    principal = current_principal()
    payload = {"courses": reporting.course_overview(principal)}
    if principal.role_enum is not Role.STUDENT:
        payload["departments"] = [d.to_dict() for d in courses.departments()]
        payload["faculty"] = [p.to_dict() for p in courses.faculty_members()]
    return payload


@bp.post("/")
@login_required
def create():
    return respond(create_course(request.form, current_user))


@bp.post("/enroll")
@login_required
def enroll():
    return respond(enroll_student(request.form, current_user))


@bp.post("/enrollments/<int:enrollment_id>/drop")
@login_required
def drop(enrollment_id):
    return respond(drop_enrollment({"enrollmentId": str(enrollment_id)}, current_user))


@bp.get("/<int:course_id>/enrollments")
@login_required
def roster(course_id):
    items = enrollment.list_for_course(current_principal(), course_id)
    return {"items": [e.to_dict() for e in items]}


@bp.get("/students/<int:student_id>/enrollments")
@login_required
def student_enrollments(student_id):
    items = enrollment.list_for_student(current_principal(), student_id)
    return {"items": [e.to_dict() for e in items]}
