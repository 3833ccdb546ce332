from datetime import date

from flask import request
from flask_login import current_user, login_required

from ...actions import mark_attendance
from ...errors import PermissionDenied, ValidationFailed
from ...models import Role
from ...models.people import today
from ...services import attendance, courses
from ...services.identity import as_id, get_course, require_course_access, require_staff
from ..auth.routes import current_principal, respond
from . import bp


def _day_arg():
    raw = (request.args.get("date") or "").strip()
    if not raw:
        return today()
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise ValidationFailed("Date must be in YYYY-MM-DD format")


@bp.get("/")
@login_required
def index():
    principal = current_principal()
    payload = attendance.attendance_overview(principal, today())
    if principal.role_enum is not Role.STUDENT:
        payload["courses"] = [c.to_dict() for c in courses.courses_visible_to(principal)]
    return payload


@bp.post("/")
@login_required
def mark():
    return respond(mark_attendance(request.form, current_user))


@bp.get("/summary")
@login_required
def summary():
    principal = require_staff(current_principal(), "view attendance summaries")
    course = get_course(request.args.get("course"))
    require_course_access(principal, course, "view attendance")
    return attendance.daily_summary(course.id, _day_arg())


@bp.get("/percentage")
@login_required
def percentage():
    principal = current_principal()
    course = get_course(request.args.get("course"))
    student_id = as_id(request.args.get("student"))
    if principal.role_enum is Role.STUDENT:
        student_id = student_id or principal.id
        if student_id != principal.id:
            raise PermissionDenied("You can only view your own attendance")
    else:
        require_course_access(principal, course, "view attendance")
        if student_id is None:
            raise ValidationFailed("Student is required")
    return {
        "student_id": student_id,
        "course_id": course.id,
        "percentage": attendance.percentage_for(student_id, course.id),
    }
