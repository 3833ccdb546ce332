"""Read-only dashboard views.

Nothing here writes; every figure is recomputed from the ledgers on each
call. ``now`` is naive UTC, matching the stored ``created_at`` columns.
"""
from datetime import timedelta

from sqlalchemy import func, or_

from ..extensions import db
from ..models import Course, Department, Enrollment, Profile, Role
from . import attendance, courses, enrollment, exams
from .identity import require_role

NEW_USER_WINDOW = timedelta(days=7)


def counts_by_role():
    rows = db.session.query(Profile.role, func.count(Profile.id)).group_by(Profile.role).all()
    counts = {r.value: 0 for r in Role}
    counts.update(dict(rows))
    return counts


def counts_by_department():
    rows = (db.session.query(Department, func.count(Course.id))
            .outerjoin(Course, Course.department_id == Department.id)
            .group_by(Department.id)
            .order_by(Department.name).all())
    return [dict(dept.to_dict(), course_count=n) for dept, n in rows]


def new_users(now, limit=5):
    since = now - NEW_USER_WINDOW
    q = Profile.query.filter(Profile.created_at >= since)
    recent = q.order_by(Profile.created_at.desc()).limit(limit).all()
    return q.count(), recent


PROFILE_SORTS = {
    "created": Profile.created_at,
    "name": Profile.full_name,
    "email": Profile.email,
    "role": Profile.role,
}


def directory_query(search=None, role=None, sort="created", descending=True):
    """Profiles matching a name, email or roll-number fragment, optionally one role."""
    q = Profile.query
    role = Role.parse(role)
    if role is not None:
        q = q.filter(Profile.role == role.value)
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(*(col.ilike(pattern) for col in (
            Profile.full_name, Profile.email, Profile.student_id, Profile.employee_id))))
    col = PROFILE_SORTS.get(sort, Profile.created_at)
    return q.order_by(col.desc() if descending else col.asc(), Profile.id)


def course_overview(principal):
    items = courses.courses_visible_to(principal)
    counts = dict(db.session.query(Enrollment.course_id, func.count(Enrollment.id))
                  .filter(Enrollment.status == "active")
                  .group_by(Enrollment.course_id).all())
    return [dict(c.to_dict(), enrollment_count=counts.get(c.id, 0)) for c in items]


def admin_dashboard(principal, now):
    require_role(principal, Role.ADMIN)
    today = now.date()
    by_role = counts_by_role()
    new_count, recent_users = new_users(now)
    recent_enrollments = (Enrollment.query
                          .order_by(Enrollment.enrollment_date.desc(), Enrollment.id.desc())
                          .limit(5).all())
    return {
        "total_students": by_role[Role.STUDENT.value],
        "total_faculty": by_role[Role.FACULTY.value],
        "total_courses": Course.query.count(),
        "total_departments": Department.query.count(),
        "active_enrollments": enrollment.active_count(),
        "today_attendance": attendance.count_on(today),
        "new_users_count": new_count,
        "recent_users": [p.to_dict() for p in recent_users],
        "recent_enrollments": [e.to_dict() for e in recent_enrollments],
        "departments": counts_by_department(),
    }


def faculty_dashboard(principal, now):
    require_role(principal, Role.FACULTY)
    today = now.date()
    owned = course_overview(principal)
    course_ids = [c["id"] for c in owned]
    return {
        "courses": owned,
        "total_enrollments": enrollment.active_count(course_ids),
        "recent_attendance": [r.to_dict() for r in
                              attendance.records_visible_to(principal, limit=10)],
        "upcoming_exams": [e.to_dict() for e in exams.upcoming_for_courses(course_ids, today)],
        "today_schedule": [t.to_dict() for t in courses.todays_schedule(course_ids, today)],
    }


def student_dashboard(principal, now):
    require_role(principal, Role.STUDENT)
    today = now.date()
    active = [e for e in enrollment.list_for_student(principal, principal.id)
              if e.status == "active"]
    course_ids = [e.course_id for e in active]
    return {
        "enrollments": [dict(e.to_dict(), course_detail=e.course.to_dict()) for e in active],
        "attendance": attendance.course_wise_attendance(principal.id),
        "recent_attendance": [r.to_dict() for r in
                              attendance.records_visible_to(principal, limit=5)],
        "recent_results": [r.to_dict() for r in exams.recent_results(principal.id)],
        "today_schedule": [t.to_dict() for t in courses.todays_schedule(course_ids, today)],
    }


DASHBOARDS = {
    Role.STUDENT: student_dashboard,
    Role.FACULTY: faculty_dashboard,
    Role.ADMIN: admin_dashboard,
}


def dashboard_for(principal, now):
    view = DASHBOARDS[principal.role_enum]
    return {"role": principal.role, "profile": principal.to_dict(), **view(principal, now)}
