import logging

from sqlalchemy.exc import IntegrityError

from ..errors import (
    AlreadyExists, CourseCodeExists, DepartmentNotFound, FacultyNotFound, ValidationFailed,
)
from ..extensions import db
from ..models import Course, Department, Enrollment, Profile, Role, Timeslot
from .identity import get_course, require_role, require_staff

logger = logging.getLogger(__name__)


def create_course(principal, code, name, credits, department_id, semester, academic_year,
                  description=None, faculty_id=None):
    require_staff(principal, "create courses")
    code = code.strip().upper()
    if credits <= 0:
        raise ValidationFailed("Credits must be a positive integer")
    if Course.query.filter_by(code=code).first():
        raise CourseCodeExists()
    department = db.session.get(Department, department_id)
    if department is None:
        raise DepartmentNotFound()

    if faculty_id is not None:
        faculty = db.session.get(Profile, faculty_id)
        if faculty is None or faculty.role != Role.FACULTY.value:
            raise FacultyNotFound()
    elif principal.role_enum is Role.FACULTY:
        faculty_id = principal.id

    course = Course(code=code, name=name.strip(), description=description or None,
                    credits=credits, department_id=department.id, faculty_id=faculty_id,
                    semester=semester.strip(), academic_year=academic_year.strip())
    db.session.add(course)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise CourseCodeExists()
    logger.info("course %s created by %s", course.code, principal.email)
    return course


def create_department(principal, name, code=None):
    require_role(principal, Role.ADMIN, message="Only admins can create departments")
    name = name.strip()
    if Department.query.filter_by(name=name).first():
        raise AlreadyExists("Department already exists")
    dept = Department(name=name, code=(code or "").strip().upper() or None)
    db.session.add(dept)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise AlreadyExists("Department already exists")
    logger.info("department %s created by %s", dept.name, principal.email)
    return dept


def add_timeslot(principal, course_id, day_of_week, start_time, end_time, room=None):
    require_role(principal, Role.ADMIN, message="Only admins can edit the timetable")
    course = get_course(course_id)
    if day_of_week not in range(1, 8):
        raise ValidationFailed("Weekday must be in 1..7")
    if not (start_time < end_time):
        raise ValidationFailed("End time must be later than start time")
    ts = Timeslot(course_id=course.id, day_of_week=day_of_week,
                  start_time=start_time, end_time=end_time, room=(room or "").strip() or None)
    db.session.add(ts)
    db.session.commit()
    logger.info("timeslot added to %s: day %s %s-%s", course.code, day_of_week,
                start_time.strftime("%H:%M"), end_time.strftime("%H:%M"))
    return ts


def courses_visible_to(principal):
    """Faculty see the courses they own; everyone else sees the catalogue."""
    q = Course.query
    if principal.role_enum is Role.FACULTY:
        q = q.filter(Course.faculty_id == principal.id)
    return q.order_by(Course.created_at.desc(), Course.id.desc()).all()


def active_course_ids(student_id):
    return [cid for (cid,) in db.session.query(Enrollment.course_id)
            .filter_by(student_id=student_id, status="active").all()]


def todays_schedule(course_ids, today):
    if not course_ids:
        return []
    return (Timeslot.query
            .filter(Timeslot.course_id.in_(course_ids),
                    Timeslot.day_of_week == today.isoweekday())
            .order_by(Timeslot.start_time).all())


def faculty_members():
    return Profile.query.filter_by(role=Role.FACULTY.value).order_by(Profile.full_name).all()


def departments():
    return Department.query.order_by(Department.name).all()
