import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from ..errors import AlreadyEnrolled, EnrollmentNotFound, PermissionDenied
from ..extensions import db
from ..models import Course, Enrollment, Role
from .identity import (
    as_id, find_student, get_course, require_course_access, require_staff,
)

logger = logging.getLogger(__name__)


def enrollment_for(student_id, course_id):
    """The enrollment for a pair in any status, or None."""
    return Enrollment.query.filter_by(student_id=student_id, course_id=course_id).first()


def enroll(principal, course_id, student_email):
    require_staff(principal, "enroll students")
    course = get_course(course_id)
    student = find_student(student_email)

    if enrollment_for(student.id, course.id) is not None:
        raise AlreadyEnrolled()
    require_course_access(principal, course, "enroll students")

    en = Enrollment(student_id=student.id, course_id=course.id, status="active")
    db.session.add(en)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise AlreadyEnrolled()
    logger.info("enrolled %s in %s (by %s)", student.email, course.code, principal.email)
    return en


def drop(principal, enrollment_id):
    require_staff(principal, "drop enrollments")
    eid = as_id(enrollment_id)
    en = db.session.get(Enrollment, eid) if eid is not None else None
    if en is None:
        raise EnrollmentNotFound()
    require_course_access(principal, en.course, "drop enrollments")
    en.status = "dropped"
    db.session.commit()
    logger.info("dropped enrollment %s (%s in %s)", en.id, en.student.email, en.course.code)
    return en


def _with_details(q):
    return q.options(selectinload(Enrollment.course), selectinload(Enrollment.student))


def list_for_student(principal, student_id):
    role = principal.role_enum
    q = _with_details(Enrollment.query).filter(Enrollment.student_id == student_id)
    if role is Role.STUDENT:
        if student_id != principal.id:
            raise PermissionDenied("You can only view your own enrollments")
    elif role is Role.FACULTY:
        q = q.join(Course).filter(Course.faculty_id == principal.id)
    return q.order_by(Enrollment.enrollment_date.desc()).all()


def list_for_course(principal, course_id):
    course = get_course(course_id)
    if principal.role_enum is Role.STUDENT:
        raise PermissionDenied("You don't have permission to view course rosters")
    require_course_access(principal, course, "view enrollments")
    return (_with_details(Enrollment.query)
            .filter(Enrollment.course_id == course.id)
            .order_by(Enrollment.enrollment_date.asc()).all())


def active_enrollment(student_id, course_id):
    return Enrollment.query.filter_by(student_id=student_id, course_id=course_id,
                                      status="active").first()


def active_count(course_ids=None):
    q = Enrollment.query.filter_by(status="active")
    if course_ids is not None:
        if not course_ids:
            return 0
        q = q.filter(Enrollment.course_id.in_(course_ids))
    return q.count()
