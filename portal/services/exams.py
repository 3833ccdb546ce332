"""Exams and results.

Results are insert-only: once a mark is recorded for a (student, exam) pair
there is no correction path, unlike attendance.
"""
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from ..errors import ExamNotFound, MarksOutOfRange, ResultAlreadyExists, ValidationFailed
from ..extensions import db
from ..models import Course, Exam, Result, Role
from ..models.enrollment import EXAM_TYPES
from .attendance import percentage
from .courses import active_course_ids
from .identity import (
    as_id, find_student, get_course, leading_int, require_course_access, require_staff,
)

logger = logging.getLogger(__name__)

UPCOMING = "upcoming"
COMPLETED = "completed"


def create_exam(principal, course_id, name, exam_type, max_marks, exam_date):
    require_staff(principal, "create exams")
    exam_type = (exam_type or "").strip().lower()
    if exam_type not in EXAM_TYPES:
        raise ValidationFailed("Exam type must be one of: " + ", ".join(EXAM_TYPES))
    if isinstance(max_marks, bool) or not isinstance(max_marks, int) or max_marks <= 0:
        raise ValidationFailed("Max marks must be a positive integer")
    course = get_course(course_id)
    require_course_access(principal, course, "create exams")

    exam = Exam(course_id=course.id, name=name.strip(), type=exam_type,
                max_marks=max_marks, date=exam_date, created_by=principal.id)
    db.session.add(exam)
    db.session.commit()
    logger.info("exam %r (%s, max %s) created for %s by %s", exam.name, exam.type,
                exam.max_marks, course.code, principal.email)
    return exam


def get_exam(exam_id):
    eid = as_id(exam_id)
    exam = db.session.get(Exam, eid) if eid is not None else None
    if exam is None:
        raise ExamNotFound()
    return exam


def existing_result(student_id, exam_id):
    return Result.query.filter_by(student_id=student_id, exam_id=exam_id).first()


def add_result(principal, exam_id, student_email, marks_obtained, grade=None):
    """Record a mark once. ``marks_obtained`` may be the raw form string."""
    require_staff(principal, "add results")
    student = find_student(student_email)

    eid = as_id(exam_id)
    if existing_result(student.id, eid):
        raise ResultAlreadyExists()
    exam = get_exam(eid)
    require_course_access(principal, exam.course, "add results")

    marks_obtained = leading_int(marks_obtained, "Marks")
    if not (0 <= marks_obtained <= exam.max_marks):
        raise MarksOutOfRange(exam.max_marks)

    res = Result(student_id=student.id, exam_id=exam.id, marks_obtained=marks_obtained,
                 grade=(grade or "").strip() or None)
    db.session.add(res)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ResultAlreadyExists()
    logger.info("result %s/%s for %s on exam %s (by %s)", marks_obtained, exam.max_marks,
                student.email, exam.id, principal.email)
    return res


def classify(exam, today):
    return UPCOMING if exam.date > today else COMPLETED


def exams_visible_to(principal):
    q = Exam.query.options(selectinload(Exam.course))
    role = principal.role_enum
    if role is Role.FACULTY:
        q = q.join(Course, Exam.course_id == Course.id).filter(Course.faculty_id == principal.id)
    elif role is Role.STUDENT:
        course_ids = active_course_ids(principal.id)
        if not course_ids:
            return []
        q = q.filter(Exam.course_id.in_(course_ids))
    return q.order_by(Exam.date.desc(), Exam.id.desc()).all()


def result_counts(exam_ids):
    if not exam_ids:
        return {}
    rows = (db.session.query(Result.exam_id, func.count(Result.id))
            .filter(Result.exam_id.in_(exam_ids))
            .group_by(Result.exam_id).all())
    counts = {eid: 0 for eid in exam_ids}
    counts.update(dict(rows))
    return counts


def exam_overview(principal, today):
    exams = exams_visible_to(principal)
    counts = result_counts([e.id for e in exams])
    own = {}
    if principal.role_enum is Role.STUDENT and exams:
        own = {r.exam_id: r for r in Result.query.filter(
            Result.student_id == principal.id,
            Result.exam_id.in_([e.id for e in exams])).all()}

    items = []
    for exam in exams:
        item = exam.to_dict()
        item["status"] = classify(exam, today)
        item["result_count"] = counts.get(exam.id, 0)
        if principal.role_enum is Role.STUDENT:
            res = own.get(exam.id)
            item["student_result"] = _own_result(res, exam)
        items.append(item)
    return {
        "exams": items,
        "upcoming": [i for i in items if i["status"] == UPCOMING],
        "completed": [i for i in items if i["status"] == COMPLETED],
    }


def _own_result(res, exam):
    if res is None:
        return None
    item = res.to_dict()
    item["percentage"] = percentage(res.marks_obtained, exam.max_marks)
    return item


def upcoming_for_courses(course_ids, today, limit=5):
    if not course_ids:
        return []
    return (Exam.query.options(selectinload(Exam.course))
            .filter(Exam.course_id.in_(course_ids), Exam.date > today)
            .order_by(Exam.date).limit(limit).all())


def recent_results(student_id, limit=5):
    return (Result.query.options(selectinload(Result.exam).selectinload(Exam.course))
            .filter_by(student_id=student_id)
            .order_by(Result.created_at.desc(), Result.id.desc())
            .limit(limit).all())
