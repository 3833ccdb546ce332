"""Attendance register.

One record per (student, course, date). Re-marking the same key overwrites
status and marker (last write wins); nothing else about the record changes.
"""
import logging
import math

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from ..errors import NotEnrolled, ValidationFailed
from ..extensions import db
from ..models import AttendanceRecord, Course, Enrollment, Role
from ..models.attendance import ATTENDANCE_STATUSES
from .enrollment import active_enrollment
from .identity import find_student, get_course, require_course_access, require_staff

logger = logging.getLogger(__name__)


def mark(principal, course_id, student_email, on_date, status):
    """Insert or correct one attendance record.

    Returns ``(record, created)`` where ``created`` is False when an existing
    record for the same student, course and date was updated instead.
    """
    require_staff(principal, "mark attendance")
    status = (status or "").strip().lower()
    if status not in ATTENDANCE_STATUSES:
        raise ValidationFailed("Status must be one of: " + ", ".join(ATTENDANCE_STATUSES))
    course = get_course(course_id)
    require_course_access(principal, course, "mark attendance")
    student = find_student(student_email)

    if active_enrollment(student.id, course.id) is None:
        raise NotEnrolled()

    key = dict(student_id=student.id, course_id=course.id, date=on_date)
    rec = find_record(student.id, course.id, on_date)
    if rec is not None:
        return _overwrite(rec, status, principal), False

    rec = AttendanceRecord(status=status, marked_by=principal.id, **key)
    db.session.add(rec)
    try:
        db.session.commit()
    except IntegrityError:
        # someone inserted the same key between our lookup and insert
        db.session.rollback()
        rec = AttendanceRecord.query.filter_by(**key).one()
        return _overwrite(rec, status, principal), False
    logger.info("attendance %s: %s in %s on %s (by %s)", status, student.email,
                course.code, on_date.isoformat(), principal.email)
    return rec, True


def find_record(student_id, course_id, on_date):
    return AttendanceRecord.query.filter_by(student_id=student_id, course_id=course_id,
                                            date=on_date).one_or_none()


def _overwrite(rec, status, principal):
    previous = rec.status
    rec.status = status
    rec.marked_by = principal.id
    db.session.commit()
    logger.info("attendance %s corrected %s -> %s (by %s)", rec.id, previous, status,
                principal.email)
    return rec


def percentage(present, total):
    """Half-up rounded integer percentage; 0 when there is nothing to count."""
    if not total:
        return 0
    return int(math.floor(present * 100 / total + 0.5))


def percentage_for(student_id, course_id):
    total, present = _counts(student_id, course_id)
    return percentage(present, total)


def _counts(student_id, course_id):
    rows = (db.session.query(AttendanceRecord.status, func.count(AttendanceRecord.id))
            .filter(AttendanceRecord.student_id == student_id,
                    AttendanceRecord.course_id == course_id)
            .group_by(AttendanceRecord.status).all())
    by_status = dict(rows)
    return sum(by_status.values()), by_status.get("present", 0)


def daily_summary(course_id, on_date):
    rows = (db.session.query(AttendanceRecord.status, func.count(AttendanceRecord.id))
            .filter(AttendanceRecord.course_id == course_id,
                    AttendanceRecord.date == on_date)
            .group_by(AttendanceRecord.status).all())
    summary = {s: 0 for s in ATTENDANCE_STATUSES}
    summary.update(dict(rows))
    summary["total"] = sum(summary[s] for s in ATTENDANCE_STATUSES)
    summary["date"] = on_date.isoformat()
    summary["course_id"] = course_id
    return summary


def course_wise_attendance(student_id):
    enrollments = (Enrollment.query.options(selectinload(Enrollment.course))
                   .filter_by(student_id=student_id, status="active")
                   .order_by(Enrollment.enrollment_date).all())
    rows = []
    for en in enrollments:
        total, present = _counts(student_id, en.course_id)
        rows.append({
            "course": {"id": en.course.id, "name": en.course.name, "code": en.course.code},
            "total_classes": total,
            "present_classes": present,
            "percentage": percentage(present, total),
        })
    return rows


def records_visible_to(principal, limit=50):
    q = AttendanceRecord.query.options(selectinload(AttendanceRecord.student),
                                       selectinload(AttendanceRecord.course))
    role = principal.role_enum
    if role is Role.FACULTY:
        q = q.join(Course, AttendanceRecord.course_id == Course.id) \
             .filter(Course.faculty_id == principal.id)
    elif role is Role.STUDENT:
        q = q.filter(AttendanceRecord.student_id == principal.id)
    return (q.order_by(AttendanceRecord.date.desc(), AttendanceRecord.id.desc())
            .limit(limit).all())


def attendance_overview(principal, today, limit=50):
    records = records_visible_to(principal, limit=limit)
    todays = [r for r in records if r.date == today]
    present = [r for r in records if r.status == "present"]
    overview = {
        "records": [r.to_dict() for r in records],
        "today_count": len(todays),
        "present_today": sum(1 for r in todays if r.status == "present"),
        "total_present": len(present),
        "total_absent": sum(1 for r in records if r.status == "absent"),
    }
    if principal.role_enum is Role.STUDENT:
        overview["percentage"] = percentage(len(present), len(records))
        overview["course_wise"] = course_wise_attendance(principal.id)
    return overview


def count_on(on_date):
    return AttendanceRecord.query.filter_by(date=on_date).count()
