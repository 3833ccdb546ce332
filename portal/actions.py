"""Caller-facing form actions.

Each action takes the submitted form (any mapping of field name to string,
normally ``request.form``) and the current account, and answers with either
``{"success": message}`` or ``{"error": message}``. Errors never propagate
to the caller.
"""
import logging
from datetime import date, datetime
from functools import wraps

from flask import current_app
from flask_login import login_user, logout_user
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import (
    DepartmentNotFound, EmailTaken, InvalidCredentials, PortalError, StorageError,
    ValidationFailed,
)
from .extensions import db
from .models import Department, Profile, Role, User
from .services import attendance, courses, enrollment, exams
from .services.identity import as_id, leading_int, require_staff, resolve_principal

logger = logging.getLogger(__name__)


def form_action(fn):
    @wraps(fn)
    def wrapper(form, *args, **kwargs):
        if not form:
            return {"error": "Form data is missing"}
        try:
            message = fn(form, *args, **kwargs)
        except PortalError as exc:
            db.session.rollback()
            logger.info("%s rejected: %s", fn.__name__, exc.message)
            return {"error": exc.message}
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("%s failed", fn.__name__)
            return {"error": StorageError.default_message}
        return {"success": message}
    return wrapper


# ---------- field parsing ----------
def _fields(form, *names, message="All fields are required"):
    values = [(form.get(n) or "").strip() for n in names]
    if not all(values):
        raise ValidationFailed(message)
    return values


def _optional(form, name):
    return (form.get(name) or "").strip() or None


def _whole_number(value, label):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationFailed(f"{label} must be a whole number")


def _iso_date(value):
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationFailed("Date must be in YYYY-MM-DD format")


def _clock(value):
    try:
        return datetime.strptime(value, "%H:%M").time()
    except (TypeError, ValueError):
        raise ValidationFailed("Time format must be HH:MM")


# ---------- auth ----------
@form_action
def sign_up(form):
    email, password, full_name, role_name = _fields(
        form, "email", "password", "fullName", "role",
        message="Email, password, full name, and role are required")
    role = Role.parse(role_name)
    if role is None:
        raise ValidationFailed("Role must be student, faculty, or admin")
    min_length = current_app.config.get("MIN_PASSWORD_LENGTH", 6)
    if len(password) < min_length:
        raise ValidationFailed(f"Password must be at least {min_length} characters")
    email = email.lower()
    if User.query.filter_by(email=email).first():
        raise EmailTaken()

    department_id = None
    if _optional(form, "department"):
        department_id = as_id(form.get("department"))
        if department_id is None or db.session.get(Department, department_id) is None:
            raise DepartmentNotFound()

    user = User(email=email, password_hash=generate_password_hash(password))
    profile = Profile(user=user, email=email, role=role.value, full_name=full_name,
                      department_id=department_id)
    if role is Role.STUDENT:
        profile.student_id = _optional(form, "studentId")
    else:
        profile.employee_id = _optional(form, "employeeId")
    db.session.add_all([user, profile])
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise EmailTaken()
    logger.info("new %s account %s", role.value, email)
    return "Account created successfully. You can now sign in."


@form_action
def sign_in(form):
    email, password = _fields(form, "email", "password",
                              message="Email and password are required")
    user = User.query.filter_by(email=email.lower()).one_or_none()
    if user is None or not check_password_hash(user.password_hash, password):
        raise InvalidCredentials()
    login_user(user)
    logger.info("%s signed in", user.email)
    return "Signed in"


def sign_out():
    logout_user()
    return {"success": "Signed out"}


@form_action
def change_password(form, account):
    old, new, confirm = _fields(form, "old_password", "new_password", "confirm_password")
    resolve_principal(account, "change your password")
    if not check_password_hash(account.password_hash, old):
        raise ValidationFailed("Current password is incorrect")
    min_length = current_app.config.get("MIN_PASSWORD_LENGTH", 6)
    if len(new) < min_length:
        raise ValidationFailed(f"New password must be at least {min_length} characters")
    if new != confirm:
        raise ValidationFailed("Passwords do not match")
    account.password_hash = generate_password_hash(new)
    db.session.commit()
    return "Password updated"


# ---------- courses & enrollment ----------
@form_action
def create_course(form, account):
    code, name, credits, department, semester, year = _fields(
        form, "code", "name", "credits", "department", "semester", "academicYear",
        message="All required fields must be filled")
    principal = require_staff(resolve_principal(account, "create courses"), "create courses")
    faculty = _optional(form, "faculty")
    courses.create_course(
        principal, code=code, name=name,
        credits=_whole_number(credits, "Credits"),
        department_id=_whole_number(department, "Department"),
        semester=semester, academic_year=year,
        description=_optional(form, "description"),
        faculty_id=_whole_number(faculty, "Faculty") if faculty else None,
    )
    return "Course created successfully"


@form_action
def enroll_student(form, account):
    course_id, student_email = _fields(form, "courseId", "studentEmail",
                                       message="Course ID and student email are required")
    principal = require_staff(resolve_principal(account, "enroll students"), "enroll students")
    enrollment.enroll(principal, course_id, student_email)
    return "Student enrolled successfully"


@form_action
def drop_enrollment(form, account):
    (enrollment_id,) = _fields(form, "enrollmentId", message="Enrollment ID is required")
    principal = resolve_principal(account, "drop enrollments")
    enrollment.drop(principal, enrollment_id)
    return "Enrollment dropped"


# ---------- attendance ----------
@form_action
def mark_attendance(form, account):
    course_id, student_email, on, status = _fields(form, "course", "studentEmail",
                                                   "date", "status")
    principal = require_staff(resolve_principal(account, "mark attendance"),
                              "mark attendance")
    _, created = attendance.mark(principal, course_id, student_email, _iso_date(on), status)
    return "Attendance marked successfully" if created else "Attendance updated successfully"


# ---------- exams ----------
@form_action
def create_exam(form, account):
    name, course_id, exam_type, max_marks, on = _fields(form, "name", "course", "type",
                                                        "maxMarks", "date")
    principal = require_staff(resolve_principal(account, "create exams"), "create exams")
    exams.create_exam(principal, course_id, name, exam_type,
                      leading_int(max_marks, "Max marks"), _iso_date(on))
    return "Exam created successfully"


@form_action
def add_result(form, account):
    exam_id, student_email, marks = _fields(
        form, "examId", "studentEmail", "marksObtained",
        message="Exam ID, student email, and marks are required")
    principal = require_staff(resolve_principal(account, "add results"), "add results")
    exams.add_result(principal, exam_id, student_email, marks,
                     grade=_optional(form, "grade"))
    return "Result added successfully"


# ---------- admin ----------
@form_action
def create_department(form, account):
    (name,) = _fields(form, "name", message="Department name is required")
    principal = resolve_principal(account, "create departments")
    courses.create_department(principal, name, _optional(form, "code"))
    return "Department created"


@form_action
def add_timeslot(form, account):
    course_id, day, start, end = _fields(form, "courseId", "dayOfWeek", "start", "end",
                                         message="Course/Weekday/Start/End required")
    principal = resolve_principal(account, "edit the timetable")
    courses.add_timeslot(principal, course_id, _whole_number(day, "Weekday"),
                         _clock(start), _clock(end), room=_optional(form, "room"))
    return "Class time added"
