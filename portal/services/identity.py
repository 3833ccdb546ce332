"""Identity & role resolution.

Every service takes the acting ``Profile`` (the principal) as an explicit
argument; only the HTTP layer touches ``flask_login.current_user``.
"""
import logging
import re

from ..errors import (
    CourseNotFound, PermissionDenied, ProfileMissing, StudentNotFound, Unauthenticated,
    ValidationFailed,
)
from ..extensions import db
from ..models import Course, Profile, Role

logger = logging.getLogger(__name__)

STAFF_ROLES = (Role.ADMIN, Role.FACULTY)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def resolve_principal(account, action=None):
    """Map an authenticated account to its profile."""
    if account is None or not getattr(account, "is_authenticated", False):
        raise Unauthenticated(f"You must be logged in to {action}" if action else None)
    profile = account.profile
    if profile is None:
        logger.warning("account %s has no profile", account.id)
        raise ProfileMissing()
    return profile


def require_role(principal, *roles, message=None):
    if principal.role_enum not in roles:
        logger.info("denied %s (%s): needs one of %s", principal.email, principal.role,
                    ", ".join(r.value for r in roles))
        raise PermissionDenied(message)
    return principal


def require_staff(principal, action):
    return require_role(principal, *STAFF_ROLES,
                        message=f"You don't have permission to {action}")


def require_course_access(principal, course, action):
    """Admins act on any course; faculty only on the courses they own."""
    if principal.role_enum is Role.ADMIN:
        return course
    if principal.role_enum is Role.FACULTY and course.is_owned_by(principal):
        return course
    raise PermissionDenied(f"You don't have permission to {action} for this course")


def find_student(email):
    email = (email or "").strip().lower()
    student = Profile.query.filter_by(email=email, role=Role.STUDENT.value).one_or_none()
    if student is None:
        raise StudentNotFound()
    return student


def get_course(course_id):
    cid = as_id(course_id)
    course = db.session.get(Course, cid) if cid is not None else None
    if course is None:
        raise CourseNotFound()
    return course


def as_id(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def leading_int(value, label):
    """Whole-number prefix of a form value: "85.5" reads as 85, "abc" fails."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    m = _LEADING_INT.match(value) if isinstance(value, str) else None
    if m is None:
        raise ValidationFailed(f"{label} must be a whole number")
    return int(m.group(1))
