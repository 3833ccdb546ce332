from ..extensions import db
from .people import User, Profile, Department, Role
from .course import Course, Timeslot
from .enrollment import Enrollment, Exam, Result
from .attendance import AttendanceRecord

__all__ = [
    "User", "Profile", "Department", "Role", "Course", "Timeslot",
    "Enrollment", "Exam", "Result", "AttendanceRecord",
]
