from datetime import datetime, timezone
from enum import Enum

from flask_login import UserMixin
from ..extensions import db


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today():
    """The UTC calendar date; every "today" view reads this one clock."""
    return utcnow().date()


class Role(str, Enum):
    STUDENT = "student"
    FACULTY = "faculty"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value):
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return None


class User(UserMixin, db.Model):
    """Login account. The academic identity lives on ``Profile``."""
    __tablename__ = "user"
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    profile = db.relationship("Profile", back_populates="user", uselist=False)


class Profile(db.Model):
    __tablename__ = "profile"
    id = db.Column(db.Integer, db.ForeignKey("user.id"), primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    role = db.Column(db.String(16), nullable=False)
    full_name = db.Column(db.String(128), nullable=False)
    student_id = db.Column(db.String(32))       # students only
    employee_id = db.Column(db.String(32))      # faculty / admin
    department_id = db.Column(db.Integer, db.ForeignKey("department.id"))
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User", back_populates="profile")
    department = db.relationship("Department", back_populates="members")

    @property
    def role_enum(self):
        return Role(self.role)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "full_name": self.full_name,
            "student_id": self.student_id,
            "employee_id": self.employee_id,
            "department_id": self.department_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Department(db.Model):
    __tablename__ = "department"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), unique=True, nullable=False)
    code = db.Column(db.String(16))

    members = db.relationship("Profile", back_populates="department")
    courses = db.relationship("Course", back_populates="department")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
        }
