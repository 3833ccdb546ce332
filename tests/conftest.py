from datetime import date, timedelta

import pytest
from werkzeug.security import generate_password_hash

from config import TestConfig
from portal import create_app
from portal.extensions import db
from portal.models import Course, Department, Enrollment, Exam, Profile, User

PASSWORD = "secret123"
# cheap hash so the suite stays fast
_HASH = generate_password_hash(PASSWORD, method="pbkdf2:sha256:1000")


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


class Factory:
    def __init__(self):
        self._n = 0

    def _next(self):
        self._n += 1
        return self._n

    def profile(self, role, email=None, full_name=None, **fields):
        n = self._next()
        email = email or f"{role}{n}@college.edu"
        user = User(email=email, password_hash=_HASH)
        profile = Profile(user=user, email=email, role=role,
                          full_name=full_name or f"{role.title()} {n}", **fields)
        db.session.add_all([user, profile])
        db.session.commit()
        return profile

    def department(self, name=None):
        dept = Department(name=name or f"Department {self._next()}", code="DEP")
        db.session.add(dept)
        db.session.commit()
        return dept

    def course(self, department, faculty=None, code=None):
        n = self._next()
        course = Course(code=code or f"CS{100 + n}", name=f"Course {n}", credits=3,
                        department_id=department.id,
                        faculty_id=faculty.id if faculty else None,
                        semester="Fall", academic_year="2025-26")
        db.session.add(course)
        db.session.commit()
        return course

    def enrollment(self, student, course, status="active"):
        en = Enrollment(student_id=student.id, course_id=course.id, status=status)
        db.session.add(en)
        db.session.commit()
        return en

    def exam(self, course, creator, max_marks=100, on=None, name="Midterm"):
        exam = Exam(course_id=course.id, name=name, type="midterm", max_marks=max_marks,
                    date=on or date.today() + timedelta(days=7), created_by=creator.id)
        db.session.add(exam)
        db.session.commit()
        return exam


@pytest.fixture
def make(app):
    return Factory()


@pytest.fixture
def dept(make):
    return make.department("Computer Science")


@pytest.fixture
def admin(make):
    return make.profile("admin", email="admin@college.edu", employee_id="A-1")


@pytest.fixture
def faculty(make, dept):
    return make.profile("faculty", email="prof@college.edu", employee_id="F-1",
                        department_id=dept.id)


@pytest.fixture
def other_faculty(make, dept):
    return make.profile("faculty", email="other@college.edu", employee_id="F-2",
                        department_id=dept.id)


@pytest.fixture
def student(make, dept):
    return make.profile("student", email="ada@college.edu", full_name="Ada Lovelace",
                        student_id="S-1", department_id=dept.id)


@pytest.fixture
def course(make, dept, faculty):
    return make.course(dept, faculty=faculty, code="CS101")


@pytest.fixture
def enrolled(make, student, course):
    return make.enrollment(student, course)


def login(client, email, password=PASSWORD):
    resp = client.post("/auth/login", data={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return resp
