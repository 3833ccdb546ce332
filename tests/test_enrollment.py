import pytest

from portal.errors import (
    AlreadyEnrolled, AlreadyExists, CourseNotFound, EnrollmentNotFound, PermissionDenied,
    StudentNotFound,
)
from portal.models import Enrollment
from portal.services import enrollment


def test_enroll_creates_active_enrollment(faculty, student, course):
    en = enrollment.enroll(faculty, course.id, "ada@college.edu")
    assert en.status == "active"
    assert en.student_id == student.id
    assert Enrollment.query.count() == 1


def test_email_lookup_ignores_case_and_whitespace(admin, student, course):
    enrollment.enroll(admin, course.id, "  ADA@college.edu ")
    assert Enrollment.query.filter_by(student_id=student.id).count() == 1


def test_second_enroll_fails_for_any_actor(admin, faculty, student, course):
    enrollment.enroll(faculty, course.id, student.email)
    with pytest.raises(AlreadyEnrolled):
        enrollment.enroll(faculty, course.id, student.email)
    with pytest.raises(AlreadyExists):
        enrollment.enroll(admin, course.id, student.email)
    assert Enrollment.query.count() == 1


def test_dropped_enrollment_still_blocks_reenroll(admin, student, course, make):
    make.enrollment(student, course, status="dropped")
    with pytest.raises(AlreadyEnrolled):
        enrollment.enroll(admin, course.id, student.email)


def test_unknown_student(admin, course):
    with pytest.raises(StudentNotFound):
        enrollment.enroll(admin, course.id, "nobody@college.edu")


def test_faculty_email_is_not_a_student(admin, other_faculty, course):
    with pytest.raises(StudentNotFound):
        enrollment.enroll(admin, course.id, other_faculty.email)


def test_unknown_course(admin, student):
    with pytest.raises(CourseNotFound):
        enrollment.enroll(admin, 9999, student.email)
    with pytest.raises(CourseNotFound):
        enrollment.enroll(admin, "not-a-number", student.email)


def test_student_cannot_enroll(student, course):
    with pytest.raises(PermissionDenied):
        enrollment.enroll(student, course.id, student.email)
    assert Enrollment.query.count() == 0


def test_faculty_cannot_enroll_into_course_they_do_not_own(other_faculty, student, course):
    with pytest.raises(PermissionDenied):
        enrollment.enroll(other_faculty, course.id, student.email)


def test_drop_sets_status(faculty, enrolled):
    enrollment.drop(faculty, enrolled.id)
    assert enrolled.status == "dropped"


def test_drop_missing(admin):
    with pytest.raises(EnrollmentNotFound):
        enrollment.drop(admin, 42)


def test_list_for_course_is_role_filtered(admin, faculty, other_faculty, student, enrolled):
    assert [e.id for e in enrollment.list_for_course(admin, enrolled.course_id)] == [enrolled.id]
    assert len(enrollment.list_for_course(faculty, enrolled.course_id)) == 1
    with pytest.raises(PermissionDenied):
        enrollment.list_for_course(other_faculty, enrolled.course_id)
    with pytest.raises(PermissionDenied):
        enrollment.list_for_course(student, enrolled.course_id)


def test_list_for_student(admin, other_faculty, faculty, student, make, enrolled):
    other = make.profile("student")
    assert len(enrollment.list_for_student(student, student.id)) == 1
    assert len(enrollment.list_for_student(admin, student.id)) == 1
    assert len(enrollment.list_for_student(faculty, student.id)) == 1
    assert enrollment.list_for_student(other_faculty, student.id) == []
    with pytest.raises(PermissionDenied):
        enrollment.list_for_student(other, student.id)


def test_unique_constraint_catches_a_racing_enroll(monkeypatch, faculty, student, course,
                                                   enrolled):
    monkeypatch.setattr(enrollment, "enrollment_for", lambda student_id, course_id: None)
    with pytest.raises(AlreadyEnrolled):
        enrollment.enroll(faculty, course.id, student.email)
    assert Enrollment.query.count() == 1
