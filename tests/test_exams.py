from datetime import date, timedelta

import pytest

from portal.errors import (
    AlreadyExists, ExamNotFound, MarksOutOfRange, OutOfRange, PermissionDenied,
    ResultAlreadyExists, StudentNotFound, ValidationFailed,
)
from portal.models import Exam, Result
from portal.services import exams

TODAY = date(2025, 3, 10)


def test_create_exam(faculty, course):
    exam = exams.create_exam(faculty, course.id, "Quiz 1", "Quiz", 20, TODAY - timedelta(days=3))
    assert exam.type == "quiz"
    assert exam.created_by == faculty.id
    assert exam.max_marks == 20


@pytest.mark.parametrize("max_marks", [0, -5, 12.5, True])
def test_max_marks_must_be_positive_integer(faculty, course, max_marks):
    with pytest.raises(ValidationFailed):
        exams.create_exam(faculty, course.id, "Quiz", "quiz", max_marks, TODAY)
    assert Exam.query.count() == 0


def test_exam_type_is_validated(faculty, course):
    with pytest.raises(ValidationFailed):
        exams.create_exam(faculty, course.id, "Viva", "oral", 10, TODAY)


def test_students_and_non_owners_cannot_create_exams(student, other_faculty, course):
    with pytest.raises(PermissionDenied):
        exams.create_exam(student, course.id, "Quiz", "quiz", 10, TODAY)
    with pytest.raises(PermissionDenied):
        exams.create_exam(other_faculty, course.id, "Quiz", "quiz", 10, TODAY)


@pytest.mark.parametrize("marks", [0, 55, 100])
def test_add_result_in_range(faculty, student, course, make, marks):
    exam = make.exam(course, faculty, max_marks=100)
    res = exams.add_result(faculty, exam.id, student.email, marks, grade="B")
    assert res.marks_obtained == marks
    assert res.grade == "B"


def test_marks_above_maximum(faculty, student, course, make):
    exam = make.exam(course, faculty, max_marks=100)
    with pytest.raises(OutOfRange) as err:
        exams.add_result(faculty, exam.id, student.email, 101)
    assert err.value.message == "Marks must be between 0 and 100"
    with pytest.raises(MarksOutOfRange):
        exams.add_result(faculty, exam.id, student.email, -1)
    assert Result.query.count() == 0


def test_second_result_fails_regardless_of_marks(faculty, admin, student, course, make):
    exam = make.exam(course, faculty, max_marks=50)
    exams.add_result(faculty, exam.id, student.email, 40)
    with pytest.raises(ResultAlreadyExists):
        exams.add_result(faculty, exam.id, student.email, 45)
    with pytest.raises(AlreadyExists):
        exams.add_result(admin, exam.id, student.email, 999)
    assert Result.query.one().marks_obtained == 40


def test_add_result_lookups(faculty, student, course, make):
    with pytest.raises(StudentNotFound):
        exams.add_result(faculty, 1, "ghost@college.edu", 10)
    with pytest.raises(ExamNotFound):
        exams.add_result(faculty, 404, student.email, 10)


def test_add_result_permissions(student, other_faculty, faculty, course, make):
    exam = make.exam(course, faculty)
    with pytest.raises(PermissionDenied):
        exams.add_result(student, exam.id, student.email, 10)
    with pytest.raises(PermissionDenied):
        exams.add_result(other_faculty, exam.id, student.email, 10)
    assert Result.query.count() == 0


def test_classification(faculty, course, make):
    past = make.exam(course, faculty, on=TODAY - timedelta(days=1))
    same_day = make.exam(course, faculty, on=TODAY)
    future = make.exam(course, faculty, on=TODAY + timedelta(days=1))
    assert exams.classify(past, TODAY) == "completed"
    assert exams.classify(same_day, TODAY) == "completed"
    assert exams.classify(future, TODAY) == "upcoming"


def test_overview_for_student(faculty, student, course, enrolled, make, dept):
    done = make.exam(course, faculty, on=TODAY - timedelta(days=2), name="Quiz")
    make.exam(course, faculty, on=TODAY + timedelta(days=2), name="Final")
    unrelated = make.course(dept, faculty=faculty)
    make.exam(unrelated, faculty, name="Other")
    exams.add_result(faculty, done.id, student.email, 80)

    overview = exams.exam_overview(student, TODAY)
    assert {e["name"] for e in overview["exams"]} == {"Quiz", "Final"}
    assert [e["name"] for e in overview["upcoming"]] == ["Final"]
    assert [e["name"] for e in overview["completed"]] == ["Quiz"]
    quiz = overview["completed"][0]
    assert quiz["result_count"] == 1
    assert quiz["student_result"]["marks_obtained"] == 80


def test_overview_for_faculty_counts_results(faculty, other_faculty, student, course, make):
    exam = make.exam(course, faculty)
    exams.add_result(faculty, exam.id, student.email, 10)
    assert exams.exam_overview(faculty, TODAY)["exams"][0]["result_count"] == 1
    assert exams.exam_overview(other_faculty, TODAY)["exams"] == []


def test_unique_constraint_catches_a_racing_result(monkeypatch, faculty, student, course,
                                                   make):
    exam = make.exam(course, faculty)
    exams.add_result(faculty, exam.id, student.email, 40)
    monkeypatch.setattr(exams, "existing_result", lambda student_id, exam_id: None)
    with pytest.raises(ResultAlreadyExists):
        exams.add_result(faculty, exam.id, student.email, 60)
    assert Result.query.one().marks_obtained == 40


@pytest.mark.parametrize("raw,stored", [("85.5", 85), (" 7 ", 7), ("0", 0)])
def test_form_marks_keep_the_leading_integer(faculty, student, course, make, raw, stored):
    exam = make.exam(course, faculty, max_marks=100)
    assert exams.add_result(faculty, exam.id, student.email, raw).marks_obtained == stored


def test_unreadable_marks_rejected_after_lookups(faculty, student, course, make):
    exam = make.exam(course, faculty)
    with pytest.raises(ValidationFailed):
        exams.add_result(faculty, exam.id, student.email, "abc")
    with pytest.raises(ExamNotFound):
        exams.add_result(faculty, 404, student.email, "abc")


def test_student_result_carries_percentage(faculty, student, course, enrolled, make):
    exam = make.exam(course, faculty, max_marks=40, on=TODAY)
    exams.add_result(faculty, exam.id, student.email, 33)
    own = exams.exam_overview(student, TODAY)["exams"][0]["student_result"]
    assert own["marks_obtained"] == 33
    assert own["percentage"] == 83
