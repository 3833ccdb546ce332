from ..extensions import db
from .people import utcnow

ENROLLMENT_STATUSES = ("active", "dropped", "completed")
EXAM_TYPES = ("quiz", "assignment", "midterm", "final")

class Enrollment(db.Model):
    __tablename__ = "enrollment"
    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey("profile.id"), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey("course.id"), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="active")
    enrollment_date = db.Column(db.DateTime, nullable=False, default=utcnow)
    __table_args__ = (
        db.UniqueConstraint("student_id", "course_id", name="uq_enrollment_student_course"),
    )

    student = db.relationship("Profile")
    course = db.relationship("Course")

    def to_dict(self):
        return {
            "id": self.id,
            "student_id": self.student_id,
            "student": self.student.full_name if self.student else None,
            "student_no": self.student.student_id if self.student else None,
            "course_id": self.course_id,
            "course": self.course.name if self.course else None,
            "code": self.course.code if self.course else None,
            "status": self.status,
            "enrollment_date": self.enrollment_date.isoformat(),
        }

class Exam(db.Model):
    __tablename__ = "exam"
    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey("course.id"), nullable=False)
    name = db.Column(db.String(128), nullable=False)
    type = db.Column(db.String(16), nullable=False)       # quiz/assignment/midterm/final
    max_marks = db.Column(db.Integer, nullable=False)
    date = db.Column(db.Date, nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey("profile.id"), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    __table_args__ = (
        db.CheckConstraint("max_marks > 0", name="ck_max_marks_positive"),
    )

    course = db.relationship("Course")
    results = db.relationship("Result", back_populates="exam")

    def to_dict(self):
        return {
            "id": self.id,
            "course_id": self.course_id,
            "course": self.course.name if self.course else None,
            "code": self.course.code if self.course else None,
            "name": self.name,
            "type": self.type,
            "max_marks": self.max_marks,
            "date": self.date.isoformat(),
            "created_by": self.created_by,
        }

class Result(db.Model):
    __tablename__ = "result"
    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey("profile.id"), nullable=False)
    exam_id = db.Column(db.Integer, db.ForeignKey("exam.id"), nullable=False)
    marks_obtained = db.Column(db.Integer, nullable=False)
    grade = db.Column(db.String(8))
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    __table_args__ = (
        db.UniqueConstraint("student_id", "exam_id", name="uq_result_student_exam"),
        db.CheckConstraint("marks_obtained >= 0", name="ck_marks_non_negative"),
    )

    student = db.relationship("Profile")
    exam = db.relationship("Exam", back_populates="results")

    def to_dict(self):
        return {
            "id": self.id,
            "student_id": self.student_id,
            "exam_id": self.exam_id,
            "exam": self.exam.name if self.exam else None,
            "type": self.exam.type if self.exam else None,
            "max_marks": self.exam.max_marks if self.exam else None,
            "course": self.exam.course.name if self.exam and self.exam.course else None,
            "marks_obtained": self.marks_obtained,
            "grade": self.grade,
        }
