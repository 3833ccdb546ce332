from ..extensions import db
from .people import utcnow

ATTENDANCE_STATUSES = ("present", "absent", "late")

class AttendanceRecord(db.Model):
    __tablename__ = "attendance"
    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey("profile.id"), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey("course.id"), nullable=False)
    date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(8), nullable=False)
    marked_by = db.Column(db.Integer, db.ForeignKey("profile.id"), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    __table_args__ = (
        db.UniqueConstraint("student_id", "course_id", "date",
                            name="uq_attendance_student_course_date"),
    )

    student = db.relationship("Profile", foreign_keys=[student_id])
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
            "date": self.date.isoformat(),
            "status": self.status,
            "marked_by": self.marked_by,
        }
