from ..extensions import db
from .people import utcnow

WEEKDAY_NAMES = {1: "Mon", 2: "Tue", 3: "Wed", 4: "Thu", 5: "Fri", 6: "Sat", 7: "Sun"}

class Course(db.Model):
    __tablename__ = "course"
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), unique=True, nullable=False)
    name = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text)
    credits = db.Column(db.Integer, nullable=False, default=3)
    department_id = db.Column(db.Integer, db.ForeignKey("department.id"), nullable=False)
    faculty_id = db.Column(db.Integer, db.ForeignKey("profile.id"))   # owning instructor
    semester = db.Column(db.String(16), nullable=False)
    academic_year = db.Column(db.String(16), nullable=False)          # e.g. "2025-26"
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    department = db.relationship("Department", back_populates="courses")
    faculty = db.relationship("Profile")
    timeslots = db.relationship("Timeslot", back_populates="course",
                                order_by="Timeslot.start_time")

    def is_owned_by(self, profile):
        return self.faculty_id is not None and self.faculty_id == profile.id

    def to_dict(self):
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "description": self.description,
            "credits": self.credits,
            "department_id": self.department_id,
            "department": self.department.name if self.department else None,
            "faculty_id": self.faculty_id,
            "faculty": self.faculty.full_name if self.faculty else None,
            "semester": self.semester,
            "academic_year": self.academic_year,
        }

class Timeslot(db.Model):
    __tablename__ = "timeslot"
    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey("course.id"), nullable=False)
    day_of_week = db.Column(db.Integer, nullable=False)  # 1=Mon ... 7=Sun
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    room = db.Column(db.String(64))
    __table_args__ = (
        db.CheckConstraint("day_of_week >= 1 AND day_of_week <= 7", name="ck_day_of_week_1_7"),
    )

    course = db.relationship("Course", back_populates="timeslots")

    def to_dict(self):
        return {
            "id": self.id,
            "course_id": self.course_id,
            "course": self.course.name if self.course else None,
            "code": self.course.code if self.course else None,
            "day": WEEKDAY_NAMES.get(self.day_of_week, str(self.day_of_week)),
            "start": self.start_time.strftime("%H:%M"),
            "end": self.end_time.strftime("%H:%M"),
            "room": self.room,
        }
