"""Error taxonomy for the academic records services.

Services raise these; ``portal.actions.form_action`` turns them into the
``{"error": message}`` payload a form expects, and the blueprints turn them
into JSON error responses for read views.
"""


class PortalError(Exception):
    status_code = 400
    default_message = "The request could not be completed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(PortalError):
    status_code = 401
    default_message = "You must be logged in"


class InvalidCredentials(PortalError):
    status_code = 401
    default_message = "Invalid email or password"


class ProfileMissing(PortalError):
    status_code = 403
    default_message = "No profile exists for this account"


class PermissionDenied(PortalError):
    status_code = 403
    default_message = "You don't have permission to do this"


class ValidationFailed(PortalError):
    default_message = "All required fields must be filled"


# ---------- not found ----------
class NotFound(PortalError):
    status_code = 404
    default_message = "Record not found"


class StudentNotFound(NotFound):
    default_message = "Student not found or email is not registered as a student"


class CourseNotFound(NotFound):
    default_message = "Course not found"


class ExamNotFound(NotFound):
    default_message = "Exam not found"


class DepartmentNotFound(NotFound):
    default_message = "Department not found"


class FacultyNotFound(NotFound):
    default_message = "Faculty member not found"


class EnrollmentNotFound(NotFound):
    default_message = "Enrollment not found"


# ---------- duplicates ----------
class AlreadyExists(PortalError):
    status_code = 409
    default_message = "Record already exists"


class AlreadyEnrolled(AlreadyExists):
    default_message = "Student is already enrolled in this course"


class ResultAlreadyExists(AlreadyExists):
    default_message = "Result already exists for this student and exam"


class CourseCodeExists(AlreadyExists):
    default_message = "Course code already exists"


class EmailTaken(AlreadyExists):
    default_message = "An account with this email already exists"


# ---------- range / state ----------
class OutOfRange(PortalError):
    default_message = "Value out of range"


class MarksOutOfRange(OutOfRange):
    def __init__(self, max_marks):
        self.max_marks = max_marks
        super().__init__(f"Marks must be between 0 and {max_marks}")


class NotEnrolled(PortalError):
    status_code = 409
    default_message = "Student is not enrolled in this course"


class StorageError(PortalError):
    status_code = 500
    default_message = "An unexpected error occurred. Please try again."
