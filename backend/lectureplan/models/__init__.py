from lectureplan.models.course import Course, SemesterPeriod  # noqa: F401
from lectureplan.models.course_module import CourseModule  # noqa: F401
from lectureplan.models.course_schedule import CourseSchedule, SessionType  # noqa: F401
from lectureplan.models.enrollment import Enrollment, EnrollmentStatus  # noqa: F401
from lectureplan.models.faculty import Faculty  # noqa: F401
from lectureplan.models.lecture import (  # noqa: F401
    AttendanceStatus,
    DeliveryMode,
    Lecture,
    LectureAttendance,
    LectureStatus,
)
