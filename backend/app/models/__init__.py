from app.models.batch import Batch, BatchFacultyAssignment, BatchStatus, Enrollment, EnrollmentStatus  # noqa: F401
from app.models.faculty import Faculty  # noqa: F401
from app.models.orientation import StudentOrientation  # noqa: F401
from app.models.payment import PaymentStatus, PaymentTransaction  # noqa: F401
from app.models.student import Student, StudentStatus  # noqa: F401
