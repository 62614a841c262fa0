class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SchedulerError(AppError):
    """Raised when the scheduling engine cannot honour a request."""
    def __init__(self, message: str, details: dict = None, status_code: int = 400):
        super().__init__(message, status_code=status_code, details=details)

class ValidationError(SchedulerError):
    """Malformed roster or override input, rejected before any search starts."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, details=details, status_code=422)

class UnsatisfiableError(SchedulerError):
    """No placement exists for the full weekly demand of a subject."""
    def __init__(
        self,
        *,
        subject_id: str,
        class_id: str,
        placed: int,
        required: int,
        reason: str = "no free slot/faculty/room combination",
    ):
        self.subject_id = subject_id
        self.class_id = class_id
        self.placed = placed
        self.required = required
        super().__init__(
            f"Cannot place subject {subject_id} for class {class_id}: "
            f"{placed}/{required} weekly periods placed ({reason})",
            details={
                "subject_id": subject_id,
                "class_id": class_id,
                "placed": placed,
                "required": required,
                "reason": reason,
            },
            status_code=409,
        )

class ConflictError(SchedulerError):
    """Availability index contract violation: a resource was reserved twice."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, details=details, status_code=500)

class GenerationCancelledError(SchedulerError):
    """A strict generation run was cancelled before it completed."""
    def __init__(self, *, class_id: str, placed: int, required: int):
        super().__init__(
            f"Generation for class {class_id} was cancelled after placing {placed}/{required} periods",
            details={"class_id": class_id, "placed": placed, "required": required},
            status_code=408,
        )
