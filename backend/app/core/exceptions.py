class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SchedulerError(AppError):
    """Raised when a scheduling computation receives inputs it cannot work with."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)

class UpstreamUnavailableError(AppError):
    """Raised when an external registry read fails; the whole computation is aborted."""
    def __init__(self, source: str, reason: str | None = None):
        details = {"source": source}
        if reason:
            details["reason"] = reason
        super().__init__(f"Upstream source '{source}' is unavailable", status_code=503, details=details)
        self.source = source
