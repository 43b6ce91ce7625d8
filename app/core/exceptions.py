from typing import Any, Dict, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class NotFoundError(AppException):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND"
        )

class InvalidInputError(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=400,
            error_code="INVALID_INPUT",
            details=details
        )

class UnconfiguredError(AppException):
    """Raised when salary data needed for a payroll calculation is missing."""
    def __init__(self, message: str = "Employee salary not configured"):
        super().__init__(
            message=message,
            status_code=400,
            error_code="SALARY_NOT_CONFIGURED"
        )

class DependencyFailureError(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=502,
            error_code="DEPENDENCY_FAILURE",
            details=details
        )

class AuthenticationError(AppException):
    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTH_FAILED"
        )

class AccessDeniedError(AppException):
    """Custom permission error. Named AccessDeniedError to avoid shadowing Python's built-in PermissionError."""
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(
            message=message,
            status_code=403,
            error_code="PERMISSION_DENIED"
        )

class InvalidResetTokenError(AppException):
    def __init__(self):
        super().__init__(
            message="Invalid or expired reset link",
            status_code=400,
            error_code="INVALID_TOKEN"
        )

class ExpiredResetTokenError(AppException):
    def __init__(self):
        super().__init__(
            message="This reset link has expired. Please request a new one.",
            status_code=400,
            error_code="TOKEN_EXPIRED"
        )
