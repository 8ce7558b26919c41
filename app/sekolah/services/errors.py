# --- Custom Service Layer Exception Classes ---

class ServiceError(Exception):
    """General exception class for the service layer."""
    pass


class AuthorizationError(ServiceError):
    """Raised when the caller may not perform the operation."""
    pass


class NotFoundError(ServiceError):
    """Raised when the addressed row does not exist."""
    pass


class ReconciliationError(ServiceError):
    """Raised when a committed leave decision could not be applied to attendance."""
    pass
