"""
Domain exceptions raised by the service layer.

Messages are written for end users: routers pass str(exc) straight through as
the response `detail`.
"""


class PlacementError(Exception):
    """Base class for expected business-rule failures"""
    status_code = 400


class NotFoundError(PlacementError):
    status_code = 404


class PermissionDeniedError(PlacementError):
    status_code = 403


class PaymentRequiredError(PlacementError):
    """Raised when an action needs a paid (unlocked) account"""
    status_code = 402


class ConflictError(PlacementError):
    status_code = 409


class DuplicateApplicationError(ConflictError):
    pass


class DuplicateSelectionError(ConflictError):
    pass


class QuotaExceededError(ConflictError):
    """Raised when a school would exceed its active job posting quota"""
    pass


class InvalidTransitionError(PlacementError):
    """Raised when a status change is not allowed by a state machine"""
    status_code = 400


class PaymentProviderError(PlacementError):
    status_code = 502


class ValidationError(PlacementError):
    """Raised when stored data would become inconsistent"""
    status_code = 400
