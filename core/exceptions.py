"""
Domain exceptions raised by the residence services.

Each exception carries the HTTP status the API answers with and a short
machine-readable code (e.g. ALREADY_PAID, APARTMENT_TAKEN) so clients can
react without parsing messages.
"""


class BaseApplicationException(Exception):
    """Base exception for all application-specific exceptions"""
    default_message = "An application error occurred"
    default_code = "ERROR"
    status_code = 400

    def __init__(self, message=None, code=None, details=None):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def as_payload(self):
        return {
            'success': False,
            'error': self.message,
            'code': self.code,
            'details': self.details,
        }


class ValidationError(BaseApplicationException):
    """Input rejected before any write"""
    default_message = "Validation failed"
    default_code = "INVALID_INPUT"


class AuthenticationRequiredError(BaseApplicationException):
    default_message = "Authentication required"
    default_code = "NOT_AUTHENTICATED"
    status_code = 401


class NotFoundError(BaseApplicationException):
    """
    Resource missing, or outside the caller's residence.

    Both cases answer the same way so residence boundaries do not leak ids.
    """
    default_message = "Resource not found"
    default_code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource_type=None, resource_id=None, **kwargs):
        self.resource_type = resource_type
        self.resource_id = resource_id
        if 'message' not in kwargs and resource_type:
            kwargs['message'] = f"{resource_type} not found"
        super().__init__(**kwargs)


class PermissionDeniedError(BaseApplicationException):
    """The caller's role lacks the capability"""
    default_message = "Permission denied"
    default_code = "FORBIDDEN"
    status_code = 403


class BusinessLogicError(BaseApplicationException):
    """Raised when business rule is violated"""
    default_message = "Business rule violation"
    default_code = "BUSINESS_RULE"


class ConflictError(BusinessLogicError):
    """Operation conflicts with stored state: fee already paid, dependent payments"""
    default_message = "Operation conflicts with existing records"
    default_code = "CONFLICT"
