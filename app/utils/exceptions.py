"""
Exceptions raised by LUNARA services and views.

Each class carries its HTTP status; the handler registered in create_app()
renders message and code through error_response().
"""
from .errors import ErrorCode


class LunaraError(Exception):
    """Base class. Unhandled subclasses without a status are server errors."""

    status_code = 500

    def __init__(self, message: str, code: str = ErrorCode.INTERNAL_ERROR.value):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(LunaraError):
    """Missing or malformed input. With a field the code is INVALID_<FIELD>."""

    status_code = 400

    def __init__(self, message: str, field: str = None):
        self.field = field
        code = f"INVALID_{field.upper()}" if field else ErrorCode.VALIDATION_ERROR.value
        super().__init__(message, code)


class MinOrderNotMetError(ValidationError):
    """Cart subtotal below the points redemption minimum."""

    def __init__(self, min_order: int, unit_value: int = 100):
        self.min_order = min_order
        super().__init__(f"A minimum order of {min_order / unit_value:.2f} is required to redeem points")
        self.code = ErrorCode.MIN_ORDER_NOT_MET.value


class AuthError(LunaraError):
    status_code = 401

    def __init__(self, message: str = "Not authenticated", code: str = ErrorCode.AUTH_REQUIRED.value):
        super().__init__(message, code)


class ForbiddenError(LunaraError):
    """Logged in, but the resource belongs to someone else (or the role is too low)."""

    status_code = 403

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, ErrorCode.PERMISSION_DENIED.value)


class NotFoundError(LunaraError):
    status_code = 404

    def __init__(self, resource: str, identifier=None):
        message = f"{resource} {identifier} not found" if identifier else f"{resource} not found"
        super().__init__(message, f"{resource.upper()}_NOT_FOUND")


class ConflictError(LunaraError):
    """Duplicate, or the row is not in a state that allows the change."""

    status_code = 409

    def __init__(self, message: str, code: str = ErrorCode.ALREADY_EXISTS.value):
        super().__init__(message, code)


class InvalidStatusTransitionError(ConflictError):
    def __init__(self, resource: str, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot move {resource} from '{from_status}' to '{to_status}'",
            ErrorCode.INVALID_STATUS_TRANSITION.value
        )


class SignatureError(LunaraError):
    """Payment webhook signature missing, forged or too old."""

    status_code = 400

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message, ErrorCode.INVALID_SIGNATURE.value)


class GatewayError(LunaraError):
    """The payment processor failed or could not be reached."""

    status_code = 502

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(message, ErrorCode.GATEWAY_ERROR.value)


class ConfigurationError(LunaraError):
    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR.value)
