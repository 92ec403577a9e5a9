"""
Utility modules for LUNARA.
"""
from .logging_config import setup_logging
from .errors import (
    ErrorCode,
    error_response,
    http_error_code,
    internal_error
)
from .exceptions import (
    LunaraError,
    ValidationError,
    MinOrderNotMetError,
    AuthError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    InvalidStatusTransitionError,
    SignatureError,
    GatewayError,
    ConfigurationError
)
