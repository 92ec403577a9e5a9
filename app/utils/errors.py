"""
JSON error bodies for the LUNARA API.

Every failed request answers with
    {"error": "<message for the customer>", "code": "<MACHINE_CODE>"}
and an HTTP status that matches the code. The storefront switches on
`code`, never on the message.
"""
import logging
from enum import Enum
from typing import Union
from flask import jsonify

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Fixed error codes. Field validation adds INVALID_<FIELD> codes on top."""

    # Sessions and credentials
    AUTH_REQUIRED = "AUTH_REQUIRED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    EMAIL_NOT_VERIFIED = "EMAIL_NOT_VERIFIED"
    PERMISSION_DENIED = "PERMISSION_DENIED"

    # Input
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MIN_ORDER_NOT_MET = "MIN_ORDER_NOT_MET"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"

    # State
    ALREADY_EXISTS = "ALREADY_EXISTS"
    EMAIL_EXISTS = "EMAIL_EXISTS"
    ALREADY_REWARDED = "ALREADY_REWARDED"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"

    # Upstream and server
    GATEWAY_ERROR = "GATEWAY_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


def error_response(message: str, code: Union[ErrorCode, str], status_code: int,
                   log_error: bool = True) -> tuple:
    """
    Build the (response, status) pair for a failed request.

    Server-side failures are logged as errors, client mistakes as warnings.
    """
    code = code.value if isinstance(code, ErrorCode) else code

    if log_error:
        level = logging.ERROR if status_code >= 500 else logging.WARNING
        logger.log(level, f"{status_code} [{code}] {message}")

    return jsonify({"error": message, "code": code}), status_code


def http_error_code(name: str) -> str:
    """Werkzeug exception name as a code: 'Method Not Allowed' -> 'METHOD_NOT_ALLOWED'."""
    return (name or "error").upper().replace(" ", "_")


def internal_error() -> tuple:
    """Generic 500. The real cause is only logged, never returned."""
    return error_response("An unexpected error occurred", ErrorCode.INTERNAL_ERROR, 500)
