"""Module errors: structured error taxonomy for Rendezvous."""
#
# PURPOSE:
# Provides error codes and one typed exception for the few places where
# Rendezvous fails loudly: bad configuration, invalid patterns and malformed
# action definitions. Unknown groups, unknown members and missing callbacks
# are NOT errors; the coordinator answers those with False / empty values.
#
# ERROR CODE FORMAT:
# - CONFIG_XXX: Configuration errors
# - PATTERN_XXX: Selector / regular expression errors
# - ACTION_XXX: Action chain definition errors
# - CALLBACK_XXX: Callback dispatch errors
# - SYSTEM_XXX: Anything else
#
# USAGE:
#   from rendezvous.errors import RendezvousError, ErrorCode
#
#   raise RendezvousError(
#       ErrorCode.PATTERN_INVALID,
#       "Cannot compile group pattern",
#       details={"pattern": "^grp_("}
#   )
#
import json
import re
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    # Config Errors
    CONFIG_INVALID = "CONFIG_001"
    CONFIG_PARSE_ERROR = "CONFIG_002"

    # Pattern Errors
    PATTERN_INVALID = "PATTERN_001"

    # Action Errors
    ACTION_INVALID = "ACTION_001"

    # Callback Errors
    CALLBACK_NOT_CALLABLE = "CALLBACK_001"

    # System Errors
    SYSTEM_INTERNAL_ERROR = "SYSTEM_001"


class RendezvousError(Exception):
    """
    Base exception class for Rendezvous with structured error information.

    Attributes:
        code: ErrorCode enum value (e.g., "PATTERN_001")
        message: Human-readable error message
        details: Optional dictionary with additional context
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}

        # Build exception message with code for easy debugging
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to a JSON-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RendezvousError":
        """
        Deserialize error from dictionary.

        Args:
            data: Dictionary with code, message and optional details

        Returns:
            RendezvousError instance
        """
        return cls(ErrorCode(data["code"]), data["message"], data.get("details", {}))


# ============================================================================
# Convenience Functions
# ============================================================================

def handle_error(error: Exception, context: Optional[str] = None) -> RendezvousError:
    """
    Convert a generic exception to a RendezvousError.

    Args:
        error: The original exception
        context: Optional context string (e.g., "while dispatching 'upload'")

    Returns:
        RendezvousError with an appropriate code and message
    """
    if isinstance(error, RendezvousError):
        return error

    error_type = type(error).__name__

    if isinstance(error, re.error):
        code = ErrorCode.PATTERN_INVALID
    elif isinstance(error, ValueError):
        code = ErrorCode.CONFIG_PARSE_ERROR
    else:
        code = ErrorCode.SYSTEM_INTERNAL_ERROR

    message = str(error)
    if context:
        message = f"{context}: {message}"

    return RendezvousError(
        code=code,
        message=message,
        details={
            "original_type": error_type,
            "original_message": str(error),
        },
    )


__all__ = ["ErrorCode", "RendezvousError", "handle_error"]
