"""Root of the neo-authz error hierarchy.

Check paths never raise for a denial; they return a ``Decision``. The
errors here surface where a caller cannot get a decision at all (no
tenant in scope, an unreachable grant store) or where an administrative
mutation is refused. ``error_code`` is the stable identifier API layers
put on the wire.
"""

from typing import Any, Dict, Optional


class NeoAuthzError(Exception):
    """Base for every error raised by neo-authz.
    
    ``error_code`` defaults to the class name; subclasses that map onto a
    decision code (``STORE_UNAVAILABLE``, ``UNKNOWN_PERMISSION``) pass that
    code instead so logs, decisions and responses agree. ``details`` holds
    the offending identifiers, never grant data.
    """
    
    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        *args,
        **kwargs
    ):
        super().__init__(message, *args, **kwargs)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


def get_http_status_code(exception: Exception) -> int:
    """Status an API layer should answer with; unmapped errors are 500."""
    from .http_mapping import get_http_status_code as get_mapped_status_code
    return get_mapped_status_code(exception)


def create_error_response(exception: NeoAuthzError) -> Dict[str, Any]:
    """Body for a request the engine could not decide or a refused mutation.
    
    Carries ``error_code`` rather than the message text as the machine
    readable part, so clients can tell a missing tenant from an outage.
    """
    return {
        "error": {
            "code": exception.error_code,
            "message": exception.message,
            "details": exception.details,
            "type": exception.__class__.__name__,
        }
    }
