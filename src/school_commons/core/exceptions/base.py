"""Base exceptions for school-commons.

This module defines the base exception hierarchy for the school-commons library.
All exceptions inherit from SchoolCommonsError and include error codes and
details for API responses.
"""

from typing import Any, Dict, Optional


class SchoolCommonsError(Exception):
    """Base exception for all school-commons errors.
    
    All exceptions in the school-commons library inherit from this base class
    and include structured error information for better debugging and API responses.
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


def create_error_response(exception: SchoolCommonsError) -> Dict[str, Any]:
    """Create standardized error response from exception.
    
    Args:
        exception: The school-commons exception
        
    Returns:
        Error response dictionary
    """
    return {
        "error": {
            "code": exception.error_code,
            "message": exception.message,
            "details": exception.details,
            "type": exception.__class__.__name__,
        }
    }
