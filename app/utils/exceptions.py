"""
Custom Exception Classes

Application-specific exceptions raised outside the signature verifier, which
reports its outcomes as values instead.
"""

from typing import Any, Dict, Optional


class ProxyException(Exception):
    """Base exception for all proxy errors"""

    status_code = 500

    def __init__(
        self,
        message: str,
        error_code: str = "PROXY_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/API responses"""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationException(ProxyException):
    """Configuration or environment errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="CONFIG_ERROR", details=details)


class DownstreamException(ProxyException):
    """The downstream endpoint could not be reached"""

    status_code = 502

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="DOWNSTREAM_ERROR", details=details)
