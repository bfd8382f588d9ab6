"""HTTP request/response types and the authenticated pipeline."""

from .models import ApiRequest, ApiResponse  # noqa: F401

__all__ = ["ApiRequest", "ApiResponse"]
