"""
Schemas Package

Pydantic models for the HTTP API.
"""

from phone_bridge.schemas.images import (
    SaveImageRequest,
    SaveImageResponse,
    ErrorResponse,
)

__all__ = [
    "SaveImageRequest",
    "SaveImageResponse",
    "ErrorResponse",
]
