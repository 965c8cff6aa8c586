"""
Image Schemas

Request/response models of the /save-image endpoint. Field names follow the
plugin's camelCase JSON.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class SaveImageRequest(BaseModel):
    """Image sent by the plugin once the phone transfer completes."""
    model_config = ConfigDict(populate_by_name=True)

    filename: str
    data: str = Field(..., description="Base64 image content")
    type: Optional[str] = Field(None, description="MIME type reported by the phone")
    graph_path: Optional[str] = Field(None, alias="graphPath")


class SaveImageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    saved_name: str = Field(..., alias="savedName")


class ErrorResponse(BaseModel):
    error: str
