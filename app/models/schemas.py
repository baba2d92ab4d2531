"""
Pydantic models for API request/response validation.
"""
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List


# Response Models

class SizeEntryResponse(BaseModel):
    """One generated size recorded in attachment metadata."""
    file: str
    width: int
    height: int
    mime_type: Optional[str] = Field(default=None, alias="mime-type")
    width_query: Optional[int] = None
    height_query: Optional[int] = None

    model_config = {"populate_by_name": True}


class AttachmentResponse(BaseModel):
    """Response model for attachment metadata."""
    id: int
    file: str
    url: str
    width: int
    height: int
    sizes: Dict[str, SizeEntryResponse] = Field(default_factory=dict)


class ImageSourceResponse(BaseModel):
    """Response model for a resolved image source."""
    url: str
    width: int
    height: int
    is_intermediate: bool


class SizePresetResponse(BaseModel):
    """Response model for a registered image size."""
    name: str
    width: int
    height: int
    crop: bool


class SizeListResponse(BaseModel):
    """Response model for the size registry."""
    sizes: List[SizePresetResponse]


class ErrorResponse(BaseModel):
    """Response model for errors."""
    error: str
    detail: Optional[str] = None
    status_code: int


# Request Models

class RegisterAttachmentRequest(BaseModel):
    """Request model for registering an uploaded image."""
    file: str = Field(..., min_length=1, description="Path relative to the uploads directory")


def attachment_response(attachment_id: int, url: str, metadata: Dict[str, Any]) -> AttachmentResponse:
    """Build an AttachmentResponse from stored metadata."""
    return AttachmentResponse(
        id=attachment_id,
        file=metadata.get("file", ""),
        url=url,
        width=int(metadata.get("width") or 0),
        height=int(metadata.get("height") or 0),
        sizes={
            name: SizeEntryResponse.model_validate(entry)
            for name, entry in (metadata.get("sizes") or {}).items()
            if isinstance(entry, dict)
        },
    )
