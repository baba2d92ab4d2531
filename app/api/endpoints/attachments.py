"""
Attachment and image size API endpoints.
Serves image sources, generating missing sizes on first request.
"""
import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_image_service, get_size_registry
from app.core.exceptions import ValidationException
from app.core.logging import (
    log_operation_start,
    log_operation_complete,
    get_request_id
)
from app.models.schemas import (
    AttachmentResponse,
    ImageSourceResponse,
    RegisterAttachmentRequest,
    SizeListResponse,
    SizePresetResponse,
    attachment_response,
)
from app.services.image_service import ImageService
from app.services.size_registry import SizeRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/sizes", response_model=SizeListResponse)
async def list_sizes(registry: SizeRegistry = Depends(get_size_registry)):
    """List every registered image size."""
    return SizeListResponse(
        sizes=[SizePresetResponse(**preset.to_dict()) for preset in registry]
    )


@router.post("/attachments", response_model=AttachmentResponse, status_code=201)
def register_attachment(
    request: RegisterAttachmentRequest,
    service: ImageService = Depends(get_image_service),
):
    """Register an image that already exists under the uploads directory."""
    attachment_id = service.register_attachment(request.file)
    metadata = service.get_metadata(attachment_id)
    url = service.repository.attachment_url(attachment_id) or ""
    return attachment_response(attachment_id, url, metadata)


@router.get("/attachments/{attachment_id}", response_model=AttachmentResponse)
async def get_attachment(
    attachment_id: int,
    service: ImageService = Depends(get_image_service),
):
    """Get stored metadata for an attachment, including generated sizes."""
    metadata = service.get_metadata(attachment_id)
    url = service.repository.attachment_url(attachment_id) or ""
    return attachment_response(attachment_id, url, metadata)


@router.get("/attachments/{attachment_id}/image", response_model=ImageSourceResponse)
def get_image_src(
    attachment_id: int,
    size: Optional[str] = Query(default=None, description="Registered size name"),
    width: Optional[int] = Query(default=None, gt=0),
    height: Optional[int] = Query(default=None, gt=0),
    service: ImageService = Depends(get_image_service),
):
    """
    Resolve the image to display for an attachment.

    Pass either ``size`` (a registered size name) or both ``width`` and
    ``height``. Missing sizes are generated on the fly.
    """
    start_time = time.time()
    operation = "get_image_src"

    if size is not None and (width is not None or height is not None):
        raise ValidationException("pass either size or width/height, not both")
    if size is not None:
        requested = size
    elif width is not None and height is not None:
        requested = [width, height]
    else:
        raise ValidationException("size or both width and height are required")

    log_operation_start(
        logger="app.api.endpoints.attachments",
        function="get_image_src",
        operation=operation,
        message=f"Resolving image for attachment {attachment_id}",
        context={"attachment_id": attachment_id, "size": requested, "request_id": get_request_id()},
    )

    source = service.get_image_src(attachment_id, requested)

    log_operation_complete(
        logger="app.api.endpoints.attachments",
        function="get_image_src",
        operation=operation,
        message="Image resolved",
        context={
            "attachment_id": attachment_id,
            "url": source.url,
            "is_intermediate": source.is_intermediate,
        },
        duration=time.time() - start_time,
    )

    return ImageSourceResponse(
        url=source.url,
        width=source.width,
        height=source.height,
        is_intermediate=source.is_intermediate,
    )
