"""
Images API - Asset persistence for transferred photos

Errors are reported as {"error": message}, the shape the plugin reads.
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from phone_bridge.api.deps import get_image_service
from phone_bridge.schemas.images import ErrorResponse, SaveImageRequest, SaveImageResponse
from phone_bridge.services.image_service import (
    ImageService,
    ImageStorageError,
    ImageTooLargeError,
    InvalidImageError,
    StorageNotConfiguredError,
)
from phone_bridge.services.metrics import images_saved

logger = logging.getLogger(__name__)

router = APIRouter(tags=["images"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


_ERROR_RESPONSES = {code: {"model": ErrorResponse} for code in (400, 413, 500)}


@router.post("/save-image", response_model=SaveImageResponse, responses=_ERROR_RESPONSES)
async def save_image(
    req: SaveImageRequest,
    service: ImageService = Depends(get_image_service)
):
    """
    Save a base64 image into <graph>/assets.

    The stored name is the sanitized filename prefixed with a timestamp
    and a random token.
    """
    try:
        saved_name = await service.save_image(req.filename, req.data, graph_path=req.graph_path)
    except StorageNotConfiguredError as e:
        images_saved.labels(status="rejected").inc()
        return _error(500, str(e))
    except InvalidImageError as e:
        images_saved.labels(status="rejected").inc()
        return _error(400, str(e))
    except ImageTooLargeError as e:
        images_saved.labels(status="rejected").inc()
        return _error(413, str(e))
    except (ImageStorageError, OSError) as e:
        images_saved.labels(status="error").inc()
        logger.error(f"[Images] Save error: {e}")
        return _error(500, str(e))

    images_saved.labels(status="saved").inc()
    return SaveImageResponse(saved_name=saved_name)
