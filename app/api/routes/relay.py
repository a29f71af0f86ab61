"""Page relay API routes.

This module implements the render and screenshot endpoints. Relay errors are
mapped to ``{success: false, error}`` bodies: invalid URLs to 400, navigation
and capture failures to 500.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse, Response

from app.api.schemas import RelayErrorResponse, RelayRequest, RenderResponse
from app.api.services import RelayService, get_relay_service
from app.relay.errors import CaptureError, NavigationError, ValidationError

logger = logging.getLogger(__name__)

# Create router with tags for OpenAPI documentation
router = APIRouter(
    tags=["Relay"],
    responses={
        400: {"model": RelayErrorResponse, "description": "Missing or invalid URL"},
        500: {"model": RelayErrorResponse, "description": "Page could not be loaded"},
    }
)


def _error_response(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body = RelayErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@router.post(
    "/render",
    response_model=RenderResponse,
    summary="Render page",
    description="""
    Load a page in the headless browser and return its HTML with every
    `<script>` element and inline event handler removed.
    """,
)
async def render_page(
    http_request: Request,
    request: Optional[RelayRequest] = Body(default=None),
    relay_service: RelayService = Depends(get_relay_service),
):
    url = request.url if request else None
    request_id = getattr(http_request.state, "request_id", None)

    try:
        result = await relay_service.render(url)
    except ValidationError as e:
        logger.info(f"Rejected render request {request_id}: {e}")
        return _error_response(400, str(e))
    except NavigationError as e:
        logger.warning(f"Render failed for request {request_id} ({e.category})")
        details = e.details if relay_service.expose_error_details else None
        return _error_response(500, e.message, details)

    return RenderResponse(
        success=result.success,
        content=result.content,
        url=result.url,
        status=result.status,
    )


@router.post(
    "/screenshot",
    response_class=Response,
    summary="Capture screenshot",
    description="Load a page in the headless browser and return a PNG of the viewport.",
    responses={
        200: {"content": {"image/png": {}}, "description": "PNG screenshot"},
    },
)
async def capture_screenshot(
    http_request: Request,
    request: Optional[RelayRequest] = Body(default=None),
    relay_service: RelayService = Depends(get_relay_service),
):
    url = request.url if request else None
    request_id = getattr(http_request.state, "request_id", None)

    try:
        image = await relay_service.screenshot(url)
    except ValidationError as e:
        logger.info(f"Rejected screenshot request {request_id}: {e}")
        return _error_response(400, str(e))
    except CaptureError as e:
        logger.warning(f"Screenshot failed for request {request_id}: {e}")
        return _error_response(500, str(e))

    return Response(content=image, media_type="image/png")
