"""Anonymous upload endpoint callable from any origin."""

import logging

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from uploadrelay.errors import UploadError, ValidationError
from uploadrelay.notifications import truncate_description

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, x-description",
}

router = APIRouter(tags=["Public upload"])


def error_response(status_code: int, message: str, **extra: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra}, headers=CORS_HEADERS)


@router.options("/api/public-upload")
def public_upload_preflight() -> Response:
    return Response(status_code=204, headers=CORS_HEADERS)


@router.post("/api/public-upload")
async def public_upload(request: Request) -> JSONResponse:
    settings = request.app.state.settings
    uploader = request.app.state.uploader
    notifier = request.app.state.notifier

    try:
        content_type = request.headers.get("content-type", "")
        if "multipart/form-data" not in content_type:
            raise ValidationError("Content-Type must be multipart/form-data with a 'file' field")

        form = await request.form()
        file = form.get("file")
        description = form.get("description")
        if not isinstance(description, str):
            description = request.headers.get("x-description", "")
        description = truncate_description(description, settings.description_max_length)

        if not isinstance(file, UploadFile):
            raise ValidationError("Missing 'file' in multipart form data")

        content = await file.read()
        result = await uploader.upload_file(
            file.filename or "upload.bin",
            content,
            file.content_type or "application/octet-stream",
        )
        if result is None:
            raise UploadError("Upload failed")

        if notifier.enabled and result.url:
            await notifier.notify_upload(
                url=result.url, name=result.name, size=result.size, description=description
            )

        return JSONResponse(status_code=200, content=result.model_dump(), headers=CORS_HEADERS)
    except (ValidationError, UploadError) as exc:
        return error_response(exc.status_code, exc.message)
    except Exception as exc:
        logger.exception("/api/public-upload error")
        return error_response(500, "Unexpected error", details=str(exc))
