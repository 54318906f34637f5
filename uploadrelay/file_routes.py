import logging
import secrets

from fastapi import Request

from uploadrelay.config import Settings
from uploadrelay.errors import AuthError
from uploadrelay.file_router import FileProfile, FileRoute
from uploadrelay.models import UploadResult
from uploadrelay.notifications import WebhookNotifier, truncate_description

logger = logging.getLogger(__name__)

FILE_UPLOADER_PROFILES = [
    FileProfile("image", "256MB"),
    FileProfile("pdf", "128MB"),
    FileProfile("video", "1024MB"),
]


def verify_api_key(provided: str | None, expected: str | None) -> bool:
    """A missing key is a trusted in-app upload; a present one must match."""
    if not provided:
        return True
    if not expected:
        return False
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def build_file_routes(settings: Settings, notifier: WebhookNotifier) -> list[FileRoute]:
    async def middleware(request: Request) -> dict:
        api_key = request.headers.get("x-api-key")
        description = truncate_description(
            request.headers.get("x-description", ""), settings.description_max_length
        )
        if not verify_api_key(api_key, settings.upload_api_key):
            raise AuthError("Invalid API key")
        return {"description": description}

    async def on_upload_complete(file: UploadResult, metadata: dict) -> dict:
        logger.info("Upload complete: url=%s name=%s metadata=%s", file.url, file.name, metadata)

        if not notifier.enabled:
            logger.warning("DISCORD_WEBHOOK_URL is not set; skipping Discord notification.")
        else:
            await notifier.notify_upload(
                url=file.url, name=file.name, size=file.size, description=metadata.get("description")
            )

        return {"url": file.url}

    return [
        FileRoute(
            slug="fileUploader",
            profiles=FILE_UPLOADER_PROFILES,
            middleware=middleware,
            on_upload_complete=on_upload_complete,
        )
    ]
