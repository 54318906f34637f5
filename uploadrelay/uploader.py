from __future__ import annotations

import logging
from typing import Protocol

import httpx

from uploadrelay.errors import UploadError
from uploadrelay.models import UploadResult

logger = logging.getLogger(__name__)

UPLOADTHING_VERSION = "6.4.0"


class Uploader(Protocol):
    async def upload_file(self, name: str, content: bytes, content_type: str) -> UploadResult | None: ...


class UploadThingClient:
    """Server-side client for the UploadThing REST API.

    Mirrors the provider SDK contract: a failed upload is logged and reported as
    ``None`` instead of raising, so callers decide how to surface it.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        api_url: str = "https://api.uploadthing.com",
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "x-uploadthing-api-key": self.api_key or "",
            "x-uploadthing-version": UPLOADTHING_VERSION,
            "x-uploadthing-be-adapter": "server-sdk",
        }

    async def upload_file(self, name: str, content: bytes, content_type: str) -> UploadResult | None:
        if not self.api_key:
            raise UploadError("UPLOADTHING_SECRET is not configured")

        request = {
            "files": [{"name": name, "size": len(content), "type": content_type}],
            "acl": "public-read",
            "contentDisposition": "inline",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(
                    f"{self.api_url}/v6/uploadFiles", json=request, headers=self._headers()
                )
                resp.raise_for_status()
                presigned = (resp.json().get("data") or [None])[0]
                if not presigned:
                    logger.error("UploadThing returned no presigned url for %s", name)
                    return None

                files = {"file": (name, content, content_type)}
                upload = await client.post(presigned["url"], data=presigned.get("fields") or {}, files=files)
                upload.raise_for_status()

            return UploadResult(
                url=presigned["fileUrl"],
                key=presigned["key"],
                name=presigned.get("fileName") or name,
                size=len(content),
            )
        except httpx.HTTPStatusError as e:
            logger.error("UploadThing error %s for %s: %s", e.response.status_code, name, e.response.text)
            return None
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error("UploadThing upload of %s failed: %s", name, e)
            return None
