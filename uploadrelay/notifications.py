"""Discord webhook notifications for completed uploads.

The payload builder is pure and shared by both upload entry points. Delivery
is a single best-effort POST: failures are logged and never reach the caller.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timedelta, timezone

import httpx

from uploadrelay.errors import NotificationError
from uploadrelay.models import Embed, EmbedField, EmbedFooter, EmbedImage, NotificationPayload

logger = logging.getLogger(__name__)

EMBED_TITLE = "New file uploaded"
EMBED_COLOR = 0x5865F2  # Discord blurple
EMBED_FOOTER = "UploadThing"
DESCRIPTION_LIMIT = 1024

_EXTENSION_RE = re.compile(r"\.([a-zA-Z0-9]+)$")


def file_extension(name: str | None) -> str:
    match = _EXTENSION_RE.search(name or "")
    return match.group(1).lower() if match else "unknown"


def size_in_kb(size: int | None) -> int:
    # half up: round() would send 2560 bytes to 2 KB
    return max(1, math.floor((size or 0) / 1024 + 0.5))


def truncate_description(text: str | None, limit: int = DESCRIPTION_LIMIT) -> str:
    return (text or "")[:limit]


def discord_timestamp(instant: datetime, style: str) -> str:
    return f"<t:{int(instant.timestamp())}:{style}>"


def build_notification(
    url: str,
    name: str | None,
    size: int | None,
    description: str | None,
    uploaded_at: datetime,
    *,
    delete_after: timedelta = timedelta(hours=24),
) -> NotificationPayload:
    """Compose the webhook payload announcing one uploaded file.

    ``uploaded_at`` becomes the embed timestamp; the advertised deletion time is
    ``uploaded_at + delete_after`` rendered as Discord absolute and relative
    timestamp tokens.
    """
    delete_at = uploaded_at + delete_after
    description = truncate_description(description)

    fields = [
        EmbedField(name="Filename", value=name or "unknown", inline=True),
        EmbedField(name="Extension", value=file_extension(name), inline=True),
        EmbedField(name="Size", value=f"{size_in_kb(size)} KB", inline=True),
        EmbedField(
            name="Will delete",
            value=f"{discord_timestamp(delete_at, 'F')} (in {discord_timestamp(delete_at, 'R')})",
            inline=False,
        ),
    ]
    if description:
        fields.append(EmbedField(name="Description", value=description, inline=False))

    embed = Embed(
        title=EMBED_TITLE,
        description=f"[Open file]({url})",
        color=EMBED_COLOR,
        timestamp=uploaded_at.isoformat(),
        fields=fields,
        url=url,
        image=EmbedImage(url=url),
        footer=EmbedFooter(text=EMBED_FOOTER),
    )
    return NotificationPayload(embeds=[embed])


class WebhookNotifier:
    def __init__(
        self,
        webhook_url: str | None,
        *,
        timeout: float = 5.0,
        delete_after: timedelta = timedelta(hours=24),
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.webhook_url = webhook_url or None
        self.timeout = timeout
        self.delete_after = delete_after
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return self.webhook_url is not None

    async def send(self, payload: NotificationPayload) -> None:
        if not self.enabled:
            raise NotificationError("webhook url is not configured")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.webhook_url, json=payload.model_dump())
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NotificationError(f"Webhook error {e.response.status_code}: {e.response.text}") from e
        except httpx.HTTPError as e:
            raise NotificationError(f"Webhook unavailable: {e}") from e

    async def notify_upload(
        self,
        *,
        url: str,
        name: str | None,
        size: int | None,
        description: str | None = None,
    ) -> bool:
        """Best-effort delivery. Returns whether the webhook accepted the payload."""
        if not self.enabled:
            return False
        try:
            payload = build_notification(
                url,
                name,
                size,
                description,
                datetime.now(timezone.utc),
                delete_after=self.delete_after,
            )
            await self.send(payload)
        except Exception:
            logger.exception("Failed to send Discord webhook for %s", url)
            return False
        return True
