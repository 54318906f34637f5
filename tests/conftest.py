import json

import httpx
import pytest
from fastapi.testclient import TestClient

from uploadrelay.config import get_settings
from uploadrelay.main import create_app
from uploadrelay.models import UploadResult
from uploadrelay.notifications import WebhookNotifier

WEBHOOK_URL = "https://discord.test/api/webhooks/1/token"


class FakeUploader:
    def __init__(self):
        self.calls = []
        self.result_override = None
        self.error = None

    async def upload_file(self, name, content, content_type):
        self.calls.append((name, content, content_type))
        if self.error is not None:
            raise self.error
        if self.result_override is not None:
            return self.result_override(name, content)
        key = f"key-{len(self.calls)}"
        return UploadResult(url=f"https://utfs.io/f/{key}", key=key, name=name, size=len(content))


class WebhookRecorder:
    def __init__(self):
        self.requests = []
        self.status_code = 204
        self.error = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code)

    def payloads(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]

    def notifier(self, url: str | None = WEBHOOK_URL) -> WebhookNotifier:
        return WebhookNotifier(url, timeout=1.0, transport=httpx.MockTransport(self.handler))


@pytest.fixture
def uploader():
    return FakeUploader()


@pytest.fixture
def webhook():
    return WebhookRecorder()


@pytest.fixture
def build_client(monkeypatch, uploader, webhook):
    def _build(*, webhook_url: str | None = WEBHOOK_URL, upload_api_key: str | None = None) -> TestClient:
        monkeypatch.delenv("DISCORD_WEBHOOK_URL", raising=False)
        monkeypatch.delenv("UPLOAD_API_KEY", raising=False)
        if webhook_url:
            monkeypatch.setenv("DISCORD_WEBHOOK_URL", webhook_url)
        if upload_api_key:
            monkeypatch.setenv("UPLOAD_API_KEY", upload_api_key)
        get_settings.cache_clear()

        app = create_app(uploader=uploader, notifier=webhook.notifier(webhook_url))
        return TestClient(app)

    yield _build
    get_settings.cache_clear()
