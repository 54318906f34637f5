import logging
from datetime import timedelta
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from uploadrelay.config import Settings, get_settings
from uploadrelay.errors import UploadRelayError
from uploadrelay.file_router import create_route_handler
from uploadrelay.file_routes import build_file_routes
from uploadrelay.notifications import WebhookNotifier
from uploadrelay.public_upload import router as public_upload_router
from uploadrelay.uploader import Uploader, UploadThingClient

STATIC_DIR = Path(__file__).parent / "static"

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    uploader: Uploader | None = None,
    notifier: WebhookNotifier | None = None,
) -> FastAPI:
    settings = settings or get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uploader = uploader or UploadThingClient(
        settings.uploadthing_secret,
        api_url=settings.uploadthing_api_url,
        timeout=settings.uploadthing_timeout_seconds,
    )
    notifier = notifier or WebhookNotifier(
        settings.discord_webhook_url,
        timeout=settings.webhook_timeout_seconds,
        delete_after=timedelta(hours=settings.delete_after_hours),
    )

    app = FastAPI(title=settings.app_name)
    app.state.settings = settings
    app.state.uploader = uploader
    app.state.notifier = notifier

    @app.exception_handler(UploadRelayError)
    async def upload_relay_exception_handler(_: Request, exc: UploadRelayError):
        if exc.status_code >= 500:
            logger.error("%s: %s", type(exc).__name__, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(_: Request, exc: RequestValidationError):
        missing_fields = [
            ".".join(str(item) for item in error["loc"] if item not in ("body", "query"))
            for error in exc.errors()
            if error.get("type") == "missing"
        ]
        if missing_fields:
            message = f"missing parameters: {', '.join(missing_fields)}"
        else:
            message = "invalid request parameters"
        return JSONResponse(status_code=400, content={"error": message})

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "environment": settings.app_env}

    app.include_router(public_upload_router)
    app.include_router(create_route_handler(build_file_routes(settings, notifier), uploader))

    # Widget last so the API routes match first
    app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="widget")

    return app


app = create_app()
