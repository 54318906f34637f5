"""Declarative file routes served under ``/api/uploadthing``.

A :class:`FileRoute` names the file kinds it accepts with their size caps, a
``middleware`` hook that runs before anything is uploaded (auth and request
metadata), and an ``on_upload_complete`` hook that runs once per stored file.
``create_route_handler`` turns a set of routes into a FastAPI router. Files are
reported one by one: a provider failure marks that entry with ``error``, and
the request only fails when no file was stored.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from fastapi import APIRouter, Query, Request
from starlette.datastructures import UploadFile

from uploadrelay.errors import FileTooLargeError, RouteNotFoundError, UploadError, ValidationError
from uploadrelay.models import RouteUploadResponse, UploadResult
from uploadrelay.uploader import Uploader

logger = logging.getLogger(__name__)

Middleware = Callable[[Request], Awaitable[dict[str, Any]]]
UploadCompleteHook = Callable[[UploadResult, dict[str, Any]], Awaitable[dict[str, Any] | None]]

_SIZE_MULTIPLIERS = {
    "B": 1,
    "KB": 1024,
    "MB": 1024**2,
    "GB": 1024**3,
    "TB": 1024**4,
}


def parse_size(size_str: str) -> int:
    """Parse size string like '256MB', '1GB' into bytes."""
    match = re.match(r"^(\d+(?:\.\d+)?)\s*(B|KB|MB|GB|TB)$", size_str.strip().upper())
    if not match:
        raise ValueError(f"invalid size: {size_str!r}")
    return int(float(match.group(1)) * _SIZE_MULTIPLIERS[match.group(2)])


def file_kind(content_type: str | None) -> str | None:
    mime = (content_type or "").split(";")[0].strip().lower()
    if mime.startswith("image/"):
        return "image"
    if mime.startswith("video/"):
        return "video"
    if mime == "application/pdf":
        return "pdf"
    return None


@dataclass(frozen=True)
class FileProfile:
    kind: str
    max_file_size: str

    @property
    def max_bytes(self) -> int:
        return parse_size(self.max_file_size)


def _part_size(file: UploadFile) -> int:
    if file.size is not None:
        return file.size
    file.file.seek(0, 2)
    size = file.file.tell()
    file.file.seek(0)
    return size


async def _no_metadata(_: Request) -> dict[str, Any]:
    return {}


async def _no_server_data(_: UploadResult, __: dict[str, Any]) -> None:
    return None


@dataclass
class FileRoute:
    slug: str
    profiles: list[FileProfile]
    middleware: Middleware = _no_metadata
    on_upload_complete: UploadCompleteHook = _no_server_data

    def profile_for(self, content_type: str | None) -> FileProfile | None:
        kind = file_kind(content_type)
        return next((p for p in self.profiles if p.kind == kind), None)

    def config(self) -> dict[str, dict[str, str]]:
        return {p.kind: {"maxFileSize": p.max_file_size} for p in self.profiles}

    def check(self, file: UploadFile, size: int) -> None:
        profile = self.profile_for(file.content_type)
        if profile is None:
            raise ValidationError(f"File type '{file.content_type}' is not allowed on '{self.slug}'")
        if size > profile.max_bytes:
            raise FileTooLargeError(
                f"{file.filename} exceeds the {profile.max_file_size} limit for {profile.kind} files"
            )


def create_route_handler(routes: list[FileRoute], uploader: Uploader, prefix: str = "/api/uploadthing") -> APIRouter:
    by_slug = {route.slug: route for route in routes}
    router = APIRouter(prefix=prefix, tags=["Upload"])

    @router.get("")
    def route_config() -> list[dict]:
        return [{"slug": route.slug, "config": route.config()} for route in routes]

    @router.post("", response_model=list[RouteUploadResponse], response_model_exclude_none=True)
    async def upload(request: Request, slug: str = Query(...)):
        route = by_slug.get(slug)
        if route is None:
            raise RouteNotFoundError(f"No file route named '{slug}'")

        if "multipart/form-data" not in request.headers.get("content-type", ""):
            raise ValidationError("Content-Type must be multipart/form-data")
        metadata = await route.middleware(request)

        form = await request.form()
        try:
            files = [f for f in form.getlist("files") + form.getlist("file") if isinstance(f, UploadFile)]
            if not files:
                raise ValidationError("No files in multipart form data")

            # every part is checked before any of them is read or uploaded
            for f in files:
                route.check(f, _part_size(f))

            uploaded = []
            for f in files:
                name = f.filename or "upload.bin"
                result = await uploader.upload_file(
                    name, await f.read(), f.content_type or "application/octet-stream"
                )
                if result is None:
                    logger.error("Upload of %s on route %s failed", name, route.slug)
                    uploaded.append(RouteUploadResponse(name=name, size=_part_size(f), error="Upload failed"))
                    continue
                server_data = await route.on_upload_complete(result, metadata)
                uploaded.append(
                    RouteUploadResponse(
                        key=result.key, name=result.name, size=result.size, url=result.url, serverData=server_data
                    )
                )
        finally:
            await form.close()

        if all(entry.error for entry in uploaded):
            raise UploadError("Upload failed")
        return uploaded

    return router
