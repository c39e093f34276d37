import os
import traceback
import uuid
from time import perf_counter
from typing import Optional
from urllib.parse import urlsplit

import azure.functions as func

from src.composer.compositor import CACHE_CONTROL, compose_document
from src.shared.blob_store import BucketRegistry
from src.shared.logging_utils import info as log_info, warning as log_warning, error as log_error
from src.specs.common.errors import ComposerError


bp = func.Blueprint()


def _request_path(req: func.HttpRequest) -> str:
    path = req.route_params.get("path")
    if path is not None:
        return path
    return urlsplit(req.url).path


def _expose_error_details() -> bool:
    return os.getenv("AZURE_FUNCTIONS_ENVIRONMENT", "").strip().lower() == "development"


def _unexpected_error_response(exc: Exception) -> func.HttpResponse:
    body = f"Error: {exc}"
    if _expose_error_details():
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        body += f"\nStack: {stack}"
    return func.HttpResponse(body, status_code=500)


async def compose_overlay_response(
    req: func.HttpRequest,
    registry: Optional[BucketRegistry] = None,
    invocation_id: Optional[str] = None,
) -> func.HttpResponse:
    start = perf_counter()
    invocation_id = invocation_id or uuid.uuid4().hex
    path = _request_path(req)
    log_info(invocation_id, "compose:request", path=path)

    try:
        document = await compose_document(path, req.params, registry, invocation_id)
    except ComposerError as exc:
        log_rejection = log_warning if exc.status_code < 500 else log_error
        log_rejection(invocation_id, "compose:rejected", status=exc.status_code, error=exc.to_dict())
        return func.HttpResponse(str(exc), status_code=exc.status_code)
    except Exception as exc:
        log_error(invocation_id, "compose:failed", exc_info=True, error=str(exc))
        return _unexpected_error_response(exc)

    duration_ms = int((perf_counter() - start) * 1000)
    log_info(invocation_id, "compose:completed", format=document.format.value, durationMs=duration_ms)
    return func.HttpResponse(
        body=document.body,
        status_code=200,
        mimetype=document.mimetype,
        charset="utf-8",
        headers={"Cache-Control": CACHE_CONTROL},
    )


@bp.function_name(name="compose_overlay")
@bp.route(route="{*path}", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
async def compose_overlay(req: func.HttpRequest, context: func.Context) -> func.HttpResponse:
    return await compose_overlay_response(req, invocation_id=context.invocation_id)
