import asyncio
from typing import Mapping, Optional, Tuple

from pydantic import BaseModel

from src.composer.documents import (
    image_data_uri,
    render_html_document,
    render_svg_document,
    select_output_format,
)
from src.composer.fonts import resolve_font_styles
from src.composer.paths import RequestTarget, parse_request_path
from src.composer.text_layers import render_text_layers
from src.shared.blob_store import BucketRegistry, BucketStore, get_bucket_registry, resolve_bucket
from src.shared.logging_utils import info as log_info
from src.specs.common.enums import OutputFormat
from src.specs.common.errors import ObjectNotFoundError
from src.specs.models.layout import LayoutConfig


CACHE_CONTROL = "public, max-age=31536000, immutable"

MIMETYPES = {
    OutputFormat.HTML: "text/html",
    OutputFormat.SVG: "image/svg+xml",
}

_IMAGE_TYPES = {
    "png": "image/png",
    "webp": "image/webp",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
}
_FALLBACK_IMAGE_TYPE = "application/octet-stream"


class ComposedDocument(BaseModel):
    format: OutputFormat
    body: str

    @property
    def mimetype(self) -> str:
        return MIMETYPES[self.format]


def resolve_image_type(key: str, recorded_type: Optional[str] = None) -> str:
    if recorded_type:
        return recorded_type
    ext = key.rsplit(".", 1)[-1].lower()
    return _IMAGE_TYPES.get(ext, _FALLBACK_IMAGE_TYPE)


async def fetch_config_and_image(bucket: BucketStore, target: RequestTarget) -> Tuple[LayoutConfig, bytes, str]:
    """Fetch the project layout config and the background image together.

    Returns ``(config, image_bytes, image_type)``. Either object missing is
    fatal for the request.
    """
    config_object, image_object = await asyncio.gather(
        bucket.get(target.config_key),
        bucket.get(target.image_key),
    )
    if config_object is None:
        raise ObjectNotFoundError("Config file", target.config_key)
    if image_object is None:
        raise ObjectNotFoundError("Background image", target.image_key)

    raw_config, image_bytes = await asyncio.gather(
        config_object.json(),
        image_object.read_bytes(),
    )
    config = LayoutConfig.model_validate(raw_config)
    return config, image_bytes, resolve_image_type(image_object.key, image_object.content_type)


async def compose_document(
    path: str,
    params: Mapping[str, str],
    registry: Optional[BucketRegistry] = None,
    invocation_id: Optional[str] = None,
) -> ComposedDocument:
    target = parse_request_path(path)
    if registry is None:
        registry = get_bucket_registry()
    bucket = resolve_bucket(registry, target.bucket)
    log_info(invocation_id, "compose:resolved", bucket=target.bucket, folder=target.folder, imageKey=target.image_key)

    config, image_bytes, image_type = await fetch_config_and_image(bucket, target)
    width, height = config.canvas_size()

    fonts = await resolve_font_styles(bucket, target, config, invocation_id)
    text_layers = render_text_layers(config, params, fonts.customFontName)
    image_href = image_data_uri(image_type, image_bytes)

    output = select_output_format(image_type, params.get("format"))
    if output is OutputFormat.HTML:
        body = render_html_document(image_href, width, height, fonts.css, text_layers)
    else:
        body = render_svg_document(image_href, width, height, fonts.css, text_layers)

    log_info(
        invocation_id,
        "compose:rendered",
        format=output.value,
        imageType=image_type,
        imageBytes=len(image_bytes),
    )
    return ComposedDocument(format=output, body=body)
