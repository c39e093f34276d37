from __future__ import annotations

from typing import List, Optional, Tuple

from pydantic import BaseModel

from src.composer.documents import bytes_to_base64
from src.composer.paths import RequestTarget
from src.shared.blob_store import BucketStore
from src.shared.logging_utils import info as log_info, warning as log_warning
from src.specs.models.layout import LayoutConfig


CUSTOM_FONT_NAME = "CustomR2Font"
STORAGE_FONT_MODE = "r2"

_FONT_FORMATS = {
    "woff2": ("font/woff2", "woff2"),
    "woff": ("font/woff", "woff"),
    "ttf": ("font/ttf", "truetype"),
    "otf": ("font/otf", "opentype"),
}
_DEFAULT_FONT_FORMAT = ("font/ttf", "truetype")


class FontStyles(BaseModel):
    css: str = ""
    # Set only when a storage-hosted font was actually loaded
    customFontName: Optional[str] = None


def font_format(filename: str) -> Tuple[str, str]:
    ext = filename.rsplit(".", 1)[-1].lower()
    return _FONT_FORMATS.get(ext, _DEFAULT_FONT_FORMAT)


def font_face_rule(font_name: str, filename: str, data: bytes) -> str:
    mime, fmt = font_format(filename)
    encoded = bytes_to_base64(data)
    return (
        f"@font-face{{font-family:'{font_name}';"
        f"src:url('data:{mime};charset=utf-8;base64,{encoded}')format('{fmt}');"
        "font-display:block}"
    )


def import_rule(url: str) -> str:
    return f"@import url('{url}');"


async def _load_storage_font(
    bucket: BucketStore,
    target: RequestTarget,
    filename: str,
    invocation_id: Optional[str],
) -> Optional[str]:
    key = target.font_key(filename)
    try:
        font_object = await bucket.get(key)
        if font_object is None:
            log_info(invocation_id, "fonts:storage_font_missing", key=key)
            return None
        data = await font_object.read_bytes()
    except Exception as exc:
        log_warning(invocation_id, "fonts:storage_font_failed", key=key, error=str(exc))
        return None
    log_info(invocation_id, "fonts:storage_font_loaded", key=key, bytes=len(data))
    return font_face_rule(CUSTOM_FONT_NAME, filename, data)


async def resolve_font_styles(
    bucket: BucketStore,
    target: RequestTarget,
    config: LayoutConfig,
    invocation_id: Optional[str] = None,
) -> FontStyles:
    rules: List[str] = []
    custom_font_name: Optional[str] = None

    settings = config.fontSettings
    if settings.mode == STORAGE_FONT_MODE and settings.r2FontFilename:
        rule = await _load_storage_font(bucket, target, settings.r2FontFilename, invocation_id)
        if rule is not None:
            rules.append(rule)
            custom_font_name = CUSTOM_FONT_NAME

    rules.extend(import_rule(url) for url in config.fonts)
    return FontStyles(css="".join(rules), customFontName=custom_font_name)
