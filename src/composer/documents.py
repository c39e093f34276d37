"""
Output documents wrapping the background image and the text overlay.

Animated sources (GIF, WebP) are served as HTML with an ``<img>`` tag because
most renderers drop animation from an SVG ``<image>``. Everything else, or any
request with ``format=svg``, is served as SVG with a foreignObject overlay.
"""
import base64
import os
from typing import Optional, Union

from src.specs.common.enums import OutputFormat


ANIMATED_IMAGE_TYPES = frozenset({"image/gif", "image/webp"})

Dimension = Union[int, float]


def bytes_to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def image_data_uri(image_type: str, data: bytes) -> str:
    return f"data:{image_type};base64,{bytes_to_base64(data)}"


def select_output_format(image_type: str, format_param: Optional[str]) -> OutputFormat:
    if image_type in ANIMATED_IMAGE_TYPES and format_param != OutputFormat.SVG.value:
        return OutputFormat.HTML
    return OutputFormat.SVG


def css_value(value: Union[int, float, str]) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def render_html_document(
    image_href: str,
    width: Dimension,
    height: Dimension,
    font_styles: str,
    text_layers: str,
    lang: Optional[str] = None,
) -> str:
    lang = lang or os.getenv("COMPOSER_HTML_LANG", "ko")
    w, h = css_value(width), css_value(height)
    return (
        f'<!DOCTYPE html><html lang="{lang}"><head><meta charset="UTF-8">'
        '<meta name="viewport" content="width=device-width,initial-scale=1.0">'
        f"<style>{font_styles}"
        "*{margin:0;padding:0;box-sizing:border-box}"
        "body{margin:0;padding:0;overflow:hidden}"
        f".container{{position:relative;width:{w}px;height:{h}px;overflow:hidden}}"
        ".background-image{position:absolute;top:0;left:0;width:100%;height:100%;z-index:1}"
        "</style></head><body>"
        f'<div class="container"><img src="{image_href}" class="background-image"/>{text_layers}</div>'
        "</body></html>"
    )


def render_svg_document(
    image_href: str,
    width: Dimension,
    height: Dimension,
    font_styles: str,
    text_layers: str,
) -> str:
    w, h = css_value(width), css_value(height)
    return (
        f'<svg width="{w}" height="{h}" xmlns="http://www.w3.org/2000/svg">'
        f'<defs><style type="text/css">{font_styles}</style></defs>'
        f'<image href="{image_href}" width="{w}" height="{h}"/>'
        '<foreignObject width="100%" height="100%">'
        f'<div xmlns="http://www.w3.org/1999/xhtml" style="position:relative;width:{w}px;height:{h}px">'
        f"{text_layers}</div></foreignObject></svg>"
    )
