"""
Text overlay markup for layout config elements.

Each element bound to a query parameter present on the request becomes an
absolutely positioned block. Elements render in config order, so later
elements sit on top of earlier ones.
"""
import re
from typing import List, Mapping, Optional
from urllib.parse import unquote

from src.composer.documents import css_value
from src.specs.models.layout import LayoutConfig, TextStyle


_HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
}
_HTML_ESCAPE_RE = re.compile(r"[&<>]")
_ENCODED_NEWLINE_RE = re.compile(r"%0A", re.IGNORECASE)

_ALIGN_ITEMS = {
    "middle": "center",
    "bottom": "flex-end",
}


def escape_html(text: str) -> str:
    # Single pass, so entities produced here are never escaped again
    return _HTML_ESCAPE_RE.sub(lambda match: _HTML_ESCAPES[match.group(0)], text)


def normalize_query_text(raw: str) -> str:
    """Turn a query parameter value into overlay markup.

    Underscores stand in for spaces and a literal ``%0A`` for a line break.
    """
    text = unquote(raw or "")
    text = text.replace("_", " ")
    text = _ENCODED_NEWLINE_RE.sub("\n", text)
    text = escape_html(text)
    return text.replace("\n", "<br/>")


def build_text_style(style: TextStyle, custom_font_name: Optional[str] = None) -> str:
    font_family = style.fontFamily
    if custom_font_name and style.useR2Font:
        font_family = f"'{custom_font_name}', {font_family}"

    css = (
        f"margin:0;padding:0;font-family:{font_family};font-size:{css_value(style.fontSize)}px;"
        f"color:{style.fill};text-align:{style.textAlign};line-height:{css_value(style.lineHeight)};"
        f"white-space:{style.whiteSpace};word-wrap:break-word;"
        "-webkit-font-smoothing:antialiased;-moz-osx-font-smoothing:grayscale"
    )

    if style.strokeWidth > 0:
        w = css_value(style.strokeWidth)
        c = style.stroke
        # Four offset shadows approximate an outline
        css += f";text-shadow:-{w}px -{w}px 0 {c},{w}px -{w}px 0 {c},-{w}px {w}px 0 {c},{w}px {w}px 0 {c}"

    return css


def render_text_block(text_markup: str, style: TextStyle, custom_font_name: Optional[str] = None) -> str:
    align_items = _ALIGN_ITEMS.get(style.verticalAlign, "flex-start")
    text_style = build_text_style(style, custom_font_name)
    return (
        f'<div style="position:absolute;left:{css_value(style.x)}px;top:{css_value(style.y)}px;'
        f'width:{css_value(style.width)}px;height:{css_value(style.height)}px;'
        f'display:flex;align-items:{align_items};z-index:2">'
        f'<div style="{text_style};width:100%">{text_markup}</div></div>'
    )


def render_text_layers(
    config: LayoutConfig,
    params: Mapping[str, str],
    custom_font_name: Optional[str] = None,
) -> str:
    blocks: List[str] = []
    for element in config.elements:
        if not element.query or element.query not in params:
            continue
        style = TextStyle.merged(config.defaultStyle, element.style, use_r2_font=bool(element.useR2Font))
        text_markup = normalize_query_text(params.get(element.query) or "")
        blocks.append(render_text_block(text_markup, style, custom_font_name))
    return "".join(blocks)
