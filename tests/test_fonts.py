import asyncio
import base64

import pytest

from src.composer.fonts import CUSTOM_FONT_NAME, font_format, resolve_font_styles
from src.composer.paths import parse_request_path
from src.specs.models.layout import LayoutConfig


FONT_BYTES = b"wOF2" + b"\x01\x02\x03" * 50
TARGET = parse_request_path("/MY_ASSETS/promo/banner.png")


def _resolve(bucket, layout):
    return asyncio.run(resolve_font_styles(bucket, TARGET, LayoutConfig.model_validate(layout)))


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("Brand.woff2", ("font/woff2", "woff2")),
        ("Brand.WOFF", ("font/woff", "woff")),
        ("Brand.ttf", ("font/ttf", "truetype")),
        ("Brand.otf", ("font/otf", "opentype")),
        ("Brand.eot", ("font/ttf", "truetype")),
    ],
)
def test_font_format_by_extension(filename, expected):
    assert font_format(filename) == expected


def test_storage_font_becomes_font_face(bucket, bucket_dir):
    (bucket_dir / "promo" / "fonts" / "Brand.woff2").write_bytes(FONT_BYTES)
    fonts = _resolve(bucket, {"fontSettings": {"mode": "r2", "r2FontFilename": "Brand.woff2"}})
    encoded = base64.b64encode(FONT_BYTES).decode("ascii")
    assert fonts.customFontName == CUSTOM_FONT_NAME
    assert fonts.css == (
        "@font-face{font-family:'CustomR2Font';"
        f"src:url('data:font/woff2;charset=utf-8;base64,{encoded}')format('woff2');"
        "font-display:block}"
    )


def test_missing_storage_font_is_ignored(bucket):
    fonts = _resolve(bucket, {"fontSettings": {"mode": "r2", "r2FontFilename": "Gone.ttf"}})
    assert fonts.css == ""
    assert fonts.customFontName is None


def test_failing_storage_font_is_ignored():
    class BrokenBucket:
        async def get(self, key):
            raise OSError("storage unavailable")

    fonts = _resolve(BrokenBucket(), {"fontSettings": {"mode": "r2", "r2FontFilename": "Brand.ttf"}})
    assert fonts.customFontName is None


def test_storage_font_needs_mode_and_filename(bucket, bucket_dir):
    (bucket_dir / "promo" / "fonts" / "Brand.ttf").write_bytes(FONT_BYTES)
    assert _resolve(bucket, {"fontSettings": {"r2FontFilename": "Brand.ttf"}}).customFontName is None
    assert _resolve(bucket, {"fontSettings": {"mode": "r2"}}).customFontName is None


def test_external_fonts_follow_the_storage_font(bucket, bucket_dir):
    (bucket_dir / "promo" / "fonts" / "Brand.ttf").write_bytes(FONT_BYTES)
    fonts = _resolve(
        bucket,
        {
            "fonts": ["https://fonts.example.com/a.css", "https://fonts.example.com/b.css"],
            "fontSettings": {"mode": "r2", "r2FontFilename": "Brand.ttf"},
        },
    )
    assert fonts.css.startswith("@font-face{")
    assert fonts.css.endswith(
        "@import url('https://fonts.example.com/a.css');@import url('https://fonts.example.com/b.css');"
    )


def test_no_fonts_configured(bucket):
    fonts = _resolve(bucket, {})
    assert fonts.css == ""
    assert fonts.customFontName is None
