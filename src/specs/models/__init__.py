from __future__ import annotations

from typing import Dict, Type

from pydantic import BaseModel

from .layout import (
    FontSettings,
    ImageSize,
    LayoutConfig,
    StyleSpec,
    TextElementSpec,
    TextStyle,
)


# Registry mapping output schema filenames to models for generation
SCHEMA_MODELS: Dict[str, Type[BaseModel]] = {
    "layout.config.schema.json": LayoutConfig,
    "text.element.schema.json": TextElementSpec,
    "style.spec.schema.json": StyleSpec,
    "text.style.schema.json": TextStyle,
}

__all__ = [
    "FontSettings",
    "ImageSize",
    "LayoutConfig",
    "StyleSpec",
    "TextElementSpec",
    "TextStyle",
    "SCHEMA_MODELS",
]
