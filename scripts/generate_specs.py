#!/usr/bin/env python3
"""
Generate JSON Schemas, YAML variants, and OpenAPI from the layout config models.

Outputs under src/specs/:
 - schemas/*.json (and *.yaml)
 - openapi.yaml and openapi.json

Project folders can validate their ``<folder>/<folder>.json`` against
schemas/layout.config.schema.json before uploading it.
"""
from __future__ import annotations

import json
import sys
from pathlib import Path

import yaml


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
SPECS = SRC / "specs"
SCHEMAS_DIR = SPECS / "schemas"

sys.path.insert(0, str(ROOT))

from src.specs.models import SCHEMA_MODELS  # noqa: E402


def write_json_yaml(obj: dict, json_path: Path) -> None:
    json_path.parent.mkdir(parents=True, exist_ok=True)
    with json_path.open("w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)
    yaml_path = json_path.with_suffix(".yaml")
    with yaml_path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(obj, f, sort_keys=False)


def generate_model_schemas() -> None:
    for filename, model in SCHEMA_MODELS.items():
        schema = model.model_json_schema()
        write_json_yaml(schema, SCHEMAS_DIR / filename)


def _text_response(description: str) -> dict:
    return {"description": description, "content": {"text/plain": {"schema": {"type": "string"}}}}


def build_openapi() -> dict:
    spec = {
        "openapi": "3.0.3",
        "info": {
            "title": "Overlay Composer Functions API",
            "version": "0.1.0",
            "description": "Composites query-supplied text onto stored images as SVG or HTML.",
        },
        "servers": [
            {"url": "http://localhost:7071", "description": "Local Functions host"}
        ],
        "paths": {
            "/{bucket}/{projectFolder}/{imagePath}": {
                "get": {
                    "summary": "Render the text overlay for a stored background image",
                    "operationId": "composeOverlay",
                    "parameters": [
                        {"in": "path", "name": "bucket", "required": True, "schema": {"type": "string"}},
                        {"in": "path", "name": "projectFolder", "required": True, "schema": {"type": "string"}},
                        {
                            "in": "path",
                            "name": "imagePath",
                            "required": True,
                            "description": "Remaining key segments ending in the image file name",
                            "schema": {"type": "string"},
                        },
                        {
                            "in": "query",
                            "name": "format",
                            "required": False,
                            "description": "'svg' forces SVG output for GIF and WebP sources",
                            "schema": {"type": "string", "enum": ["svg"]},
                        },
                    ],
                    "responses": {
                        "200": {
                            "description": "Composited document",
                            "headers": {
                                "Cache-Control": {"schema": {"type": "string"}},
                            },
                            "content": {
                                "image/svg+xml": {"schema": {"type": "string"}},
                                "text/html": {"schema": {"type": "string"}},
                            },
                        },
                        "400": _text_response("Path has fewer than three segments"),
                        "404": _text_response("Layout config or background image not found"),
                        "500": _text_response("Bucket binding not found or unexpected failure"),
                    },
                }
            }
        },
        "components": {"schemas": {"LayoutConfig": SCHEMA_MODELS["layout.config.schema.json"].model_json_schema()}},
    }
    return spec


def generate_openapi() -> None:
    spec = build_openapi()
    write_json_yaml(spec, SPECS / "openapi.json")


def main() -> None:
    generate_model_schemas()
    generate_openapi()
    print("Specs generated under src/specs/")


if __name__ == "__main__":
    main()
