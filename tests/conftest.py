"""Shared fixtures for the overlay composer tests.

Storage is a ``LocalDirectoryBucket`` rooted in ``tmp_path`` so each test
works against its own on-disk bucket with a ``promo`` project folder.
"""

import json

import pytest

from src.shared.blob_store import LocalDirectoryBucket, reset_bucket_registry

# Not a valid PNG, but the composer never decodes image bytes
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 4
WEBP_BYTES = b"RIFF\x10\x00\x00\x00WEBPVP8 " + b"\x00" * 64

LAYOUT = {
    "imageSize": {"width": 1200, "height": 630},
    "defaultStyle": {"fontFamily": "Pretendard, sans-serif", "fontSize": 48, "fill": "#222222"},
    "elements": [
        {"query": "title", "style": {"x": 80, "y": 120, "width": 1040, "height": 200, "verticalAlign": "middle"}},
        {"query": "subtitle", "style": {"x": 80, "y": 360, "fontSize": 28, "strokeWidth": 2, "stroke": "#ffffff"}},
    ],
}


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep process-wide storage settings from leaking between tests."""
    for name in (
        "STORAGE_BACKEND",
        "STORAGE_BUCKETS",
        "LOCAL_BUCKETS_DIR",
        "AZURE_STORAGE_CONNECTION_STRING",
        "AzureWebJobsStorage",
        "AZURE_FUNCTIONS_ENVIRONMENT",
        "COMPOSER_HTML_LANG",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_bucket_registry()
    yield
    reset_bucket_registry()


@pytest.fixture
def bucket_dir(tmp_path):
    """Create a bucket directory holding the ``promo`` project."""
    root = tmp_path / "buckets" / "MY_ASSETS"
    project = root / "promo"
    (project / "fonts").mkdir(parents=True)
    (project / "promo.json").write_text(json.dumps(LAYOUT), encoding="utf-8")
    (project / "banner.png").write_bytes(PNG_BYTES)
    (project / "loop.webp").write_bytes(WEBP_BYTES)
    return root


@pytest.fixture
def write_layout(bucket_dir):
    """Replace the project's layout config."""
    def _write(layout):
        (bucket_dir / "promo" / "promo.json").write_text(json.dumps(layout), encoding="utf-8")
    return _write


@pytest.fixture
def bucket(bucket_dir):
    return LocalDirectoryBucket(bucket_dir)


@pytest.fixture
def registry(bucket):
    return {"MY_ASSETS": bucket}
