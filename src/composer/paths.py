from __future__ import annotations

from pydantic import BaseModel

from src.specs.common.errors import InvalidPathError


class RequestTarget(BaseModel):
    """Storage coordinates named by a request path ``/<bucket>/<folder>/.../<file>``."""

    bucket: str
    folder: str
    # Everything after the bucket segment, so it always starts with the folder
    image_key: str

    @property
    def config_key(self) -> str:
        return f"{self.folder}/{self.folder}.json"

    def font_key(self, filename: str) -> str:
        return f"{self.folder}/fonts/{filename}"


def parse_request_path(path: str) -> RequestTarget:
    parts = [part for part in (path or "").split("/") if part]
    if len(parts) < 3:
        raise InvalidPathError(path)
    return RequestTarget(bucket=parts[0], folder=parts[1], image_key="/".join(parts[1:]))
