"""
Bucket bindings: named handles onto object storage.

Each binding maps a logical bucket name to either an Azure Blob Storage
container or, for local development, a directory on disk. Bindings are read
from the environment:

    STORAGE_BACKEND: 'azure' (default) or 'local'.
    STORAGE_BUCKETS: JSON object mapping binding names to container names
        (azure) or directories relative to LOCAL_BUCKETS_DIR (local).
    AZURE_STORAGE_CONNECTION_STRING: account connection string; falls back
        to AzureWebJobsStorage.
    LOCAL_BUCKETS_DIR: base directory for the local backend (default
        './buckets'). Without STORAGE_BUCKETS every sub-directory becomes a
        binding of the same name.
"""
import asyncio
import json
import os
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Protocol, Tuple

from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContainerClient, StorageErrorCode, StorageStreamDownloader

from src.shared.logging_utils import info as log_info
from src.specs.common.errors import BucketBindingNotFoundError, ConfigurationError


class StoredObject:
    """Handle to an existing storage object whose body has not been read yet."""

    def __init__(self, key: str, reader: Callable[[], Awaitable[bytes]], content_type: Optional[str] = None):
        self.key = key
        self.content_type = content_type
        self._reader = reader

    async def read_bytes(self) -> bytes:
        return await self._reader()

    async def json(self) -> Any:
        return json.loads(await self.read_bytes())


class BucketStore(Protocol):
    async def get(self, key: str) -> Optional[StoredObject]:
        """Return a handle for ``key`` or None when no such object exists."""
        ...


# Azure records this for any blob uploaded without content settings
_GENERIC_CONTENT_TYPE = "application/octet-stream"


class AzureBlobBucket:
    def __init__(self, container: ContainerClient):
        self._container = container

    def _download(self, key: str) -> Optional[StorageStreamDownloader]:
        try:
            return self._container.get_blob_client(key).download_blob()
        except ResourceNotFoundError as exc:
            if exc.error_code == StorageErrorCode.CONTAINER_NOT_FOUND:
                raise ConfigurationError(
                    f"Storage container '{self._container.container_name}' does not exist",
                    details={"key": key},
                ) from exc
            return None

    async def get(self, key: str) -> Optional[StoredObject]:
        downloader = await asyncio.to_thread(self._download, key)
        if downloader is None:
            return None
        settings = downloader.properties.content_settings
        content_type = settings.content_type if settings is not None else None
        if not content_type or content_type == _GENERIC_CONTENT_TYPE:
            content_type = None
        return StoredObject(key, lambda: asyncio.to_thread(downloader.readall), content_type)


class LocalDirectoryBucket:
    def __init__(self, root: Path):
        self.root = Path(root).resolve()

    def _find(self, key: str) -> Optional[Path]:
        path = (self.root / key).resolve()
        # Keys must not escape the bucket root
        if self.root not in path.parents or not path.is_file():
            return None
        return path

    async def get(self, key: str) -> Optional[StoredObject]:
        path = await asyncio.to_thread(self._find, key)
        if path is None:
            return None
        return StoredObject(key, lambda: asyncio.to_thread(path.read_bytes))


BucketRegistry = Mapping[str, BucketStore]

# Tried in order against the registry; the first bound name wins.
BUCKET_NAME_CANDIDATES: Tuple[Callable[[str], str], ...] = (
    lambda name: name,
    lambda name: name.upper().replace("-", "_"),
    lambda name: name.lower().replace("-", "_"),
)


def bucket_name_candidates(bucket_name: str) -> List[str]:
    names: List[str] = []
    for transform in BUCKET_NAME_CANDIDATES:
        candidate = transform(bucket_name)
        if candidate not in names:
            names.append(candidate)
    return names


def resolve_bucket(registry: BucketRegistry, bucket_name: str) -> BucketStore:
    tried = bucket_name_candidates(bucket_name)
    for candidate in tried:
        bucket = registry.get(candidate)
        if bucket is not None:
            return bucket
    raise BucketBindingNotFoundError(bucket_name, tried)


def _configured_bindings() -> Optional[Dict[str, str]]:
    raw = os.getenv("STORAGE_BUCKETS")
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise ConfigurationError("STORAGE_BUCKETS must be a JSON object", details={"error": str(exc)}) from exc
    if not isinstance(data, dict):
        raise ConfigurationError("STORAGE_BUCKETS must be a JSON object")
    return {str(name): str(target) for name, target in data.items()}


def _build_azure_registry(bindings: Optional[Dict[str, str]]) -> Dict[str, BucketStore]:
    if not bindings:
        raise ConfigurationError("STORAGE_BUCKETS is required for the azure storage backend")
    conn = os.getenv("AZURE_STORAGE_CONNECTION_STRING") or os.getenv("AzureWebJobsStorage")
    if not conn:
        raise ConfigurationError("AZURE_STORAGE_CONNECTION_STRING is required for blob access")
    service = BlobServiceClient.from_connection_string(conn)
    return {name: AzureBlobBucket(service.get_container_client(container)) for name, container in bindings.items()}


def _build_local_registry(bindings: Optional[Dict[str, str]]) -> Dict[str, BucketStore]:
    base = Path(os.getenv("LOCAL_BUCKETS_DIR", "./buckets"))
    if bindings is None:
        if not base.is_dir():
            return {}
        return {path.name: LocalDirectoryBucket(path) for path in sorted(base.iterdir()) if path.is_dir()}
    return {name: LocalDirectoryBucket(base / directory) for name, directory in bindings.items()}


def load_bucket_registry() -> Dict[str, BucketStore]:
    backend = os.getenv("STORAGE_BACKEND", "azure").strip().lower()
    bindings = _configured_bindings()
    if backend == "local":
        registry = _build_local_registry(bindings)
    elif backend == "azure":
        registry = _build_azure_registry(bindings)
    else:
        raise ConfigurationError(f"Unknown STORAGE_BACKEND '{backend}'", details={"supported": ["azure", "local"]})
    log_info(None, "storage:registry_loaded", backend=backend, bindings=sorted(registry))
    return registry


_registry: Optional[Dict[str, BucketStore]] = None


def get_bucket_registry() -> Dict[str, BucketStore]:
    global _registry
    if _registry is None:
        _registry = load_bucket_registry()
    return _registry


def reset_bucket_registry() -> None:
    global _registry
    _registry = None
