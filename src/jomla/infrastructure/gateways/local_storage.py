"""Blob storage on the local filesystem.

Each blob is written beside a ``.meta.json`` sidecar holding its content
type and metadata. Read links point at the API's ``/files`` route and
carry a signed token bound to the blob path.
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path, PurePosixPath
from urllib.parse import quote

from jomla.domain.exceptions import EntityNotFoundError, ValidationError
from jomla.domain.gateway.blob_storage import BlobStorage
from jomla.infrastructure.gateways.tokens import JwtTokenService

META_SUFFIX = ".meta.json"


@dataclass
class StoredBlob:
    path: Path
    content_type: str
    metadata: dict[str, str]


class LocalBlobStorage(BlobStorage):

    def __init__(self, root: Path, base_url: str, tokens: JwtTokenService) -> None:
        self._root = Path(root)
        self._base_url = base_url.rstrip("/")
        self._tokens = tokens

    def save(self, path: str, data: bytes, content_type: str, metadata: dict[str, str]) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        _atomic_write(target, data)
        meta = {"content_type": content_type, "metadata": dict(metadata)}
        _atomic_write(_meta_path(target), json.dumps(meta, indent=2).encode())

    def signed_url(self, path: str, expires_at: datetime) -> str:
        self._resolve(path)
        token = self._tokens.sign_blob_link(path, expires_at)
        return f"{self._base_url}/{quote(path)}?token={token}"

    def open(self, path: str, token: str) -> StoredBlob:
        """Resolve a signed link to the stored file."""
        self._tokens.verify_blob_link(token, path)
        target = self._resolve(path)
        if not target.is_file():
            raise EntityNotFoundError(f"File {path} not found")
        meta_file = _meta_path(target)
        meta = json.loads(meta_file.read_text()) if meta_file.exists() else {}
        return StoredBlob(
            path=target,
            content_type=meta.get("content_type", "application/octet-stream"),
            metadata=meta.get("metadata", {}),
        )

    def _resolve(self, path: str) -> Path:
        rel = PurePosixPath(path)
        if rel.is_absolute() or ".." in rel.parts or not rel.parts:
            raise ValidationError(f"Invalid blob path: {path}")
        return self._root.joinpath(*rel.parts)


def _meta_path(target: Path) -> Path:
    return target.with_name(target.name + META_SUFFIX)


def _atomic_write(target: Path, data: bytes) -> None:
    fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, target)
    except BaseException:
        os.unlink(tmp)
        raise
