"""Object store reference parsing.

Documents store object references in several URL forms. This module turns each
of them into a canonical (bucket, object key) pair so references can be
compared with listed objects, and walks document data to collect them.
"""

from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Tuple
from urllib.parse import quote, unquote, urlparse

from ..constants import (
    FIREBASE_STORAGE_HOST,
    GCS_PUBLIC_HOST,
    GCS_URI_PREFIX,
    GCS_URI_PREFIX_LEN,
)


@dataclass(frozen=True)
class StorageReference:
    """Canonical object reference."""

    bucket: str
    key: str


def is_gcs_path(path: str) -> bool:
    """
    Check if a path is a GCS URI.

    Example:
        >>> is_gcs_path("gs://bucket/path/file.txt")
        True
        >>> is_gcs_path("/local/path/file.txt")
        False
    """
    return path.startswith(GCS_URI_PREFIX)


def parse_gcs_uri(gcs_uri: str) -> Tuple[str, str]:
    """
    Parse a GCS URI into bucket name and object key.

    Raises:
        ValueError: If the path is not a valid GCS URI

    Example:
        >>> parse_gcs_uri("gs://my-bucket/props/p1/photo.jpg")
        ('my-bucket', 'props/p1/photo.jpg')
        >>> parse_gcs_uri("gs://bucket")
        ('bucket', '')
    """
    if not is_gcs_path(gcs_uri):
        raise ValueError(f"Not a valid GCS URI (must start with 'gs://'): {gcs_uri}")

    path_without_prefix = gcs_uri[GCS_URI_PREFIX_LEN:]
    parts = path_without_prefix.split("/", 1)
    bucket = parts[0]
    key = parts[1] if len(parts) > 1 else ""
    return bucket, key


def build_gcs_uri(bucket: str, *path_parts: str) -> str:
    """
    Build a GCS URI from bucket name and path parts.

    Example:
        >>> build_gcs_uri("my-bucket", "props", "p1.jpg")
        'gs://my-bucket/props/p1.jpg'
    """
    path = "/".join(part for part in path_parts if part)
    if path:
        return f"{GCS_URI_PREFIX}{bucket}/{path}"
    return f"{GCS_URI_PREFIX}{bucket}"


def build_download_url(bucket: str, key: str) -> str:
    """
    Build a Firebase download URL for an object.

    Example:
        >>> build_download_url("b", "props/p1/a b.jpg")
        'https://firebasestorage.googleapis.com/v0/b/b/o/props%2Fp1%2Fa%20b.jpg?alt=media'
    """
    return f"https://{FIREBASE_STORAGE_HOST}/v0/b/{bucket}/o/{quote(key, safe='')}?alt=media"


def _parse_firebase_url(path: str) -> Optional[StorageReference]:
    # /v0/b/<bucket>/o/<url-encoded key>
    segments = path.split("/", 5)
    if len(segments) < 6 or segments[1] != "v0" or segments[2] != "b" or segments[4] != "o":
        return None
    key = unquote(segments[5])
    if not segments[3] or not key:
        return None
    return StorageReference(bucket=segments[3], key=key)


def parse_storage_reference(value: str) -> Optional[StorageReference]:
    """
    Convert a stored URL or URI into a canonical reference.

    Recognises Firebase download URLs, `gs://` URIs and
    `https://storage.googleapis.com/<bucket>/<key>` URLs (plus the
    `<bucket>.storage.googleapis.com` virtual-host form). Anything else
    returns None.

    Example:
        >>> parse_storage_reference(
        ...     "https://firebasestorage.googleapis.com/v0/b/app/o/props%2Fa.jpg?alt=media&token=t"
        ... )
        StorageReference(bucket='app', key='props/a.jpg')
        >>> parse_storage_reference("https://example.com/a.jpg") is None
        True
    """
    if not isinstance(value, str):
        return None
    value = value.strip()

    if is_gcs_path(value):
        bucket, key = parse_gcs_uri(value)
        if not bucket or not key:
            return None
        return StorageReference(bucket=bucket, key=key)

    if not value.startswith(("http://", "https://")):
        return None

    parsed = urlparse(value)
    host = parsed.netloc.lower()

    if host == FIREBASE_STORAGE_HOST:
        return _parse_firebase_url(parsed.path)

    if host == GCS_PUBLIC_HOST:
        parts = parsed.path.lstrip("/").split("/", 1)
        if len(parts) < 2 or not parts[0] or not parts[1]:
            return None
        return StorageReference(bucket=parts[0], key=unquote(parts[1]))

    if host.endswith("." + GCS_PUBLIC_HOST):
        key = unquote(parsed.path.lstrip("/"))
        if not key:
            return None
        return StorageReference(bucket=host[: -len(GCS_PUBLIC_HOST) - 1], key=key)

    return None


def iter_string_values(data: Any) -> Iterator[str]:
    """Yield every string nested anywhere in maps and arrays."""
    if isinstance(data, str):
        yield data
    elif isinstance(data, dict):
        for value in data.values():
            yield from iter_string_values(value)
    elif isinstance(data, (list, tuple)):
        for value in data:
            yield from iter_string_values(value)


def extract_storage_references(data: Any) -> List[StorageReference]:
    """
    Collect the distinct object references embedded in document data.

    Order of first appearance is preserved.
    """
    seen = set()
    references = []
    for value in iter_string_values(data):
        reference = parse_storage_reference(value)
        if reference is not None and reference not in seen:
            seen.add(reference)
            references.append(reference)
    return references
