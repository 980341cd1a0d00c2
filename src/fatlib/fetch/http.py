"""Integrity-enforced HTTP/file fetch and source unpacking."""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
import tarfile
from pathlib import Path
from urllib.request import urlopen

from fatlib.config import BuildConfig, ensure_network_allowed
from fatlib.errors import FetchError, IntegrityError, ValidationError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1 << 16


def fetch(
    url: str,
    *,
    sha256: str,
    cache_dir: str | Path,
    config: BuildConfig | None = None,
) -> Path:
    """Fetch content and return a content-addressed cached path."""
    if not sha256:
        raise ValidationError("fetch() requires a sha256 value.", context={"url": url})
    expected = sha256.lower()
    cache_path = Path(cache_dir)
    cache_path.mkdir(parents=True, exist_ok=True)
    artifact_path = cache_path / expected

    if artifact_path.exists():
        _assert_hash_matches(artifact_path, expected_sha256=expected)
        logger.debug("Using cached %s", artifact_path)
        return artifact_path

    if config is not None:
        ensure_network_allowed(config=config, operation="fetch")

    logger.info("Downloading %s", url)
    temp_path = artifact_path.with_suffix(".tmp")
    digest = hashlib.sha256()
    try:
        with urlopen(url) as response, temp_path.open("wb") as handle:  # noqa: S310 - integrity check is mandatory below
            for chunk in iter(lambda: response.read(_CHUNK_SIZE), b""):
                digest.update(chunk)
                handle.write(chunk)
    except OSError as exc:
        temp_path.unlink(missing_ok=True)
        raise FetchError(
            "Download failed.",
            hint="Check the source URL and network access, or pre-populate the cache.",
            context={"operation": "fetch", "url": url, "error": str(exc)},
        ) from exc

    actual_sha256 = digest.hexdigest()
    if actual_sha256 != expected:
        temp_path.unlink(missing_ok=True)
        raise IntegrityError(
            "Fetched content hash mismatch.",
            hint="Update the expected hash or source URL to a trusted immutable artifact.",
            context={"operation": "fetch", "url": url, "expected": expected, "actual": actual_sha256},
        )

    os.replace(temp_path, artifact_path)
    return artifact_path


def unpack(archive: str | Path, dest: str | Path) -> Path:
    """Extract *archive* into a fresh *dest* and return the source tree root.

    Source tarballs conventionally hold a single top-level directory; that
    directory is returned when present, *dest* otherwise.
    """
    dest_path = Path(dest)
    if dest_path.exists():
        shutil.rmtree(dest_path)
    dest_path.mkdir(parents=True)

    try:
        with tarfile.open(archive, mode="r:*") as tar:
            tar.extractall(path=dest_path, filter="data")
    except tarfile.TarError as exc:
        raise ValidationError(
            "Source archive could not be unpacked.",
            context={"archive": str(archive), "error": str(exc)},
        ) from exc

    entries = list(dest_path.iterdir())
    if len(entries) == 1 and entries[0].is_dir():
        return entries[0]
    return dest_path


def _assert_hash_matches(path: Path, *, expected_sha256: str) -> None:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    actual_sha256 = digest.hexdigest()
    if actual_sha256 != expected_sha256:
        raise IntegrityError(
            "Cached artifact hash mismatch.",
            hint="Clear cache and refetch with trusted inputs.",
            context={
                "operation": "fetch",
                "path": str(path),
                "expected": expected_sha256,
                "actual": actual_sha256,
            },
        )
