"""Content-hash verification that shared headers match across builds."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Sequence
from pathlib import Path

from fatlib.errors import HeaderMismatchError, HeaderSetMismatchError
from fatlib.models import HeaderSet

_CHUNK_SIZE = 1 << 16


def digest_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def collect_header_set(
    arch: str,
    include_dir: Path,
    *,
    exclude: Iterable[str] = (),
) -> HeaderSet:
    """Hash every file under *include_dir*, keyed by relative posix path."""
    excluded = set(exclude)
    digests: dict[str, str] = {}
    for path in sorted(include_dir.rglob("*")):
        if not path.is_file():
            continue
        name = path.relative_to(include_dir).as_posix()
        if name in excluded:
            continue
        digests[name] = digest_file(path)
    return HeaderSet(arch=arch, digests=digests)


def verify_identical_headers(sets: Sequence[HeaderSet]) -> None:
    """Require every set to hold the same files with the same content.

    Files are checked in sorted name order so the reported file does not
    depend on the order of *sets*.
    """
    if len(sets) < 2:
        return

    names = [frozenset(header_set.digests) for header_set in sets]
    common = frozenset.intersection(*names)
    everything = frozenset.union(*names)
    if common != everything:
        missing = sorted(everything - common)
        raise HeaderSetMismatchError(
            "Header file sets differ between architecture builds.",
            hint="All builds must install the same headers.",
            context={
                "files": ", ".join(missing),
                "archs": ", ".join(sorted(header_set.arch for header_set in sets)),
            },
        )

    for name in sorted(common):
        digests = {header_set.arch: header_set.digests[name] for header_set in sets}
        if len(set(digests.values())) > 1:
            raise HeaderMismatchError(
                f"Header {name!r} differs between architecture builds.",
                filename=name,
                hint="Only the configuration header may vary per architecture.",
                context={arch: digests[arch] for arch in sorted(digests)},
            )
