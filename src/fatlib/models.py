"""Core typed dataclasses for per-architecture builds and combined outputs."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

ARCHIVE_SUFFIX = ".a"


@dataclass(frozen=True, slots=True)
class ArchitectureBuild:
    """One completed native build for one architecture/platform variant."""

    arch: str
    include_dir: Path
    lib_dir: Path
    libraries: tuple[str, ...] = ()

    def archive_path(self, library: str) -> Path:
        return self.lib_dir / f"{library}{ARCHIVE_SUFFIX}"


@dataclass(frozen=True, slots=True)
class ConfigHeaderVariant:
    arch: str
    text: str


@dataclass(frozen=True, slots=True)
class HeaderSet:
    arch: str
    digests: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ArchiveInput:
    arch: str
    path: Path

    @property
    def library(self) -> str:
        name = self.path.name
        if name.endswith(ARCHIVE_SUFFIX):
            return name[: -len(ARCHIVE_SUFFIX)]
        return name


@dataclass(frozen=True, slots=True)
class FatArchive:
    library: str
    path: Path
    archs: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class CombinedHeaderSet:
    """Published distribution: merged config header, shared headers, fat archives."""

    root: Path
    include_dir: Path
    config_header: Path
    headers: tuple[Path, ...] = ()
    archives: tuple[FatArchive, ...] = ()

    def archive_for(self, library: str) -> FatArchive:
        for archive in self.archives:
            if archive.library == library:
                return archive
        raise KeyError(library)


__all__ = [
    "ARCHIVE_SUFFIX",
    "ArchitectureBuild",
    "ArchiveInput",
    "CombinedHeaderSet",
    "ConfigHeaderVariant",
    "FatArchive",
    "HeaderSet",
]
