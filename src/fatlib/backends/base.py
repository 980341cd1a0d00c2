"""Protocol for native build backends."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from fatlib.models import ArchitectureBuild
from fatlib.profiles import BuildTarget


@dataclass(frozen=True, slots=True)
class BackendRequest:
    source_dir: Path
    target: BuildTarget
    build_dir: Path
    prefix: Path
    log_dir: Path
    jobs: int = 1
    configure_options: tuple[str, ...] = ()
    libraries: tuple[str, ...] = ()
    header_subdir: str = "openssl"

    def log_path(self, stage: str) -> Path:
        return self.log_dir / f"{self.target.arch}-{stage}.log"


class BuildBackend(Protocol):
    name: str

    def build(self, request: BackendRequest) -> ArchitectureBuild:
        """Configure, compile and install one target; return its installed outputs."""
