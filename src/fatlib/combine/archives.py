"""Fat archive creation by delegation to an external archive tool."""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from fatlib.errors import ArchiveMergeError, ValidationError
from fatlib.models import ArchiveInput, FatArchive

logger = logging.getLogger(__name__)


class ArchiveTool(Protocol):
    name: str

    def argv(self, inputs: Sequence[Path], output: Path) -> tuple[str, ...]:
        """Return the command that merges *inputs* into *output*."""


@dataclass(frozen=True, slots=True)
class LipoTool:
    name: str = "lipo"
    tool: str = "lipo"

    def argv(self, inputs: Sequence[Path], output: Path) -> tuple[str, ...]:
        return (self.tool, "-create", *(str(path) for path in inputs), "-output", str(output))


def merge_archives(
    archives: Sequence[ArchiveInput],
    library: str,
    *,
    output: Path,
    tool: ArchiveTool | None = None,
) -> FatArchive:
    """Merge per-architecture archives of *library* into one fat archive at *output*."""
    tool = tool or LipoTool()
    _check_inputs(archives, library)

    command = tool.argv([archive.path for archive in archives], output)
    if shutil.which(command[0]) is None:
        raise ArchiveMergeError(
            f"Archive tool `{command[0]}` is not available.",
            library=library,
            hint="Install the platform's universal-binary tool (Xcode command line tools).",
            context={"tool": tool.name},
        )

    output.parent.mkdir(parents=True, exist_ok=True)
    logger.debug("Running: %s", " ".join(command))
    result = subprocess.run(
        list(command),
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        raise ArchiveMergeError(
            f"Merging {library} archives failed.",
            library=library,
            hint="Check that every input archive targets a distinct architecture.",
            context={
                "tool": tool.name,
                "returncode": str(result.returncode),
                "stderr": result.stderr[:2000] if result.stderr else "",
                "command": " ".join(command),
            },
        )
    if not output.exists():
        raise ArchiveMergeError(
            f"Archive tool reported success but {output.name} was not written.",
            library=library,
            context={"tool": tool.name, "output": str(output)},
        )

    return FatArchive(
        library=library,
        path=output,
        archs=tuple(archive.arch for archive in archives),
    )


def _check_inputs(archives: Sequence[ArchiveInput], library: str) -> None:
    if not archives:
        raise ValidationError(
            "merge_archives() requires at least one input archive.",
            context={"library": library},
        )

    mismatched = [archive for archive in archives if archive.library != library]
    if mismatched:
        raise ValidationError(
            "Input archives do not all belong to the requested library.",
            hint="Merge each library separately.",
            context={
                "library": library,
                "found": ", ".join(f"{a.arch}={a.library}" for a in mismatched),
            },
        )

    archs = [archive.arch for archive in archives]
    duplicates = sorted({arch for arch in archs if archs.count(arch) > 1})
    if duplicates:
        raise ValidationError(
            "An architecture appears more than once among the input archives.",
            context={"library": library, "archs": ", ".join(duplicates)},
        )

    missing = [archive for archive in archives if not archive.path.is_file()]
    if missing:
        raise ValidationError(
            "Input archive does not exist.",
            hint="The build for this architecture did not install the library.",
            context={
                "library": library,
                "paths": ", ".join(str(archive.path) for archive in missing),
            },
        )
