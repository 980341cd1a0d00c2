"""Merge per-architecture build outputs into one published distribution.

Header verification and the per-library archive merges touch disjoint inputs
and outputs, so they run concurrently. Everything is assembled in a staging
directory next to the destination and published with a rename; a failed
combination removes its staging tree and leaves the destination untouched.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import uuid
from collections.abc import Sequence
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from fatlib.combine.archives import ArchiveTool, LipoTool, merge_archives
from fatlib.combine.headers import combine_headers, validate_header
from fatlib.combine.identity import collect_header_set, verify_identical_headers
from fatlib.errors import MalformedHeaderError, ValidationError
from fatlib.models import (
    ARCHIVE_SUFFIX,
    ArchitectureBuild,
    ArchiveInput,
    CombinedHeaderSet,
    ConfigHeaderVariant,
    FatArchive,
    HeaderSet,
)
from fatlib.observability import StructuredLogger

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_HEADER = "configuration.h"


@dataclass(slots=True)
class Combiner:
    config_header: str = DEFAULT_CONFIG_HEADER
    tool: ArchiveTool = field(default_factory=LipoTool)
    max_workers: int | None = None
    logger: StructuredLogger | None = None

    def combine(
        self,
        builds: Sequence[ArchitectureBuild],
        output_dir: str | Path,
    ) -> CombinedHeaderSet:
        """Combine *builds* into *output_dir*, replacing it only on success."""
        output_path = Path(output_dir)
        self._check_builds(builds)

        variants = [self._read_variant(build) for build in builds]
        for variant in variants:
            validate_header(variant)
        combined = combine_headers(variants)
        self._record("headers", f"combined {len(variants)} configuration headers")

        output_path.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(
            tempfile.mkdtemp(
                prefix=f".{output_path.name}-",
                suffix=".staging",
                dir=str(output_path.parent),
            )
        )
        try:
            canonical, archives = self._verify_and_merge(builds, staging)
            self._write_headers(builds[0], canonical, combined, staging)
            _publish(staging, output_path)
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        self._record("publish", f"published {output_path}")
        logger.info("Combined %d builds into %s", len(builds), output_path)
        include_dir = output_path / "include" / builds[0].include_dir.name
        return CombinedHeaderSet(
            root=output_path,
            include_dir=include_dir,
            config_header=include_dir / self.config_header,
            headers=tuple(include_dir / name for name in sorted(canonical.digests)),
            archives=tuple(
                FatArchive(
                    library=archive.library,
                    path=output_path / "lib" / archive.path.name,
                    archs=archive.archs,
                )
                for archive in archives
            ),
        )

    def _check_builds(self, builds: Sequence[ArchitectureBuild]) -> None:
        if not builds:
            raise ValidationError("combine() requires at least one architecture build.")

        first = builds[0]
        for build in builds[1:]:
            if build.libraries != first.libraries:
                raise ValidationError(
                    "Architecture builds list different libraries.",
                    context={
                        first.arch: ", ".join(first.libraries),
                        build.arch: ", ".join(build.libraries),
                    },
                )
            if build.include_dir.name != first.include_dir.name:
                raise ValidationError(
                    "Architecture builds install headers under different directories.",
                    context={
                        first.arch: str(first.include_dir),
                        build.arch: str(build.include_dir),
                    },
                )

    def _read_variant(self, build: ArchitectureBuild) -> ConfigHeaderVariant:
        path = build.include_dir / self.config_header
        if not path.is_file():
            return ConfigHeaderVariant(arch=build.arch, text="")
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise MalformedHeaderError(
                f"Configuration header for {build.arch} could not be read.",
                hint="Rebuild this architecture; the header should be UTF-8 text.",
                context={"arch": build.arch, "path": str(path), "error": str(exc)},
            ) from exc
        return ConfigHeaderVariant(arch=build.arch, text=text)

    def _verify_headers(self, builds: Sequence[ArchitectureBuild]) -> HeaderSet:
        sets = [
            collect_header_set(build.arch, build.include_dir, exclude=(self.config_header,))
            for build in builds
        ]
        verify_identical_headers(sets)
        self._record("verify", f"{len(sets[0].digests)} shared headers identical")
        return sets[0]

    def _merge_library(
        self,
        builds: Sequence[ArchitectureBuild],
        library: str,
        staging: Path,
    ) -> FatArchive:
        archive = merge_archives(
            [ArchiveInput(arch=build.arch, path=build.archive_path(library)) for build in builds],
            library,
            output=staging / "lib" / f"{library}{ARCHIVE_SUFFIX}",
            tool=self.tool,
        )
        self._record("merge", f"merged {library} for {', '.join(archive.archs)}")
        return archive

    def _verify_and_merge(
        self,
        builds: Sequence[ArchitectureBuild],
        staging: Path,
    ) -> tuple[HeaderSet, tuple[FatArchive, ...]]:
        futures: list[Future[Any]] = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures.append(executor.submit(self._verify_headers, builds))
            for library in builds[0].libraries:
                futures.append(executor.submit(self._merge_library, builds, library, staging))
            _, pending = wait(futures, return_when=FIRST_EXCEPTION)
            for future in pending:
                future.cancel()

        for future in futures:
            if future.cancelled():
                continue
            error = future.exception()
            if error is not None:
                raise error

        canonical: HeaderSet = futures[0].result()
        archives = tuple(future.result() for future in futures[1:])
        return canonical, archives

    def _write_headers(
        self,
        source: ArchitectureBuild,
        canonical: HeaderSet,
        combined: str,
        staging: Path,
    ) -> None:
        include_dir = staging / "include" / source.include_dir.name
        include_dir.mkdir(parents=True, exist_ok=True)
        for name in sorted(canonical.digests):
            destination = include_dir / name
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source.include_dir / name, destination)
        (include_dir / self.config_header).write_text(combined, encoding="utf-8")

    def _record(self, stage: str, message: str) -> None:
        if self.logger is not None:
            self.logger.log(operation="combine", stage=stage, message=message)


def _publish(staging: Path, output_dir: Path) -> None:
    backup: Path | None = None
    if output_dir.exists():
        backup = output_dir.with_name(f".{output_dir.name}-{uuid.uuid4().hex}.old")
        os.replace(output_dir, backup)
    try:
        os.replace(staging, output_dir)
    except OSError:
        if backup is not None:
            os.replace(backup, output_dir)
        raise
    if backup is not None:
        shutil.rmtree(backup)
