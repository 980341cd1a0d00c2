"""End-to-end run: fetch, verify, build every target, combine, publish."""

from __future__ import annotations

import logging
import platform
import shutil
from pathlib import Path

from fatlib.backends import BackendRequest, BuildBackend, ConfigureMakeBackend
from fatlib.combine import Combiner
from fatlib.config import BuildConfig
from fatlib.errors import FatlibError, ValidationError
from fatlib.fetch import fetch, unpack
from fatlib.models import ArchitectureBuild, CombinedHeaderSet
from fatlib.observability import StructuredLogger
from fatlib.profiles import DEFAULT_RECIPE, PlatformProfile, SourceRecipe, get_profile

logger = logging.getLogger(__name__)


def verify_build_host(profile: PlatformProfile) -> None:
    actual = platform.system()
    if actual != profile.host_system:
        raise ValidationError(
            f"Profile {profile.name!r} must be built on {profile.host_system}.",
            context={"expected": profile.host_system, "actual": actual},
        )


def clean_profile(config: BuildConfig, profile: str) -> None:
    """Remove the work tree and logs of *profile*; downloads stay cached."""
    for path in (config.profile_dir(profile), config.log_dir / profile):
        if path.exists():
            logger.info("Removing %s", path)
            shutil.rmtree(path)


def build_distribution(
    profile: str | PlatformProfile,
    *,
    config: BuildConfig,
    recipe: SourceRecipe = DEFAULT_RECIPE,
    backend: BuildBackend | None = None,
    combiner: Combiner | None = None,
    structured: StructuredLogger | None = None,
) -> CombinedHeaderSet:
    resolved = get_profile(profile) if isinstance(profile, str) else profile
    backend = backend or ConfigureMakeBackend()
    structured = structured if structured is not None else StructuredLogger()
    combiner = combiner or Combiner(config_header=recipe.config_header, logger=structured)
    log_dir = config.log_dir / resolved.name

    logger.info(
        "Building %s %s for %s (%s)",
        recipe.name,
        recipe.version,
        resolved.name,
        ", ".join(resolved.archs),
    )
    try:
        verify_build_host(resolved)

        archive = fetch(recipe.url, sha256=recipe.sha256, cache_dir=config.cache_dir, config=config)
        structured.log(
            operation="fetch",
            profile=resolved.name,
            message=f"verified {recipe.archive_name}",
            extra={"sha256": recipe.sha256},
        )
        source_dir = unpack(archive, config.source_dir / f"{recipe.name}-{recipe.version}").resolve()

        builds: list[ArchitectureBuild] = []
        for target in resolved.targets:
            arch_dir = config.profile_dir(resolved.name) / target.arch
            request = BackendRequest(
                source_dir=source_dir,
                target=target,
                build_dir=arch_dir / "build",
                prefix=(arch_dir / "install").resolve(),
                log_dir=log_dir,
                jobs=config.jobs,
                configure_options=recipe.configure_options,
                libraries=recipe.libraries,
                header_subdir=recipe.name,
            )
            logger.info("Building %s (%s)", target.arch, target.configure_target)
            builds.append(backend.build(request))
            structured.log(
                operation="build",
                profile=resolved.name,
                arch=target.arch,
                message=f"installed to {request.prefix}",
                extra={"backend": backend.name, "configure_target": target.configure_target},
            )

        output_dir = config.dist_dir / resolved.name
        logger.info("Combining %d builds into %s", len(builds), output_dir)
        result = combiner.combine(builds, output_dir)
        structured.log(operation="publish", profile=resolved.name, message=str(result.root))
        return result
    except FatlibError as exc:
        structured.log(
            operation="pipeline",
            profile=resolved.name,
            level="error",
            message=exc.args[0] if exc.args else exc.code,
            extra=exc.to_dict(),
        )
        raise
    finally:
        structured.to_json_lines(pipeline_log_path(config, resolved.name))


def pipeline_log_path(config: BuildConfig, profile: str) -> Path:
    return config.log_dir / profile / "pipeline.jsonl"
