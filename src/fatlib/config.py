"""Build configuration and policy enforcement helpers."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from fatlib.errors import PolicyError, ValidationError

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


def _default_jobs() -> int:
    return os.cpu_count() or 1


@dataclass(frozen=True, slots=True)
class BuildConfig:
    work_dir: Path = Path("build")
    dist_dir: Path = Path("dist")
    jobs: int = field(default_factory=_default_jobs)
    offline: bool = False

    @property
    def cache_dir(self) -> Path:
        return self.work_dir / "cache"

    @property
    def source_dir(self) -> Path:
        return self.work_dir / "src"

    @property
    def log_dir(self) -> Path:
        return self.work_dir / "logs"

    def profile_dir(self, profile: str) -> Path:
        return self.work_dir / profile

    def with_overrides(self, **changes: object) -> BuildConfig:
        """Return a copy with every non-``None`` value in *changes* applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> BuildConfig:
        env = os.environ if environ is None else environ
        config = cls()
        jobs: int | None = None
        raw_jobs = env.get("FATLIB_JOBS")
        if raw_jobs:
            try:
                jobs = int(raw_jobs)
            except ValueError:
                raise ValidationError(
                    "FATLIB_JOBS must be an integer.",
                    context={"value": raw_jobs},
                ) from None
            if jobs < 1:
                raise ValidationError("FATLIB_JOBS must be at least 1.", context={"value": raw_jobs})
        return config.with_overrides(
            work_dir=Path(env["FATLIB_WORK_DIR"]) if env.get("FATLIB_WORK_DIR") else None,
            dist_dir=Path(env["FATLIB_DIST_DIR"]) if env.get("FATLIB_DIST_DIR") else None,
            jobs=jobs,
            offline=env.get("FATLIB_OFFLINE", "").strip().lower() in _TRUE_VALUES or None,
        )


def ensure_network_allowed(*, config: BuildConfig, operation: str) -> None:
    if config.offline:
        raise PolicyError(
            "Network operations are disabled in offline mode.",
            hint="Populate the download cache or run without --offline.",
            context={"operation": operation},
        )
