"""Out-of-tree ``Configure`` + ``make`` execution for one target.

Every stage writes its combined stdout/stderr to
``<log_dir>/<arch>-<stage>.log``. Toolchain settings (SDK root, compiler
flags) are passed to the child processes explicitly; the parent process
environment is never modified.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from fatlib.backends.base import BackendRequest
from fatlib.errors import BackendBuildError
from fatlib.models import ArchitectureBuild

logger = logging.getLogger(__name__)

_LOG_TAIL = 2000


@dataclass(slots=True)
class ConfigureMakeBackend:
    name: str = "configure_make"
    perl: str = "perl"
    make: str = "make"
    xcrun: str = "xcrun"

    def build(self, request: BackendRequest) -> ArchitectureBuild:
        self._ensure_prerequisites(request)
        target = request.target

        for path in (request.build_dir, request.prefix):
            if path.exists():
                shutil.rmtree(path)
        request.build_dir.mkdir(parents=True)
        request.log_dir.mkdir(parents=True, exist_ok=True)

        env = self._environment(request)
        configure = [
            self.perl,
            str(request.source_dir / "Configure"),
            target.configure_target,
            f"--prefix={request.prefix}",
            f"--openssldir={request.prefix / 'ssl'}",
            "--libdir=lib",
            *request.configure_options,
            *target.cflags,
        ]
        self._run_stage("configure", configure, request=request, env=env)
        self._run_stage("build", [self.make, f"-j{request.jobs}"], request=request, env=env)
        self._run_stage("install", [self.make, "install_dev"], request=request, env=env)

        build = ArchitectureBuild(
            arch=target.arch,
            include_dir=request.prefix / "include" / request.header_subdir,
            lib_dir=request.prefix / "lib",
            libraries=request.libraries,
        )
        self._verify_install(build, request)
        return build

    def _environment(self, request: BackendRequest) -> dict[str, str]:
        env = dict(os.environ)
        env.update(request.target.env)
        if "SDKROOT" not in env:
            env["SDKROOT"] = self._sdk_path(request)
        return env

    def _sdk_path(self, request: BackendRequest) -> str:
        command = [self.xcrun, "--sdk", request.target.sdk, "--show-sdk-path"]
        result = subprocess.run(command, capture_output=True, text=True, check=False)
        if result.returncode != 0 or not result.stdout.strip():
            raise BackendBuildError(
                f"Could not locate the {request.target.sdk} SDK.",
                hint="Install Xcode and select it with `xcode-select`.",
                context={
                    "backend": self.name,
                    "arch": request.target.arch,
                    "command": shlex.join(command),
                    "stderr": result.stderr[:_LOG_TAIL] if result.stderr else "",
                },
            )
        return result.stdout.strip()

    def _run_stage(
        self,
        stage: str,
        command: list[str],
        *,
        request: BackendRequest,
        env: dict[str, str],
    ) -> None:
        log_path = request.log_path(stage)
        logger.info("[%s] %s", request.target.arch, stage)
        logger.debug("Running: %s", shlex.join(command))
        with log_path.open("w", encoding="utf-8") as log:
            log.write(f"$ {shlex.join(command)}\n")
            log.flush()
            result = subprocess.run(
                command,
                cwd=str(request.build_dir),
                env=env,
                stdout=log,
                stderr=subprocess.STDOUT,
                check=False,
            )
        if result.returncode != 0:
            raise BackendBuildError(
                f"{stage} failed for {request.target.arch}.",
                hint=f"See {log_path} for the full output.",
                context={
                    "backend": self.name,
                    "arch": request.target.arch,
                    "stage": stage,
                    "returncode": str(result.returncode),
                    "log": str(log_path),
                    "tail": _tail(log_path),
                },
            )

    def _verify_install(self, build: ArchitectureBuild, request: BackendRequest) -> None:
        missing: list[Path] = []
        if not build.include_dir.is_dir():
            missing.append(build.include_dir)
        missing.extend(
            path
            for path in (build.archive_path(library) for library in build.libraries)
            if not path.is_file()
        )
        if missing:
            raise BackendBuildError(
                f"Install for {build.arch} is incomplete.",
                hint=f"See {request.log_path('install')} for the full output.",
                context={
                    "backend": self.name,
                    "arch": build.arch,
                    "missing": ", ".join(str(path) for path in missing),
                },
            )

    def _ensure_prerequisites(self, request: BackendRequest) -> None:
        for tool in (self.perl, self.make, self.xcrun):
            if shutil.which(tool) is None:
                raise BackendBuildError(
                    f"Build backend requires `{tool}` in PATH.",
                    hint="Install the Xcode command line tools before building.",
                    context={"backend": self.name, "arch": request.target.arch},
                )
        configure = request.source_dir / "Configure"
        if not configure.is_file():
            raise BackendBuildError(
                "Source tree has no Configure script.",
                context={"backend": self.name, "source": str(request.source_dir)},
            )


def _tail(path: Path) -> str:
    text = path.read_text(encoding="utf-8", errors="replace")
    return text[-_LOG_TAIL:]
