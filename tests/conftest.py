"""Shared test fixtures."""

from __future__ import annotations

import sys
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

import pytest

from fatlib.models import ArchitectureBuild

_CONCAT_SCRIPT = (
    "import sys\n"
    "with open(sys.argv[1], 'wb') as out:\n"
    "    for name in sys.argv[2:]:\n"
    "        with open(name, 'rb') as src:\n"
    "            out.write(src.read())\n"
)

_FAIL_SCRIPT = "import sys\nsys.stderr.write('fatal error: same architecture')\nsys.exit(1)\n"


@dataclass(frozen=True, slots=True)
class ConcatTool:
    """Deterministic stand-in for lipo: concatenates its inputs."""

    name: str = "concat"

    def argv(self, inputs: Sequence[Path], output: Path) -> tuple[str, ...]:
        return (sys.executable, "-c", _CONCAT_SCRIPT, str(output), *(str(p) for p in inputs))


@dataclass(frozen=True, slots=True)
class FailingTool:
    name: str = "failing"

    def argv(self, inputs: Sequence[Path], output: Path) -> tuple[str, ...]:
        return (sys.executable, "-c", _FAIL_SCRIPT)


def config_header_text(arch: str, length: int = 300) -> str:
    """Return a distinct configuration header body of exactly *length* characters."""
    line = f"# define FATLIB_TEST_CONFIG_{arch.upper()} 1\n"
    body = (line * (length // len(line) + 1))[: length - 1]
    return body + "\n"


BuildFactory = Callable[..., ArchitectureBuild]


def write_build(
    root: Path,
    arch: str,
    *,
    config_text: str | None = None,
    headers: Mapping[str, str | bytes] | None = None,
    libraries: tuple[str, ...] = ("libcrypto", "libssl"),
    config_header: str = "configuration.h",
) -> ArchitectureBuild:
    prefix = root / arch
    include_dir = prefix / "include" / "openssl"
    lib_dir = prefix / "lib"
    include_dir.mkdir(parents=True, exist_ok=True)
    lib_dir.mkdir(parents=True, exist_ok=True)

    if config_text is None:
        config_text = config_header_text(arch)
    (include_dir / config_header).write_text(config_text, encoding="utf-8")

    for name, content in (headers if headers is not None else {"other.h": "int other;\n"}).items():
        path = include_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")

    for library in libraries:
        (lib_dir / f"{library}.a").write_bytes(f"!<arch>\n{arch}:{library}\n".encode())

    return ArchitectureBuild(
        arch=arch,
        include_dir=include_dir,
        lib_dir=lib_dir,
        libraries=libraries,
    )


@pytest.fixture
def build_factory(tmp_path: Path) -> BuildFactory:
    """Write a fake installed build for an architecture under ``tmp_path/builds``."""
    root = tmp_path / "builds"

    def factory(arch: str, **kwargs: object) -> ArchitectureBuild:
        return write_build(root, arch, **kwargs)  # type: ignore[arg-type]

    return factory


@pytest.fixture
def concat_tool() -> ConcatTool:
    return ConcatTool()


@pytest.fixture
def failing_tool() -> FailingTool:
    return FailingTool()
