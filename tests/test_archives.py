from pathlib import Path
from typing import Any

import pytest

from fatlib.combine import LipoTool, merge_archives
from fatlib.errors import ArchiveMergeError, ValidationError
from fatlib.models import ArchiveInput

from conftest import ConcatTool, FailingTool


def _archive(tmp_path: Path, arch: str, library: str = "libcrypto") -> ArchiveInput:
    path = tmp_path / arch / f"{library}.a"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(f"{arch}-{library}\n".encode())
    return ArchiveInput(arch=arch, path=path)


def test_lipo_tool_argv_keeps_input_order(tmp_path: Path) -> None:
    argv = LipoTool().argv([tmp_path / "a.a", tmp_path / "b.a"], tmp_path / "out.a")

    assert argv == (
        "lipo",
        "-create",
        str(tmp_path / "a.a"),
        str(tmp_path / "b.a"),
        "-output",
        str(tmp_path / "out.a"),
    )


def test_archive_input_library_strips_suffix(tmp_path: Path) -> None:
    assert ArchiveInput(arch="arm64", path=tmp_path / "libssl.a").library == "libssl"


def test_merge_archives_rejects_different_library_names(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def _unexpected(*args: Any, **kwargs: Any) -> None:
        raise AssertionError("archive tool must not run")

    monkeypatch.setattr("fatlib.combine.archives.subprocess.run", _unexpected)
    inputs = [_archive(tmp_path, "arm64", "libcrypto"), _archive(tmp_path, "x86_64", "libssl")]

    with pytest.raises(ValidationError) as excinfo:
        merge_archives(inputs, "libcrypto", output=tmp_path / "out" / "libcrypto.a")

    assert "x86_64=libssl" in excinfo.value.context["found"]
    assert not (tmp_path / "out").exists()


def test_merge_archives_requires_inputs(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        merge_archives([], "libcrypto", output=tmp_path / "libcrypto.a")


def test_merge_archives_rejects_duplicate_architectures(tmp_path: Path) -> None:
    first = _archive(tmp_path, "arm64")
    with pytest.raises(ValidationError) as excinfo:
        merge_archives([first, first], "libcrypto", output=tmp_path / "out.a")

    assert excinfo.value.context["archs"] == "arm64"


def test_merge_archives_rejects_missing_input(tmp_path: Path) -> None:
    missing = ArchiveInput(arch="x86_64", path=tmp_path / "x86_64" / "libcrypto.a")

    with pytest.raises(ValidationError):
        merge_archives([_archive(tmp_path, "arm64"), missing], "libcrypto", output=tmp_path / "o.a")


def test_merge_archives_runs_tool_with_inputs_in_given_order(
    tmp_path: Path,
    concat_tool: ConcatTool,
) -> None:
    inputs = [_archive(tmp_path, "x86_64"), _archive(tmp_path, "arm64")]
    output = tmp_path / "fat" / "libcrypto.a"

    fat = merge_archives(inputs, "libcrypto", output=output, tool=concat_tool)

    assert fat.library == "libcrypto"
    assert fat.path == output
    assert fat.archs == ("x86_64", "arm64")
    assert output.read_bytes() == b"x86_64-libcrypto\narm64-libcrypto\n"


def test_merge_archives_invokes_lipo(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    calls: list[list[str]] = []

    class FakeResult:
        returncode = 0
        stdout = ""
        stderr = ""

    def fake_run(command: list[str], **kwargs: Any) -> FakeResult:
        calls.append(command)
        Path(command[-1]).write_bytes(b"fat")
        return FakeResult()

    monkeypatch.setattr("fatlib.combine.archives.shutil.which", lambda _: "/usr/bin/lipo")
    monkeypatch.setattr("fatlib.combine.archives.subprocess.run", fake_run)
    inputs = [_archive(tmp_path, "arm64"), _archive(tmp_path, "x86_64")]

    merge_archives(inputs, "libcrypto", output=tmp_path / "libcrypto.a")

    assert calls == [
        [
            "lipo",
            "-create",
            str(inputs[0].path),
            str(inputs[1].path),
            "-output",
            str(tmp_path / "libcrypto.a"),
        ]
    ]


def test_merge_archives_translates_tool_failure(
    tmp_path: Path,
    failing_tool: FailingTool,
) -> None:
    inputs = [_archive(tmp_path, "arm64"), _archive(tmp_path, "x86_64")]

    with pytest.raises(ArchiveMergeError) as excinfo:
        merge_archives(inputs, "libcrypto", output=tmp_path / "libcrypto.a", tool=failing_tool)

    assert excinfo.value.library == "libcrypto"
    assert excinfo.value.code == "E_ARCHIVE_MERGE"
    assert excinfo.value.context["returncode"] == "1"
    assert "same architecture" in excinfo.value.context["stderr"]


def test_merge_archives_fails_when_tool_is_missing(tmp_path: Path) -> None:
    inputs = [_archive(tmp_path, "arm64")]

    with pytest.raises(ArchiveMergeError) as excinfo:
        merge_archives(
            inputs,
            "libcrypto",
            output=tmp_path / "libcrypto.a",
            tool=LipoTool(tool="fatlib-no-such-lipo"),
        )

    assert excinfo.value.hint is not None
    assert "fatlib-no-such-lipo" in str(excinfo.value)
