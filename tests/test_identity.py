import hashlib
import itertools
from pathlib import Path

import pytest

from fatlib.combine import collect_header_set, digest_file, verify_identical_headers
from fatlib.errors import HeaderMismatchError, HeaderSetMismatchError
from fatlib.models import HeaderSet


def _sets() -> list[HeaderSet]:
    return [
        HeaderSet(arch="arm64", digests={"a.h": "1", "b.h": "2", "d.h": "4"}),
        HeaderSet(arch="x86_64", digests={"a.h": "1", "b.h": "X", "d.h": "4"}),
        HeaderSet(arch="i386", digests={"a.h": "1", "b.h": "2", "d.h": "Y"}),
    ]


def test_verify_identical_headers_passes_for_matching_sets() -> None:
    digests = {"a.h": "1", "sub/b.h": "2"}
    verify_identical_headers(
        [HeaderSet(arch="arm64", digests=digests), HeaderSet(arch="x86_64", digests=digests)]
    )


def test_verify_identical_headers_trivial_for_single_or_no_set() -> None:
    verify_identical_headers([])
    verify_identical_headers([HeaderSet(arch="arm64", digests={"a.h": "1"})])


def test_verify_identical_headers_is_symmetric() -> None:
    reported = set()
    for permutation in itertools.permutations(_sets()):
        with pytest.raises(HeaderMismatchError) as excinfo:
            verify_identical_headers(list(permutation))
        reported.add(excinfo.value.filename)

    assert reported == {"b.h"}


def test_verify_identical_headers_reports_file_set_difference_symmetrically() -> None:
    sets = [
        HeaderSet(arch="arm64", digests={"a.h": "1", "b.h": "2"}),
        HeaderSet(arch="x86_64", digests={"a.h": "1", "c.h": "3"}),
    ]
    messages = set()
    for permutation in itertools.permutations(sets):
        with pytest.raises(HeaderSetMismatchError) as excinfo:
            verify_identical_headers(list(permutation))
        assert excinfo.value.code == "E_HEADER_SET_MISMATCH"
        messages.add(excinfo.value.context["files"])

    assert messages == {"b.h, c.h"}


def test_header_mismatch_context_names_each_arch_digest() -> None:
    with pytest.raises(HeaderMismatchError) as excinfo:
        verify_identical_headers(_sets()[:2])

    assert excinfo.value.context["filename"] == "b.h"
    assert excinfo.value.context["arm64"] == "2"
    assert excinfo.value.context["x86_64"] == "X"


def test_collect_header_set_hashes_nested_files_and_skips_excluded(tmp_path: Path) -> None:
    include = tmp_path / "include" / "openssl"
    (include / "sub").mkdir(parents=True)
    (include / "ssl.h").write_text("ssl\n", encoding="utf-8")
    (include / "sub" / "nested.h").write_text("nested\n", encoding="utf-8")
    (include / "configuration.h").write_text("arch specific\n", encoding="utf-8")

    header_set = collect_header_set("arm64", include, exclude=("configuration.h",))

    assert header_set.arch == "arm64"
    assert set(header_set.digests) == {"ssl.h", "sub/nested.h"}
    assert header_set.digests["ssl.h"] == hashlib.sha256(b"ssl\n").hexdigest()


def test_digest_file_matches_hashlib(tmp_path: Path) -> None:
    path = tmp_path / "big.h"
    payload = b"#define X 1\n" * 20000
    path.write_bytes(payload)

    assert digest_file(path) == hashlib.sha256(payload).hexdigest()
