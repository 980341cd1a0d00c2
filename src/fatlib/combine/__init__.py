"""Artifact combination: config headers, shared headers, fat archives."""

from fatlib.combine.archives import ArchiveTool, LipoTool, merge_archives
from fatlib.combine.combiner import DEFAULT_CONFIG_HEADER, Combiner
from fatlib.combine.headers import (
    ARCH_PREDICATES,
    MIN_COMBINED_LENGTH,
    MIN_HEADER_LENGTH,
    combine_headers,
    predicate_for,
    validate_header,
)
from fatlib.combine.identity import collect_header_set, digest_file, verify_identical_headers

__all__ = [
    "ARCH_PREDICATES",
    "DEFAULT_CONFIG_HEADER",
    "MIN_COMBINED_LENGTH",
    "MIN_HEADER_LENGTH",
    "ArchiveTool",
    "Combiner",
    "LipoTool",
    "collect_header_set",
    "combine_headers",
    "digest_file",
    "merge_archives",
    "predicate_for",
    "validate_header",
    "verify_identical_headers",
]
