"""Platform-conditional combination of generated configuration headers.

Each build of the library generates its own configuration header encoding
word size and feature flags for that architecture. The combined header wraps
every variant in an ``#ifdef`` keyed on the compiler's predefined
architecture symbol so a single include tree serves all slices of the fat
archive.

The length thresholds are smoke tests for truncated or missing files, not
structural validation. Header contents are never parsed.
"""

from __future__ import annotations

from collections.abc import Sequence

from fatlib.errors import (
    EmptyCombinedResultError,
    MalformedHeaderError,
    UnsupportedArchitectureError,
    ValidationError,
)
from fatlib.models import ConfigHeaderVariant

MIN_HEADER_LENGTH = 100
MIN_COMBINED_LENGTH = 200

ARCH_PREDICATES: dict[str, str] = {
    "arm64": "__aarch64__",
    "aarch64": "__aarch64__",
    "x86_64": "__x86_64__",
    "i386": "__i386__",
    "armv7": "__arm__",
}


def predicate_for(arch: str) -> str:
    """Return the preprocessor symbol that identifies *arch*."""
    try:
        return ARCH_PREDICATES[arch]
    except KeyError:
        raise UnsupportedArchitectureError(
            f"No preprocessor predicate known for architecture {arch!r}.",
            hint="Add the architecture to ARCH_PREDICATES.",
            context={"arch": arch, "supported": ", ".join(sorted(ARCH_PREDICATES))},
        ) from None


def validate_header(variant: ConfigHeaderVariant) -> None:
    if len(variant.text) < MIN_HEADER_LENGTH:
        raise MalformedHeaderError(
            "Configuration header is missing or implausibly short.",
            hint="Check the build log for this architecture; the header was not generated.",
            context={
                "arch": variant.arch,
                "length": str(len(variant.text)),
                "minimum": str(MIN_HEADER_LENGTH),
            },
        )


def combine_headers(variants: Sequence[ConfigHeaderVariant]) -> str:
    """Concatenate *variants* into one header, each guarded by its predicate.

    Block order follows *variants*.
    """
    seen: dict[str, str] = {}
    blocks: list[str] = []
    for variant in variants:
        predicate = predicate_for(variant.arch)
        if predicate in seen:
            raise ValidationError(
                "Two architectures map to the same preprocessor predicate.",
                context={
                    "predicate": predicate,
                    "arch": variant.arch,
                    "previous": seen[predicate],
                },
            )
        seen[predicate] = variant.arch
        blocks.append(_render_block(variant, predicate))

    combined = "".join(blocks)
    if len(combined) < MIN_COMBINED_LENGTH:
        raise EmptyCombinedResultError(
            "Combined configuration header is implausibly short.",
            hint="Every architecture build must generate a full configuration header.",
            context={
                "archs": ", ".join(variant.arch for variant in variants),
                "length": str(len(combined)),
                "minimum": str(MIN_COMBINED_LENGTH),
            },
        )
    return combined


def _render_block(variant: ConfigHeaderVariant, predicate: str) -> str:
    text = variant.text if variant.text.endswith("\n") else variant.text + "\n"
    return (
        f"/* ---- fatlib: {variant.arch} ---- */\n"
        f"#ifdef {predicate}\n"
        f"{text}"
        "#endif\n"
        f"/* ---- end {variant.arch} ---- */\n"
    )
