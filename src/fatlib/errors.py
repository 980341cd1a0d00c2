"""Typed error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across the pipeline."""

    VALIDATION = "E_VALIDATION"
    POLICY = "E_POLICY"
    INTEGRITY = "E_INTEGRITY"
    FETCH = "E_FETCH"
    BACKEND_BUILD = "E_BACKEND_BUILD"
    MALFORMED_HEADER = "E_MALFORMED_HEADER"
    EMPTY_COMBINED_RESULT = "E_EMPTY_COMBINED_RESULT"
    UNSUPPORTED_ARCHITECTURE = "E_UNSUPPORTED_ARCHITECTURE"
    HEADER_MISMATCH = "E_HEADER_MISMATCH"
    HEADER_SET_MISMATCH = "E_HEADER_SET_MISMATCH"
    ARCHIVE_MERGE = "E_ARCHIVE_MERGE"


class FatlibError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ValidationError(FatlibError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.VALIDATION, hint=hint, context=context)


class PolicyError(FatlibError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.POLICY, hint=hint, context=context)


class IntegrityError(FatlibError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.INTEGRITY, hint=hint, context=context)


class FetchError(FatlibError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.FETCH, hint=hint, context=context)


class BackendBuildError(FatlibError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.BACKEND_BUILD, hint=hint, context=context)


class MalformedHeaderError(FatlibError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.MALFORMED_HEADER, hint=hint, context=context)


class EmptyCombinedResultError(FatlibError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message, code=ErrorCode.EMPTY_COMBINED_RESULT, hint=hint, context=context
        )


class UnsupportedArchitectureError(FatlibError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message, code=ErrorCode.UNSUPPORTED_ARCHITECTURE, hint=hint, context=context
        )


class HeaderMismatchError(FatlibError):
    """A header differs between per-architecture builds."""

    filename: str

    def __init__(
        self,
        message: str,
        *,
        filename: str,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.HEADER_MISMATCH,
            hint=hint,
            context={"filename": filename, **(context or {})},
        )
        self.filename = filename


class HeaderSetMismatchError(FatlibError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.HEADER_SET_MISMATCH, hint=hint, context=context)


class ArchiveMergeError(FatlibError):
    """The archive tool failed to produce a fat archive for ``library``."""

    library: str

    def __init__(
        self,
        message: str,
        *,
        library: str,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.ARCHIVE_MERGE,
            hint=hint,
            context={"library": library, **(context or {})},
        )
        self.library = library


__all__ = [
    "ArchiveMergeError",
    "BackendBuildError",
    "EmptyCombinedResultError",
    "ErrorCode",
    "FatlibError",
    "HeaderMismatchError",
    "HeaderSetMismatchError",
    "IntegrityError",
    "MalformedHeaderError",
    "PolicyError",
    "UnsupportedArchitectureError",
    "ValidationError",
]
