"""Platform profiles and the pinned source recipe."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal

from fatlib.errors import ValidationError

Sdk = Literal["macosx", "iphoneos", "iphonesimulator"]


@dataclass(frozen=True, slots=True)
class BuildTarget:
    arch: str
    configure_target: str
    sdk: Sdk
    cflags: tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class PlatformProfile:
    name: str
    targets: tuple[BuildTarget, ...]
    host_system: str = "Darwin"

    @property
    def archs(self) -> tuple[str, ...]:
        return tuple(target.arch for target in self.targets)


@dataclass(frozen=True, slots=True)
class SourceRecipe:
    name: str
    version: str
    url: str
    sha256: str
    libraries: tuple[str, ...] = ("libcrypto", "libssl")
    config_header: str = "configuration.h"
    configure_options: tuple[str, ...] = ("no-shared", "no-tests")

    @property
    def archive_name(self) -> str:
        return self.url.rsplit("/", 1)[-1]


DEFAULT_RECIPE = SourceRecipe(
    name="openssl",
    version="3.0.13",
    url="https://github.com/openssl/openssl/releases/download/openssl-3.0.13/openssl-3.0.13.tar.gz",
    sha256="88525753f79d3bec27d2fa7c66aa0b92b3aa9498dafd93d7cfa4b3780cdae313",
)

MACOS_MIN_VERSION = "11.0"
IOS_MIN_VERSION = "13.0"

# arm64 first: target order fixes the #ifdef order of the combined header.
PROFILES: dict[str, PlatformProfile] = {
    "macos": PlatformProfile(
        name="macos",
        targets=(
            BuildTarget(
                arch="arm64",
                configure_target="darwin64-arm64-cc",
                sdk="macosx",
                cflags=(f"-mmacosx-version-min={MACOS_MIN_VERSION}",),
            ),
            BuildTarget(
                arch="x86_64",
                configure_target="darwin64-x86_64-cc",
                sdk="macosx",
                cflags=(f"-mmacosx-version-min={MACOS_MIN_VERSION}",),
            ),
        ),
    ),
    "ios": PlatformProfile(
        name="ios",
        targets=(
            BuildTarget(
                arch="arm64",
                configure_target="ios64-xcrun",
                sdk="iphoneos",
                cflags=(f"-mios-version-min={IOS_MIN_VERSION}",),
            ),
            BuildTarget(
                arch="x86_64",
                configure_target="iossimulator-xcrun",
                sdk="iphonesimulator",
                cflags=("-arch", "x86_64", f"-mios-simulator-version-min={IOS_MIN_VERSION}"),
            ),
        ),
    ),
}


def get_profile(name: str) -> PlatformProfile:
    try:
        return PROFILES[name]
    except KeyError:
        raise ValidationError(
            f"Unknown platform profile {name!r}.",
            context={"available": ", ".join(sorted(PROFILES))},
        ) from None
