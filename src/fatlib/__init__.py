"""Public package entrypoint for the fat static library builder."""

from .combine import Combiner, LipoTool, merge_archives
from .config import BuildConfig
from .errors import (
    ArchiveMergeError,
    BackendBuildError,
    EmptyCombinedResultError,
    FatlibError,
    FetchError,
    HeaderMismatchError,
    HeaderSetMismatchError,
    IntegrityError,
    MalformedHeaderError,
    PolicyError,
    UnsupportedArchitectureError,
    ValidationError,
)
from .models import (
    ArchitectureBuild,
    ArchiveInput,
    CombinedHeaderSet,
    ConfigHeaderVariant,
    FatArchive,
    HeaderSet,
)
from .pipeline import build_distribution
from .profiles import DEFAULT_RECIPE, PROFILES, BuildTarget, PlatformProfile, SourceRecipe

__all__ = [
    "DEFAULT_RECIPE",
    "PROFILES",
    "ArchitectureBuild",
    "ArchiveInput",
    "ArchiveMergeError",
    "BackendBuildError",
    "BuildConfig",
    "BuildTarget",
    "CombinedHeaderSet",
    "Combiner",
    "ConfigHeaderVariant",
    "EmptyCombinedResultError",
    "FatArchive",
    "FatlibError",
    "FetchError",
    "HeaderMismatchError",
    "HeaderSet",
    "HeaderSetMismatchError",
    "IntegrityError",
    "LipoTool",
    "MalformedHeaderError",
    "PlatformProfile",
    "PolicyError",
    "SourceRecipe",
    "UnsupportedArchitectureError",
    "ValidationError",
    "build_distribution",
    "merge_archives",
]
