"""Command line entrypoint: build the distribution for one platform profile."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path
from typing import NoReturn

from fatlib.config import BuildConfig
from fatlib.errors import FatlibError
from fatlib.pipeline import build_distribution, clean_profile, pipeline_log_path
from fatlib.profiles import DEFAULT_RECIPE, PROFILES, SourceRecipe


class _ArgumentParser(argparse.ArgumentParser):
    """Reports usage errors with exit status 1, like every other failure."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = _ArgumentParser(
        prog="fatlib",
        description="Build fat static OpenSSL libraries for a platform profile",
    )
    parser.add_argument("profile",
                        choices=sorted(PROFILES),
                        help="platform profile to build")
    parser.add_argument("--work-dir",
                        type=Path,
                        help="directory for downloads, sources, builds and logs (default: build)")
    parser.add_argument("--dist-dir",
                        type=Path,
                        help="directory the distribution is published to (default: dist)")
    parser.add_argument("-j", "--jobs",
                        type=int,
                        help="parallel make jobs (default: number of CPUs)")
    parser.add_argument("--offline",
                        action="store_true",
                        default=None,
                        help="never download; the source archive must already be cached")
    parser.add_argument("--source-url",
                        help="override the pinned source archive URL (requires --sha256)")
    parser.add_argument("--sha256",
                        help="sha256 of the source archive given with --source-url")
    parser.add_argument("--clean",
                        action="store_true",
                        help="remove the profile's previous build tree first")
    parser.add_argument("-v", "--verbose",
                        action="store_true",
                        help="verbose output")
    args = parser.parse_args(argv)
    if (args.source_url is None) != (args.sha256 is None):
        parser.error("--source-url and --sha256 must be given together")
    if args.jobs is not None and args.jobs < 1:
        parser.error("--jobs must be at least 1")
    return args


def recipe_from_args(args: argparse.Namespace) -> SourceRecipe:
    if args.source_url is None:
        return DEFAULT_RECIPE
    return replace(DEFAULT_RECIPE, url=args.source_url, sha256=args.sha256)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(levelname).1s:%(message)s", stream=sys.stdout)

    try:
        config = BuildConfig.from_env().with_overrides(
            work_dir=args.work_dir,
            dist_dir=args.dist_dir,
            jobs=args.jobs,
            offline=args.offline,
        )
    except FatlibError as exc:
        logging.error("%s [%s]", exc, exc.code)
        return 1

    try:
        if args.clean:
            clean_profile(config, args.profile)
        result = build_distribution(args.profile, config=config, recipe=recipe_from_args(args))
    except FatlibError as exc:
        logging.error("%s [%s]", exc, exc.code)
        logging.error("Diagnostics: %s", pipeline_log_path(config, args.profile))
        return 1

    logging.info("Distribution ready: %s", result.root)
    for archive in result.archives:
        logging.info("  %s (%s)", archive.path, ", ".join(archive.archs))
    return 0


if __name__ == "__main__":
    sys.exit(main())
