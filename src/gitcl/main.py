from __future__ import annotations

import argparse
import functools
import logging
import sys
from typing import List, Optional, TextIO

from .commits import CommitRecord
from .compare import compare_url
from .config.config_parser import Settings, parse_config_file, resolve_config_path
from .config.logging_config import init_logging
from .git import GitError, GitShell
from .render import link_reference_lines, markdown_bucket, render_document
from .segmentation import (
    Segmentation,
    find_release,
    latest_release,
    segment,
    unreleased,
)

logger = logging.getLogger("gitcl.main")


def build_parser() -> argparse.ArgumentParser:
    """Brief: Build the git-cl argument parser.

    Inputs:
      - None.

    Outputs:
      - argparse.ArgumentParser with one subparser per command.
    """

    parser = argparse.ArgumentParser(
        prog="git-cl",
        description="Generate a Keep a Changelog style document from commit annotations",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config (default: ./.git-cl.yaml when present)",
    )
    parser.add_argument(
        "--log-level",
        "-l",
        choices=["debug", "info", "warn", "error", "crit"],
        default=None,
        help="Logging level (overrides config)",
    )
    parser.add_argument(
        "-C",
        dest="directory",
        default=None,
        help="Run as if git-cl was started in this directory",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    def _with_pre(p: argparse.ArgumentParser) -> argparse.ArgumentParser:
        p.add_argument(
            "-p",
            "--pre",
            action="store_true",
            default=None,
            help="Include pre-releases in the output",
        )
        return p

    full = _with_pre(
        sub.add_parser("full", help="All unreleased and released changes")
    )
    full.add_argument(
        "--no-links",
        dest="links",
        action="store_false",
        default=None,
        help="Omit compare link references",
    )
    _with_pre(sub.add_parser("unreleased", help="Changes since the latest release"))
    _with_pre(sub.add_parser("latest", help="Changes of the latest release"))
    released = _with_pre(
        sub.add_parser("released", help="Changes of one specific release")
    )
    released.add_argument("release_id", help="Release label, e.g. v1.2.0")
    sub.add_parser("commits", help="Commits that carry changelog entries")
    return parser


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Brief: Fold CLI flags over config-file settings.

    Inputs:
      - settings: Settings loaded from config.
      - args: Parsed CLI namespace.

    Outputs:
      - New Settings with CLI values taking precedence.
    """

    log_update = {}
    if args.log_level:
        log_update["level"] = args.log_level
    cl_update = {}
    if getattr(args, "pre", None) is not None:
        cl_update["include_prereleases"] = args.pre
    if getattr(args, "links", None) is not None:
        cl_update["link_references"] = args.links
    return settings.model_copy(
        update={
            "logging": settings.logging.model_copy(update=log_update),
            "changelog": settings.changelog.model_copy(update=cl_update),
        }
    )


def full_link_lines(
    shell: GitShell, settings: Settings, segmentation: Segmentation
) -> List[str]:
    """Brief: Build compare link lines for every tracked range.

    Inputs:
      - shell: GitShell used to resolve the remote URL.
      - settings: Effective settings.
      - segmentation: Result of the segmentation pass.

    Outputs:
      - list[str]; empty when links are disabled, there is nothing to link,
        or the remote host has no compare provider.

    Raises:
      - GitError: When git fails while reading the remote or the remote has
        no URL configured.
    """

    if not settings.changelog.link_references or not segmentation.ranges:
        return []
    remote = shell.find_remote_origin_url(settings.git.remote)
    if remote is None:
        raise GitError(
            f"Remote {settings.git.remote!r} has no URL configured; "
            "use --no-links to skip link references"
        )
    lines = link_reference_lines(
        segmentation.ranges,
        functools.partial(compare_url, remote, provider=settings.git.provider),
    )
    if not lines:
        logger.warning(
            "No compare URL format known for remote %s; omitting link references "
            "(set git.provider for self-hosted instances)",
            remote,
        )
    return lines


def run_full(
    shell: GitShell, settings: Settings, segmentation: Segmentation, out: TextIO
) -> int:
    links = full_link_lines(shell, settings, segmentation)
    out.write(
        render_document(
            segmentation.buckets,
            link_lines=links,
            preamble=settings.changelog.preamble,
            with_link_ref=settings.changelog.link_references,
        )
    )
    return 0


def run_unreleased(segmentation: Segmentation, out: TextIO) -> int:
    bucket = unreleased(segmentation)
    if bucket is not None:
        out.write(markdown_bucket(bucket))
    return 0


def run_latest(segmentation: Segmentation, out: TextIO) -> int:
    bucket = latest_release(segmentation)
    if bucket is None:
        logger.error("No release found in history")
        return 1
    out.write(markdown_bucket(bucket))
    return 0


def run_released(segmentation: Segmentation, release_id: str, out: TextIO) -> int:
    bucket = find_release(segmentation, release_id)
    if bucket is None:
        logger.error("Release %s not found in history", release_id)
        return 1
    out.write(markdown_bucket(bucket))
    return 0


def run_commits(commits: List[CommitRecord], out: TextIO) -> int:
    for commit in commits:
        if commit.entries:
            out.write(commit.short_summary() + "\n")
    return 0


def main(argv: List[str] | None = None, out: Optional[TextIO] = None) -> int:
    """
    Main entry point for git-cl.
    Parses arguments, loads configuration, reads history and prints Markdown.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).
        out: Stream receiving the generated output (defaults to sys.stdout).

    Returns:
        An exit code: 0 on success, 1 on config/git failure or unknown
        release.

    Example use:
        CLI:
            git-cl full --pre > CHANGELOG.md
            PYTHONPATH=src python -m gitcl.main unreleased
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    out = out or sys.stdout

    try:
        config_path = resolve_config_path(args.config, cwd=args.directory)
        settings = _apply_overrides(parse_config_file(config_path), args)
    except (OSError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return 1

    init_logging(settings.logging.model_dump())
    if config_path:
        logger.info("Loaded config from %s", config_path)

    shell = GitShell(binary=settings.git.binary, cwd=args.directory)
    try:
        commits = shell.commits(settings.git.rev)
        segmentation = segment(
            commits, include_prereleases=settings.changelog.include_prereleases
        )
        logger.info(
            "Segmented %d commits into %d buckets",
            len(commits),
            len(segmentation.buckets),
        )

        if args.command == "full":
            return run_full(shell, settings, segmentation, out)
        if args.command == "unreleased":
            return run_unreleased(segmentation, out)
        if args.command == "latest":
            return run_latest(segmentation, out)
        if args.command == "released":
            return run_released(segmentation, args.release_id, out)
        return run_commits(commits, out)
    except GitError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())  # pragma: no cover
