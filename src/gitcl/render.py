"""Markdown rendering for changelog sections.

Brief:
  Pure functions that turn release buckets into Keep a Changelog style
  Markdown. Every option is an explicit parameter.

Inputs:
  - CategorizedEntries, ReleaseBucket and LinkRange values.

Outputs:
  - Markdown strings.
"""

from __future__ import annotations

import string
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from .categorized import CategorizedEntries
from .segmentation import HEAD, LinkRange, ReleaseBucket

PREAMBLE = """# Changelog

All notable changes to this project will be documented in this file.

The format is based on [Keep a Changelog](https://keepachangelog.com/en/1.0.0/).
"""

SHORT_SHA = 7


def display_category(category: str) -> str:
    """Brief: Capitalize every word of a category for headings.

    Example:
      >>> display_category("security fixes")
      'Security Fixes'
    """

    return string.capwords(category)


def format_date(date: datetime) -> str:
    return date.strftime("%Y-%m-%d")


def markdown_entries(entries: CategorizedEntries) -> str:
    """Brief: Render category headings and bullet lists.

    Inputs:
      - entries: Categorized entries of one bucket.

    Outputs:
      - str: one '### Category' block per category, lexicographic order.
    """

    out = ""
    for category in entries.categories():
        out += f"\n### {display_category(category)}\n"
        for message in entries[category]:
            out += f"- {message}\n"
    return out


def markdown_unreleased(entries: CategorizedEntries, with_link_ref: bool = False) -> str:
    heading = "## [Unreleased] - now" if with_link_ref else "## Unreleased - now"
    return f"\n{heading}\n" + markdown_entries(entries)


def markdown_release(
    release_id: str,
    date: datetime,
    entries: CategorizedEntries,
    with_link_ref: bool = False,
) -> str:
    label = f"[{release_id}]" if with_link_ref else release_id
    return f"\n## {label} - {format_date(date)}\n" + markdown_entries(entries)


def markdown_bucket(bucket: ReleaseBucket, with_link_ref: bool = False) -> str:
    """Brief: Render one bucket as a level-2 section.

    Inputs:
      - bucket: Closed release bucket.
      - with_link_ref: Wrap the label in brackets so it resolves against the
        link reference lines at the end of the document.

    Outputs:
      - str Markdown section starting with a blank line.
    """

    if bucket.date is None:
        return markdown_unreleased(bucket.entries, with_link_ref=with_link_ref)
    return markdown_release(
        bucket.release_id, bucket.date, bucket.entries, with_link_ref=with_link_ref
    )


def short_sha(sha: str) -> str:
    if sha == HEAD:
        return sha
    return sha[:SHORT_SHA]


def link_reference_lines(
    ranges: Iterable[LinkRange],
    url_for: Callable[[str, str], Optional[str]],
) -> List[str]:
    """Brief: Render '[label]: url' lines for every link range.

    Inputs:
      - ranges: Link ranges in emission order.
      - url_for: Callable(older_sha, newer_sha) -> URL or None, typically a
        functools.partial over compare.compare_url.

    Outputs:
      - list[str]: one line per range whose URL could be built.

    Notes:
      - A range runs from its newer bound (from_sha) to its older bound
        (to_sha), so the compare URL is built from to_sha to from_sha.
    """

    lines: List[str] = []
    for rng in ranges:
        url = url_for(short_sha(rng.to_sha), short_sha(rng.from_sha))
        if url is None:
            continue
        lines.append(f"[{rng.label}]: {url}")
    return lines


def render_document(
    buckets: Iterable[ReleaseBucket],
    link_lines: Iterable[str] = (),
    preamble: bool = True,
    with_link_ref: bool = True,
) -> str:
    """Brief: Render the complete changelog document.

    Inputs:
      - buckets: Buckets in emission order.
      - link_lines: Pre-rendered link reference lines.
      - preamble: Include the '# Changelog' header block.
      - with_link_ref: Bracket release labels in headings.

    Outputs:
      - str Markdown document ending with a newline.
    """

    parts: List[str] = []
    if preamble:
        parts.append(PREAMBLE)
    for bucket in buckets:
        parts.append(markdown_bucket(bucket, with_link_ref=with_link_ref))
    links = list(link_lines)
    if links:
        parts.append("\n" + "\n".join(links) + "\n")
    return "".join(parts)
