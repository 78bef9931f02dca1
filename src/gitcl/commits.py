"""Commit records and changelog annotation parsing.

Brief:
  Immutable records describing one git commit together with the changelog
  annotations found in its message, and the parser that extracts them.

Inputs:
  - Raw commit fields (sha, date, summary, body) as produced by ``git log``.

Outputs:
  - CommitRecord values consumed by the segmentation engine.

Message format:
  Every line of the message (summary and body) is inspected:

    [added] Support for widgets
    [fixed] - Crash when the widget list is empty
    [release] v1.2.0

  A ``[release]`` line marks the commit as a release point. Any other bracket
  tag is an entry category, kept verbatim.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

RELEASE_TAG = "release"

_TAG_LINE = re.compile(r"^\s*\[(?P<tag>[^\[\]]+)\]\s*(?:-\s*)?(?P<text>.*?)\s*$")

# Semantic version with a pre-release component, e.g. 1.2.0-rc.1 or v2.0.0-beta
_PRERELEASE = re.compile(
    r"^v?\d+\.\d+\.\d+-[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*(?:\+[0-9A-Za-z.-]+)?$"
)


@dataclass(frozen=True)
class ChangelogEntry:
    """One categorized change description attached to a commit.

    Inputs:
      - category: Category label as written in the commit (e.g. 'added').
      - message: Free-text description of the change.

    Outputs:
      - Immutable entry value.
    """

    category: str
    message: str


@dataclass(frozen=True)
class ReleaseMarker:
    """Release point declared by a commit.

    Inputs:
      - release_id: Version label (e.g. 'v1.2.0').
      - is_prerelease: True when the label is a pre-release version.

    Outputs:
      - Immutable marker value.
    """

    release_id: str
    is_prerelease: bool = False


@dataclass(frozen=True)
class CommitRecord:
    """One git commit with its parsed changelog annotations.

    Inputs:
      - sha: Full commit SHA.
      - summary: First line of the commit message.
      - date: Commit timestamp (timezone-aware).
      - body: Remaining message text after the summary.
      - entries: Changelog entries found in the message, in message order.
      - release: Optional release marker.

    Outputs:
      - Immutable record; never modified once read from git.
    """

    sha: str
    summary: str
    date: datetime
    body: str = ""
    entries: Tuple[ChangelogEntry, ...] = field(default_factory=tuple)
    release: Optional[ReleaseMarker] = None

    def release_marker(self, include_prereleases: bool) -> Optional[ReleaseMarker]:
        """Brief: Return the release marker visible under the pre-release policy.

        Inputs:
          - include_prereleases: When False, pre-release markers are hidden.

        Outputs:
          - ReleaseMarker or None.
        """

        if self.release is None:
            return None
        if self.release.is_prerelease and not include_prereleases:
            return None
        return self.release

    def short_summary(self) -> str:
        return f"{self.sha[:6]} {self.summary}"


def is_prerelease(release_id: str) -> bool:
    """Brief: Decide whether a release label is a semantic pre-release version.

    Inputs:
      - release_id: Release label such as 'v1.0.0' or '1.0.0-rc.1'.

    Outputs:
      - bool: True when the label has a pre-release suffix.

    Example:
      >>> is_prerelease("1.0.0-rc.1")
      True
      >>> is_prerelease("v1.0.0")
      False
    """

    return bool(_PRERELEASE.match(release_id.strip()))


def parse_message(
    lines: Iterable[str],
) -> Tuple[Tuple[ChangelogEntry, ...], Optional[ReleaseMarker]]:
    """Brief: Extract changelog entries and a release marker from message lines.

    Inputs:
      - lines: Commit message lines (summary first).

    Outputs:
      - (entries, release): entries in message order and the first release
        marker found, or None.

    Notes:
      - Lines without a bracket tag or with an empty text part are ignored.
      - Only the first ``[release]`` line counts; later ones are ignored.
    """

    entries: List[ChangelogEntry] = []
    release: Optional[ReleaseMarker] = None
    for line in lines:
        m = _TAG_LINE.match(line)
        if not m:
            continue
        tag = m.group("tag").strip()
        text = m.group("text")
        if not tag or not text:
            continue
        if tag.lower() == RELEASE_TAG:
            if release is None:
                release_id = text.split()[0]
                release = ReleaseMarker(
                    release_id=release_id, is_prerelease=is_prerelease(release_id)
                )
            continue
        entries.append(ChangelogEntry(category=tag, message=text))
    return tuple(entries), release


def build_commit(sha: str, date: datetime, summary: str, body: str = "") -> CommitRecord:
    """Brief: Build a CommitRecord, parsing annotations from summary and body.

    Inputs:
      - sha: Full commit SHA.
      - date: Commit timestamp.
      - summary: First message line.
      - body: Rest of the message.

    Outputs:
      - CommitRecord with entries and release populated.
    """

    entries, release = parse_message([summary, *body.splitlines()])
    return CommitRecord(
        sha=sha,
        summary=summary,
        date=date,
        body=body,
        entries=entries,
        release=release,
    )
