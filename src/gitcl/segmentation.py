"""Release segmentation engine for git-cl.

Brief:
  Walks commits newest-first in a single pass, cuts the history into release
  buckets at every visible release marker, accumulates categorized entries per
  bucket, and records the SHA range bounding each bucket for compare links.

Inputs:
  - Sequence of CommitRecord ordered newest to oldest.
  - include_prereleases flag.

Outputs:
  - Segmentation: buckets and link ranges, both in emission order (newest
    release first, 'Unreleased' leading).

Behaviour:
  The walk is a two-state machine. With no pending release, the first marker
  closes the 'Unreleased' bucket with range ('HEAD', marker sha). With a
  pending release, the next marker closes that release with range
  (pending sha, marker sha). The marker commit then becomes the pending
  release and its own entries start the new bucket. When commits run out the
  open bucket closes against the last visited sha.

  The engine performs no I/O and never raises on well-formed records.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple, Union

from .categorized import CategorizedEntries
from .commits import CommitRecord

UNRELEASED = "Unreleased"
HEAD = "HEAD"


@dataclass(frozen=True)
class ReleaseBucket:
    """One closed release section.

    Inputs:
      - release_id: Release label, or 'Unreleased' for the open head.
      - date: Date of the release commit; None for 'Unreleased'.
      - entries: Entries collected since the previous boundary.
      - from_sha: Newer bound of the range ('HEAD' for 'Unreleased').
      - to_sha: Older bound of the range.

    Outputs:
      - Immutable bucket handed to the renderer and link builder.
    """

    release_id: str
    date: Optional[datetime]
    entries: CategorizedEntries
    from_sha: str
    to_sha: str

    @property
    def is_unreleased(self) -> bool:
        return self.date is None and self.release_id == UNRELEASED


@dataclass(frozen=True)
class LinkRange:
    """Label and SHA pair for one compare link, in bucket emission order."""

    label: str
    from_sha: str
    to_sha: str


@dataclass(frozen=True)
class Segmentation:
    """Result of one segmentation pass.

    Inputs:
      - buckets: Closed buckets, newest first.
      - ranges: Link ranges, same order as buckets.

    Outputs:
      - Immutable result value.
    """

    buckets: Tuple[ReleaseBucket, ...]
    ranges: Tuple[LinkRange, ...]


@dataclass(frozen=True)
class NoPendingRelease:
    """State before any visible release marker has been seen."""


@dataclass(frozen=True)
class PendingRelease:
    """State after a release marker: that release is the open bucket."""

    release_id: str
    date: datetime
    sha: str


State = Union[NoPendingRelease, PendingRelease]


class SegmentationEngine:
    """Single-use accumulator driving the release state machine.

    Inputs:
      - include_prereleases: When False, pre-release markers are ignored as
        if absent; their commits' entries still accumulate.

    Outputs:
      - finish() returns the Segmentation for all commits fed via step().

    Example:
      >>> from datetime import datetime, timezone
      >>> from gitcl.commits import build_commit
      >>> when = datetime(2024, 1, 2, tzinfo=timezone.utc)
      >>> engine = SegmentationEngine()
      >>> engine.step(build_commit("c3", when, "[fixed] bug A"))
      >>> engine.step(build_commit("c2", when, "[release] v1.0.0"))
      >>> engine.step(build_commit("c1", when, "[added] feature B"))
      >>> [(b.release_id, b.from_sha, b.to_sha) for b in engine.finish().buckets]
      [('Unreleased', 'HEAD', 'c2'), ('v1.0.0', 'c2', 'c1')]
    """

    def __init__(self, include_prereleases: bool = False) -> None:
        self.include_prereleases = include_prereleases
        self.state: State = NoPendingRelease()
        self.current = CategorizedEntries()
        self.last_sha: Optional[str] = None
        self._buckets: List[ReleaseBucket] = []
        self._ranges: List[LinkRange] = []

    def step(self, commit: CommitRecord) -> None:
        """Brief: Apply one commit to the state machine.

        Inputs:
          - commit: Next commit, older than every commit seen so far.

        Outputs:
          - None; may close and record one bucket.
        """

        marker = commit.release_marker(self.include_prereleases)
        if marker is not None:
            self._close(commit.sha)
            self.state = PendingRelease(
                release_id=marker.release_id, date=commit.date, sha=commit.sha
            )

        for entry in commit.entries:
            self.current.upsert_append(entry.category, entry.message)
        self.last_sha = commit.sha

    def finish(self) -> Segmentation:
        """Brief: Close the open bucket and return the full segmentation.

        Inputs:
          - None.

        Outputs:
          - Segmentation; empty when no commit was fed.
        """

        if self.last_sha is not None:
            self._close(self.last_sha)
            self.last_sha = None
        return Segmentation(buckets=tuple(self._buckets), ranges=tuple(self._ranges))

    def _close(self, to_sha: str) -> None:
        state = self.state
        if isinstance(state, PendingRelease):
            bucket = ReleaseBucket(
                release_id=state.release_id,
                date=state.date,
                entries=self.current,
                from_sha=state.sha,
                to_sha=to_sha,
            )
        else:
            bucket = ReleaseBucket(
                release_id=UNRELEASED,
                date=None,
                entries=self.current,
                from_sha=HEAD,
                to_sha=to_sha,
            )
        self._buckets.append(bucket)
        self._ranges.append(
            LinkRange(label=bucket.release_id, from_sha=bucket.from_sha, to_sha=to_sha)
        )
        self.current = CategorizedEntries()


def segment(
    commits: Sequence[CommitRecord], include_prereleases: bool = False
) -> Segmentation:
    """Brief: Segment newest-first commits into release buckets.

    Inputs:
      - commits: Commit records ordered newest to oldest.
      - include_prereleases: Whether pre-release markers close buckets.

    Outputs:
      - Segmentation with buckets and link ranges in emission order.
    """

    engine = SegmentationEngine(include_prereleases=include_prereleases)
    for commit in commits:
        engine.step(commit)
    return engine.finish()


def unreleased(segmentation: Segmentation) -> Optional[ReleaseBucket]:
    """Return the leading 'Unreleased' bucket, or None for empty history."""

    for bucket in segmentation.buckets:
        if bucket.is_unreleased:
            return bucket
    return None


def latest_release(segmentation: Segmentation) -> Optional[ReleaseBucket]:
    """Return the newest concrete release bucket, or None when none exist."""

    for bucket in segmentation.buckets:
        if not bucket.is_unreleased:
            return bucket
    return None


def find_release(segmentation: Segmentation, release_id: str) -> Optional[ReleaseBucket]:
    for bucket in segmentation.buckets:
        if not bucket.is_unreleased and bucket.release_id == release_id:
            return bucket
    return None
