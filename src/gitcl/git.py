"""Git command wrapper supplying commit records to the changelog builder.

Brief:
  Runs the ``git`` binary, reads the full log newest-first and turns each
  commit into a CommitRecord with its changelog annotations parsed.

Inputs:
  - Repository working directory and git binary name.

Outputs:
  - List[CommitRecord] ordered newest to oldest.
  - Remote URL strings.

Raises:
  - GitError: On a missing binary, a non-zero git exit (for example outside a
    repository) or log output that cannot be parsed. Nothing is returned
    partially.
"""

from __future__ import annotations

import logging
import subprocess
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from .commits import CommitRecord, build_commit

logger = logging.getLogger(__name__)

_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"

# sha, committer date (strict ISO 8601), subject, body
LOG_FORMAT = _FIELD_SEP.join(["%H", "%cI", "%s", "%b"]) + _RECORD_SEP


class GitError(RuntimeError):
    """Raised when git cannot be run or its output cannot be used."""


Runner = Callable[..., "subprocess.CompletedProcess[str]"]


class GitShell:
    """Thin wrapper over the git CLI.

    Inputs:
      - binary: git executable name or path (default 'git').
      - cwd: Working directory; None uses the process cwd.
      - runner: subprocess.run compatible callable, replaceable in tests.

    Example:
      >>> shell = GitShell(cwd=".")
      >>> commits = shell.commits()  # doctest: +SKIP
    """

    def __init__(
        self,
        binary: str = "git",
        cwd: Optional[str] = None,
        runner: Runner = subprocess.run,
    ) -> None:
        self.binary = binary
        self.cwd = cwd
        self._runner = runner

    def _run(self, args: Sequence[str]) -> subprocess.CompletedProcess:
        cmd = [self.binary, *args]
        logger.debug("Running %s (cwd=%s)", cmd, self.cwd or ".")
        try:
            return self._runner(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                cwd=self.cwd,
            )
        except FileNotFoundError as exc:
            raise GitError(f"git binary {self.binary!r} not found") from exc

    def _check(self, args: Sequence[str]) -> str:
        result = self._run(args)
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise GitError(
                f"git {' '.join(args)} failed with exit code {result.returncode}: {stderr}"
            )
        return result.stdout or ""

    def commits(self, rev: str = "HEAD") -> List[CommitRecord]:
        """Brief: Read every commit reachable from rev, newest first.

        Inputs:
          - rev: Revision to start the log from (default 'HEAD').

        Outputs:
          - List[CommitRecord]; empty when HEAD is an unborn branch.

        Raises:
          - GitError: When git fails, rev does not name a commit, or a record
            is malformed.
        """

        if not self._has_commits(rev):
            logger.info("No commits reachable from %s", rev)
            return []
        raw = self._check(["log", "--no-color", f"--format={LOG_FORMAT}", rev])
        commits = parse_log(raw)
        logger.info("Read %d commits from %s", len(commits), rev)
        return commits

    def _has_commits(self, rev: str) -> bool:
        # 'git log' on an unborn branch exits non-zero; only HEAD pointing at a
        # branch with no commits yet counts as empty history.
        result = self._run(["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"])
        if result.returncode == 0:
            return True
        self._check(["rev-parse", "--git-dir"])
        if rev == "HEAD" and self._run(["symbolic-ref", "-q", "HEAD"]).returncode == 0:
            return False
        raise GitError(f"unknown revision {rev}")

    def find_remote_origin_url(self, remote: str = "origin") -> Optional[str]:
        """Brief: Return the configured URL of a remote.

        Inputs:
          - remote: Remote name (default 'origin').

        Outputs:
          - str URL, or None when the remote has no URL configured.
        """

        result = self._run(["config", "--get", f"remote.{remote}.url"])
        if result.returncode == 1:
            return None
        if result.returncode != 0:
            raise GitError(
                f"git config failed with exit code {result.returncode}: "
                f"{(result.stderr or '').strip()}"
            )
        url = (result.stdout or "").strip()
        return url or None


def parse_log(raw: str) -> List[CommitRecord]:
    """Brief: Parse ``git log --format=LOG_FORMAT`` output.

    Inputs:
      - raw: Log output, records separated by 0x1e, fields by 0x1f.

    Outputs:
      - List[CommitRecord] in log order.

    Raises:
      - GitError: On a record with the wrong field count or a bad date.
    """

    commits: List[CommitRecord] = []
    for chunk in raw.split(_RECORD_SEP):
        record = chunk.strip("\n")
        if not record.strip():
            continue
        parts = record.split(_FIELD_SEP)
        if len(parts) != 4:
            raise GitError(f"Malformed git log record: {record[:80]!r}")
        sha, date_text, summary, body = parts
        try:
            date = datetime.fromisoformat(date_text.strip().replace("Z", "+00:00"))
        except ValueError as exc:
            raise GitError(f"Commit {sha}: unparseable date {date_text!r}") from exc
        commits.append(build_commit(sha.strip(), date, summary, body.strip("\n")))
    return commits
