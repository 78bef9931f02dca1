"""Compare-link construction for hosted git remotes.

Brief:
  Normalizes a remote URL (ssh or https form) to ``https://host/owner/repo``
  and appends the host-specific compare path. Hosts are handled by small
  provider classes registered by alias; unknown hosts yield None unless a
  provider alias is named explicitly (self-hosted GitHub or Bitbucket).

Inputs:
  - Remote URL strings such as 'git@github.com:org/repo.git'.
  - (from_sha, to_sha) pairs where from_sha is the older commit.

Outputs:
  - Compare URLs as strings, or None when the host is not supported.
"""

from __future__ import annotations

import difflib
import logging
import re
from typing import Dict, Optional, Tuple, Type
from urllib.parse import quote, urlsplit

logger = logging.getLogger(__name__)

_PROTOCOL = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")
_USERINFO = re.compile(r"^[^@/]+@")


def normalize_remote_url(remote: str) -> str:
    """Brief: Convert a git remote URL to an https base URL.

    Inputs:
      - remote: Remote URL in scp-like ssh form, ssh://, git:// or https://.

    Outputs:
      - str: 'https://host/owner/repo' form.

    Example:
      >>> normalize_remote_url("git@github.com:org/repo.git")
      'https://github.com/org/repo'
      >>> normalize_remote_url("https://bitbucket.org/org/repo.git")
      'https://bitbucket.org/org/repo'
    """

    text = remote.strip()
    text = _PROTOCOL.sub("", text)
    text = _USERINFO.sub("", text)
    text = text.rstrip("/")
    if text.endswith(".git"):
        text = text[: -len(".git")]
    text = text.replace(":", "/")
    return f"https://{text}"


class CompareProvider:
    """Base class for host-specific compare-path builders.

    Subclasses set ``hosts`` (host names they serve) and implement
    compare_path(). Aliases come from the ``provider_aliases`` decorator plus
    the snake_case class name without the 'Provider' suffix.
    """

    hosts: Tuple[str, ...] = ()
    aliases: Tuple[str, ...] = ()

    def compare_path(self, from_sha: str, to_sha: str) -> str:
        raise NotImplementedError

    def compare_url(self, base_url: str, from_sha: str, to_sha: str) -> str:
        return f"{base_url}/{self.compare_path(from_sha, to_sha)}"


def provider_aliases(*aliases: str):
    """Brief: Decorator to set registry aliases on a provider class.

    Inputs:
      - *aliases: Alias strings for the provider.

    Outputs:
      - Callable that applies the aliases to the class and returns it.
    """

    def _wrap(cls: type) -> type:
        cls.aliases = tuple(aliases)
        return cls

    return _wrap


@provider_aliases("github", "gh")
class GitHubProvider(CompareProvider):
    hosts = ("github.com",)

    def compare_path(self, from_sha: str, to_sha: str) -> str:
        return f"compare/{from_sha}...{to_sha}"


@provider_aliases("bitbucket", "bb")
class BitbucketProvider(CompareProvider):
    """Bitbucket orders the pair newest first, separated by a carriage return."""

    hosts = ("bitbucket.org",)

    def compare_path(self, from_sha: str, to_sha: str) -> str:
        return "branches/compare/" + quote(f"{to_sha}\r{from_sha}", safe="")


_REGISTRY: Dict[str, Type[CompareProvider]] = {}


def _normalize(alias: str) -> str:
    return alias.strip().lower().replace("-", "_")


def register_provider(cls: Type[CompareProvider]) -> Type[CompareProvider]:
    """Brief: Add a provider class to the alias registry.

    Inputs:
      - cls: CompareProvider subclass.

    Outputs:
      - The class, so this can be used as a decorator.

    Raises:
      - ValueError: When an alias is already claimed by another class.
    """

    name = cls.__name__
    if name.endswith("Provider"):
        name = name[: -len("Provider")]
    claimed = {_normalize(a) for a in cls.aliases}
    claimed.add(_normalize(name))
    for alias in claimed:
        other = _REGISTRY.get(alias)
        if other is not None and other is not cls:
            raise ValueError(
                f"Duplicate provider alias '{alias}' claimed by {cls.__name__} "
                f"and {other.__name__}"
            )
        _REGISTRY[alias] = cls
    return cls


register_provider(GitHubProvider)
register_provider(BitbucketProvider)


def get_provider_class(alias: str) -> Type[CompareProvider]:
    """Brief: Resolve a provider alias to its class.

    Inputs:
      - alias: Provider alias such as 'github' or 'bb'.

    Outputs:
      - CompareProvider subclass.

    Raises:
      - KeyError: Unknown alias, with close-match suggestions.
    """

    key = _normalize(alias)
    try:
        return _REGISTRY[key]
    except KeyError:
        suggestions = difflib.get_close_matches(key, list(_REGISTRY), n=3)
        raise KeyError(
            f"Unknown provider alias '{alias}'. "
            f"Known aliases: {', '.join(sorted(_REGISTRY))}. "
            f"Suggestions: {suggestions}"
        ) from None


def get_provider(host: Optional[str]) -> Optional[CompareProvider]:
    """Return a provider instance serving ``host``, or None."""

    if not host:
        return None
    host = host.lower()
    for cls in set(_REGISTRY.values()):
        if host in cls.hosts:
            return cls()
    return None


def compare_url(
    remote: str, from_sha: str, to_sha: str, provider: Optional[str] = None
) -> Optional[str]:
    """Brief: Build the compare URL between two commits on the remote's host.

    Inputs:
      - remote: Remote URL as configured in git.
      - from_sha: Older commit (closer to the repository root).
      - to_sha: Newer commit.
      - provider: Optional provider alias overriding host matching.

    Outputs:
      - str URL, or None when the host has no provider and none is named.

    Raises:
      - KeyError: When ``provider`` is not a registered alias.

    Example:
      >>> compare_url("git@github.com:org/repo.git", "aaaa111", "bbbb222")
      'https://github.com/org/repo/compare/aaaa111...bbbb222'
      >>> compare_url("git@gitlab.com:org/repo.git", "aaaa111", "bbbb222") is None
      True
      >>> compare_url("git@git.corp.example:org/repo.git", "a1", "b2", provider="gh")
      'https://git.corp.example/org/repo/compare/a1...b2'
    """

    base = normalize_remote_url(remote)
    if provider:
        return get_provider_class(provider)().compare_url(base, from_sha, to_sha)
    host = urlsplit(base).hostname
    matched = get_provider(host)
    if matched is None:
        logger.debug("No compare provider for host %r (remote %r)", host, remote)
        return None
    return matched.compare_url(base, from_sha, to_sha)
