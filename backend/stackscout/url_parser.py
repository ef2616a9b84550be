"""
Repository URL normalization and parsing.

Turns whatever a user pasted into a ``RepositoryIdentifier``. Each platform is
tried in turn against its web form and, where the platform has one, its SSH
``git@host:owner/repo`` form.
"""

import re
from typing import List, Optional, Pattern, Tuple

from stackscout.errors import ParseFailureReason, UrlParseError
from stackscout.schemas import Platform, RepositoryIdentifier


KNOWN_HOSTS = [
    "github.com",
    "gitlab.com",
    "bitbucket.org",
    "codeberg.org",
    "git.sr.ht",
    "dev.azure.com",
]

# ttps://, tps://, htp://, htps:// and friends
_SCHEME_TYPO = re.compile(r"^h?t{1,2}ps?://", re.IGNORECASE)


def normalize_url(url: str) -> str:
    """
    Repair common protocol typos and add a missing scheme.

    Args:
        url: Raw URL string as typed by the user

    Returns:
        The normalized URL; untouched when nothing needed fixing
    """
    normalized = url.strip()

    if _SCHEME_TYPO.match(normalized) and not normalized.lower().startswith(("http://", "https://")):
        normalized = "https://" + _SCHEME_TYPO.sub("", normalized)

    for host in KNOWN_HOSTS:
        if normalized.startswith(host) or normalized.startswith(f"www.{host}"):
            normalized = f"https://{normalized}"
            break

    return normalized


def _strip_suffixes(url: str) -> str:
    """Drop trailing slashes and a trailing ``.git`` in any order."""
    previous = None
    while previous != url:
        previous = url
        url = url.rstrip("/")
        if url.endswith(".git"):
            url = url[:-4]
    return url


# (pattern, fixed host) - a fixed host of None means the host is captured as group "host"
_Rule = Tuple[Pattern, Optional[str]]

_PLATFORM_PATTERNS: List[Tuple[Platform, List[_Rule]]] = [
    (Platform.GITHUB, [
        (re.compile(r"^https?://(?:www\.)?github\.com/(?P<owner>[^/]+)/(?P<repo>[^/]+)"), "github.com"),
        (re.compile(r"^git@github\.com:(?P<owner>[^/]+)/(?P<repo>[^/]+)"), "github.com"),
    ]),
    (Platform.GITLAB, [
        (re.compile(r"^https?://(?P<host>[^/]*gitlab[^/]*)/(?P<owner>[^/]+)/(?P<repo>[^/]+)"), None),
        (re.compile(r"^git@(?P<host>[^/:]*gitlab[^/:]*):(?P<owner>[^/]+)/(?P<repo>[^/]+)"), None),
    ]),
    (Platform.BITBUCKET, [
        (re.compile(r"^https?://(?:www\.)?bitbucket\.org/(?P<owner>[^/]+)/(?P<repo>[^/]+)"), "bitbucket.org"),
        (re.compile(r"^git@bitbucket\.org:(?P<owner>[^/]+)/(?P<repo>[^/]+)"), "bitbucket.org"),
    ]),
    (Platform.AZURE, [
        (re.compile(r"^https?://dev\.azure\.com/(?P<owner>[^/]+)/(?P<project>[^/]+)/_git/(?P<repo>[^/]+)"),
         "dev.azure.com"),
        (re.compile(r"^https?://(?P<owner>[^./]+)\.visualstudio\.com/(?P<project>[^/]+)/_git/(?P<repo>[^/]+)"),
         "dev.azure.com"),
    ]),
    (Platform.CODEBERG, [
        (re.compile(r"^https?://(?:www\.)?codeberg\.org/(?P<owner>[^/]+)/(?P<repo>[^/]+)"), "codeberg.org"),
        (re.compile(r"^git@codeberg\.org:(?P<owner>[^/]+)/(?P<repo>[^/]+)"), "codeberg.org"),
    ]),
    (Platform.SOURCEHUT, [
        (re.compile(r"^https?://git\.sr\.ht/~(?P<owner>[^/]+)/(?P<repo>[^/]+)"), "git.sr.ht"),
        (re.compile(r"^git@git\.sr\.ht:~(?P<owner>[^/]+)/(?P<repo>[^/]+)"), "git.sr.ht"),
    ]),
]

# Self-hosted Gitea/Forgejo instances have no recognizable host, so this shape
# is only tried when the URL itself names the software.
_GITEA_PATTERN = re.compile(r"^https?://(?P<host>[^/]+)/(?P<owner>[^/]+)/(?P<repo>[^/]+)")
_GITEA_MARKERS = ("gitea", "forgejo")


def _build(platform: Platform, match, fixed_host: Optional[str]) -> RepositoryIdentifier:
    groups = match.groupdict()
    return RepositoryIdentifier(
        platform=platform,
        owner=groups["owner"],
        repo=groups["repo"],
        host=fixed_host or groups["host"],
        project=groups.get("project"),
    )


def parse_repo_url(url) -> RepositoryIdentifier:
    """
    Parse a repository URL into a ``RepositoryIdentifier``.

    Args:
        url: Repository URL in web or SSH form, scheme optional for known hosts

    Returns:
        The parsed identifier

    Raises:
        UrlParseError: If the input is empty/not a string, or matches no
            supported platform shape
    """
    if not isinstance(url, str) or not url.strip():
        raise UrlParseError(ParseFailureReason.EMPTY, url if isinstance(url, str) else "")

    candidate = _strip_suffixes(normalize_url(url))

    for platform, rules in _PLATFORM_PATTERNS:
        for pattern, fixed_host in rules:
            match = pattern.match(candidate)
            if match:
                return _build(platform, match, fixed_host)

    lowered = candidate.lower()
    if any(marker in lowered for marker in _GITEA_MARKERS):
        match = _GITEA_PATTERN.match(candidate)
        if match:
            return _build(Platform.GITEA, match, None)

    raise UrlParseError(ParseFailureReason.UNRECOGNIZED, url)
