"""
Per-platform adapters.

Each supported hosting platform is described by one static ``PlatformAdapter``
holding the functions that differ between platforms: endpoint construction,
the shape of the authentication header, and decoding of the tree listing.
Adapters are selected by looking up ``RepositoryIdentifier.platform`` in
``PLATFORM_ADAPTERS``.
"""

import base64
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from urllib.parse import quote

from stackscout.config import get_platform_token
from stackscout.errors import UpstreamError
from stackscout.schemas import Platform, RepositoryIdentifier


@dataclass(frozen=True)
class PlatformAdapter:
    """Strategy record for one hosting platform."""
    platform: Platform
    name: str
    token_env_var: str
    tree_endpoint: Callable[[RepositoryIdentifier], str]
    raw_file_endpoint: Callable[[RepositoryIdentifier, str], str]
    auth_header: Callable[[str], Dict[str, str]]
    decode_tree: Callable[[Any], List[str]]
    is_truncated: Callable[[Any, Mapping[str, str]], bool]


# Authentication header shapes

def bearer_auth(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def private_token_auth(token: str) -> Dict[str, str]:
    return {"PRIVATE-TOKEN": token}


def basic_pat_auth(token: str) -> Dict[str, str]:
    """Azure DevOps personal access token: empty user name, token as password."""
    encoded = base64.b64encode(f":{token}".encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {encoded}"}


# Tree decoders

def _paths_from(items: Any, key: str, platform_name: str) -> List[str]:
    if not isinstance(items, list):
        raise UpstreamError(f"{platform_name} returned an unexpected tree listing", platform=platform_name)
    paths = []
    for item in items:
        if isinstance(item, dict) and isinstance(item.get(key), str) and item[key]:
            paths.append(item[key])
    return paths


def _decode_under(field: str, key: str, platform_name: str, strip_slash: bool = False):
    def decode(payload: Any) -> List[str]:
        if not isinstance(payload, dict):
            raise UpstreamError(f"{platform_name} returned an unexpected tree listing", platform=platform_name)
        paths = _paths_from(payload.get(field, []), key, platform_name)
        if strip_slash:
            paths = [p.lstrip("/") for p in paths]
            paths = [p for p in paths if p]
        return paths
    return decode


def _decode_bare_array(platform_name: str):
    def decode(payload: Any) -> List[str]:
        return _paths_from(payload, "path", platform_name)
    return decode


# Truncation detectors

def _truncated_flag(payload: Any, headers: Mapping[str, str]) -> bool:
    return isinstance(payload, dict) and bool(payload.get("truncated"))


def _next_page_header(payload: Any, headers: Mapping[str, str]) -> bool:
    return bool(headers.get("x-next-page", "").strip())


def _next_link(payload: Any, headers: Mapping[str, str]) -> bool:
    return isinstance(payload, dict) and bool(payload.get("next"))


def _never(payload: Any, headers: Mapping[str, str]) -> bool:
    return False


def _gitlab_project_id(r: RepositoryIdentifier) -> str:
    return quote(f"{r.owner}/{r.repo}", safe="")


PLATFORM_ADAPTERS: Dict[Platform, PlatformAdapter] = {
    Platform.GITHUB: PlatformAdapter(
        platform=Platform.GITHUB,
        name="GitHub",
        token_env_var="GITHUB_TOKEN",
        tree_endpoint=lambda r: f"https://api.github.com/repos/{r.owner}/{r.repo}/git/trees/HEAD?recursive=1",
        raw_file_endpoint=lambda r, path: f"https://raw.githubusercontent.com/{r.owner}/{r.repo}/HEAD/{path}",
        auth_header=bearer_auth,
        decode_tree=_decode_under("tree", "path", "GitHub"),
        is_truncated=_truncated_flag,
    ),
    Platform.GITLAB: PlatformAdapter(
        platform=Platform.GITLAB,
        name="GitLab",
        token_env_var="GITLAB_TOKEN",
        tree_endpoint=lambda r: (
            f"https://{r.host}/api/v4/projects/{_gitlab_project_id(r)}"
            f"/repository/tree?recursive=true&per_page=100&ref=HEAD"
        ),
        raw_file_endpoint=lambda r, path: (
            f"https://{r.host}/api/v4/projects/{_gitlab_project_id(r)}"
            f"/repository/files/{quote(path, safe='')}/raw?ref=HEAD"
        ),
        auth_header=private_token_auth,
        decode_tree=_decode_bare_array("GitLab"),
        is_truncated=_next_page_header,
    ),
    Platform.BITBUCKET: PlatformAdapter(
        platform=Platform.BITBUCKET,
        name="Bitbucket",
        token_env_var="BITBUCKET_TOKEN",
        tree_endpoint=lambda r: f"https://api.bitbucket.org/2.0/repositories/{r.owner}/{r.repo}/src/HEAD/?pagelen=100",
        raw_file_endpoint=lambda r, path: f"https://api.bitbucket.org/2.0/repositories/{r.owner}/{r.repo}/src/HEAD/{path}",
        auth_header=bearer_auth,
        decode_tree=_decode_under("values", "path", "Bitbucket"),
        is_truncated=_next_link,
    ),
    Platform.AZURE: PlatformAdapter(
        platform=Platform.AZURE,
        name="Azure DevOps",
        token_env_var="AZURE_DEVOPS_TOKEN",
        tree_endpoint=lambda r: (
            f"https://dev.azure.com/{r.owner}/{r.project}/_apis/git/repositories/{r.repo}"
            f"/items?recursionLevel=Full&api-version=7.0"
        ),
        raw_file_endpoint=lambda r, path: (
            f"https://dev.azure.com/{r.owner}/{r.project}/_apis/git/repositories/{r.repo}"
            f"/items?path={quote(path, safe='')}&api-version=7.0"
        ),
        auth_header=basic_pat_auth,
        decode_tree=_decode_under("value", "path", "Azure DevOps", strip_slash=True),
        is_truncated=_never,
    ),
    Platform.CODEBERG: PlatformAdapter(
        platform=Platform.CODEBERG,
        name="Codeberg",
        token_env_var="CODEBERG_TOKEN",
        tree_endpoint=lambda r: f"https://codeberg.org/api/v1/repos/{r.owner}/{r.repo}/git/trees/HEAD?recursive=true",
        raw_file_endpoint=lambda r, path: f"https://codeberg.org/{r.owner}/{r.repo}/raw/branch/HEAD/{path}",
        auth_header=bearer_auth,
        decode_tree=_decode_under("tree", "path", "Codeberg"),
        is_truncated=_truncated_flag,
    ),
    Platform.GITEA: PlatformAdapter(
        platform=Platform.GITEA,
        name="Gitea",
        token_env_var="GITEA_TOKEN",
        tree_endpoint=lambda r: f"https://{r.host}/api/v1/repos/{r.owner}/{r.repo}/git/trees/HEAD?recursive=true",
        raw_file_endpoint=lambda r, path: f"https://{r.host}/{r.owner}/{r.repo}/raw/branch/HEAD/{path}",
        auth_header=bearer_auth,
        decode_tree=_decode_under("tree", "path", "Gitea"),
        is_truncated=_truncated_flag,
    ),
    Platform.SOURCEHUT: PlatformAdapter(
        platform=Platform.SOURCEHUT,
        name="SourceHut",
        token_env_var="SOURCEHUT_TOKEN",
        tree_endpoint=lambda r: f"https://git.sr.ht/api/~{r.owner}/repos/{r.repo}/tree/HEAD",
        raw_file_endpoint=lambda r, path: f"https://git.sr.ht/~{r.owner}/{r.repo}/blob/HEAD/{path}",
        auth_header=bearer_auth,
        decode_tree=_decode_under("entries", "name", "SourceHut"),
        is_truncated=_never,
    ),
}


def adapter_for(platform: Platform) -> PlatformAdapter:
    """Return the adapter for a supported platform."""
    return PLATFORM_ADAPTERS[Platform(platform)]


def resolve_token(adapter: PlatformAdapter, user_token: Optional[str]) -> Tuple[Optional[str], str]:
    """
    Pick the credential for a call.

    Caller-supplied token first, then the platform's environment variable,
    otherwise unauthenticated.

    Returns:
        Tuple of (token or None, source) where source is "user", "env" or "none"
    """
    if user_token and user_token.strip():
        return user_token.strip(), "user"
    env_token = get_platform_token(adapter.token_env_var)
    if env_token:
        return env_token, "env"
    return None, "none"
