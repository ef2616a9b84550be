"""
Remote fetch layer.

Talks to the hosting platforms' HTTP APIs: one GET for the recursive tree
listing, and one GET per raw file. Tree failures are mapped onto the error
taxonomy; raw-file fetches are best-effort and never raise.
"""

import json
import logging
import re
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from stackscout.config import DEFAULT_HTTP_TIMEOUT
from stackscout.errors import AuthError, NotFoundError, UpstreamError
from stackscout.platforms import adapter_for, resolve_token
from stackscout.schemas import RepositoryIdentifier

logger = logging.getLogger(__name__)

USER_AGENT = "StackScout/1.0"
PACKAGE_MANIFEST_PATH = "package.json"
PYTHON_REQUIREMENTS_PATH = "requirements.txt"

# Everything from the first version/extra/marker delimiter onwards
_REQUIREMENT_TAIL = re.compile(r"[=<>!~;\[\s@].*$")


@dataclass
class FileTree:
    """Flat listing of repository paths as returned by one tree call."""
    paths: List[str] = field(default_factory=list)
    truncated: bool = False


def parse_requirements(content: str) -> List[str]:
    """
    Extract lower-cased package names from a requirements list.

    Comments, blank lines and pip options (``-r``, ``--index-url``...) are
    skipped; anything after a version specifier, extra or marker is dropped.
    """
    names = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith(("#", "-")):
            continue
        name = _REQUIREMENT_TAIL.sub("", line).strip().lower()
        if name:
            names.append(name)
    return names


class RepoFetcher:
    """
    Authenticated HTTP access to the platform tree and raw-file APIs.

    Every outbound call is bounded by ``timeout`` seconds. A ``transport`` can
    be injected to serve responses without a network.
    """

    def __init__(self, timeout: float = DEFAULT_HTTP_TIMEOUT, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = httpx.Timeout(timeout)
        self.transport = transport

    @asynccontextmanager
    async def session(self) -> AsyncIterator[httpx.AsyncClient]:
        """Open a client shared by the calls of one analysis."""
        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self.transport,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        ) as client:
            yield client

    def _headers(self, identifier: RepositoryIdentifier, token: Optional[str], accept: Optional[str] = None) -> Dict[str, str]:
        adapter = adapter_for(identifier.platform)
        resolved, _ = resolve_token(adapter, token)
        headers = {}
        if accept:
            headers["Accept"] = accept
        if resolved:
            headers.update(adapter.auth_header(resolved))
        return headers

    async def fetch_tree(
        self,
        client: httpx.AsyncClient,
        identifier: RepositoryIdentifier,
        token: Optional[str] = None,
    ) -> FileTree:
        """
        Fetch the full recursive file listing with a single API call.

        Args:
            client: Open HTTP client from ``session()``
            identifier: Repository to list
            token: Caller-supplied token, if any

        Returns:
            FileTree with the decoded paths and the platform's truncation flag

        Raises:
            NotFoundError: Repository missing or private
            AuthError: Platform demands credentials (status 403)
            UpstreamError: Timeouts, connection failures, other non-2xx
                statuses, or an undecodable body
        """
        adapter = adapter_for(identifier.platform)
        endpoint = adapter.tree_endpoint(identifier)
        headers = self._headers(identifier, token, accept="application/json")

        try:
            response = await client.get(endpoint, headers=headers)
        except httpx.TimeoutException as e:
            raise UpstreamError(
                f"{adapter.name} API did not respond within {self.timeout.read:g} seconds",
                platform=adapter.name,
            ) from e
        except httpx.RequestError as e:
            raise UpstreamError(
                f"Could not connect to {adapter.name} API - service may be unavailable",
                platform=adapter.name,
            ) from e

        status = response.status_code
        if status == 404:
            raise NotFoundError(
                f"Repository not found or is private. {adapter.name} requires authentication for private repos.",
                platform=adapter.name,
                upstream_status=status,
            )
        if status in (401, 403):
            raise AuthError(
                f"Authentication required for {adapter.name}. "
                f"Provide an access token or set {adapter.token_env_var} on the server.",
                status=403,
            )
        if not response.is_success:
            raise UpstreamError(f"{adapter.name} API error: {status}", platform=adapter.name, upstream_status=status)

        content_type = response.headers.get("content-type", "")
        if "json" not in content_type.lower():
            # Some platforms answer anonymous requests with an HTML login page
            raise AuthError(
                f"{adapter.name} returned unexpected content type. The repository may require authentication.",
                status=403,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError(f"{adapter.name} returned malformed JSON", platform=adapter.name) from e

        paths = adapter.decode_tree(payload)
        truncated = adapter.is_truncated(payload, response.headers)
        if truncated:
            logger.warning(
                f"{adapter.name} returned a partial tree for {identifier.owner}/{identifier.repo}; "
                f"analyzing {len(paths)} paths"
            )
        return FileTree(paths=paths, truncated=truncated)

    async def fetch_raw_file(
        self,
        client: httpx.AsyncClient,
        identifier: RepositoryIdentifier,
        path: str,
        token: Optional[str] = None,
    ) -> Optional[str]:
        """Fetch one file's text at HEAD. Returns None on any failure."""
        adapter = adapter_for(identifier.platform)
        endpoint = adapter.raw_file_endpoint(identifier, path)
        try:
            response = await client.get(endpoint, headers=self._headers(identifier, token))
        except httpx.HTTPError as e:
            logger.debug(f"Raw fetch of {path} from {adapter.name} failed: {e}")
            return None
        if not response.is_success:
            logger.debug(f"Raw fetch of {path} from {adapter.name} returned {response.status_code}")
            return None
        if "text/html" in response.headers.get("content-type", "").lower():
            # Login or error page served with a 2xx status
            return None
        return response.text

    async def fetch_package_manifest(
        self,
        client: httpx.AsyncClient,
        identifier: RepositoryIdentifier,
        token: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Fetch and decode the root npm manifest, or None if absent or invalid."""
        content = await self.fetch_raw_file(client, identifier, PACKAGE_MANIFEST_PATH, token)
        if not content:
            return None
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            return None
        return data if isinstance(data, dict) else None

    async def fetch_python_requirements(
        self,
        client: httpx.AsyncClient,
        identifier: RepositoryIdentifier,
        token: Optional[str] = None,
    ) -> List[str]:
        """Fetch the root requirements list as lower-cased package names."""
        content = await self.fetch_raw_file(client, identifier, PYTHON_REQUIREMENTS_PATH, token)
        if not content:
            return []
        return parse_requirements(content)
