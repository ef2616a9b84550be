"""
Repository analysis orchestrator.

One analysis is a single pass: parse the URL, fetch the tree and the two
dependency manifests concurrently, classify, summarize. Nothing is retried
and nothing is persisted.
"""

import asyncio
import logging
import random
from typing import Optional, Sequence

import httpx

from stackscout.catalog import TechnologyRule, load_catalog
from stackscout.config import DEFAULT_SAMPLE_SIZE, Settings
from stackscout.errors import AnalysisError, InternalError
from stackscout.extensions import classify_by_extension, top_extensions
from stackscout.fetcher import RepoFetcher
from stackscout.platforms import adapter_for, resolve_token
from stackscout.rules import classify_by_rules
from stackscout.sampler import sample_files
from stackscout.schemas import (
    AnalyzeResponse,
    DetectionResult,
    ExtensionCount,
    RepositoryIdentifier,
    RepositorySummary,
)
from stackscout.url_parser import normalize_url, parse_repo_url

logger = logging.getLogger(__name__)


class RepoAnalyzer:
    """
    Detects the technology stack of a hosted repository.

    Holds no per-request state; one instance serves concurrent analyses.
    """

    def __init__(
        self,
        fetcher: Optional[RepoFetcher] = None,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        rng: Optional[random.Random] = None,
        rules: Optional[Sequence[TechnologyRule]] = None,
    ):
        self.fetcher = fetcher or RepoFetcher()
        self.sample_size = sample_size
        self.rng = rng
        self.rules = rules

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "RepoAnalyzer":
        """Build an analyzer using the configured timeout, sample size and rule catalog."""
        return cls(
            fetcher=RepoFetcher(timeout=settings.http_timeout, transport=transport),
            sample_size=settings.sample_size,
            rules=load_catalog(settings.rules_path),
        )

    async def analyze(self, url: str, token: Optional[str] = None) -> DetectionResult:
        """
        Run the full detection pipeline for one repository.

        Args:
            url: Repository URL as supplied by the caller
            token: Optional caller credential for the hosting platform

        Returns:
            DetectionResult with the deduplicated technology set and summary

        Raises:
            UrlParseError: The URL is empty or unsupported
            AuthError: The platform requires credentials
            UpstreamError: The tree could not be fetched or decoded
            InternalError: Anything else went wrong
        """
        identifier = parse_repo_url(url)
        adapter = adapter_for(identifier.platform)
        _, token_source = resolve_token(adapter, token)
        logger.info(
            f"Analyzing {adapter.name} repository {identifier.owner}/{identifier.repo} "
            f"(token source: {token_source})"
        )

        try:
            return await self._run(identifier, token)
        except AnalysisError as e:
            logger.warning(f"Analysis of {identifier.owner}/{identifier.repo} failed: {e.message}")
            raise
        except Exception as e:
            logger.error(f"Unexpected error analyzing {identifier.owner}/{identifier.repo}: {e}", exc_info=True)
            raise InternalError() from e

    async def _run(self, identifier: RepositoryIdentifier, token: Optional[str]) -> DetectionResult:
        async with self.fetcher.session() as client:
            tree, manifest, requirements = await asyncio.gather(
                self.fetcher.fetch_tree(client, identifier, token),
                self._optional(self.fetcher.fetch_package_manifest(client, identifier, token), None, "package.json"),
                self._optional(self.fetcher.fetch_python_requirements(client, identifier, token), [], "requirements.txt"),
                return_exceptions=True,
            )
        if isinstance(tree, BaseException):
            raise tree

        sampled = sample_files(tree.paths, self.sample_size, self.rng)
        detected = classify_by_extension(sampled) | classify_by_rules(
            tree.paths, manifest, requirements, self.rules
        )

        logger.info(
            f"Detected {len(detected)} technologies in {identifier.owner}/{identifier.repo} "
            f"({len(tree.paths)} files, {len(sampled)} sampled)"
        )

        return DetectionResult(
            tech_stack=detected,
            repository=identifier,
            file_count=len(tree.paths),
            sampled_file_count=len(sampled),
            top_extensions=[ExtensionCount(ext=ext, count=count) for ext, count in top_extensions(tree.paths)],
            has_package_manifest=manifest is not None,
            has_python_requirements=bool(requirements),
            tree_truncated=tree.truncated,
        )

    @staticmethod
    async def _optional(awaitable, default, label: str):
        """Await a corroborating fetch, treating any failure as absence."""
        try:
            return await awaitable
        except Exception as e:
            logger.warning(f"Ignoring failed {label} fetch: {e}")
            return default


def build_response(result: DetectionResult, url: str) -> AnalyzeResponse:
    """Shape a DetectionResult into the public response body."""
    identifier = result.repository
    summary = RepositorySummary(
        platform=identifier.platform,
        platform_name=adapter_for(identifier.platform).name,
        owner=identifier.owner,
        repo=identifier.repo,
        project=identifier.project,
        host=identifier.host,
        url=normalize_url(url),
        file_count=result.file_count,
        sampled_file_count=result.sampled_file_count,
        top_extensions=result.top_extensions,
        has_package_manifest=result.has_package_manifest,
        has_python_requirements=result.has_python_requirements,
        tree_truncated=result.tree_truncated,
    )
    return AnalyzeResponse(
        tech_stack=sorted(result.tech_stack),
        repository=summary,
        detected_count=len(result.tech_stack),
    )
