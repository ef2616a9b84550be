"""
Tests for the remote fetch layer, using httpx.MockTransport in place of the
platform APIs.
"""

import httpx
import pytest

from stackscout.errors import AuthError, NotFoundError, UpstreamError
from stackscout.fetcher import RepoFetcher, parse_requirements
from stackscout.schemas import Platform, RepositoryIdentifier

GITHUB_REPO = RepositoryIdentifier(platform=Platform.GITHUB, owner="acme", repo="widgets", host="github.com")
GITLAB_REPO = RepositoryIdentifier(platform=Platform.GITLAB, owner="team", repo="svc", host="gitlab.com")


def fetcher_for(handler):
    return RepoFetcher(timeout=2.0, transport=httpx.MockTransport(handler))


async def fetch_tree(handler, identifier=GITHUB_REPO, token=None):
    fetcher = fetcher_for(handler)
    async with fetcher.session() as client:
        return await fetcher.fetch_tree(client, identifier, token)


class TestParseRequirements:
    """Test requirements.txt name extraction."""

    def test_version_specifiers_are_dropped(self):
        assert parse_requirements("flask==2.0.1\npytest>=7.0") == ["flask", "pytest"]

    def test_comments_options_and_blanks_are_skipped(self):
        content = """
        # web
        -r base.txt
        --index-url https://example.org/simple

        Django~=4.2
        """
        assert parse_requirements(content) == ["django"]

    def test_extras_markers_and_urls(self):
        content = "uvicorn[standard]>=0.20\nrequests; python_version<'3.8'\nmypkg @ https://x/y.whl\nnumpy"
        assert parse_requirements(content) == ["uvicorn", "requests", "mypkg", "numpy"]


class TestFetchTree:
    """Test tree fetching and failure mapping."""

    @pytest.mark.asyncio
    async def test_success(self):
        def handler(request):
            assert request.url.path == "/repos/acme/widgets/git/trees/HEAD"
            return httpx.Response(200, json={"tree": [{"path": "src/app.ts"}, {"path": "package.json"}]})

        tree = await fetch_tree(handler)
        assert tree.paths == ["src/app.ts", "package.json"]
        assert tree.truncated is False

    @pytest.mark.asyncio
    async def test_truncated_listing_is_flagged(self):
        def handler(request):
            return httpx.Response(200, json={"tree": [{"path": "a.js"}], "truncated": True})

        tree = await fetch_tree(handler)
        assert tree.truncated is True

    @pytest.mark.asyncio
    async def test_user_token_is_sent(self):
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, json={"tree": []})

        await fetch_tree(handler, token="secret")
        assert seen["authorization"] == "Bearer secret"
        assert seen["user-agent"].startswith("StackScout")

    @pytest.mark.asyncio
    async def test_gitlab_token_header(self):
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, json=[{"path": "main.py"}], headers={"x-next-page": ""})

        tree = await fetch_tree(handler, identifier=GITLAB_REPO, token="secret")
        assert seen["private-token"] == "secret"
        assert tree.paths == ["main.py"]

    @pytest.mark.asyncio
    async def test_no_auth_header_without_token(self, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, json={"tree": []})

        await fetch_tree(handler)
        assert "authorization" not in seen

    @pytest.mark.asyncio
    async def test_not_found_mentions_private(self):
        def handler(request):
            return httpx.Response(404, json={"message": "Not Found"})

        with pytest.raises(NotFoundError) as exc_info:
            await fetch_tree(handler)
        message = exc_info.value.message.lower()
        assert "not found" in message
        assert "private" in message
        assert "authentication" in message
        assert exc_info.value.status == 500

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_required(self, status):
        def handler(request):
            return httpx.Response(status, json={"message": "Bad credentials"})

        with pytest.raises(AuthError) as exc_info:
            await fetch_tree(handler)
        assert exc_info.value.status == 403
        assert "GITHUB_TOKEN" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_other_status_is_upstream_error(self):
        def handler(request):
            return httpx.Response(502, text="bad gateway")

        with pytest.raises(UpstreamError) as exc_info:
            await fetch_tree(handler)
        assert exc_info.value.upstream_status == 502
        assert exc_info.value.message == "GitHub API error: 502"

    @pytest.mark.asyncio
    async def test_html_login_page_is_auth_error(self):
        def handler(request):
            return httpx.Response(200, text="<html>Sign in</html>", headers={"content-type": "text/html"})

        with pytest.raises(AuthError) as exc_info:
            await fetch_tree(handler)
        assert "unexpected content type" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_malformed_json(self):
        def handler(request):
            return httpx.Response(200, text="{not json", headers={"content-type": "application/json"})

        with pytest.raises(UpstreamError, match="malformed JSON"):
            await fetch_tree(handler)

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(UpstreamError, match="did not respond") as exc_info:
            await fetch_tree(handler)
        assert isinstance(exc_info.value.__cause__, httpx.TimeoutException)

    @pytest.mark.asyncio
    async def test_connection_failure(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamError, match="Could not connect"):
            await fetch_tree(handler)


class TestRawFiles:
    """Test best-effort raw file fetches."""

    @pytest.mark.asyncio
    async def test_manifest_decoded(self):
        def handler(request):
            assert request.url.host == "raw.githubusercontent.com"
            return httpx.Response(200, text='{"dependencies": {"react": "^18.0.0"}}')

        fetcher = fetcher_for(handler)
        async with fetcher.session() as client:
            manifest = await fetcher.fetch_package_manifest(client, GITHUB_REPO)
        assert manifest == {"dependencies": {"react": "^18.0.0"}}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        httpx.Response(404, text="404: Not Found"),
        httpx.Response(200, text="{ invalid json"),
        httpx.Response(200, text="[1, 2]"),
        httpx.Response(200, text="<html></html>", headers={"content-type": "text/html; charset=utf-8"}),
    ])
    async def test_manifest_absent_or_invalid(self, response):
        fetcher = fetcher_for(lambda request: response)
        async with fetcher.session() as client:
            assert await fetcher.fetch_package_manifest(client, GITHUB_REPO) is None

    @pytest.mark.asyncio
    async def test_raw_fetch_network_error_returns_none(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        fetcher = fetcher_for(handler)
        async with fetcher.session() as client:
            assert await fetcher.fetch_raw_file(client, GITHUB_REPO, "package.json") is None

    @pytest.mark.asyncio
    async def test_requirements(self):
        def handler(request):
            return httpx.Response(200, text="flask==2.0.1\npytest>=7.0\n")

        fetcher = fetcher_for(handler)
        async with fetcher.session() as client:
            names = await fetcher.fetch_python_requirements(client, GITHUB_REPO)
        assert names == ["flask", "pytest"]

    @pytest.mark.asyncio
    async def test_requirements_missing(self):
        fetcher = fetcher_for(lambda request: httpx.Response(404))
        async with fetcher.session() as client:
            assert await fetcher.fetch_python_requirements(client, GITHUB_REPO) == []
