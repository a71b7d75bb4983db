"""
Tests for the PyGithub-backed repository client.
"""

import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import MagicMock, patch

import pytest
import requests
from github.GithubException import GithubException, UnknownObjectException

from pr_review_bot.exceptions import UpstreamUnavailable
from pr_review_bot.integrations.github_client import GitHubClient


@pytest.fixture
def github():
    return MagicMock()


@pytest.fixture
def client(settings, github):
    return GitHubClient("ghp_test", settings, github=github)


def _file(filename, patch):
    file = MagicMock()
    file.filename = filename
    file.patch = patch
    return file


@pytest.mark.asyncio
async def test_list_changed_files_maps_missing_patch_to_empty(client, github):
    pr = github.get_repo.return_value.get_pull.return_value
    pr.get_files.return_value = [_file("src/a.ts", "+const x = 1;"), _file("logo.png", None)]

    files = await client.list_changed_files("acme", "widgets", 42)

    github.get_repo.assert_called_once_with("acme/widgets", lazy=True)
    github.get_repo.return_value.get_pull.assert_called_once_with(42)
    assert [(f.filename, f.patch) for f in files] == [("src/a.ts", "+const x = 1;"), ("logo.png", "")]


@pytest.mark.asyncio
async def test_list_changed_files_empty_pull_request(client, github):
    github.get_repo.return_value.get_pull.return_value.get_files.return_value = []

    assert await client.list_changed_files("acme", "widgets", 42) == []


@pytest.mark.asyncio
async def test_list_changed_files_server_error(client, github):
    github.get_repo.return_value.get_pull.side_effect = GithubException(502, {"message": "Bad Gateway"}, None)

    with pytest.raises(UpstreamUnavailable) as exc_info:
        await client.list_changed_files("acme", "widgets", 42)

    assert exc_info.value.operation == "list_changed_files"
    assert exc_info.value.status == 502


@pytest.mark.asyncio
async def test_list_changed_files_unreachable(client, github):
    github.get_repo.return_value.get_pull.side_effect = requests.ConnectionError("no route")

    with pytest.raises(UpstreamUnavailable):
        await client.list_changed_files("acme", "widgets", 42)


@pytest.mark.asyncio
async def test_fetch_file_content_decodes(client, github):
    content = MagicMock()
    content.decoded_content = b'{"name": "widgets"}'
    github.get_repo.return_value.get_contents.return_value = content

    assert await client.fetch_file_content("acme", "widgets", "package.json") == '{"name": "widgets"}'


@pytest.mark.asyncio
async def test_fetch_file_content_missing_returns_none(client, github):
    github.get_repo.return_value.get_contents.side_effect = UnknownObjectException(404, {"message": "Not Found"}, None)

    assert await client.fetch_file_content("acme", "widgets", "go.mod") is None


@pytest.mark.asyncio
async def test_fetch_file_content_forbidden(client, github):
    github.get_repo.return_value.get_contents.side_effect = GithubException(403, {"message": "Forbidden"}, None)

    with pytest.raises(UpstreamUnavailable) as exc_info:
        await client.fetch_file_content("acme", "widgets", "package.json")

    assert exc_info.value.permission_denied


@pytest.mark.asyncio
async def test_fetch_file_content_server_error_is_not_permission(client, github):
    github.get_repo.return_value.get_contents.side_effect = GithubException(503, {"message": "Unavailable"}, None)

    with pytest.raises(UpstreamUnavailable) as exc_info:
        await client.fetch_file_content("acme", "widgets", "package.json")

    assert not exc_info.value.permission_denied


@pytest.mark.asyncio
async def test_fetch_file_content_binary_and_directory(client, github):
    binary = MagicMock()
    binary.decoded_content = b"\xff\xfe\x00"
    github.get_repo.return_value.get_contents.side_effect = [binary, [MagicMock(), MagicMock()]]

    assert await client.fetch_file_content("acme", "widgets", "logo.png") is None
    assert await client.fetch_file_content("acme", "widgets", "src") is None


@pytest.mark.asyncio
async def test_search_files_by_name_keeps_exact_matches(client, github):
    hits = []
    for path in ["package.json", "web/package.json", "docs/package.json.bak"]:
        hit = MagicMock()
        hit.path = path
        hits.append(hit)
    github.search_code.return_value = hits

    paths = await client.search_files_by_name("acme", "widgets", "package.json")

    github.search_code.assert_called_once_with("filename:package.json repo:acme/widgets")
    assert paths == ["package.json", "web/package.json"]


@pytest.mark.asyncio
async def test_search_failure_returns_empty(client, github):
    github.search_code.side_effect = GithubException(422, {"message": "Validation Failed"}, None)

    assert await client.search_files_by_name("acme", "widgets", "package.json") == []


@pytest.mark.asyncio
async def test_publish_creates_comment_review(client, github):
    pr = github.get_repo.return_value.get_pull.return_value

    await client.publish("acme", "widgets", 42, "Automated PR Review:\nLooks fine")

    pr.create_review.assert_called_once_with(body="Automated PR Review:\nLooks fine", event="COMMENT")


@pytest.mark.asyncio
async def test_publish_rejected(client, github):
    pr = github.get_repo.return_value.get_pull.return_value
    pr.create_review.side_effect = GithubException(422, {"message": "Pull request is closed"}, None)

    with pytest.raises(UpstreamUnavailable) as exc_info:
        await client.publish("acme", "widgets", 42, "body")

    assert exc_info.value.operation == "publish_review"


class _BadGatewayHandler(BaseHTTPRequestHandler):
    """Serves the pull request on GET and fails every other request with 502."""

    def _reply(self, status, body):
        data = json.dumps(body).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def do_GET(self):
        self.server.hits.append(("GET", self.path))
        if self.server.serve_pull and self.path.startswith("/repos/acme/widgets/pulls/42"):
            base = f"http://127.0.0.1:{self.server.server_port}"
            self._reply(200, {"number": 42, "url": f"{base}/repos/acme/widgets/pulls/42"})
        else:
            self._reply(502, {"message": "Bad Gateway"})

    def do_POST(self):
        length = int(self.headers.get("Content-Length") or 0)
        self.rfile.read(length)
        self.server.hits.append(("POST", self.path))
        self._reply(502, {"message": "Bad Gateway"})

    def log_message(self, format, *args):
        pass


@pytest.fixture
def bad_gateway():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _BadGatewayHandler)
    server.hits = []
    server.serve_pull = False
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


@pytest.mark.asyncio
async def test_server_error_is_not_retried(settings, bad_gateway):
    settings.github_api_url = f"http://127.0.0.1:{bad_gateway.server_port}"
    client = GitHubClient("ghp_test", settings)

    with pytest.raises(UpstreamUnavailable) as exc_info:
        await client.list_changed_files("acme", "widgets", 42)
    await client.aclose()

    assert exc_info.value.status == 502
    assert len(bad_gateway.hits) == 1


@pytest.mark.asyncio
async def test_failed_review_post_is_sent_once(settings, bad_gateway):
    bad_gateway.serve_pull = True
    settings.github_api_url = f"http://127.0.0.1:{bad_gateway.server_port}"
    client = GitHubClient("ghp_test", settings)

    with pytest.raises(UpstreamUnavailable) as exc_info:
        await client.publish("acme", "widgets", 42, "Automated PR Review:\nLooks fine")
    await client.aclose()

    assert exc_info.value.operation == "publish_review"
    posts = [hit for hit in bad_gateway.hits if hit[0] == "POST"]
    assert posts == [("POST", "/repos/acme/widgets/pulls/42/reviews")]


def test_client_disables_pygithub_retry(settings):
    with patch("pr_review_bot.integrations.github_client.Github") as github_cls:
        GitHubClient("ghp_test", settings)

    assert github_cls.call_args.kwargs["retry"] is None


@pytest.mark.asyncio
async def test_aclose_releases_session(client, github):
    await client.aclose()

    github.close.assert_called_once_with()
