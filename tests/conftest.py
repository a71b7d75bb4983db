"""Shared fixtures for the review bot tests."""

import pytest

from pr_review_bot.config import Settings
from pr_review_bot.models.github import ChangedFile
from tests.fakes import FakeAnalysisClient, FakeCredentials, FakeRepositoryClient


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        github_token="ghp_test",
        openai_api_key="sk-test",
        log_format="text",
    )


@pytest.fixture
def credentials():
    return FakeCredentials()


@pytest.fixture
def repository():
    return FakeRepositoryClient(
        changed_files=[ChangedFile(filename="src/a.ts", patch="+const x = 1;")]
    )


@pytest.fixture
def analysis():
    return FakeAnalysisClient()


@pytest.fixture
def pull_request_payload():
    return {
        "action": "opened",
        "number": 42,
        "pull_request": {
            "number": 42,
            "title": "Add widget",
            "head": {
                "sha": "abc123",
                "repo": {
                    "name": "widgets",
                    "owner": {"login": "acme"},
                },
            },
        },
        "installation": {"id": 777},
    }
