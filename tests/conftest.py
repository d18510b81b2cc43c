"""Shared fixtures: an httpx MockTransport-backed fetcher and credential stubs."""

from __future__ import annotations

from typing import Callable

import httpx
import pytest

from paper_tracker.domain.ports.credentials import TokenGetters
from paper_tracker.domain.value_objects import EditorCredentials, SelfHostedInstance
from paper_tracker.infrastructure.http_fetcher import BoundedFetcher


class RecordingHandler:
    """MockTransport handler that records requests and delegates to *route*."""

    def __init__(self, route: Callable[[httpx.Request], httpx.Response]) -> None:
        self._route = route
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._route(request)

    @property
    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture
def make_fetcher():
    """Build a BoundedFetcher whose client never leaves the process."""

    def _make(handler, request_timeout: float = 5.0, batch_timeout: float = 10.0):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return BoundedFetcher(client, request_timeout=request_timeout, batch_timeout=batch_timeout)

    return _make


@pytest.fixture
def instances() -> list[SelfHostedInstance]:
    return [
        SelfHostedInstance(name="Uni GitLab", base_url="https://git.uni.edu", token="uni-token"),
        SelfHostedInstance(
            name="Lab GitLab", base_url="https://git.uni.edu/lab", token="lab-token"
        ),
    ]


def build_token_getters(
    github: str | None = "gh-token",
    gitlab: str | None = "gl-token",
    overleaf: EditorCredentials | None = None,
    calls: list[str] | None = None,
) -> TokenGetters:
    """TokenGetters returning fixed values; *calls* records which getter ran."""
    log = calls if calls is not None else []

    async def github_token():
        log.append("github")
        return github

    async def github_token_for_user(user_id):
        log.append(f"github:{user_id}")
        return github

    async def gitlab_token():
        log.append("gitlab")
        return gitlab

    async def gitlab_token_for_user(user_id):
        log.append(f"gitlab:{user_id}")
        return gitlab

    async def overleaf_credentials():
        log.append("overleaf")
        return overleaf

    async def overleaf_credentials_for_user(user_id):
        log.append(f"overleaf:{user_id}")
        return overleaf

    return TokenGetters(
        github_token=github_token,
        github_token_for_user=github_token_for_user,
        gitlab_token=gitlab_token,
        gitlab_token_for_user=gitlab_token_for_user,
        overleaf_credentials=overleaf_credentials,
        overleaf_credentials_for_user=overleaf_credentials_for_user,
    )
