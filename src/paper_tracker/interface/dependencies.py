"""FastAPI dependency injection wiring."""

from __future__ import annotations

import httpx

from paper_tracker.domain.ports.credentials import TokenGetters
from paper_tracker.domain.value_objects import EditorCredentials, SelfHostedInstance
from paper_tracker.infrastructure.config import get_settings
from paper_tracker.infrastructure.http_fetcher import BoundedFetcher
from paper_tracker.infrastructure.provider_factory import ProviderFactory

_http_client: httpx.AsyncClient | None = None


async def startup() -> None:
    """Initialise shared resources — called from the lifespan context manager."""
    global _http_client  # noqa: PLW0603

    settings = get_settings()
    _http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(settings.request_timeout_s),
        follow_redirects=True,
    )


async def shutdown() -> None:
    """Release shared resources."""
    global _http_client  # noqa: PLW0603

    if _http_client:
        await _http_client.aclose()
        _http_client = None


def get_factory() -> ProviderFactory:
    """Build the provider factory around the shared HTTP client."""
    settings = get_settings()
    assert _http_client is not None, "startup() was not called"

    fetcher = BoundedFetcher(
        _http_client,
        request_timeout=settings.request_timeout_s,
        batch_timeout=settings.batch_timeout_s,
    )
    return ProviderFactory.from_settings(fetcher, settings)


def get_instances() -> list[SelfHostedInstance]:
    return get_settings().instances()


def get_token_getters() -> TokenGetters:
    """Credentials from the environment (single-tenant deployment).

    The per-user variants resolve to the same configured credentials.
    """
    settings = get_settings()
    github = settings.github_token.get_secret_value() if settings.github_token else None
    gitlab = settings.gitlab_token.get_secret_value() if settings.gitlab_token else None
    overleaf = settings.overleaf_credentials()

    async def github_token() -> str | None:
        return github

    async def github_token_for_user(user_id: str) -> str | None:
        return github

    async def gitlab_token() -> str | None:
        return gitlab

    async def gitlab_token_for_user(user_id: str) -> str | None:
        return gitlab

    async def overleaf_credentials() -> EditorCredentials | None:
        return overleaf

    async def overleaf_credentials_for_user(user_id: str) -> EditorCredentials | None:
        return overleaf

    return TokenGetters(
        github_token=github_token,
        github_token_for_user=github_token_for_user,
        gitlab_token=gitlab_token,
        gitlab_token_for_user=gitlab_token_for_user,
        overleaf_credentials=overleaf_credentials,
        overleaf_credentials_for_user=overleaf_credentials_for_user,
    )
