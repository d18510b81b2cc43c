"""Provider factory — the single place concrete adapters are constructed.

Given a repository URL, the configured self-hosted instances and the
credential callbacks, resolve which adapter serves the URL and return it
with the repository coordinates.  All configuration errors are raised here,
before any network call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from paper_tracker.domain.exceptions import (
    ConfigurationError,
    InvalidRepositoryUrlError,
    MissingCredentialsError,
    SelfHostedInstanceNotFoundError,
)
from paper_tracker.domain.ports.credentials import TokenGetters
from paper_tracker.domain.ports.repo_provider import RepoProvider
from paper_tracker.domain.value_objects import ParsedRepoUrl, ProviderKind, SelfHostedInstance
from paper_tracker.infrastructure.config import Settings
from paper_tracker.infrastructure.github_rest_adapter import GitHubRestAdapter
from paper_tracker.infrastructure.gitlab_rest_adapter import (
    DEFAULT_PAGE_SIZE,
    GITLAB_CLOUD,
    GitLabRestAdapter,
)
from paper_tracker.infrastructure.http_fetcher import BoundedFetcher
from paper_tracker.infrastructure.overleaf_bridge_adapter import (
    DEFAULT_BRIDGE_TIMEOUT,
    OverleafBridgeAdapter,
)
from paper_tracker.services.url_resolver import classify_repo_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ResolvedProvider:
    """A ready-to-use adapter plus the coordinates to pass to it."""

    provider: RepoProvider
    owner: str
    repo: str


@dataclass(frozen=True, slots=True)
class GitLabResolution:
    base_url: str
    token: str | None
    instance_name: str | None = None


def resolve_gitlab_instance(
    parsed: ParsedRepoUrl,
    instances: Sequence[SelfHostedInstance],
    cloud_token: str | None,
) -> GitLabResolution:
    """Pick base URL and token for a gitlab.com or self-hosted URL.

    A self-hosted URL whose instance disappeared after classification fails
    loudly instead of silently falling back to gitlab.com.
    """
    if parsed.provider is ProviderKind.SELF_HOSTED_GITLAB:
        instance = next(
            (i for i in instances if i.base_url == parsed.matched_instance_base_url), None
        )
        if instance is None:
            raise SelfHostedInstanceNotFoundError(parsed.matched_instance_base_url or "")
        return GitLabResolution(
            base_url=instance.base_url, token=instance.token, instance_name=instance.name
        )
    return GitLabResolution(base_url=GITLAB_CLOUD, token=cloud_token)


class ProviderFactory:
    """Builds adapters sharing one :class:`BoundedFetcher`."""

    def __init__(
        self,
        fetcher: BoundedFetcher,
        bridge_url: str | None = None,
        bridge_api_key: str | None = None,
        bridge_timeout: float = DEFAULT_BRIDGE_TIMEOUT,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._fetcher = fetcher
        self._bridge_url = bridge_url
        self._bridge_api_key = bridge_api_key
        self._bridge_timeout = bridge_timeout
        self._page_size = page_size

    @classmethod
    def from_settings(cls, fetcher: BoundedFetcher, settings: Settings) -> ProviderFactory:
        api_key = settings.latex_service_api_key
        return cls(
            fetcher,
            bridge_url=settings.latex_service_url,
            bridge_api_key=api_key.get_secret_value() if api_key else None,
            bridge_timeout=settings.bridge_timeout_s,
            page_size=settings.list_page_size,
        )

    async def resolve(
        self,
        url: str,
        instances: Sequence[SelfHostedInstance],
        token_getters: TokenGetters,
        user_id: str | None = None,
    ) -> ResolvedProvider:
        """Resolve *url* to an authenticated adapter.

        With *user_id* the ``*_for_user`` callbacks are used (background
        contexts); otherwise the current-caller callbacks are.
        """
        parsed = classify_repo_url(url, instances)
        if parsed is None:
            raise InvalidRepositoryUrlError(url)

        if parsed.provider is ProviderKind.OVERLEAF:
            return await self._resolve_overleaf(parsed, token_getters, user_id)

        if parsed.provider is ProviderKind.GITHUB:
            token = (
                await token_getters.github_token_for_user(user_id)
                if user_id is not None
                else await token_getters.github_token()
            )
            logger.debug("Resolved %s to GitHub (token: %s)", url, bool(token))
            return ResolvedProvider(
                GitHubRestAdapter(self._fetcher, token=token), parsed.owner, parsed.repo
            )

        cloud_token: str | None = None
        if parsed.provider is ProviderKind.GITLAB:
            cloud_token = (
                await token_getters.gitlab_token_for_user(user_id)
                if user_id is not None
                else await token_getters.gitlab_token()
            )
        resolution = resolve_gitlab_instance(parsed, instances, cloud_token)
        if resolution.instance_name and not resolution.token:
            raise MissingCredentialsError(
                f"No personal access token configured for {resolution.instance_name}."
            )
        logger.debug("Resolved %s to GitLab at %s", url, resolution.base_url)
        return ResolvedProvider(
            self._gitlab(resolution.token, resolution.base_url, resolution.instance_name),
            parsed.owner,
            parsed.repo,
        )

    def resolve_public(
        self, url: str, instances: Sequence[SelfHostedInstance] = ()
    ) -> ResolvedProvider | None:
        """Unauthenticated resolution for public-repository previews.

        Only GitHub and gitlab.com are served; self-hosted GitLab and Overleaf
        always need credentials, so they yield ``None``.
        """
        parsed = classify_repo_url(url, instances)
        if parsed is None:
            return None
        if parsed.provider is ProviderKind.GITHUB:
            return ResolvedProvider(GitHubRestAdapter(self._fetcher), parsed.owner, parsed.repo)
        if parsed.provider is ProviderKind.GITLAB:
            return ResolvedProvider(self._gitlab(None, GITLAB_CLOUD, None), parsed.owner, parsed.repo)
        return None

    # ── Internals ───────────────────────────────────────────────────────

    async def _resolve_overleaf(
        self, parsed: ParsedRepoUrl, token_getters: TokenGetters, user_id: str | None
    ) -> ResolvedProvider:
        credentials = (
            await token_getters.overleaf_credentials_for_user(user_id)
            if user_id is not None
            else await token_getters.overleaf_credentials()
        )
        if credentials is None:
            raise MissingCredentialsError("Overleaf credentials not configured.")
        if not self._bridge_url:
            raise ConfigurationError(
                "LATEX_SERVICE_URL not configured. Required for Overleaf support."
            )
        adapter = OverleafBridgeAdapter(
            self._fetcher,
            git_url=parsed.editor_git_url,
            credentials=credentials,
            bridge_url=self._bridge_url,
            api_key=self._bridge_api_key,
            timeout=self._bridge_timeout,
        )
        return ResolvedProvider(adapter, parsed.owner, parsed.repo)

    def _gitlab(
        self, token: str | None, base_url: str, instance_name: str | None
    ) -> GitLabRestAdapter:
        return GitLabRestAdapter(
            self._fetcher,
            token=token,
            base_url=base_url,
            instance_name=instance_name,
            page_size=self._page_size,
        )
