"""Domain exception hierarchy.

Configuration errors are raised while resolving a provider, before any
network call.  Provider errors are raised by the adapters.  The interface
layer translates each class into a user-facing response.
"""

from __future__ import annotations


class PaperTrackerError(Exception):
    """Base exception for the entire application."""


# ── Configuration errors ────────────────────────────────────────────────────


class ConfigurationError(PaperTrackerError):
    """The repository cannot be resolved to a usable provider."""


class InvalidRepositoryUrlError(ConfigurationError):
    """The URL does not match any supported repository shape."""

    def __init__(self, url: str, message: str | None = None) -> None:
        self.url = url
        super().__init__(
            message
            or (
                f'Invalid repository URL: "{url}". Expected format: '
                "https://github.com/owner/repo, https://gitlab.com/owner/repo, "
                "https://git.overleaf.com/<project_id> or "
                "https://www.overleaf.com/project/<project_id>"
            )
        )


class MissingCredentialsError(ConfigurationError):
    """A credential required by the provider is not configured."""


class SelfHostedInstanceNotFoundError(ConfigurationError):
    """The self-hosted GitLab instance the URL was registered against is gone."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url
        super().__init__(
            f"Self-hosted GitLab instance not found for URL: {base_url}. "
            "The instance may have been deleted. Please re-add the repository."
        )


# ── Provider errors ─────────────────────────────────────────────────────────


class ProviderError(PaperTrackerError):
    """Any failure talking to a source-control provider."""

    def __init__(self, message: str, provider_name: str = "") -> None:
        super().__init__(message)
        self.provider_name = provider_name


class ProviderApiError(ProviderError):
    """The provider answered with a non-success HTTP status."""

    def __init__(self, message: str, provider_name: str = "", status_code: int = 0) -> None:
        super().__init__(message, provider_name)
        self.status_code = status_code


class AuthenticationFailedError(ProviderApiError):
    """The credential was rejected (401)."""


class AccessDeniedError(ProviderApiError):
    """The credential is valid but lacks access (403)."""


class RepositoryNotFoundError(ProviderApiError):
    """The repository does not exist or is invisible to the caller (404)."""


class RepoFileNotFoundError(ProviderError):
    """A tracked file no longer exists upstream (deleted or renamed)."""

    def __init__(self, file_path: str, provider_name: str) -> None:
        super().__init__(f"File not found in repository: {file_path}", provider_name)
        self.file_path = file_path


class ProviderNetworkError(ProviderError):
    """Connection-level failure; the caller owns any retry."""


class ProviderTimeoutError(ProviderNetworkError):
    """A single request exceeded its timeout."""


class BatchTimeoutError(ProviderTimeoutError):
    """A fan-out of concurrent requests exceeded the batch timeout."""


class InvalidResponseError(ProviderError):
    """The provider returned a body that could not be parsed."""
