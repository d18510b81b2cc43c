"""Error interpretation — HTTP status → provider-aware, user-facing message.

One policy for every adapter, parameterized by :class:`ErrorContext`.  When
no token was supplied the wording never confirms whether a private
repository exists.
"""

from __future__ import annotations

from dataclasses import dataclass

from paper_tracker.domain.exceptions import (
    AccessDeniedError,
    AuthenticationFailedError,
    ProviderApiError,
    RepositoryNotFoundError,
)


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Everything the wording depends on besides the status code."""

    provider_label: str
    owner: str
    repo: str
    has_token: bool
    instance_name: str | None = None
    provider_name: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def location(self) -> str:
        return f" on {self.instance_name}" if self.instance_name else ""


def describe_http_error(status: int, ctx: ErrorContext) -> str:
    """Return one human-readable sentence for *status*."""
    if status == 401:
        if ctx.instance_name:
            return (
                f"Authentication failed for {ctx.instance_name}. "
                "Your personal access token may be expired or invalid. "
                f"Please re-enter the token in your self-hosted {ctx.provider_label} settings."
            )
        return (
            f"{ctx.provider_label} authentication failed. Your session may have expired; "
            f"please sign in with {ctx.provider_label} again."
        )

    if status == 403:
        if ctx.instance_name:
            return (
                f"Access denied to {ctx.full_name}{ctx.location}. "
                "Your personal access token may lack the required scopes "
                "(read_api, read_repository) or you may not have access to this project."
            )
        if ctx.has_token:
            return (
                f"Access denied to {ctx.full_name}. "
                "Check that you have permission to view this repository."
            )
        return (
            f"Access denied to {ctx.full_name}. "
            f"If this is a private repository, sign in with {ctx.provider_label} first."
        )

    if status == 404:
        if ctx.instance_name:
            return (
                f"Repository not found: {ctx.full_name}{ctx.location}. "
                "Check that the repository exists and your personal access token has access to it."
            )
        if ctx.has_token:
            return (
                f"Repository not found: {ctx.full_name}. "
                "Check that you have access to this repository."
            )
        return (
            f"Repository not found: {ctx.full_name}. "
            f"If this is a private repository, sign in with {ctx.provider_label} first."
        )

    return f"{ctx.provider_label} API error (HTTP {status}){ctx.location}"


_STATUS_ERRORS: dict[int, type[ProviderApiError]] = {
    401: AuthenticationFailedError,
    403: AccessDeniedError,
    404: RepositoryNotFoundError,
}


def error_for_status(
    status: int, ctx: ErrorContext, message: str | None = None
) -> ProviderApiError:
    """Build the typed exception for *status* (not raised here)."""
    exc_type = _STATUS_ERRORS.get(status, ProviderApiError)
    return exc_type(
        message or describe_http_error(status, ctx),
        provider_name=ctx.provider_name,
        status_code=status,
    )
