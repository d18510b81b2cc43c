"""Port: credential retrieval callbacks injected into the provider factory."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable

from paper_tracker.domain.value_objects import EditorCredentials

TokenGetter = Callable[[], Awaitable[str | None]]
UserTokenGetter = Callable[[str], Awaitable[str | None]]
CredentialsGetter = Callable[[], Awaitable[EditorCredentials | None]]
UserCredentialsGetter = Callable[[str], Awaitable[EditorCredentials | None]]


@dataclass(frozen=True, slots=True)
class TokenGetters:
    """Token lookups for the interactive caller and for an explicit user id.

    The ``*_for_user`` variants serve background / headless contexts where
    there is no authenticated caller.
    """

    github_token: TokenGetter
    github_token_for_user: UserTokenGetter
    gitlab_token: TokenGetter
    gitlab_token_for_user: UserTokenGetter
    overleaf_credentials: CredentialsGetter
    overleaf_credentials_for_user: UserCredentialsGetter
