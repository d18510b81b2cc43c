"""Value objects — immutable inputs describing where a repository lives."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

OVERLEAF_GIT_BASE = "https://git.overleaf.com"


class ProviderKind(str, Enum):
    """Hosting backend a repository URL belongs to."""

    GITHUB = "github"
    GITLAB = "gitlab"
    SELF_HOSTED_GITLAB = "selfhosted-gitlab"
    OVERLEAF = "overleaf"


@dataclass(frozen=True, slots=True)
class SelfHostedInstance:
    """A user-registered GitLab deployment (read-only for this package)."""

    name: str
    base_url: str
    token: str


@dataclass(frozen=True, slots=True)
class EditorCredentials:
    """Username / password pair forwarded to the compile bridge."""

    username: str
    password: str

    def as_payload(self) -> dict[str, str]:
        return {"username": self.username, "password": self.password}


@dataclass(frozen=True, slots=True)
class ParsedRepoUrl:
    """A repository URL classified into provider kind and coordinates.

    For Overleaf projects *owner* is always ``"overleaf"`` and *repo* is the
    project id.  *matched_instance_base_url* is only set for self-hosted
    GitLab and holds the ``base_url`` of the instance that matched.
    """

    provider: ProviderKind
    owner: str
    repo: str
    matched_instance_base_url: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def editor_git_url(self) -> str:
        """Canonical git remote for an Overleaf project."""
        if self.provider is not ProviderKind.OVERLEAF:
            raise ValueError(f"{self.provider.value} URLs have no editor git URL")
        return f"{OVERLEAF_GIT_BASE}/{self.repo}"
