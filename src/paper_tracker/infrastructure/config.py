"""Application configuration — loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from paper_tracker.domain.value_objects import EditorCredentials, SelfHostedInstance


class SelfHostedInstanceConfig(BaseModel):
    """One entry of ``SELF_HOSTED_GITLAB_INSTANCES`` (a JSON list)."""

    name: str
    base_url: str
    token: SecretStr

    def to_domain(self) -> SelfHostedInstance:
        return SelfHostedInstance(
            name=self.name,
            base_url=self.base_url.rstrip("/"),
            token=self.token.get_secret_value(),
        )


class Settings(BaseSettings):
    """Central configuration loaded from env vars (or ``.env`` file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    github_token: SecretStr | None = None
    gitlab_token: SecretStr | None = None
    overleaf_username: str | None = None
    overleaf_password: SecretStr | None = None
    self_hosted_gitlab_instances: list[SelfHostedInstanceConfig] = []

    latex_service_url: str | None = None
    latex_service_api_key: SecretStr | None = None

    request_timeout_s: float = 30.0
    batch_timeout_s: float = 60.0
    bridge_timeout_s: float = 60.0
    list_page_size: int = 100

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @model_validator(mode="after")
    def _long_tier_is_longer(self) -> Settings:
        if self.batch_timeout_s <= self.request_timeout_s:
            msg = "batch_timeout_s must be longer than request_timeout_s"
            raise ValueError(msg)
        if self.bridge_timeout_s < self.batch_timeout_s:
            msg = "bridge_timeout_s must not be shorter than batch_timeout_s"
            raise ValueError(msg)
        return self

    def instances(self) -> list[SelfHostedInstance]:
        return [item.to_domain() for item in self.self_hosted_gitlab_instances]

    def overleaf_credentials(self) -> EditorCredentials | None:
        if not self.overleaf_username or not self.overleaf_password:
            return None
        return EditorCredentials(
            username=self.overleaf_username,
            password=self.overleaf_password.get_secret_value(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton application settings (cached after first call)."""
    return Settings()
