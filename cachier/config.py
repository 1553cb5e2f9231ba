"""Configuration management for the cachier controller."""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import InvalidKindError
from .models import GroupVersionKind, parse_kind_arg


class Settings(BaseSettings):
    """Controller settings, read from CACHIER_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CACHIER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service Settings
    log_level: str = "INFO"

    # Kubernetes Settings
    kubeconfig_path: Optional[str] = Field(
        default=None,
        description="Path to a kubeconfig. Only required if out-of-cluster.",
    )
    context: Optional[str] = Field(
        default=None,
        description="Kubeconfig context to use.",
    )
    master_url: Optional[str] = Field(
        default=None,
        description="The address of the Kubernetes API server. Overrides any value in kubeconfig.",
    )
    resources: list[str] = Field(
        default_factory=list,
        description="Resources to operate over, in the form Kind.version.group (e.g. Deployment.v1.apps)",
    )

    # Controller Settings
    threads_per_controller: int = Field(default=2, ge=1)
    resync_period_seconds: int = Field(default=10 * 60 * 60, ge=1)
    watch_timeout_seconds: int = Field(default=300, ge=1)
    requeue_base_delay_seconds: float = Field(default=0.005, gt=0)
    requeue_max_delay_seconds: float = Field(default=1000.0, gt=0)

    @field_validator("resources")
    @classmethod
    def _validate_resources(cls, value: list[str]) -> list[str]:
        for resource in value:
            try:
                parse_kind_arg(resource)
            except InvalidKindError as e:
                raise ValueError(str(e)) from e
        return value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if value.upper() not in valid:
            raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
        return value.upper()

    @property
    def kinds(self) -> list[GroupVersionKind]:
        """The configured resources as GroupVersionKinds."""
        return [parse_kind_arg(resource) for resource in self.resources]
