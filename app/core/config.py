from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LifecycleSettings(BaseSettings):
    """
    Environment-derived configuration for invocation tracing.

    Read through get_settings() at each call site, so changes to the
    environment are picked up by the next invocation.
    """
    model_config = SettingsConfigDict(env_prefix="DD_", extra="ignore", populate_by_name=True)

    # Tracing flags
    trace_enabled: bool = False
    trace_managed_services: bool = False
    capture_lambda_payload: bool = False

    # Service Info
    service_name: str = "serverless-invocation-lifecycle"
    log_level: str = "INFO"

    # Local API used by in-function tracing libraries
    api_host: str = "127.0.0.1"
    api_port: int = 8124

    # Hosting environment
    function_name: str = Field(default="", validation_alias="AWS_LAMBDA_FUNCTION_NAME")

    @field_validator("trace_enabled", "trace_managed_services", "capture_lambda_payload", mode="before")
    @classmethod
    def _parse_flag(cls, value: Any) -> bool:
        # Only a case-insensitive "true" enables a flag
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() == "true"

    @property
    def inferred_spans_enabled(self) -> bool:
        """Both tracing flags must hold for inferred spans."""
        return self.trace_enabled and self.trace_managed_services


def get_settings() -> LifecycleSettings:
    """Build settings from the current environment."""
    return LifecycleSettings()


settings = get_settings()
