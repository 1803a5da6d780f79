"""
Pydantic models for object store provider configuration.

A config dict is validated when the store is created, so a typo or a bad
value fails there rather than inside the first SDK call. Values missing
from the dict are taken from the provider's usual environment variables;
anything still unset is left as ``None`` so the SDK's own credential
chain applies.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, ClassVar
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class StoreConfig(BaseModel):
    """Settings shared by every provider."""

    model_config = ConfigDict(extra="forbid")

    # field -> environment variables tried in order
    env_fallbacks: ClassVar[dict[str, tuple[str, ...]]] = {}

    max_concurrency: int = Field(
        default=10, ge=1, description="Worker threads used for asynchronous uploads"
    )

    @model_validator(mode="before")
    @classmethod
    def resolve_from_env(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Fill fields missing from the dict from the environment."""
        for field, env_vars in cls.env_fallbacks.items():
            if values.get(field):
                continue
            values[field] = next(
                (os.environ[var] for var in env_vars if os.environ.get(var)), None
            )
        return values


class AWSConfig(StoreConfig):
    """S3 store settings.

    ``region_name=""`` means "use the client default". ``endpoint_url``
    points the client at an S3-compatible service instead of AWS.
    """

    env_fallbacks: ClassVar[dict[str, tuple[str, ...]]] = {
        "aws_access_key_id": ("AWS_ACCESS_KEY_ID",),
        "aws_secret_access_key": ("AWS_SECRET_ACCESS_KEY",),
        "region_name": ("AWS_DEFAULT_REGION", "AWS_REGION"),
        "endpoint_url": ("AWS_ENDPOINT_URL_S3", "AWS_ENDPOINT_URL"),
    }

    aws_access_key_id: str | None = Field(default=None, description="AWS access key ID")
    aws_secret_access_key: str | None = Field(default=None, description="AWS secret access key")
    region_name: str | None = Field(default=None, description="AWS region (e.g. 'us-east-1')")
    endpoint_url: str | None = Field(default=None, description="Custom S3 endpoint")

    @field_validator("region_name", "endpoint_url")
    @classmethod
    def blank_is_unset(cls, value: str | None) -> str | None:
        return value or None


class GCPConfig(StoreConfig):
    """Cloud Storage store settings.

    ``credentials_path`` is loaded into ``credentials`` when no credentials
    object is given. Without either, Application Default Credentials apply.
    """

    env_fallbacks: ClassVar[dict[str, tuple[str, ...]]] = {
        "project_id": ("GOOGLE_CLOUD_PROJECT", "GCLOUD_PROJECT"),
        "credentials_path": ("GOOGLE_APPLICATION_CREDENTIALS",),
    }

    project_id: str | None = Field(default=None, description="GCP project ID")
    credentials: Any | None = Field(default=None, description="GCP credentials object")
    credentials_path: str | None = Field(
        default=None, description="Path to service account JSON key file"
    )

    @model_validator(mode="after")
    def load_credentials(self) -> GCPConfig:
        if self.project_id is None:
            raise ValueError(
                "GCP project_id is required. Set it explicitly or via "
                "GOOGLE_CLOUD_PROJECT / GCLOUD_PROJECT environment variable."
            )
        if self.credentials is not None or not self.credentials_path:
            return self
        path = Path(self.credentials_path)
        if not path.is_file():
            raise ValueError(f"Credentials file not found: {self.credentials_path}")
        from google.oauth2 import service_account  # lazy import

        self.credentials = service_account.Credentials.from_service_account_file(str(path))
        return self


CONFIG_REGISTRY: dict[str, type[StoreConfig]] = {
    "aws": AWSConfig,
    "gcp": GCPConfig,
}


def validate_config(cloud_provider: str, config: dict) -> StoreConfig:
    """Validate *config* against the model registered for *cloud_provider*.

    Raises:
        ValueError: If no model is registered for the provider.
        pydantic.ValidationError: If the config is invalid.
    """
    model = CONFIG_REGISTRY.get(cloud_provider)
    if model is None:
        raise ValueError(f"No config model registered for provider: {cloud_provider}")
    return model(**config)


__all__ = [
    "AWSConfig",
    "GCPConfig",
    "StoreConfig",
    "CONFIG_REGISTRY",
    "validate_config",
]
