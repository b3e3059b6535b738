"""Connection settings for the aioboto3-backed bucket provider."""

from __future__ import annotations

import os
from typing import Annotated, Mapping

from botocore.config import Config
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .result import Result
from .validation import validate_model


R2_ENDPOINT_TEMPLATE = "https://{account_id}.r2.cloudflarestorage.com"


class R2Config(BaseModel):
    """Validated R2 connection settings.

    Attributes
    ----------
    bucket_name
        Bucket every call is made against.
    endpoint_url
        S3-compatible endpoint. Derived from ``account_id`` when omitted.
    account_id
        Cloudflare account id.
    access_key_id, secret_access_key
        R2 API token credentials. When omitted, botocore's own credential
        chain applies.
    region_name
        Always ``auto`` for R2.
    max_pool_connections, connect_timeout, read_timeout
        Passed to the botocore client ``Config``.
    """

    bucket_name: Annotated[str, Field(min_length=1)]
    endpoint_url: str | None = None
    account_id: str | None = None
    access_key_id: str | None = None
    secret_access_key: Annotated[str | None, Field(repr=False)] = None
    region_name: str = "auto"
    max_pool_connections: Annotated[int, Field(gt=0)] = 50
    connect_timeout: Annotated[float, Field(gt=0)] = 5
    read_timeout: Annotated[float, Field(gt=0)] = 60

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def _derive_endpoint(cls, data: object) -> object:
        if isinstance(data, dict) and not data.get("endpoint_url") and data.get("account_id"):
            return {
                **data,
                "endpoint_url": R2_ENDPOINT_TEMPLATE.format(account_id=data["account_id"]),
            }
        return data

    @model_validator(mode="after")
    def _require_endpoint(self) -> R2Config:
        if not self.endpoint_url:
            raise ValueError("Either endpoint_url or account_id is required")
        return self

    @classmethod
    def from_env(
        cls,
        bucket_name: str | None = None,
        environ: Mapping[str, str] = os.environ,
    ) -> Result[R2Config, ValidationError]:
        """Build a config from environment variables.

        ``R2_*`` variables take precedence over their ``AWS_*`` counterparts;
        empty values count as unset. ``bucket_name`` falls back to
        ``R2_BUCKET_NAME``.
        """

        def lookup(*names: str) -> str | None:
            for name in names:
                value = environ.get(name)
                if value:
                    return value
            return None

        return validate_model(
            cls,
            bucket_name=bucket_name or lookup("R2_BUCKET_NAME") or "",
            endpoint_url=lookup("R2_ENDPOINT_URL", "AWS_ENDPOINT_URL"),
            account_id=lookup("R2_ACCOUNT_ID"),
            access_key_id=lookup("R2_ACCESS_KEY_ID", "AWS_ACCESS_KEY_ID"),
            secret_access_key=lookup("R2_SECRET_ACCESS_KEY", "AWS_SECRET_ACCESS_KEY"),
        )

    def boto_config(self) -> Config:
        """Client config with botocore's own retries disabled."""
        return Config(
            max_pool_connections=self.max_pool_connections,
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
            retries={"max_attempts": 1, "mode": "standard"},
        )


__all__ = ["R2Config", "R2_ENDPOINT_TEMPLATE"]
