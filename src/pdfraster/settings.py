"""Runtime settings loaded from `.env` and environment variables."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from pdfraster.exceptions import SettingsError
from pdfraster.typing.enums import RenderFailurePolicy

logger = logging.getLogger(__name__)

_R2_ENDPOINT_TEMPLATE = "https://{account_id}.r2.cloudflarestorage.com"


class Settings(BaseSettings):
    """Package settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    project_name: str = "pdfraster"
    app_env: str = Field(
        default="dev",
        validation_alias="APP_ENV",
        description="Application environment, e.g. 'dev', 'prod'.",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level, e.g. 'INFO', 'DEBUG'.",
    )
    log_json: bool = Field(
        default=True,
        validation_alias="LOG_JSON",
        description="Enable JSON formatted logs.",
    )
    log_file: str | None = Field(
        default=None,
        validation_alias="LOG_FILE",
        description="File path for log output.",
    )

    account_id: str | None = Field(
        default=None,
        validation_alias="PDF_ACCOUNT_ID",
        description="The R2 account ID.",
    )
    key_id: str | None = Field(
        default=None,
        validation_alias="PDF_KEY_ID",
        description="The R2 access key ID.",
    )
    access_key_secret: str | None = Field(
        default=None,
        validation_alias="PDF_SECRET",
        description="The R2 access key secret.",
    )
    bucket: str | None = Field(
        default=None,
        validation_alias="PDF_BUCKET",
        description="The R2 bucket receiving rendered pages.",
    )
    endpoint_url: str | None = Field(
        default=None,
        validation_alias="PDF_ENDPOINT_URL",
        description="S3 endpoint URL. Derived from the account ID when unset.",
    )
    region: str = Field(
        default="auto",
        validation_alias="PDF_REGION",
        description="Object store region name.",
    )

    auth_token: str | None = Field(
        default=None,
        validation_alias="PDF_AUTH_TOKEN",
        description="Shared secret required as `token` query parameter when set.",
    )
    body_limit: int = Field(
        default=250,
        ge=1,
        validation_alias="PDF_BODY_LIMIT",
        description="The request body limit in megabytes.",
    )
    render_workers: int = Field(
        default=4,
        ge=1,
        validation_alias="PDF_RENDER_WORKERS",
        description="Number of threads dedicated to page rendering.",
    )
    render_failure_policy: RenderFailurePolicy = Field(
        default=RenderFailurePolicy.SKIP,
        validation_alias="PDF_RENDER_FAILURE_POLICY",
        description="Whether a failing page is skipped or aborts the request.",
    )
    upload_rollback: bool = Field(
        default=False,
        validation_alias="PDF_UPLOAD_ROLLBACK",
        description="Delete sibling objects of a request when one upload fails.",
    )
    contrast: float = Field(
        default=0.1,
        ge=-100.0,
        validation_alias="PDF_CONTRAST",
        description="Contrast adjustment in percent applied to rendered pages.",
    )

    host: str = Field(default="127.0.0.1", validation_alias="PDF_HOST", description="Bind address.")
    port: int = Field(default=3000, validation_alias="PDF_PORT", description="Bind port.")

    http_proxy: str | None = Field(default=None, validation_alias="HTTP_PROXY", description="HTTP proxy URL.")
    https_proxy: str | None = Field(
        default=None,
        validation_alias="HTTPS_PROXY",
        description="HTTPS proxy URL.",
    )
    cert_path: str | None = Field(
        default=None,
        validation_alias="CERT_PATH",
        description="Path to SSL certificate bundle.",
    )
    timeout: float = Field(
        default=30.0,
        validation_alias="TIMEOUT",
        description="Object store request timeout in seconds.",
    )
    max_connections: int = Field(
        default=20,
        validation_alias="MAX_CONNECTIONS",
        description="Maximum number of pooled object store connections.",
    )

    @property
    def body_limit_bytes(self) -> int:
        """Return the request body limit in bytes."""
        return self.body_limit * 1024 * 1024

    def resolve_endpoint_url(self) -> str | None:
        """Return the configured endpoint, or the R2 endpoint of the account."""
        if self.endpoint_url:
            return self.endpoint_url
        if self.account_id:
            return _R2_ENDPOINT_TEMPLATE.format(account_id=self.account_id)
        return None

    def proxies(self) -> dict[str, str]:
        """Return the proxy mapping passed to botocore."""
        proxies: dict[str, str] = {}
        if self.http_proxy:
            proxies["http"] = self.http_proxy
        if self.https_proxy:
            proxies["https"] = self.https_proxy
        return proxies

    def missing_storage_settings(self) -> list[str]:
        """Return the env names of object store settings that are unset."""
        required = {
            "PDF_KEY_ID": self.key_id,
            "PDF_SECRET": self.access_key_secret,
            "PDF_BUCKET": self.bucket,
        }
        missing = [name for name, value in required.items() if not value]
        if self.resolve_endpoint_url() is None:
            missing.insert(0, "PDF_ACCOUNT_ID")
        return missing


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance.

    Raises:
        SettingsError: If settings cannot be loaded or validated.

    Returns:
        Settings: The loaded settings instance.
    """
    try:
        return Settings()
    except Exception as exc:
        if _is_missing_settings_error(exc):
            ensure_env_file_exists()
            try:
                return Settings()
            except Exception as retry_exc:
                raise SettingsError(exc=retry_exc) from retry_exc
        raise SettingsError(exc=exc) from exc


def ensure_env_file_exists(
    *,
    env_path: Path = Path(".env"),
    template_path: Path = Path(".env.template"),
) -> None:
    """Create `.env` from template when missing.

    Args:
        env_path (Path): Target environment file path.
        template_path (Path): Template file path.
    """
    if env_path.exists() or not template_path.exists():
        return
    env_path.write_text(template_path.read_text(encoding="utf-8"), encoding="utf-8")
    logger.info(
        "Created environment file from template",
        extra={"env_path": str(env_path), "template_path": str(template_path)},
    )


def _is_missing_settings_error(exc: Exception) -> bool:
    """Return whether the settings failure is due to missing values.

    Args:
        exc (Exception): Caught settings initialization error.

    Returns:
        bool: True when the error represents missing settings values.
    """
    if not isinstance(exc, ValidationError):
        return False
    return any(error.get("type") == "missing" for error in exc.errors())
