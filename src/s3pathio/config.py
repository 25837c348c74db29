"""Configuration loading and Pydantic models for s3pathio."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

# 5 MiB: the smallest part size S3 accepts for every part but the last.
DEFAULT_PART_SIZE = 5 * 1024 * 1024

CONFIG_ENV_VAR = "S3PATHIO_CONFIG"


class ClientSettings(BaseModel):
    """Object store client connection configuration."""

    backend: Literal["s3", "memory"] = "s3"
    endpoint_url: str = ""
    region: str = "us-east-1"
    access_key_id: str = ""
    secret_access_key: str = ""
    addressing_style: Literal["auto", "path", "virtual"] = "auto"
    max_pool_connections: int = Field(default=10, gt=0)


class TransferSettings(BaseModel):
    """Buffer sizes and upload fan-out limits."""

    part_size: int = Field(default=DEFAULT_PART_SIZE, gt=0)
    read_window_size: int = Field(default=DEFAULT_PART_SIZE, gt=0)
    max_concurrency: int = Field(default=8, gt=0)


class RetrySettings(BaseModel):
    """Retry budget and backoff for object store calls."""

    max_attempts: int = Field(default=4, gt=0)
    base_delay_ms: int = Field(default=100, ge=0)
    max_delay_ms: int = Field(default=10000, ge=0)
    multiplier: float = Field(default=2.0, ge=1.0)
    jitter: bool = True


class LoggingSettings(BaseModel):
    """Log level and output format."""

    level: str = "INFO"
    format: Literal["text", "json"] = "text"


class MetricsSettings(BaseModel):
    """Prometheus metrics toggle."""

    enabled: bool = False


class Settings(BaseModel):
    """Top-level s3pathio configuration."""

    client: ClientSettings = Field(default_factory=ClientSettings)
    transfer: TransferSettings = Field(default_factory=TransferSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    metrics: MetricsSettings = Field(default_factory=MetricsSettings)


def _parse_client(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the client section from YAML data.

    Handles nested structure: client.credentials.access_key_id -> access_key_id
    """
    if data is None:
        return {}
    result: dict[str, Any] = {
        key: data[key]
        for key in ("backend", "endpoint_url", "region", "addressing_style", "max_pool_connections")
        if key in data
    }
    credentials = data.get("credentials")
    if isinstance(credentials, dict):
        result["access_key_id"] = credentials.get("access_key_id", "")
        result["secret_access_key"] = credentials.get("secret_access_key", "")
    return result


def _parse_transfer(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the transfer section from YAML data."""
    if data is None:
        return {}
    return {
        key: data[key]
        for key in ("part_size", "read_window_size", "max_concurrency")
        if key in data
    }


def _parse_retry(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the retry section from YAML data."""
    if data is None:
        return {}
    return {
        key: data[key]
        for key in ("max_attempts", "base_delay_ms", "max_delay_ms", "multiplier", "jitter")
        if key in data
    }


def _parse_logging(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the logging section from YAML data."""
    if data is None:
        return {}
    return {
        "level": data.get("level", "INFO"),
        "format": data.get("format", "text"),
    }


def _parse_metrics(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the metrics section from YAML data."""
    if data is None:
        return {}
    return {"enabled": data.get("enabled", False)}


def load_settings(path: Path) -> Settings:
    """Load Settings from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A fully populated Settings validated by Pydantic.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
    """
    with open(path, "r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    return Settings(
        client=ClientSettings(**_parse_client(raw.get("client"))),
        transfer=TransferSettings(**_parse_transfer(raw.get("transfer"))),
        retry=RetrySettings(**_parse_retry(raw.get("retry"))),
        logging=LoggingSettings(**_parse_logging(raw.get("logging"))),
        metrics=MetricsSettings(**_parse_metrics(raw.get("metrics"))),
    )


def settings_from_env(environ: Mapping[str, str] | None = None) -> Settings:
    """Resolve Settings from the process environment.

    ``S3PATHIO_CONFIG`` names a YAML file to load; ``S3PATHIO_ENDPOINT_URL``
    and ``S3PATHIO_REGION`` override the client section.
    """
    env = os.environ if environ is None else environ

    config_path = env.get(CONFIG_ENV_VAR)
    settings = load_settings(Path(config_path)) if config_path else Settings()

    overrides: dict[str, Any] = {}
    if env.get("S3PATHIO_ENDPOINT_URL"):
        overrides["endpoint_url"] = env["S3PATHIO_ENDPOINT_URL"]
    if env.get("S3PATHIO_REGION"):
        overrides["region"] = env["S3PATHIO_REGION"]
    if overrides:
        settings = settings.model_copy(
            update={"client": settings.client.model_copy(update=overrides)}
        )
    return settings
