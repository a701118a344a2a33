"""Runtime configuration for the synchronizer.

Defaults match GitHub's public API. An optional YAML file can override
any of them:

    api_base_url: https://github.example.com/api/v3
    per_page: 50
    rate_limit_low_water: 100

The file may also carry ``github_token``. This module never reads the
environment: the CLI looks up GH_PERSONAL_ACCESS_TOKEN once at startup and
passes it as an override, which takes precedence over the file.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

GITHUB_HOST = "github.com"


class SyncConfig(BaseModel):
    """Settings for the GitHub fetcher and the engine.

    Attributes:
        github_token: Personal access token (authenticated access allows 5000 reqs/hour)
        api_base_url: Root of the GitHub REST API
        supported_host: Host prefix of release sources that map to GitHub
        per_page: Releases requested per page
        rate_limit_low_water: Sleep until the quota resets when fewer requests remain
        timeout: HTTP timeout in seconds
    """

    github_token: str = ""
    api_base_url: str = "https://api.github.com"
    supported_host: str = GITHUB_HOST
    per_page: int = Field(30, ge=1, le=100)
    rate_limit_low_water: int = Field(50, ge=0)
    timeout: float = Field(30.0, gt=0)


def load_sync_config(path: str | Path | None = None, **overrides: object) -> SyncConfig:
    """Load and validate a YAML config file.

    Args:
        path: Path to the YAML configuration file. None means defaults only.
        **overrides: Values that take precedence over the file (e.g. github_token)

    Returns:
        A validated SyncConfig. Returns defaults if the file doesn't exist.

    Raises:
        ValueError: If the YAML content is invalid or fails validation.
    """
    raw: dict = {}
    if path is not None:
        config_path = Path(path)
        if config_path.exists():
            try:
                raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
            except yaml.YAMLError as exc:
                raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
            if not isinstance(raw, dict):
                raise ValueError(f"Invalid sync config in {path}: expected a mapping")

    raw.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return SyncConfig.model_validate(raw)
    except Exception as exc:
        raise ValueError(f"Invalid sync config in {path}: {exc}") from exc
