"""Run configuration.

ScoutConfig is built once at startup (usually from the environment by the
CLI) and passed explicitly to the collector, resolver and driver. Nothing
else in the package reads environment variables.

Example::

    config = ScoutConfig.from_env(max_dependents=50)
    driver = ScoutDriver(config)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
)
from pyrate_limiter import Rate

from depscout.common.exceptions import ConfigurationError
from depscout.data_types import split_dependent_ref

DEFAULT_MAX_DEPENDENTS = 500
DEFAULT_RATE_LIMIT_DELAY = 60.0
DEFAULT_WEB_URL = "https://github.com"
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_OUTPUT_PATH = Path("contributors.csv")

# Environment variable -> field name
ENV_FIELDS = {
    "GITHUB_USERNAME": "github_username",
    "GITHUB_TOKEN": "github_token",
    "TARGET_REPO": "target_repo",
}


class ScoutConfig(BaseModel):
    """Immutable configuration for a single run.

    Attributes:
        github_username: Username for API Basic auth.
        github_token: Personal access token for API Basic auth.
        target_repo: Repository whose dependents are collected (``owner/repo``).
        max_dependents: Hard cap on collected dependents.
        rate_limit_delay: Seconds to wait after a 429 before retrying.
        web_url: Base URL of the site serving the dependents page.
        api_url: Base URL of the REST API.
        timeout: Per-request timeout in seconds. None disables it.
        output_path: Destination of the CSV artifact.
        rate_limits: Optional pyrate_limiter rates used to pace every request.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    github_username: str = Field(..., min_length=1)
    github_token: SecretStr
    target_repo: str
    max_dependents: int = Field(DEFAULT_MAX_DEPENDENTS, ge=0)
    rate_limit_delay: float = Field(DEFAULT_RATE_LIMIT_DELAY, ge=0)
    web_url: str = DEFAULT_WEB_URL
    api_url: str = DEFAULT_API_URL
    timeout: float | None = 30.0
    output_path: Path = DEFAULT_OUTPUT_PATH
    rate_limits: list[Rate] = Field(default_factory=list)

    @field_validator("target_repo")
    @classmethod
    def _check_target_repo(cls, value: str) -> str:
        value = value.strip().strip("/")
        split_dependent_ref(value)
        return value

    @field_validator("web_url", "api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def auth(self) -> tuple[str, str]:
        """Basic auth pair for authenticated API calls."""
        return (self.github_username, self.github_token.get_secret_value())

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, **overrides: Any
    ) -> ScoutConfig:
        """Build a configuration from environment variables.

        Reads GITHUB_USERNAME, GITHUB_TOKEN and TARGET_REPO. Keyword
        overrides take precedence over the environment; overrides set to
        None are ignored so CLI options can be passed straight through.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.
            **overrides: Field values that replace environment values.

        Raises:
            ConfigurationError: If a required value is missing or invalid.
        """
        if environ is None:
            environ = os.environ

        values: dict[str, Any] = {}
        for env_name, field_name in ENV_FIELDS.items():
            env_value = environ.get(env_name)
            if env_value:
                values[field_name] = env_value
        values.update({k: v for k, v in overrides.items() if v is not None})

        missing = [
            env_name
            for env_name, field_name in ENV_FIELDS.items()
            if field_name not in values
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variable(s): {', '.join(missing)}"
            )

        try:
            return cls(**values)
        except ValidationError as e:
            summary = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigurationError(
                f"Invalid configuration: {summary}"
            ) from e
