"""Application settings loaded from environment variables.

Environment Configuration:
    CORSGATE_ENV: Deployment environment (local | test | staging | prod)
    LOG_JSON: Render logs as JSON (default true)

CORS Configuration:
    CORS_ORIGINS: "*", a single origin, or a comma-separated list ("" disables CORS)
    CORS_ORIGIN_REGEX: Extra origin pattern, OR-combined with CORS_ORIGINS
    CORS_METHODS: Comma-separated methods allowed on preflight
    CORS_ALLOWED_HEADERS: Comma-separated allow-list (unset reflects the request)
    CORS_EXPOSED_HEADERS: Comma-separated headers exposed to the browser
    CORS_CREDENTIALS: Emit Access-Control-Allow-Credentials: true
    CORS_MAX_AGE: Preflight cache lifetime in seconds
    CORS_PREFLIGHT_CONTINUE: Pass preflight requests on to the application
    CORS_OPTIONS_SUCCESS_STATUS: Status for answered preflights (2xx)
"""

import re
from enum import Enum
from functools import lru_cache
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

from corsgate.policy import DEFAULT_OPTIONS, WILDCARD, CorsOptions, split_list


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class Settings(BaseSettings):
    """Application configuration.

    Validation rules:
    - CORS_ORIGIN_REGEX must compile
    - CORS_MAX_AGE must be >= 0
    - CORS_OPTIONS_SUCCESS_STATUS must be a 2xx status
    - CORS_CREDENTIALS cannot be combined with a bare "*" origin in staging/prod
    """

    corsgate_env: Environment = Field(default=Environment.LOCAL, alias="CORSGATE_ENV")
    log_json: bool = Field(default=True, alias="LOG_JSON")

    cors_origins: str = Field(default=WILDCARD, alias="CORS_ORIGINS")
    cors_origin_regex: str | None = Field(default=None, alias="CORS_ORIGIN_REGEX")
    cors_methods: str = Field(
        default=",".join(DEFAULT_OPTIONS["methods"]), alias="CORS_METHODS"
    )
    cors_allowed_headers: str | None = Field(default=None, alias="CORS_ALLOWED_HEADERS")
    cors_exposed_headers: str | None = Field(default=None, alias="CORS_EXPOSED_HEADERS")
    cors_credentials: bool = Field(default=False, alias="CORS_CREDENTIALS")
    cors_max_age: int | None = Field(default=None, alias="CORS_MAX_AGE")
    cors_preflight_continue: bool = Field(default=False, alias="CORS_PREFLIGHT_CONTINUE")
    cors_options_success_status: int = Field(
        default=DEFAULT_OPTIONS["options_success_status"], alias="CORS_OPTIONS_SUCCESS_STATUS"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def validate_cors_settings(self) -> "Settings":
        """Reject CORS settings that cannot produce a coherent policy."""
        if self.cors_origin_regex:
            try:
                re.compile(self.cors_origin_regex)
            except re.error as e:
                raise ValueError(f"CORS_ORIGIN_REGEX is not a valid pattern: {e}") from e

        if self.cors_max_age is not None and self.cors_max_age < 0:
            raise ValueError("CORS_MAX_AGE must be >= 0")

        if not 200 <= self.cors_options_success_status <= 299:
            raise ValueError("CORS_OPTIONS_SUCCESS_STATUS must be a 2xx status code")

        if (
            self.corsgate_env in (Environment.STAGING, Environment.PROD)
            and self.cors_credentials
            and self.origin_list == [WILDCARD]
            and not self.cors_origin_regex
        ):
            raise ValueError(
                f"CORS_CREDENTIALS cannot be used with CORS_ORIGINS=* "
                f"for CORSGATE_ENV={self.corsgate_env.value}"
            )

        return self

    @property
    def origin_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return list(split_list(self.cors_origins))

    @property
    def origin_rule(self) -> Any:
        """Origin rule derived from CORS_ORIGINS and CORS_ORIGIN_REGEX.

        False when neither is configured, which disables CORS handling.
        """
        origins = self.origin_list
        if self.cors_origin_regex:
            explicit = [o for o in origins if o != WILDCARD]
            return [*explicit, re.compile(self.cors_origin_regex)]
        if not origins:
            return False
        if len(origins) == 1:
            return origins[0]
        return origins

    def to_cors_options(self) -> CorsOptions:
        """Build the middleware options these settings describe."""
        return CorsOptions(
            origin=self.origin_rule,
            methods=split_list(self.cors_methods),
            allowed_headers=(
                split_list(self.cors_allowed_headers)
                if self.cors_allowed_headers
                else None
            ),
            exposed_headers=split_list(self.cors_exposed_headers),
            credentials=self.cors_credentials,
            max_age=self.cors_max_age,
            preflight_continue=self.cors_preflight_continue,
            options_success_status=self.cors_options_success_status,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
