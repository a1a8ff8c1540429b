"""
Configuration module for the frame proxy service.

This module uses Pydantic Settings to load and validate environment variables
for the upstream fetch policy, the per-endpoint behaviour switches and the
server/CORS settings.

Environment variables are loaded from .env file or system environment.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The endpoint switches below are read by frameproxy.proxy.profiles to
    build one EndpointProfile per route.
    """

    # =========================================================================
    # Server Configuration
    # =========================================================================

    PROXY_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the proxy server",
    )

    PROXY_PORT: int = Field(
        default=3000,
        description="Port to bind the proxy server",
        ge=1,
        le=65535,
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    ALLOWED_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins for the API itself",
    )

    # =========================================================================
    # Upstream Fetch Policy
    # =========================================================================

    UPSTREAM_USER_AGENT: str = Field(
        default=DEFAULT_BROWSER_USER_AGENT,
        description="Desktop browser User-Agent sent to upstream targets",
        min_length=1,
    )

    UPSTREAM_MAX_REDIRECTS: int = Field(
        default=5,
        description="Maximum redirect hops followed before the last response is returned",
        ge=0,
        le=20,
    )

    URL_MIN_LENGTH: int = Field(
        default=10,
        description="Minimum target URL length accepted by strict validation",
        ge=1,
    )

    # =========================================================================
    # /proxy Endpoint
    # =========================================================================

    PROXY_STRICT_VALIDATION: bool = Field(
        default=False,
        description="Reject resolved targets that are not http(s) URLs with 400",
    )

    PROXY_ADD_CORS_HEADERS: bool = Field(
        default=True,
        description="Add permissive Access-Control-* headers to relayed responses",
    )

    PROXY_USE_BROWSER_USER_AGENT: bool = Field(
        default=True,
        description="Send UPSTREAM_USER_AGENT on proxy fetches",
    )

    PROXY_TIMEOUT_SECONDS: Optional[float] = Field(
        default=30.0,
        description="Proxy fetch timeout in seconds (unset uses the client default)",
        gt=0,
    )

    # =========================================================================
    # /check Endpoint
    # =========================================================================

    CHECK_STRICT_VALIDATION: bool = Field(
        default=True,
        description="Validate url shape and customHeaders type before fetching",
    )

    CHECK_CUSTOM_HEADERS: bool = Field(
        default=True,
        description="Report presence of caller-supplied customHeaders",
    )

    CHECK_STRICT_CUSTOM_HEADER_NAMES: bool = Field(
        default=True,
        description="Only look up custom header names of the form X-<name>",
    )

    CHECK_USE_BROWSER_USER_AGENT: bool = Field(
        default=True,
        description="Send UPSTREAM_USER_AGENT on /check fetches",
    )

    CHECK_TIMEOUT_SECONDS: Optional[float] = Field(
        default=5.0,
        description="/check HEAD timeout in seconds",
        gt=0,
    )

    # =========================================================================
    # /broken Endpoint
    # =========================================================================

    BROKEN_USE_BROWSER_USER_AGENT: bool = Field(
        default=False,
        description="Send UPSTREAM_USER_AGENT on /broken fetches (client default otherwise)",
    )

    BROKEN_TIMEOUT_SECONDS: Optional[float] = Field(
        default=None,
        description="/broken HEAD timeout in seconds (unset uses the client default)",
        gt=0,
    )

    # =========================================================================
    # Pydantic Settings Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra env vars not defined here
    )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def allowed_origins_list(self) -> List[str]:
        """
        Parse and return ALLOWED_ORIGINS as a list.

        Returns:
            List of allowed origin URLs, or ["*"] if not configured.
        """
        origins = [
            origin.strip()
            for origin in self.ALLOWED_ORIGINS.split(",")
            if origin.strip()
        ]
        return origins or ["*"]

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate LOG_LEVEL is a standard logging level name.

        Raises:
            ValueError: If the level is unknown
        """
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

        level = v.strip().upper()
        if level not in allowed_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of {allowed_levels}, got: {v}"
            )

        return level

    @field_validator(
        "PROXY_TIMEOUT_SECONDS",
        "CHECK_TIMEOUT_SECONDS",
        "BROKEN_TIMEOUT_SECONDS",
        mode="before",
    )
    @classmethod
    def empty_timeout_is_unset(cls, v):
        """Treat an empty environment value as "no explicit timeout"."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    This function is cached so that the settings are loaded only once
    during the application lifecycle.

    Returns:
        Settings instance with all configuration loaded and validated.

    Raises:
        ValidationError: If an environment variable is invalid.

    Example:
        >>> from frameproxy.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.UPSTREAM_MAX_REDIRECTS)
    """
    return Settings()


# Export settings instance for convenience
settings = get_settings()


# =============================================================================
# Configuration Helpers
# =============================================================================

def validate_configuration(config: Optional[Settings] = None) -> dict:
    """
    Validate configuration settings and return a status report.

    Called during application startup so that risky combinations are
    visible in the logs.

    Returns:
        Dictionary with validation status and any warnings.

    Example:
        >>> status = validate_configuration()
        >>> if status["warnings"]:
        ...     print(status["warnings"])
    """
    config = config or get_settings()
    errors = []
    warnings = []

    if config.PROXY_TIMEOUT_SECONDS is None:
        warnings.append(
            "PROXY_TIMEOUT_SECONDS is not set (proxy fetches use the client default timeout)"
        )

    if config.UPSTREAM_MAX_REDIRECTS == 0:
        warnings.append("UPSTREAM_MAX_REDIRECTS is 0 (redirect responses are relayed as-is)")

    if not config.PROXY_ADD_CORS_HEADERS:
        warnings.append("PROXY_ADD_CORS_HEADERS is off (relayed responses carry upstream CORS only)")

    if "*" in config.allowed_origins_list and len(config.allowed_origins_list) > 1:
        errors.append("ALLOWED_ORIGINS mixes '*' with explicit origins")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "max_redirects": config.UPSTREAM_MAX_REDIRECTS,
        "proxy_timeout_seconds": config.PROXY_TIMEOUT_SECONDS,
        "check_timeout_seconds": config.CHECK_TIMEOUT_SECONDS,
    }


if __name__ == "__main__":
    """
    Print the effective configuration:
        python -m frameproxy.config
    """
    print("=" * 80)
    print("FRAME PROXY CONFIGURATION")
    print("=" * 80)

    try:
        config = get_settings()

        print("\nServer:")
        print(f"  Host:            {config.PROXY_HOST}")
        print(f"  Port:            {config.PROXY_PORT}")
        print(f"  Log level:       {config.LOG_LEVEL}")
        print(f"  Allowed origins: {', '.join(config.allowed_origins_list)}")

        print("\nUpstream:")
        print(f"  User-Agent:      {config.UPSTREAM_USER_AGENT}")
        print(f"  Max redirects:   {config.UPSTREAM_MAX_REDIRECTS}")

        print("\nEndpoints:")
        print(f"  /proxy  strict={config.PROXY_STRICT_VALIDATION} cors={config.PROXY_ADD_CORS_HEADERS} "
              f"timeout={config.PROXY_TIMEOUT_SECONDS}")
        print(f"  /check  strict={config.CHECK_STRICT_VALIDATION} custom={config.CHECK_CUSTOM_HEADERS} "
              f"timeout={config.CHECK_TIMEOUT_SECONDS}")
        print(f"  /broken ua={config.BROKEN_USE_BROWSER_USER_AGENT} timeout={config.BROKEN_TIMEOUT_SECONDS}")

        status = validate_configuration(config)

        print("\n" + "=" * 80)
        if status["valid"]:
            print("✓ All critical checks passed!")
        else:
            print("✗ Configuration errors found:")
            for error in status["errors"]:
                print(f"  - {error}")

        if status["warnings"]:
            print("\n⚠ Warnings:")
            for warning in status["warnings"]:
                print(f"  - {warning}")

    except Exception as e:
        print(f"\n✗ Configuration error: {e}")
