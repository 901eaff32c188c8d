"""
Application configuration and environment variables.

This module unifies configuration using pydantic-settings.
Variables can come from:
1. .env file
2. System environment variables (have priority)
3. Default values

Naming convention:
- In Python code: snake_case (tiktok_client_key)
- In .env or ENV vars: UPPER_CASE (TIKTOK_CLIENT_KEY)
- Pydantic automatically converts between both
"""

import json
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Unified application configuration.

    All variables can be defined in:
    - .env file: VARIABLE_NAME=value
    - Environment variables: export VARIABLE_NAME=value

    Configuration is process-wide and read-only once the application
    has started.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,  # Allows using uppercase or lowercase
        extra="ignore",  # Ignores extra variables in .env
    )

    # ============================================================================
    # PROJECT SETTINGS
    # ============================================================================
    project_name: str = Field(default="linkvault", description="Project name")
    project_description: str = Field(
        default="Connected accounts and API key vault for automation workflows",
        description="Project description",
    )

    # ============================================================================
    # SERVER SETTINGS
    # ============================================================================
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")
    enable_docs: bool = Field(
        default=False, description="Enable API documentation (Swagger/ReDoc)"
    )
    secret_key: str = Field(
        default="dev-secret-key-change-in-production-min-32-chars",
        description="Secret key for signing OAuth state tokens (32+ chars)",
    )

    # ============================================================================
    # LOGGING SETTINGS
    # ============================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: str = Field(
        default="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | trace_id={extra[trace_id]} | {name}:{function}:{line} - {message}",  # noqa: E501
        description="Log format",
    )
    logger_enqueue: bool = Field(
        default=False, description="Enqueue logs using multiprocessing"
    )

    # ============================================================================
    # CORS / ORIGIN SETTINGS
    # ============================================================================
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:3001",
        description="Origins accepted by CORS and the origin gate (comma-separated)",
    )
    cors_allowed_methods: str = Field(
        default="GET,POST,OPTIONS", description="Allowed HTTP methods for CORS"
    )
    cors_allowed_headers: str = Field(
        default="Content-Type,Authorization",
        description="Allowed headers for CORS",
    )
    app_origin: str = Field(
        default="http://localhost:3000",
        description="Origin of the web app that opens the OAuth popup",
    )
    base_app_uri: str = Field(
        default="http://localhost:8000",
        description="Public base URI of this backend (used for redirect URIs)",
    )

    # ============================================================================
    # SECRETS
    # ============================================================================
    api_key_encryption_secret: str = Field(
        default="",
        description="Server secret used to derive the API key encryption key (32+ chars)",
    )
    jwt_secret: str = Field(
        default="", description="HMAC secret for service tokens sent to workflows"
    )
    service_token_ttl_seconds: int = Field(
        default=300, description="Service token lifetime (capped at 300 seconds)"
    )

    # ============================================================================
    # IDENTITY BACKEND
    # ============================================================================
    identity_backend: str = Field(
        default="remote",
        description="How bearer tokens are verified (remote, jwt)",
    )
    supabase_url: str = Field(default="", description="Identity backend base URL")
    supabase_anon_key: str = Field(
        default="", description="Public API key for the identity backend"
    )
    identity_jwt_secret: str = Field(
        default="", description="HS256 secret for local bearer token verification"
    )
    identity_jwt_audience: str = Field(
        default="authenticated", description="Expected audience of user tokens"
    )

    # ============================================================================
    # INFRASTRUCTURE SETTINGS
    # ============================================================================
    infrastructure_base_dir: str = Field(
        default="./.credentials",
        description="Base directory for local credential and key storage",
    )
    rate_limit_backend: str = Field(
        default="memory",
        description="Rate limit and OAuth nonce store (memory, redis)",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0", description="Redis connection URL"
    )
    audit_sink: str = Field(default="log", description="Audit sink (log, file)")
    audit_log_path: str = Field(
        default="./.credentials/audit.jsonl",
        description="Append-only audit file used by the file sink",
    )
    http_timeout_seconds: float = Field(
        default=10.0, description="Timeout applied to every outbound HTTP call"
    )

    # ============================================================================
    # WORKFLOW ENGINE
    # ============================================================================
    workflow_webhooks: str = Field(
        default="{}",
        description='Workflow name to webhook URL map as JSON ({"post-now": "https://..."})',
    )

    # ============================================================================
    # OAUTH PROVIDERS SETTINGS
    # ============================================================================

    # TikTok (authorization code + PKCE)
    tiktok_client_key: str = Field(default="", description="TikTok client key")
    tiktok_client_secret: str = Field(default="", description="TikTok client secret")
    tiktok_redirect_uri: str = Field(
        default="", description="TikTok redirect URI (defaults to BASE_APP_URI)"
    )

    # Facebook
    facebook_app_id: str = Field(default="", description="Facebook app ID")
    facebook_app_secret: str = Field(default="", description="Facebook app secret")
    facebook_redirect_uri: str = Field(default="", description="Facebook redirect URI")

    # Instagram
    instagram_app_id: str = Field(default="", description="Instagram app ID")
    instagram_app_secret: str = Field(default="", description="Instagram app secret")
    instagram_redirect_uri: str = Field(
        default="", description="Instagram redirect URI"
    )

    # LinkedIn
    linkedin_client_id: str = Field(default="", description="LinkedIn client ID")
    linkedin_client_secret: str = Field(
        default="", description="LinkedIn client secret"
    )
    linkedin_redirect_uri: str = Field(default="", description="LinkedIn redirect URI")

    # Google
    google_client_id: str = Field(default="", description="Google OAuth Client ID")
    google_client_secret: str = Field(
        default="", description="Google OAuth Client Secret"
    )
    google_redirect_uri: str = Field(default="", description="Google redirect URI")

    # ============================================================================
    # HELPER METHODS
    # ============================================================================

    def get_allowed_origins(self) -> list[str]:
        """
        Get list of allowed origins for CORS and the origin gate.

        Returns:
            list[str]: List of allowed origin URLs.
        """
        return [
            origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()
        ]

    def get_cors_allowed_methods(self) -> list[str]:
        """
        Get list of allowed HTTP methods for CORS.

        Returns:
            list[str]: List of allowed HTTP methods. Returns ["*"] if all methods are allowed.
        """
        if self.cors_allowed_methods == "*":
            return ["*"]
        return [method.strip() for method in self.cors_allowed_methods.split(",")]

    def get_cors_allowed_headers(self) -> list[str]:
        """
        Get list of allowed headers for CORS.

        Returns:
            list[str]: List of allowed headers. Returns ["*"] if all headers are allowed.
        """
        if self.cors_allowed_headers == "*":
            return ["*"]
        return [header.strip() for header in self.cors_allowed_headers.split(",")]

    def get_redirect_uri(self, provider: str) -> str:
        """
        Get the OAuth redirect URI for a provider.

        Falls back to ``{BASE_APP_URI}/connections/{provider}/callback``
        when no explicit URI is configured.

        Args:
            provider: Provider identifier

        Returns:
            str: Redirect URI registered with the provider
        """
        explicit = getattr(self, f"{provider}_redirect_uri", "")
        if explicit:
            return explicit
        return f"{self.base_app_uri.rstrip('/')}/connections/{provider}/callback"

    def get_workflow_webhooks(self) -> dict[str, str]:
        """
        Get the workflow name to webhook URL map.

        Returns:
            dict[str, str]: Configured workflow webhooks (empty if unparseable)
        """
        try:
            webhooks = json.loads(self.workflow_webhooks or "{}")
        except json.JSONDecodeError:
            return {}
        if not isinstance(webhooks, dict):
            return {}
        return {str(name): str(url) for name, url in webhooks.items()}


# ============================================================================
# SINGLETON PATTERN - Global settings instance
# ============================================================================


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings (LRU cached).

    This function is cached, so the .env file is only read once.
    To refresh the configuration, clear the cache:
        get_settings.cache_clear()

    Returns:
        Settings: Application configuration instance.
    """
    return Settings()


# Create global instance for use outside FastAPI
settings = get_settings()
