"""
Configuration management for the Power BI provider.
"""

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from powerbi_provider.utils.exceptions import ConfigurationError

if TYPE_CHECKING:
    from powerbi_provider.transport.enhanced_retry import RetryConfig


class Config(BaseModel):
    """
    Provider settings with environment variable support.

    Authentication settings live in ``AuthConfig``; this model holds the
    endpoints, HTTP transport tuning, retry policy and logging options.
    """

    # Endpoints
    api_base_url: str = Field(
        default="https://api.powerbi.com/v1.0/myorg",
        description="Base URL of the Power BI REST API"
    )
    authority_url: str = Field(
        default="https://login.microsoftonline.com",
        description="Azure Entra ID authority used for OAuth2 token requests"
    )
    resource: str = Field(
        default="https://analysis.windows.net/powerbi/api",
        description="Token audience for the Power BI REST API"
    )

    # HTTP transport
    http_timeout: float = Field(
        default=120.0,
        description="Read/write/pool timeout for API requests in seconds"
    )
    tls_handshake_timeout: float = Field(
        default=60.0,
        description="Connect timeout, covering the TLS handshake, in seconds"
    )
    max_connections: int = Field(
        default=100,
        description="Maximum number of pooled connections"
    )
    max_keepalive_connections: int = Field(
        default=20,
        description="Maximum number of idle keep-alive connections"
    )

    # Legacy retry layers
    rate_limit_max_retries: int = Field(
        default=10,
        description="Retries for 429 responses in the rate-limit layer"
    )
    rate_limit_default_delay: float = Field(
        default=5.0,
        description="Wait used for 429 responses without a usable Retry-After"
    )
    intermittent_max_retries: int = Field(
        default=3,
        description="Retries for intermittent 400/5xx responses"
    )
    intermittent_retry_delay: float = Field(
        default=1.0,
        description="Initial delay for intermittent error retries in seconds"
    )

    # Enhanced retry layer
    enhanced_retry: bool = Field(
        default=False,
        description="Insert the exponential-backoff retry layer into the chain"
    )
    retry_max_retries: int = Field(default=5, description="Enhanced retry: maximum retries")
    retry_initial_delay: float = Field(default=1.0, description="Enhanced retry: initial delay")
    retry_max_delay: float = Field(default=60.0, description="Enhanced retry: maximum delay")
    retry_backoff_factor: float = Field(default=2.0, description="Enhanced retry: backoff factor")
    retry_jitter_factor: float = Field(default=0.3, description="Enhanced retry: jitter factor (0-1)")

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="json",
        description="Log format (json, text)"
    )

    @classmethod
    def load_from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "Config":
        """
        Load configuration from environment variables and optional .env file.

        Args:
            env_file: Optional path to .env file to load

        Returns:
            Config instance
        """
        if env_file:
            load_dotenv(env_file)
        else:
            for env_path in [".env", ".env.local"]:
                if os.path.exists(env_path):
                    load_dotenv(env_path)
                    break

        config_data: Dict[str, Any] = {}

        env_mapping = {
            "POWERBI_API_BASE_URL": "api_base_url",
            "POWERBI_AUTHORITY_URL": "authority_url",
            "POWERBI_RESOURCE": "resource",
            "POWERBI_HTTP_TIMEOUT": "http_timeout",
            "POWERBI_TLS_HANDSHAKE_TIMEOUT": "tls_handshake_timeout",
            "POWERBI_MAX_CONNECTIONS": "max_connections",
            "POWERBI_MAX_KEEPALIVE_CONNECTIONS": "max_keepalive_connections",
            "POWERBI_RATE_LIMIT_MAX_RETRIES": "rate_limit_max_retries",
            "POWERBI_RATE_LIMIT_DEFAULT_DELAY": "rate_limit_default_delay",
            "POWERBI_INTERMITTENT_MAX_RETRIES": "intermittent_max_retries",
            "POWERBI_INTERMITTENT_RETRY_DELAY": "intermittent_retry_delay",
            "POWERBI_ENHANCED_RETRY": "enhanced_retry",
            "POWERBI_RETRY_MAX_RETRIES": "retry_max_retries",
            "POWERBI_RETRY_INITIAL_DELAY": "retry_initial_delay",
            "POWERBI_RETRY_MAX_DELAY": "retry_max_delay",
            "POWERBI_RETRY_BACKOFF_FACTOR": "retry_backoff_factor",
            "POWERBI_RETRY_JITTER_FACTOR": "retry_jitter_factor",
            "POWERBI_LOG_LEVEL": "log_level",
            "POWERBI_LOG_FORMAT": "log_format",
        }

        int_fields = {
            "max_connections",
            "max_keepalive_connections",
            "rate_limit_max_retries",
            "intermittent_max_retries",
            "retry_max_retries",
        }
        float_fields = {
            "http_timeout",
            "tls_handshake_timeout",
            "rate_limit_default_delay",
            "intermittent_retry_delay",
            "retry_initial_delay",
            "retry_max_delay",
            "retry_backoff_factor",
            "retry_jitter_factor",
        }

        for env_var, config_field in env_mapping.items():
            value = os.getenv(env_var)
            if value is None:
                continue

            if config_field in int_fields:
                try:
                    config_data[config_field] = int(value)
                except ValueError:
                    raise ConfigurationError(
                        f"Invalid integer value for {env_var}: {value}"
                    )
            elif config_field in float_fields:
                try:
                    config_data[config_field] = float(value)
                except ValueError:
                    raise ConfigurationError(
                        f"Invalid float value for {env_var}: {value}"
                    )
            elif config_field == "enhanced_retry":
                config_data[config_field] = value.lower() in ("true", "1", "yes", "on")
            else:
                config_data[config_field] = value

        return cls(**config_data)

    def retry_config(self) -> "RetryConfig":
        """
        Build the enhanced retry policy described by this configuration.

        Raises:
            ConfigurationError: If the retry settings are out of range
        """
        from powerbi_provider.transport.enhanced_retry import RetryConfig

        try:
            return RetryConfig(
                max_retries=self.retry_max_retries,
                initial_delay=self.retry_initial_delay,
                max_delay=self.retry_max_delay,
                backoff_factor=self.retry_backoff_factor,
                jitter_factor=self.retry_jitter_factor,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid retry configuration: {e}")


# Global configuration instance
_global_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        Global Config instance
    """
    global _global_config
    if _global_config is None:
        _global_config = Config.load_from_env()
    return _global_config


def set_config(config: Config) -> None:
    """
    Set the global configuration instance.

    Args:
        config: Config instance to set as global
    """
    global _global_config
    _global_config = config


def reset_config() -> None:
    """Reset the global configuration to None."""
    global _global_config
    _global_config = None
