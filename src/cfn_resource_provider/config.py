import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_NAME = "cfn-resource-provider"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_METRICS_NAMESPACE = "CfnResourceProvider"


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """Provider configuration loaded from environment variables."""

    # --- Optional Variables with Defaults ---
    service_name: str = DEFAULT_SERVICE_NAME
    log_level: str = DEFAULT_LOG_LEVEL
    metrics_namespace: str = DEFAULT_METRICS_NAMESPACE

    # --- Response Delivery ---
    # None keeps the PUT unbounded; the Lambda timeout is the only limit then.
    response_timeout_seconds: float | None = None

    @classmethod
    def load_from_env(cls) -> "ProviderConfig":
        """
        Loads configuration from environment variables, performing validation and type casting.
        Every variable is optional. Fails fast with a ConfigurationError if a value is invalid.
        """
        try:
            service_name = os.getenv("POWERTOOLS_SERVICE_NAME", DEFAULT_SERVICE_NAME).strip()
            if not service_name:
                raise ValueError("POWERTOOLS_SERVICE_NAME must not be empty.")

            metrics_namespace = os.getenv(
                "POWERTOOLS_METRICS_NAMESPACE", DEFAULT_METRICS_NAMESPACE
            ).strip()
            if not metrics_namespace:
                raise ValueError("POWERTOOLS_METRICS_NAMESPACE must not be empty.")

            # --- Handle special-case variables like log level ---
            log_level = (
                os.getenv("LOG_LEVEL") or os.getenv("POWERTOOLS_LOG_LEVEL") or DEFAULT_LOG_LEVEL
            ).upper()
            allowed_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
            if log_level not in allowed_log_levels:
                raise ValueError(
                    f"LOG_LEVEL must be one of {allowed_log_levels}, not '{log_level}'"
                )

            raw_timeout = os.getenv("CFN_RESPONSE_TIMEOUT_SECONDS", "").strip()
            response_timeout_seconds = float(raw_timeout) if raw_timeout else None
            if response_timeout_seconds is not None and response_timeout_seconds <= 0:
                raise ValueError("CFN_RESPONSE_TIMEOUT_SECONDS must be a positive number.")

        except (ValueError, TypeError) as e:
            raise ConfigurationError(
                f"Invalid value for an environment variable: {e}"
            ) from e

        return cls(
            service_name=service_name,
            log_level=log_level,
            metrics_namespace=metrics_namespace,
            response_timeout_seconds=response_timeout_seconds,
        )


# --- Singleton Factory Function (Lazy-loaded and Cached) ---
@lru_cache(maxsize=1)
def get_config() -> ProviderConfig:
    """
    Loads the provider configuration from environment variables.
    The result is cached using lru_cache, so the environment is only read once
    on the first call. This avoids import-time side effects.
    """
    logger.info("Loading provider configuration from environment...")
    return ProviderConfig.load_from_env()
