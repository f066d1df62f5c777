"""
Configuration loader for the Partner API client
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError
import logging

logger = logging.getLogger(__name__)

ENVIRONMENT_URLS = {
    "sandbox": "https://sandbox.partner-api.example.com/api/v1",
    "production": "https://partner-api.example.com/api/v1",
}

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "partner_api.yml"


class RetryConfig(BaseModel):
    """Retry policy for idempotent requests"""

    max_retries: int = Field(default=3, ge=0, le=10)
    backoff_factor: float = Field(default=0.5, ge=0.0)
    max_backoff_seconds: float = Field(default=30.0, gt=0.0)
    retry_statuses: List[int] = Field(default_factory=lambda: [429, 500, 502, 503, 504])
    retry_methods: List[str] = Field(default_factory=lambda: ["GET"])


class CircuitBreakerConfig(BaseModel):
    """Circuit breaker thresholds"""

    enabled: bool = True
    failure_threshold: int = Field(default=5, ge=1)
    recovery_timeout_seconds: float = Field(default=30.0, gt=0.0)


class RateLimitConfig(BaseModel):
    """Client-side request pacing"""

    enabled: bool = True
    requests_per_minute: int = Field(default=60, ge=1, le=1000)


class WebhookConfig(BaseModel):
    """Inbound webhook verification"""

    secret: str = ""
    signature_header: str = "X-Partner-Signature"
    timestamp_header: str = "X-Partner-Timestamp"
    tolerance_seconds: int = Field(default=300, ge=0)


class PartnerAPIConfig(BaseModel):
    """Complete Partner API configuration"""

    base_url: str = ""
    api_key: str = ""
    api_key_header: str = "X-API-KEY"
    mode: Optional[str] = None                   # "real" / "mock"; None means auto
    timeout_seconds: float = Field(default=20.0, gt=0.0)
    default_page_size: int = Field(default=50, ge=1, le=500)
    user_agent: str = "partner-api-client/1.0"
    retry: RetryConfig = Field(default_factory=lambda: RetryConfig())
    circuit_breaker: CircuitBreakerConfig = Field(default_factory=lambda: CircuitBreakerConfig())
    rate_limit: RateLimitConfig = Field(default_factory=lambda: RateLimitConfig())
    webhook: WebhookConfig = Field(default_factory=lambda: WebhookConfig())

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_key)


def _apply_env_overrides(config_data: Dict[str, Any]) -> Dict[str, Any]:
    data = dict(config_data)

    env_name = os.getenv("PARTNER_API_ENV", "").strip().lower()
    if env_name and not data.get("base_url"):
        if env_name not in ENVIRONMENT_URLS:
            raise ValueError(f"Unknown PARTNER_API_ENV '{env_name}'. Expected one of: {', '.join(ENVIRONMENT_URLS)}")
        data["base_url"] = ENVIRONMENT_URLS[env_name]

    if os.getenv("PARTNER_API_URL"):
        data["base_url"] = os.environ["PARTNER_API_URL"]
    if os.getenv("PARTNER_API_KEY"):
        data["api_key"] = os.environ["PARTNER_API_KEY"]
    if os.getenv("PARTNER_API_MODE"):
        data["mode"] = os.environ["PARTNER_API_MODE"].strip().lower()
    if os.getenv("PARTNER_API_TIMEOUT"):
        data["timeout_seconds"] = float(os.environ["PARTNER_API_TIMEOUT"])
    if os.getenv("PARTNER_WEBHOOK_SECRET"):
        webhook = dict(data.get("webhook") or {})
        webhook["secret"] = os.environ["PARTNER_WEBHOOK_SECRET"]
        data["webhook"] = webhook

    return data


def load_partner_config(config_path: Optional[Path] = None) -> PartnerAPIConfig:
    """
    Load and validate Partner API configuration

    Values come from the YAML file (if present) and are then overridden by
    environment variables (a local .env file is honoured).

    Args:
        config_path: Path to config file. Defaults to config/partner_api.yml

    Returns:
        Validated PartnerAPIConfig object

    Raises:
        ValidationError: If config doesn't match schema
    """
    load_dotenv()

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_data: Dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.info(f"Config file not found at {config_path}; using defaults")

    config_data = _apply_env_overrides(config_data)

    try:
        config = PartnerAPIConfig(**config_data)
        logger.info(f"Loaded Partner API config (base_url={config.base_url or '<unset>'})")
        return config
    except ValidationError as e:
        logger.error(f"Config validation failed: {e}")
        raise
