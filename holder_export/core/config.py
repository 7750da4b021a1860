"""Configuration management for the API key and service settings.

Loads configuration from environment variables, an optional .env file
and an optional YAML distribution file.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from .exceptions import ConfigurationError
from .models import DistributionConfig

logger = logging.getLogger(__name__)

DEFAULT_RPC_URL = "https://mainnet.helius-rpc.com/"


def _split_csv(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _env_number(name: str, default: Any, cast: type) -> Any:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(name, f"expected {cast.__name__}, got {raw!r}")


@dataclass
class AppConfig:
    """Settings for the upstream provider, the aggregator and the HTTP service."""

    # Helius (required for any upstream call)
    helius_api_key: Optional[str] = None
    rpc_url: str = DEFAULT_RPC_URL

    # Pagination and decimal scale of the token
    page_size: int = 1000
    token_decimals: int = 9

    # Per-call timeout and overall aggregation deadline
    request_timeout_seconds: float = 30.0
    aggregation_deadline_seconds: float = 300.0

    # Airdrop defaults (overridable per request)
    distribution: DistributionConfig = field(default_factory=DistributionConfig)

    # HTTP service
    cors_allow_origins: list[str] = field(
        default_factory=lambda: ["https://*", "http://*"]
    )
    host: str = "0.0.0.0"
    port: int = 8080

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load configuration from environment variables."""
        defaults = DistributionConfig()
        try:
            distribution = DistributionConfig(
                pool_size=_env_number("AIRDROP_POOL", defaults.pool_size, float),
                min_amount=_env_number("AIRDROP_MIN_AMOUNT", defaults.min_amount, float),
                excluded_owners=_split_csv(os.getenv("AIRDROP_EXCLUDED_OWNERS")),
            )
        except ValidationError as e:
            raise ConfigurationError("AIRDROP_*", str(e))

        return cls(
            helius_api_key=os.getenv("HELIUS_API_KEY") or None,
            rpc_url=os.getenv("HELIUS_RPC_URL", DEFAULT_RPC_URL),
            page_size=_env_number("HOLDERS_PAGE_SIZE", 1000, int),
            token_decimals=_env_number("TOKEN_DECIMALS", 9, int),
            request_timeout_seconds=_env_number("RPC_TIMEOUT_SECONDS", 30.0, float),
            aggregation_deadline_seconds=_env_number(
                "AGGREGATION_DEADLINE_SECONDS", 300.0, float
            ),
            distribution=distribution,
            cors_allow_origins=_split_csv(os.getenv("CORS_ALLOW_ORIGINS"))
            or ["https://*", "http://*"],
            host=os.getenv("HOST", "0.0.0.0"),
            port=_env_number("PORT", 8080, int),
        )

    @classmethod
    def load(
        cls,
        env_file: Optional[Path] = None,
        distribution_file: Optional[Path] = None,
    ) -> "AppConfig":
        """
        Load configuration from .env file, environment variables and YAML.

        Args:
            env_file: Optional path to .env file. If not provided,
                      looks for .env in the current working directory.
            distribution_file: Optional YAML file with airdrop settings.
                      Falls back to the DISTRIBUTION_CONFIG env var.

        Returns:
            AppConfig instance with loaded values
        """
        if env_file:
            load_dotenv(env_file)
        else:
            env_path = Path.cwd() / ".env"
            if env_path.exists():
                load_dotenv(env_path)

        config = cls.from_env()

        distribution_file = distribution_file or os.getenv("DISTRIBUTION_CONFIG")
        if distribution_file:
            config.distribution = load_distribution_file(
                Path(distribution_file), base=config.distribution
            )

        config.validate()
        return config

    def validate(self) -> None:
        """Check value ranges that the dataclass cannot express."""
        if not 1 <= self.page_size <= 1000:
            raise ConfigurationError("HOLDERS_PAGE_SIZE", "must be between 1 and 1000")
        if self.token_decimals < 0:
            raise ConfigurationError("TOKEN_DECIMALS", "must not be negative")
        if self.request_timeout_seconds <= 0:
            raise ConfigurationError("RPC_TIMEOUT_SECONDS", "must be positive")
        if self.aggregation_deadline_seconds <= 0:
            raise ConfigurationError("AGGREGATION_DEADLINE_SECONDS", "must be positive")

    def has_helius(self) -> bool:
        """Check if the Helius API key is configured."""
        return bool(self.helius_api_key)

    def require_api_key(self) -> str:
        """Return the Helius API key or raise if it is missing."""
        if not self.helius_api_key:
            raise ConfigurationError("HELIUS_API_KEY", "environment variable is not set")
        return self.helius_api_key


def load_distribution_file(
    path: Path, base: Optional[DistributionConfig] = None
) -> DistributionConfig:
    """
    Load airdrop settings from a YAML file.

    Expected keys (all optional): ``pool``, ``min_amount``, ``excluded_owners``.
    Keys not present keep the values from ``base``.
    """
    base = base or DistributionConfig()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigurationError("DISTRIBUTION_CONFIG", f"file not found: {path}")
    except yaml.YAMLError as e:
        raise ConfigurationError("DISTRIBUTION_CONFIG", f"invalid YAML in {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError("DISTRIBUTION_CONFIG", f"{path} must contain a mapping")

    try:
        distribution = DistributionConfig(
            pool_size=data.get("pool", base.pool_size),
            min_amount=data.get("min_amount", base.min_amount),
            excluded_owners=data.get("excluded_owners", base.excluded_owners),
        )
    except ValidationError as e:
        raise ConfigurationError("DISTRIBUTION_CONFIG", str(e))

    logger.info(
        f"Loaded distribution config from {path} "
        f"({len(distribution.excluded_owners)} excluded owners)"
    )
    return distribution


# Global config instance (lazy loaded)
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.load()
    return _config


def reload_config(
    env_file: Optional[Path] = None, distribution_file: Optional[Path] = None
) -> AppConfig:
    """Reload configuration from environment."""
    global _config
    _config = AppConfig.load(env_file, distribution_file)
    return _config
