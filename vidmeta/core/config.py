"""Configuration management with YAML and environment variable support"""

import os
from typing import Any, Dict, List, Optional, Tuple, Type

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from vidmeta.models.aggregation import (
    AggregationConfig,
    CachingPolicy,
    MixingPolicy,
    MixingStrategy,
    SourceLimits,
    SourceToggles,
)
from vidmeta.models.video import Source


class BaseConfigSection(BaseSettings):
    """Base class for all config sections with correct environment variable precedence.

    This class customizes the settings source priority to ensure that:
    1. Environment variables have highest priority
    2. Init kwargs (YAML data) have second priority
    3. Default values have lowest priority

    This allows environment variables to override YAML configuration as expected.
    """

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings source priority: env vars > init kwargs > defaults."""
        return (env_settings, init_settings, dotenv_settings, file_secret_settings)


class ServerConfig(BaseConfigSection):
    """Server configuration"""

    host: str = (
        "0.0.0.0"  # nosec B104 - Intentional binding to all interfaces for containerized deployment
    )
    port: int = 8000
    workers: int = 1

    model_config = SettingsConfigDict(env_prefix="VIDMETA_SERVER_")


class LoggingConfig(BaseConfigSection):
    """Logging configuration"""

    level: str = "INFO"
    format: str = "json"

    model_config = SettingsConfigDict(env_prefix="VIDMETA_LOGGING_")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in ("json", "console"):
            raise ValueError("format must be 'json' or 'console'")
        return v


class LocalSourceConfig(BaseConfigSection):
    """Local catalog source configuration"""

    enabled: bool = True
    catalog_path: Optional[str] = None  # bundled sample catalog when unset
    cache_ttl: int = 30  # seconds
    cache_size: int = 256

    model_config = SettingsConfigDict(env_prefix="VIDMETA_LOCAL_")


class ExternalSourceConfig(BaseConfigSection):
    """External platform source configuration"""

    enabled: bool = True
    api_key: Optional[str] = None
    base_url: str = "https://www.googleapis.com/youtube/v3/"
    timeout: float = 10.0  # seconds
    region_code: str = "US"
    retry_attempts: int = 3
    retry_backoff: List[float] = Field(default_factory=lambda: [1, 2, 4])
    cache_ttl: int = 300  # seconds
    cache_size: int = 512

    model_config = SettingsConfigDict(env_prefix="VIDMETA_EXTERNAL_")

    @field_validator("retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("retry_attempts must be at least 1")
        return v


class SourcesConfig(BaseConfigSection):
    """Sources configuration"""

    local: LocalSourceConfig = Field(default_factory=LocalSourceConfig)
    external: ExternalSourceConfig = Field(default_factory=ExternalSourceConfig)


class AggregationSettings(BaseConfigSection):
    """Initial aggregation policy"""

    local_limit: int = 25
    external_limit: int = 25
    total_limit: int = 50
    caching_enabled: bool = True
    cache_ttl: float = 600.0  # seconds
    mixing_strategy: MixingStrategy = MixingStrategy.ROUND_ROBIN
    source_priority: List[Source] = Field(default_factory=lambda: [Source.LOCAL, Source.EXTERNAL])

    model_config = SettingsConfigDict(env_prefix="VIDMETA_AGGREGATION_")

    def to_aggregation_config(self, sources: "SourcesConfig") -> AggregationConfig:
        """Build the runtime policy seeded from process configuration."""
        return AggregationConfig(
            sources=SourceToggles(local=sources.local.enabled, external=sources.external.enabled),
            limits=SourceLimits(
                local=self.local_limit, external=self.external_limit, total=self.total_limit
            ),
            caching=CachingPolicy(enabled=self.caching_enabled, ttl=self.cache_ttl),
            mixing=MixingPolicy(
                strategy=self.mixing_strategy, source_priority=tuple(self.source_priority)
            ),
        )


class MonitoringConfig(BaseConfigSection):
    """Monitoring configuration"""

    metrics_enabled: bool = True

    model_config = SettingsConfigDict(env_prefix="VIDMETA_MONITORING_")


class Config(BaseSettings):
    """Main application configuration"""

    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    aggregation: AggregationSettings = Field(default_factory=AggregationSettings)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = SettingsConfigDict(env_prefix="VIDMETA_")

    def aggregation_config(self) -> AggregationConfig:
        return self.aggregation.to_aggregation_config(self.sources)


class ConfigService:
    """Service for loading and managing configuration"""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or "config.yaml"
        self._config: Optional[Config] = None

    def load(self) -> Config:
        """Load configuration from YAML file with environment variable overrides.

        Thanks to BaseConfigSection.settings_customise_sources(), environment variables
        automatically take precedence over YAML values, which in turn take precedence
        over defaults. No manual checking required.
        """
        config_data: Dict[str, Any] = {}

        # Load from YAML file if it exists
        if os.path.exists(self.config_path):
            with open(self.config_path, "r", encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f)
                if yaml_data:
                    config_data = yaml_data

        # Create nested config objects - BaseConfigSection handles env var precedence
        server = ServerConfig(**config_data.get("server", {}))
        logging_config = LoggingConfig(**config_data.get("logging", {}))
        aggregation = AggregationSettings(**config_data.get("aggregation", {}))
        monitoring = MonitoringConfig(**config_data.get("monitoring", {}))

        # Handle sources
        sources_data = config_data.get("sources", {})
        local_config = LocalSourceConfig(**sources_data.get("local", {}))
        external_config = ExternalSourceConfig(**sources_data.get("external", {}))
        sources = SourcesConfig(local=local_config, external=external_config)

        # Create main config
        self._config = Config(
            server=server,
            logging=logging_config,
            sources=sources,
            aggregation=aggregation,
            monitoring=monitoring,
        )

        return self._config

    def validate(self) -> bool:
        """Validate the loaded configuration"""
        if self._config is None:
            raise ValueError("Configuration not loaded. Call load() first.")

        # Builds the runtime policy, which applies the cross-field checks
        self._config.aggregation_config()

        if not self._config.sources.local.enabled and not self._config.sources.external.enabled:
            raise ValueError("At least one source must be enabled")

        return True

    @property
    def config(self) -> Config:
        """Get the loaded configuration"""
        if self._config is None:
            raise ValueError("Configuration not loaded. Call load() first.")
        return self._config
