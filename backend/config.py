"""
Configuration management for Kingston Parking
Uses environment variables with sensible defaults
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings with validation"""

    model_config = SettingsConfigDict(
        env_prefix="KINGSTON_PARKING_",
        env_file=".env",
        case_sensitive=False,
    )

    # API Configuration
    api_title: str = "Kingston Parking API"
    api_version: str = "1.0.0"
    api_prefix: str = "/api/v1"
    debug: bool = False

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1

    # Local time for "now" when a request doesn't pass an instant
    timezone: str = "America/Toronto"

    # Sensor feed (remote relay that ESP32/Arduino boards post to)
    sensor_feed_url: Optional[str] = None
    sensor_feed_timeout: int = 10
    sensor_poll_interval: float = 5.0  # seconds
    sensor_backed_ids: List[str] = ["clergy-st-w", "beamish-munro-hall"]

    # Simulated availability drift for locations without sensors
    simulate_drift: bool = True
    drift_interval: float = 10.0  # seconds

    # CORS
    cors_origins: List[str] = ["*"]
    cors_credentials: bool = True
    cors_methods: List[str] = ["*"]
    cors_headers: List[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    # Performance / observability
    enable_compression: bool = True
    metrics_enabled: bool = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
