"""
Configuration management for ShakeSkip.

This module provides pydantic-settings models for type-safe configuration with
validation and environment variable integration. Every setting can be overridden
through a ``SHAKESKIP_``-prefixed environment variable or a ``.env`` file.
"""

from enum import Enum
from typing import Optional, Tuple

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class LogLevel(str, Enum):
    """Log levels for the application."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

class BaseConfig(BaseSettings):
    """
    Base configuration class with common settings for all components.

    All other configuration classes should inherit from this class.
    """
    model_config = SettingsConfigDict(env_file=".env", env_prefix="SHAKESKIP_", extra="ignore")

class EventConfig(BaseConfig):
    """Configuration for the event system."""
    model_config = SettingsConfigDict(env_prefix="SHAKESKIP_EVENT_")

    max_trace_events: int = 1000
    tracing_enabled: bool = True

class ShakeConfig(BaseConfig):
    """Configuration for shake recognition."""
    model_config = SettingsConfigDict(env_prefix="SHAKESKIP_SHAKE_")

    default_threshold: float = 15.0  # m/s^2 of linear acceleration
    min_threshold: float = 10.0
    max_threshold: float = 25.0
    debounce_ms: float = 500.0
    filter_alpha: float = 0.8
    shaking_indicator_ms: float = 600.0  # how long "is shaking" stays raised

    @field_validator("filter_alpha")
    @classmethod
    def validate_alpha(cls, v):
        """Keep the gravity filter stable."""
        if not 0.0 <= v < 1.0:
            raise ValueError("Filter alpha must be in [0.0, 1.0)")
        return v

    @field_validator("debounce_ms", "shaking_indicator_ms")
    @classmethod
    def validate_non_negative(cls, v):
        """Reject negative durations."""
        if v < 0:
            raise ValueError("Durations must not be negative")
        return v

    @model_validator(mode="after")
    def validate_threshold_bounds(self):
        """Check the default threshold sits inside the allowed range."""
        if self.min_threshold > self.max_threshold:
            raise ValueError("min_threshold must not exceed max_threshold")
        if not self.min_threshold <= self.default_threshold <= self.max_threshold:
            raise ValueError("default_threshold must lie within [min_threshold, max_threshold]")
        return self

class SkipSimulationConfig(BaseConfig):
    """Configuration for the CD-skip illusion."""
    model_config = SettingsConfigDict(env_prefix="SHAKESKIP_SKIP_")

    min_skip_ms: int = 200
    max_skip_ms: int = 520  # exclusive
    seek_delay_ms: float = 220.0
    ramp_fractions: Tuple[float, ...] = (0.0, 0.35, 0.7, 1.0)
    ramp_step_delay_ms: float = 120.0
    seed: Optional[int] = None

    @field_validator("seek_delay_ms", "ramp_step_delay_ms")
    @classmethod
    def validate_delay(cls, v):
        """Reject negative delays."""
        if v < 0:
            raise ValueError("Delays must not be negative")
        return v

    @field_validator("ramp_fractions")
    @classmethod
    def validate_ramp(cls, v):
        """The ramp must climb within [0, 1] and finish at the full user volume."""
        if not v:
            raise ValueError("Volume ramp must have at least one step")
        if any(not 0.0 <= f <= 1.0 for f in v):
            raise ValueError("Ramp fractions must be within [0.0, 1.0]")
        if list(v) != sorted(v):
            raise ValueError("Ramp fractions must be non-decreasing")
        if v[-1] != 1.0:
            raise ValueError("Volume ramp must end at 1.0")
        return v

    @model_validator(mode="after")
    def validate_skip_range(self):
        """Check the skip offset range is non-empty."""
        if self.min_skip_ms < 0 or self.max_skip_ms <= self.min_skip_ms:
            raise ValueError("Skip range must satisfy 0 <= min_skip_ms < max_skip_ms")
        return self

class SensorConfig(BaseConfig):
    """Configuration for the accelerometer source."""
    model_config = SettingsConfigDict(env_prefix="SHAKESKIP_SENSOR_")

    sampling_rate_hz: float = 100.0

    @field_validator("sampling_rate_hz")
    @classmethod
    def validate_rate(cls, v):
        """Validate the sampling rate is positive."""
        if v <= 0:
            raise ValueError("Sampling rate must be positive")
        return v

class HapticConfig(BaseConfig):
    """Configuration for haptic feedback."""
    model_config = SettingsConfigDict(env_prefix="SHAKESKIP_HAPTIC_")

    pulse_ms: int = 50

class SettingsStoreConfig(BaseConfig):
    """Configuration for persisted user settings."""
    model_config = SettingsConfigDict(env_prefix="SHAKESKIP_SETTINGS_")

    path: Optional[str] = None  # in-memory when unset

class ApplicationConfig(BaseConfig):
    """
    Main application configuration that combines all component configurations.

    This is the top-level configuration class that should be used by the application.
    """
    model_config = SettingsConfigDict(env_file=".env", env_prefix="SHAKESKIP_", env_nested_delimiter="__")

    event: EventConfig = Field(default_factory=EventConfig)
    shake: ShakeConfig = Field(default_factory=ShakeConfig)
    skip: SkipSimulationConfig = Field(default_factory=SkipSimulationConfig)
    sensor: SensorConfig = Field(default_factory=SensorConfig)
    haptic: HapticConfig = Field(default_factory=HapticConfig)
    settings: SettingsStoreConfig = Field(default_factory=SettingsStoreConfig)
    log_level: LogLevel = LogLevel.INFO  # used when --log-level is not given

def get_config() -> ApplicationConfig:
    """
    Get the application configuration.

    Returns:
        The validated ApplicationConfig instance
    """
    return ApplicationConfig()
