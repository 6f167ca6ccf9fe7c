from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    log_level: str = Field(default="INFO", validation_alias="ATHLETE_ENGINE_LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="ATHLETE_ENGINE_LOG_FILE")
    dedup_time_tolerance_minutes: float = Field(
        default=6.0,
        validation_alias="ATHLETE_ENGINE_DEDUP_TIME_TOLERANCE_MINUTES",
        description="Maximum start-time difference for two records to count as the same session",
    )
    dedup_duration_tolerance_ratio: float = Field(
        default=0.10,
        validation_alias="ATHLETE_ENGINE_DEDUP_DURATION_TOLERANCE_RATIO",
        description="Maximum duration difference as a fraction of the longer duration",
    )
    dedup_fuzzy_pass: bool = Field(
        default=True,
        validation_alias="ATHLETE_ENGINE_DEDUP_FUZZY_PASS",
        description="Run the pairwise tolerance pass after fingerprint grouping",
    )
    acute_time_constant_days: float = Field(default=7.0, validation_alias="ATHLETE_ENGINE_ACUTE_TIME_CONSTANT_DAYS")
    chronic_time_constant_days: float = Field(default=28.0, validation_alias="ATHLETE_ENGINE_CHRONIC_TIME_CONSTANT_DAYS")
    default_rest_heart_rate: float = Field(default=60.0, validation_alias="ATHLETE_ENGINE_DEFAULT_REST_HEART_RATE")
    default_age: int = Field(default=35, validation_alias="ATHLETE_ENGINE_DEFAULT_AGE")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid log level '{value}'. Valid levels are: {', '.join(sorted(valid_levels))}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("dedup_time_tolerance_minutes", "acute_time_constant_days", "chronic_time_constant_days")
    @classmethod
    def validate_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError(f"must be positive, got {value}")
        return value

    @field_validator("dedup_duration_tolerance_ratio")
    @classmethod
    def validate_ratio(cls, value: float) -> float:
        """Validate that the duration tolerance is a fraction in [0, 1]."""
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"duration tolerance ratio must be within [0, 1], got {value}")
        return value


settings = EngineSettings()
