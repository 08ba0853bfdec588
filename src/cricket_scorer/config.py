"""Configuration management for the cricket scoring engine."""

from enum import Enum
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Load environment from .env if present
load_dotenv(override=False)


class ShortRunPenaltyPolicy(str, Enum):
    """When a deliberate short run earns the fielding side penalty runs."""
    NEVER = "never"
    ALWAYS = "always"
    REPEAT_OFFENCE = "repeat_offence"


class DatabaseSettings(BaseSettings):
    """Database configuration settings."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    host: str = Field(default="localhost", validation_alias="DB_HOST")
    port: int = Field(default=3306, validation_alias="DB_PORT")
    name: str = Field(default="cricket_scorer", validation_alias="DB_NAME")
    user: str = Field(default="scorer", validation_alias="DB_USER")
    password: str = Field(default="", validation_alias="DB_PASSWORD")
    url_override: Optional[str] = Field(default=None, validation_alias="DATABASE_URL")

    @property
    def url(self) -> str:
        """Get database URL for SQLAlchemy."""
        if self.url_override:
            return self.url_override
        return f"mysql+mysqlconnector://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"


class ScoringSettings(BaseSettings):
    """Scoring rule and engine behaviour settings."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    short_run_penalty_policy: ShortRunPenaltyPolicy = Field(
        default=ShortRunPenaltyPolicy.ALWAYS, validation_alias="SHORT_RUN_PENALTY_POLICY"
    )
    short_run_penalty_runs: int = Field(default=5, ge=0, validation_alias="SHORT_RUN_PENALTY_RUNS")
    illegal_delivery_runs: int = Field(default=1, ge=0, validation_alias="ILLEGAL_DELIVERY_RUNS")

    # Replay the ledger after every mutation and compare with the incremental state
    verify_replay: bool = Field(default=True, validation_alias="VERIFY_REPLAY")
    recent_balls: int = Field(default=12, ge=0, validation_alias="RECENT_BALLS")

    # Match format defaults
    default_balls_per_over: int = Field(default=6, ge=1, validation_alias="DEFAULT_BALLS_PER_OVER")
    default_overs_per_innings: Optional[int] = Field(default=20, validation_alias="DEFAULT_OVERS_PER_INNINGS")
    default_players_per_side: int = Field(default=11, ge=2, validation_alias="DEFAULT_PLAYERS_PER_SIDE")


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    file: Optional[str] = Field(default=None, validation_alias="LOG_FILE")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(extra="ignore")

    database: DatabaseSettings = DatabaseSettings()
    scoring: ScoringSettings = ScoringSettings()
    logging: LoggingSettings = LoggingSettings()


# Global settings instance
settings = Settings()
