from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )
    PROJECT_NAME: str = "bundleflow"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "console"

    # Bundle generation
    MAX_BUNDLE_SIZE: int = Field(default=25, ge=1)

    # Assignment
    ASSIGNMENT_MAX_RETRIES: int = Field(default=3, ge=1)
    ASSIGNMENT_MIN_SCORE: int = Field(default=0, ge=0, le=115)
    ASSIGNMENT_REQUIRE_MACHINE_MATCH: bool = True
    DEFAULT_OPERATOR_CAPACITY: int = Field(default=5, ge=1)

    # Write retries for non-assignment bundle updates
    WRITE_MAX_RETRIES: int = Field(default=3, ge=1)

    EVENT_HISTORY_SIZE: int = Field(default=1000, ge=0)

    @model_validator(mode="after")
    def _normalise_log_level(self) -> Self:
        self.LOG_LEVEL = self.LOG_LEVEL.upper()
        if self.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported LOG_LEVEL: {self.LOG_LEVEL}")
        return self


settings = Settings()  # type: ignore
