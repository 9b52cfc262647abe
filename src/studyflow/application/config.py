from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from studyflow.domain import constants as c
from studyflow.domain.scheduling.models import SM2Parameters


def config_file_candidates() -> list[Path]:
    return [
        Path.home() / ".config/studyflow/config.toml",
        Path.home() / ".studyflow.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for studyflow.
    Supports loading from:
    1. Environment variables (STUDYFLOW_*)
    2. Config file (~/.config/studyflow/config.toml or ~/.studyflow.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="STUDYFLOW_",
        extra="ignore",
    )

    # Ease factor band
    min_ease_factor: float = c.MIN_EASE_FACTOR
    max_ease_factor: float = c.MAX_EASE_FACTOR

    # Steps and intervals
    relearning_steps_minutes: list[int] = Field(
        default_factory=lambda: list(c.RELEARNING_STEPS_MINUTES)
    )
    first_interval_days: int = c.FIRST_INTERVAL_DAYS
    second_interval_days: int = c.SECOND_INTERVAL_DAYS
    easy_bonus: float = c.EASY_BONUS
    hard_penalty: float = c.HARD_PENALTY
    max_interval_days: int = c.MAX_INTERVAL_DAYS

    # Mastery
    mastery_threshold_days: int = c.MASTERY_THRESHOLD_DAYS
    mastery_threshold_reps: int = c.MASTERY_THRESHOLD_REPS

    # Output
    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # First existing file wins
        toml_file = next((f for f in config_file_candidates() if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @model_validator(mode="after")
    def check_parameters(self) -> "AppConfig":
        # Raises SchedulingContractError (a ValueError) on an invalid combination
        self.to_parameters()
        return self

    def to_parameters(self) -> SM2Parameters:
        return SM2Parameters(
            min_ease_factor=self.min_ease_factor,
            max_ease_factor=self.max_ease_factor,
            relearning_steps_minutes=tuple(self.relearning_steps_minutes),
            first_interval_days=self.first_interval_days,
            second_interval_days=self.second_interval_days,
            easy_bonus=self.easy_bonus,
            hard_penalty=self.hard_penalty,
            max_interval_days=self.max_interval_days,
            mastery_threshold_days=self.mastery_threshold_days,
            mastery_threshold_reps=self.mastery_threshold_reps,
        )


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/studyflow/config.toml (if exists)
    3. Environment variables (STUDYFLOW_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
