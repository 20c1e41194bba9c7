from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from cardwise.domain import constants
from cardwise.domain.scheduling.models import QueueCaps, SchedulingParams, StudyMode

CONFIG_FILES = [
    Path.home() / ".config/cardwise/config.toml",
    Path.home() / ".cardwise.toml",
]


class AppConfig(BaseSettings):
    """
    Configuration model for cardwise.
    Supports loading from:
    1. Environment variables (CARDWISE_*)
    2. Config file (~/.config/cardwise/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="CARDWISE_",
        toml_file=CONFIG_FILES,
        extra="ignore",
    )

    # Storage
    backend: Literal["yaml", "memory"] = "yaml"
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".config/cardwise")
    deck_file: Path | None = None
    log_file: Path | None = None

    profile_id: str = constants.DEFAULT_PROFILE_ID

    # Scheduling
    starting_ease: float = constants.STARTING_EASE
    minimum_ease: float = Field(default=constants.MINIMUM_EASE, gt=0)
    lapse_penalty: float = Field(default=constants.LAPSE_PENALTY, ge=0)
    easy_bonus: float = Field(default=constants.EASY_BONUS, ge=0)
    perfect_bonus: float = Field(default=constants.PERFECT_BONUS, ge=0)
    first_interval: int = Field(default=constants.FIRST_INTERVAL, ge=1)
    second_interval: int = Field(default=constants.SECOND_INTERVAL, ge=1)
    mastery_interval_days: int = Field(default=constants.MASTERY_INTERVAL_DAYS, ge=1)

    # Queue caps
    quick_max_review: int = Field(default=constants.QUICK_MAX_REVIEW, ge=0)
    quick_max_new: int = Field(default=constants.QUICK_MAX_NEW, ge=0)
    default_max_review: int = Field(default=constants.DEFAULT_MAX_REVIEW, ge=0)
    default_max_new: int = Field(default=constants.DEFAULT_MAX_NEW, ge=0)

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

        # Find the first existing file
        toml_file = None
        for f in CONFIG_FILES:
            if f.exists():
                toml_file = f
                break

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("data_dir", mode="before")
    @classmethod
    def resolve_dir(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("deck_file", "log_file", mode="before")
    @classmethod
    def resolve_file(cls, v: Any) -> Path | None:
        if v is None:
            return None
        return Path(v).expanduser().resolve()

    @model_validator(mode="after")
    def check_ease_floor(self) -> "AppConfig":
        if self.starting_ease < self.minimum_ease:
            raise ValueError(
                f"starting_ease ({self.starting_ease}) is below minimum_ease ({self.minimum_ease})"
            )
        return self

    def scheduling_params(self) -> SchedulingParams:
        return SchedulingParams(
            starting_ease=self.starting_ease,
            minimum_ease=self.minimum_ease,
            lapse_penalty=self.lapse_penalty,
            easy_bonus=self.easy_bonus,
            perfect_bonus=self.perfect_bonus,
            first_interval=self.first_interval,
            second_interval=self.second_interval,
        )

    def caps_for(self, mode: StudyMode) -> QueueCaps:
        if StudyMode(mode) is StudyMode.QUICK:
            return QueueCaps(max_review=self.quick_max_review, max_new=self.quick_max_new)
        return QueueCaps(max_review=self.default_max_review, max_new=self.default_max_new)


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/cardwise/config.toml (if exists)
    3. Environment variables (CARDWISE_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    config = AppConfig(**overrides)

    if config.deck_file is None:
        config.deck_file = config.data_dir / "cards.yaml"
    if config.log_file is None:
        config.log_file = config.data_dir / "study_log.yaml"

    return config
