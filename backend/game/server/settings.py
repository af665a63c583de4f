"""Game server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from shared.validators import OriginListEnvSettingsSource, parse_origin_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class GameServerSettings(BaseSettings):
    model_config = {"env_prefix": "GAME_"}

    log_dir: str | None = None
    cors_origins: list[str] = ["http://localhost:5173"]

    # Eviction sweep: how often it runs and what it removes.
    sweep_interval_seconds: int = Field(default=300, ge=1)
    finished_retention_seconds: int = Field(default=600, ge=0)
    # Also the cutoff for random matchmaking and the available-games listing.
    lobby_max_age_seconds: int = Field(default=3600, ge=60)
    # Coarse expiry for any record not written in this long.
    record_ttl_seconds: int = Field(default=86400, ge=60)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_origin_list(v)

    @model_validator(mode="after")
    def _validate_windows(self) -> Self:
        if self.record_ttl_seconds < self.lobby_max_age_seconds:
            raise ValueError("record_ttl_seconds must not be shorter than lobby_max_age_seconds")
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, OriginListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings
