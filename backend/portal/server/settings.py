"""Portal server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from pydantic import field_validator
from pydantic_settings import BaseSettings

from vault.validators import CsvListEnvSettingsSource, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class PortalServerSettings(BaseSettings):
    model_config = {"env_prefix": "PORTAL_"}

    csv_list_fields: ClassVar[frozenset[str]] = frozenset({"cors_origins"})

    log_dir: str = "backend/logs/portal"
    cors_origins: list[str] = []

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v, allow_empty=True)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, CsvListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings)
