from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from adapters.graphviz.process_engine import default_dot_executable
from domain.services.build_edge_geometry import EdgeGeometryConfig

DEFAULT_CONFIG_PATH = Path("config/graph_layout.yaml")

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class LayoutSettings(BaseModel):
    dot_executable: str | None = None
    dpi: float = Field(96.0, gt=0)
    arrow_length_inches: float = Field(0.125, ge=0)
    flatness: float = Field(0.5, gt=0)
    min_interpolation_distance_sq: float = Field(100.0, gt=0)
    sink_prefix: str = Field("graph", min_length=1)

    @field_validator("dot_executable", mode="before")
    @classmethod
    def normalize_executable(cls, value: object) -> str | None:
        if value is None:
            return None
        normalized = str(value).strip()
        return normalized or None

    def resolved_dot_executable(self) -> str:
        return self.dot_executable or default_dot_executable()

    def to_geometry_config(self) -> EdgeGeometryConfig:
        return EdgeGeometryConfig(
            arrow_length_inches=self.arrow_length_inches,
            flatness=self.flatness,
            min_interpolation_distance_sq=self.min_interpolation_distance_sq,
        )


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="GRAPHLAYOUT_", env_nested_delimiter="__")

    log_level: str = "WARNING"
    layout: LayoutSettings = LayoutSettings()

    _yaml_path: ClassVar[Path | None] = None

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> str:
        level = str(value or "WARNING").strip().upper()
        if level not in _LOG_LEVELS:
            msg = f"log_level must be one of {sorted(_LOG_LEVELS)}, got {value!r}"
            raise ValueError(msg)
        return level

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        if cls._yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path))
        return tuple(sources)


def load_settings(config_path: Path | None = None) -> AppSettings:
    env_path = os.getenv("GRAPHLAYOUT_CONFIG_PATH")
    resolved_path: Path | None = None

    if config_path is not None:
        resolved_path = config_path
    elif env_path:
        resolved_path = Path(env_path)
    elif DEFAULT_CONFIG_PATH.exists():
        resolved_path = DEFAULT_CONFIG_PATH

    previous = AppSettings._yaml_path
    try:
        if resolved_path is not None:
            if not resolved_path.exists():
                msg = f"Config file not found: {resolved_path}"
                raise FileNotFoundError(msg)
            AppSettings._yaml_path = resolved_path
        return AppSettings()
    finally:
        AppSettings._yaml_path = previous
