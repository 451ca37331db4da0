"""Environment-driven configuration for DEM loading."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from domain.dem.services import DEFAULT_VOID_VALUES


class DemSettings(BaseSettings):
    """Settings read from ``DEM_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DEM_",
        env_file=None,
        case_sensitive=False,
        extra="ignore",
    )

    max_bytes: int | None = Field(default=None, gt=0)
    void_values: Annotated[tuple[float, ...], NoDecode] = DEFAULT_VOID_VALUES
    gdal_options: dict[str, str] = Field(default_factory=dict)
    high_nodata_warning_pct: float = Field(default=80.0, ge=0.0, le=100.0)

    @field_validator("void_values", mode="before")
    @classmethod
    def _split_void_values(cls, value: object) -> object:
        if value is None:
            return ()
        if isinstance(value, str):
            return tuple(float(part) for part in value.split(",") if part.strip())
        return value


@lru_cache
def get_settings() -> DemSettings:
    return DemSettings()
