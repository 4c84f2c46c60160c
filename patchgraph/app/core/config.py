from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CABLE_COLORS = ["#c91847", "#0c8e15", "#0986ad", "#c9b70e", "#7b3fbd"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PATCHGRAPH_", extra="ignore")

    app_name: str = "Patchgraph API"
    app_version: str = "0.1.0"
    debug: bool = False

    api_prefix: str = "/api"

    vcv_registry_dir: Path = Field(
        default_factory=lambda: Path(__file__).resolve().parents[1] / "registry" / "data" / "vcv"
    )

    # Browser clients are opt-in, e.g. PATCHGRAPH_CORS_ORIGINS='["http://localhost:3000"]'.
    cors_origins: list[str] = Field(default_factory=list)

    rack_version: str = "2.6.6"
    cable_colors: list[str] = Field(default_factory=lambda: list(DEFAULT_CABLE_COLORS), min_length=1)
    id_seed: int | None = None

    pd_canvas_x: int = 0
    pd_canvas_y: int = 50
    pd_canvas_width: int = 1000
    pd_canvas_height: int = 600
    pd_font_size: int = 12


@lru_cache
def get_settings() -> Settings:
    return Settings()
