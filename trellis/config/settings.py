"""Trellis configuration via environment / .env file."""

from __future__ import annotations

from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TRELLIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Path search ---
    PATH_HOP_CEILING: int = 20
    DEFAULT_DEPTH: int = 2

    # --- Hotspots ---
    HOTSPOT_FRACTION: float = 0.1
    PRECOMPUTE_HOTSPOTS: bool = False

    # --- Trails ---
    # "stall": a hop with no hotspot candidate makes no move (legacy)
    # "heaviest": fall back to the heaviest unvisited neighbor
    TRAIL_FALLBACK: Literal["stall", "heaviest"] = "stall"
    DEFAULT_MAX_HOPS: int = 5

    @field_validator("PATH_HOP_CEILING")
    @classmethod
    def _ceiling_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("PATH_HOP_CEILING must be at least 1")
        return v

    @field_validator("HOTSPOT_FRACTION")
    @classmethod
    def _fraction_in_range(cls, v: float) -> float:
        if not 0 < v <= 1:
            raise ValueError("HOTSPOT_FRACTION must be in (0, 1]")
        return v


settings = Settings()
