from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

ENV_PREFIX = "TACTICS_"


class TacticsSettings(BaseModel):
    """Tunables shared by the policies and the HTTP backend."""

    partner_tick_difference: int = Field(default=650, ge=0, description="Max lifetime gap inside a pair")
    squad_tick_difference: int = Field(default=500, ge=0, description="Max lifetime gap inside a squad")
    fire_support_search_radius: int = Field(default=8, ge=0)
    pincer_radius: int = Field(default=5, ge=1)
    staging_timeout: int = Field(default=25, ge=0, description="Ticks squads wait on pincer points")
    log_level: str = "INFO"
    tactics_log_level: Optional[str] = Field(default=None, description="Level override for the tactics loggers")
    log_json: bool = False
    log_file: Optional[str] = None


def load_settings(env_file: str | None = None) -> TacticsSettings:
    """
    Build settings from TACTICS_* environment variables.

    A .env file (or `env_file`) is loaded first; variables already set in
    the process environment win.
    """
    load_dotenv(env_file)
    raw = {}
    for name in TacticsSettings.model_fields:
        value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if value is not None:
            raw[name] = value
    return TacticsSettings.model_validate(raw)
