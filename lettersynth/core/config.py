from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LETTERSYNTH_", extra="ignore")

    app_name: str = "lettersynth API"
    app_version: str = "0.1.0"
    debug: bool = False

    api_prefix: str = "/api"

    sample_rate: int = Field(default=48_000, ge=1)
    block_size: int = Field(default=512, ge=1)

    # Startup letter table. The same seed always produces the same bindings.
    seed_bindings_on_startup: bool = True
    binding_seed: int = 0x5EED
    randomize_parameters: bool = True

    pulse_note_number: int = Field(default=60, ge=0, le=127)


@lru_cache
def get_settings() -> Settings:
    return Settings()
