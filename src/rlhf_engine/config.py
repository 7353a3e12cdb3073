import os
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RLHF_")

    storage_key: str = "whl_rlhf"
    db_url: str = os.getenv("DATABASE_URL", "sqlite:///./data/rlhf.db")
    log_level: str = "INFO"

    # Store / refit tunables
    max_stored_comparisons: int = Field(1000, gt=0)
    refit_interval: int = Field(100, gt=0)
    refit_window: int = Field(500, gt=0)
    min_comparisons_for_refit: int = Field(10, ge=0)
    learning_rate: float = Field(0.1, ge=0.0)

    # Kill-switch key that guards the HTTP surface
    gate_feature: str = "ai"
    # Optional JSON status map ({"ai": true}) applied to the gate at startup
    kill_switch_status: Optional[str] = None


settings = Settings()
