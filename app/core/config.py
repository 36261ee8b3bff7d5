from typing import Literal

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

from app.core.enums import RarityTier


class Config(BaseSettings):
    db_url: str = "sqlite+aiosqlite:///./daily_cards.db"
    env: Literal["prod", "dev"] = "prod"

    host: str = "127.0.0.1"
    port: int = 3011
    log_level: str = "INFO"

    # Admin endpoints are disabled when unset
    admin_token: str | None = None

    # Draw engine
    daily_draw_limit: int = 3
    mid_pity_threshold: int = 10
    top_pity_threshold: int = 50
    draw_weights: dict[RarityTier, int] = {
        RarityTier.BASE: 70,
        RarityTier.MID: 25,
        RarityTier.TOP: 5,
    }
    first_draw_weights: dict[RarityTier, int] = {
        RarityTier.BASE: 60,
        RarityTier.MID: 30,
        RarityTier.TOP: 10,
    }
    first_draw_boost: bool = False
    pity_reset_on_natural_hit: bool = False
    day_utc_offset_hours: int = 8  # calendar day boundary, UTC+8

    @property
    def is_dev(self) -> bool:
        return self.env == "dev"


load_dotenv()
settings = Config()
