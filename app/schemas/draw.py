import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.core.enums import RarityTier, RewardCategory
from app.schemas.catalog import RewardDefinition
from app.schemas.state import DrawRecord


class DrawOutcome(BaseModel):
    """Result of a successful draw."""

    exhausted: Literal[False] = False
    reward: RewardDefinition
    tier: RarityTier
    pity_triggered: bool
    pity_type: RarityTier | None = None
    """Which guarantee fired, if any"""
    is_new: bool
    """First time this reward was obtained"""
    remaining: int


class QuotaExhausted(BaseModel):
    """No draws left today. Returned as a value, never raised."""

    exhausted: Literal[True] = True
    remaining: int = 0
    limit: int
    resets_on: datetime.date


class TierProgress(BaseModel):
    current: int
    max: int
    percentage: float
    next_guaranteed: bool = Field(description="Whether the next draw is forced to this tier")


class PityProgress(BaseModel):
    mid: TierProgress
    top: TierProgress


class QuotaStatus(BaseModel):
    date: datetime.date
    remaining: int
    limit: int
    todays_draws: list[DrawRecord]


class RarityProgress(BaseModel):
    total: int
    collected: int


class CategoryProgress(BaseModel):
    total: int
    collected: int
    percentage: float
    by_rarity: dict[RarityTier, RarityProgress]


class CollectionProgress(BaseModel):
    """Derived from the collection entries on demand, never persisted."""

    total: int
    collected: int
    percentage: float
    by_category: dict[RewardCategory, CategoryProgress]
    by_rarity: dict[RarityTier, RarityProgress]


class SimulationStats(BaseModel):
    total: int
    counts: dict[RarityTier, int]
    pity_triggered: int
