import datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

from app.core.enums import RarityTier, RewardCategory
from app.utils.misc import get_utc_now


class PityState(BaseModel):
    mid_streak: int = Field(default=0, ge=0)
    """Draws since the last mid-tier guarantee"""
    top_streak: int = Field(default=0, ge=0)
    """Draws since the last top-tier guarantee"""
    last_mid_at: datetime.datetime | None = None
    last_top_at: datetime.datetime | None = None


class DrawRecord(BaseModel):
    reward_id: str
    category: RewardCategory
    tier: RarityTier
    timestamp: datetime.datetime


class QuotaState(BaseModel):
    date: datetime.date
    remaining: int = Field(ge=0)
    draws: list[DrawRecord] = Field(default_factory=list)


class CollectionEntry(BaseModel):
    reward_id: str
    name: str
    rarity: RarityTier
    category: RewardCategory
    times_obtained: int = Field(ge=1)
    obtained_timestamps: list[datetime.datetime]
    first_obtain_is_unseen: bool = False
    """Set on the first obtain until the player acknowledges the new card"""

    @model_validator(mode="after")
    def check_obtained_count(self) -> Self:
        if self.times_obtained != len(self.obtained_timestamps):
            msg = (
                f"times_obtained ({self.times_obtained}) does not match "
                f"{len(self.obtained_timestamps)} obtained timestamps"
            )
            raise ValueError(msg)
        return self


class CollectionState(BaseModel):
    entries: dict[RewardCategory, dict[str, CollectionEntry]] = Field(default_factory=dict)
    created_at: datetime.datetime = Field(default_factory=get_utc_now)

    @model_validator(mode="after")
    def check_entry_keys(self) -> Self:
        for category, entries in self.entries.items():
            for reward_id, entry in entries.items():
                if entry.category != category or entry.reward_id != reward_id:
                    msg = (
                        f"Entry {entry.category.value}/{entry.reward_id} "
                        f"stored under {category.value}/{reward_id}"
                    )
                    raise ValueError(msg)
        return self

    def get(self, category: RewardCategory, reward_id: str) -> CollectionEntry | None:
        return self.entries.get(category, {}).get(reward_id)


class StateBundle(BaseModel):
    """Backup of every persisted record of one user."""

    pity: PityState
    quota: QuotaState
    collection: CollectionState
    exported_at: datetime.datetime = Field(default_factory=get_utc_now)
