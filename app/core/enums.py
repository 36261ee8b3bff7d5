from enum import StrEnum


class RarityTier(StrEnum):
    BASE = "R"
    MID = "SR"
    TOP = "SSR"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def at_least(self, other: "RarityTier") -> bool:
        return self.rank >= other.rank


_RANKS: dict[RarityTier, int] = {RarityTier.BASE: 1, RarityTier.MID: 2, RarityTier.TOP: 3}


class RewardCategory(StrEnum):
    TRADITIONAL = "traditional"
    HEXAGRAM = "hexagram"


class StateKind(StrEnum):
    PITY = "pity_state"
    QUOTA = "quota_state"
    COLLECTION = "collection_state"
