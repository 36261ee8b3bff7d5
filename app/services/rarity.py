import random
from collections.abc import Mapping
from typing import TypeAlias

from app.core.enums import RarityTier

WeightTable: TypeAlias = Mapping[RarityTier, int]

TIER_ORDER: tuple[RarityTier, ...] = (RarityTier.BASE, RarityTier.MID, RarityTier.TOP)


def expected_rates(weights: WeightTable) -> dict[RarityTier, float]:
    """Theoretical percentage of each tier for a weight table."""
    total = sum(max(weights.get(tier, 0), 0) for tier in TIER_ORDER)
    if total <= 0:
        return {tier: 100.0 if tier is RarityTier.BASE else 0.0 for tier in TIER_ORDER}
    return {tier: max(weights.get(tier, 0), 0) / total * 100 for tier in TIER_ORDER}


class RarityDrawer:
    def __init__(
        self,
        rng: random.Random,
        *,
        first_draw_weights: WeightTable | None = None,
        first_draw_boost: bool = False,
    ) -> None:
        self.rng = rng
        self.first_draw_weights = first_draw_weights
        self.first_draw_boost = first_draw_boost

    def select(self, weights: WeightTable) -> RarityTier:
        """Pick a tier with probability weight / total.

        Tiers are walked in ascending order. Zero weights are never picked and an
        empty or all-zero table falls back to the lowest tier.
        """
        cumulative: list[tuple[RarityTier, int]] = []
        total = 0
        for tier in TIER_ORDER:
            weight = weights.get(tier, 0)
            if weight <= 0:
                continue
            total += weight
            cumulative.append((tier, total))

        if total <= 0:
            return RarityTier.BASE

        roll = self.rng.randrange(total)
        for tier, upper in cumulative:
            if roll < upper:
                return tier

        return RarityTier.BASE

    def weights_for_draw(self, weights: WeightTable, draws_today: int) -> WeightTable:
        """Boosted table for the first draw of the day when the boost is enabled."""
        if self.first_draw_boost and self.first_draw_weights and draws_today == 0:
            return self.first_draw_weights
        return weights
