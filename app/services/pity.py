import datetime
from collections.abc import Callable
from typing import NamedTuple

from app.core.enums import RarityTier
from app.schemas.draw import PityProgress, SimulationStats, TierProgress
from app.schemas.state import PityState
from app.services.rarity import TIER_ORDER, RarityDrawer, WeightTable
from app.utils.misc import get_utc_now


class PityResolution(NamedTuple):
    tier: RarityTier
    forced: bool
    pity_type: RarityTier | None
    state: PityState


class PityTracker:
    """Dual guarantee on top of a RarityDrawer.

    ``top_streak`` reaching ``top_threshold`` forces a top-tier result and clears
    both streaks; otherwise ``mid_streak`` reaching ``mid_threshold`` forces a
    mid-tier result and clears only the mid streak. A forced result leaves the
    other streak untouched; every non-qualifying natural result adds one to the
    matching streak.

    Naturally rolled mid/top results leave the streaks where they are unless
    ``reset_on_natural_hit`` is set.
    """

    def __init__(
        self,
        drawer: RarityDrawer,
        *,
        mid_threshold: int = 10,
        top_threshold: int = 50,
        reset_on_natural_hit: bool = False,
        clock: Callable[[], datetime.datetime] = get_utc_now,
    ) -> None:
        self.drawer = drawer
        self.mid_threshold = mid_threshold
        self.top_threshold = top_threshold
        self.reset_on_natural_hit = reset_on_natural_hit
        self.clock = clock

    def resolve(self, state: PityState, weights: WeightTable) -> PityResolution:
        now = self.clock()
        mid_streak = state.mid_streak
        top_streak = state.top_streak
        last_mid_at = state.last_mid_at
        last_top_at = state.last_top_at

        if top_streak >= self.top_threshold:
            tier, pity_type = RarityTier.TOP, RarityTier.TOP
            mid_streak = top_streak = 0
            last_top_at = now
        elif mid_streak >= self.mid_threshold:
            tier, pity_type = RarityTier.MID, RarityTier.MID
            mid_streak = 0
            last_mid_at = now
        else:
            tier, pity_type = self.drawer.select(weights), None

        if pity_type is None:
            mid_streak += 0 if tier.at_least(RarityTier.MID) else 1
            top_streak += 0 if tier is RarityTier.TOP else 1

            if tier.at_least(RarityTier.MID):
                last_mid_at = now
                if self.reset_on_natural_hit:
                    mid_streak = 0
            if tier is RarityTier.TOP:
                last_top_at = now
                if self.reset_on_natural_hit:
                    top_streak = 0

        updated = PityState(
            mid_streak=mid_streak,
            top_streak=top_streak,
            last_mid_at=last_mid_at,
            last_top_at=last_top_at,
        )
        return PityResolution(tier, pity_type is not None, pity_type, updated)

    def progress(self, state: PityState) -> PityProgress:
        return PityProgress(
            mid=self._tier_progress(state.mid_streak, self.mid_threshold),
            top=self._tier_progress(state.top_streak, self.top_threshold),
        )

    @staticmethod
    def _tier_progress(current: int, threshold: int) -> TierProgress:
        percentage = round(min(current / threshold, 1) * 100, 1) if threshold > 0 else 100.0
        return TierProgress(
            current=current,
            max=threshold,
            percentage=percentage,
            next_guaranteed=current >= threshold,
        )

    def simulate(
        self, times: int, weights: WeightTable, state: PityState | None = None
    ) -> tuple[SimulationStats, PityState]:
        """Run ``times`` draws without persisting anything.

        Returns:
            Tuple of (tier statistics, final pity state)
        """
        state = state or PityState()
        counts = dict.fromkeys(TIER_ORDER, 0)
        pity_triggered = 0

        for _ in range(times):
            resolution = self.resolve(state, weights)
            counts[resolution.tier] += 1
            pity_triggered += resolution.forced
            state = resolution.state

        stats = SimulationStats(total=times, counts=counts, pity_triggered=pity_triggered)
        return stats, state
