import datetime
from collections.abc import Callable

from app.core.catalog import RewardCatalog
from app.core.enums import RarityTier, RewardCategory
from app.schemas.catalog import RewardDefinition
from app.schemas.draw import CategoryProgress, CollectionProgress, RarityProgress
from app.schemas.state import CollectionEntry, CollectionState
from app.services.rarity import TIER_ORDER
from app.utils.misc import get_utc_now


def _percentage(collected: int, total: int) -> float:
    return round(collected / total * 100, 1) if total else 0.0


class CollectionLedger:
    def __init__(
        self, catalog: RewardCatalog, *, clock: Callable[[], datetime.datetime] = get_utc_now
    ) -> None:
        self.catalog = catalog
        self.clock = clock

    def record(
        self, state: CollectionState, reward: RewardDefinition
    ) -> tuple[CollectionState, CollectionEntry]:
        """Add one obtain of ``reward`` to the collection.

        Returns:
            Tuple of (updated state, the entry for the reward)
        """
        now = self.clock()
        existing = state.get(reward.category, reward.id)

        if existing is None:
            entry = CollectionEntry(
                reward_id=reward.id,
                name=reward.name,
                rarity=reward.rarity,
                category=reward.category,
                times_obtained=1,
                obtained_timestamps=[now],
                first_obtain_is_unseen=True,
            )
        else:
            entry = existing.model_copy(
                update={
                    "times_obtained": existing.times_obtained + 1,
                    "obtained_timestamps": [*existing.obtained_timestamps, now],
                    "first_obtain_is_unseen": False,
                }
            )

        return self._with_entry(state, entry), entry

    def mark_seen(
        self, state: CollectionState, category: RewardCategory, reward_id: str
    ) -> CollectionState:
        entry = state.get(category, reward_id)
        if entry is None or not entry.first_obtain_is_unseen:
            return state
        return self._with_entry(state, entry.model_copy(update={"first_obtain_is_unseen": False}))

    def entries(
        self, state: CollectionState, category: RewardCategory | None = None
    ) -> list[CollectionEntry]:
        categories = [category] if category is not None else list(RewardCategory)
        return [
            entry for cat in categories for entry in state.entries.get(cat, {}).values()
        ]

    def progress(self, state: CollectionState) -> CollectionProgress:
        """Count distinct catalog rewards obtained, per category and per rarity."""
        totals: dict[tuple[RewardCategory, RarityTier], int] = {}
        for reward in self.catalog:
            key = (reward.category, reward.rarity)
            totals[key] = totals.get(key, 0) + 1

        collected: dict[tuple[RewardCategory, RarityTier], int] = {}
        for category, entries in state.entries.items():
            for reward_id in entries:
                reward = self.catalog.get(category, reward_id)
                if reward is None:
                    continue
                key = (reward.category, reward.rarity)
                collected[key] = collected.get(key, 0) + 1

        by_category: dict[RewardCategory, CategoryProgress] = {}
        for category in RewardCategory:
            by_rarity = {
                tier: RarityProgress(
                    total=totals.get((category, tier), 0),
                    collected=collected.get((category, tier), 0),
                )
                for tier in TIER_ORDER
            }
            category_total = sum(item.total for item in by_rarity.values())
            category_collected = sum(item.collected for item in by_rarity.values())
            by_category[category] = CategoryProgress(
                total=category_total,
                collected=category_collected,
                percentage=_percentage(category_collected, category_total),
                by_rarity=by_rarity,
            )

        by_rarity_overall = {
            tier: RarityProgress(
                total=sum(totals.get((category, tier), 0) for category in RewardCategory),
                collected=sum(collected.get((category, tier), 0) for category in RewardCategory),
            )
            for tier in TIER_ORDER
        }
        total = sum(item.total for item in by_category.values())
        collected_total = sum(item.collected for item in by_category.values())

        return CollectionProgress(
            total=total,
            collected=collected_total,
            percentage=_percentage(collected_total, total),
            by_category=by_category,
            by_rarity=by_rarity_overall,
        )

    @staticmethod
    def _with_entry(state: CollectionState, entry: CollectionEntry) -> CollectionState:
        entries = {category: dict(items) for category, items in state.entries.items()}
        entries.setdefault(entry.category, {})[entry.reward_id] = entry
        return state.model_copy(update={"entries": entries})
