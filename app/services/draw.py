import datetime
import random
from collections.abc import Callable
from typing import Annotated, TypeVar

from fastapi import Depends
from loguru import logger
from pydantic import BaseModel, ValidationError
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.catalog import CATALOG, RewardCatalog
from app.core.config import Config, settings
from app.core.db import get_db
from app.core.enums import RewardCategory, StateKind
from app.core.exceptions import EmptyRewardPoolError, InconsistentStateError
from app.core.store import DatabaseStateStore, StateStore
from app.schemas.draw import (
    CollectionProgress,
    DrawOutcome,
    PityProgress,
    QuotaExhausted,
    QuotaStatus,
)
from app.schemas.state import (
    CollectionEntry,
    CollectionState,
    PityState,
    QuotaState,
    StateBundle,
)
from app.services.collection import CollectionLedger
from app.services.pity import PityTracker
from app.services.quota import QuotaLedger
from app.services.rarity import RarityDrawer, WeightTable
from app.utils.locks import UserLocks, user_locks
from app.utils.misc import get_utc_now, to_local_date

_rng = random.Random()


T = TypeVar("T", bound=BaseModel)


class DrawService:
    """Daily card draw: quota check, pity resolution, reward sampling and bookkeeping.

    Every operation touching a user's records runs under that user's lock so the
    check-then-update sequence of a draw is never interleaved with another one.
    """

    def __init__(
        self,
        store: StateStore,
        *,
        config: Config = settings,
        catalog: RewardCatalog = CATALOG,
        rng: random.Random = _rng,
        clock: Callable[[], datetime.datetime] = get_utc_now,
        locks: UserLocks = user_locks,
    ) -> None:
        self.store = store
        self.config = config
        self.catalog = catalog
        self.rng = rng
        self.clock = clock
        self.locks = locks

        self.drawer = RarityDrawer(
            rng,
            first_draw_weights=config.first_draw_weights,
            first_draw_boost=config.first_draw_boost,
        )
        self.pity = PityTracker(
            self.drawer,
            mid_threshold=config.mid_pity_threshold,
            top_threshold=config.top_pity_threshold,
            reset_on_natural_hit=config.pity_reset_on_natural_hit,
            clock=clock,
        )
        self.quota = QuotaLedger(daily_limit=config.daily_draw_limit, clock=clock)
        self.collection = CollectionLedger(catalog, clock=clock)

    @property
    def weights(self) -> WeightTable:
        return self.config.draw_weights

    def today(self) -> datetime.date:
        return to_local_date(self.clock(), self.config.day_utc_offset_hours)

    async def _load(
        self, user_id: int, kind: StateKind, schema: type[T], default: Callable[[], T]
    ) -> T:
        payload = await self.store.load(user_id, kind)
        if payload is None:
            return default()

        try:
            return schema.model_validate(payload)
        except ValidationError as e:
            logger.warning(
                f"Discarding corrupt {kind.value} of user {user_id} ({e.error_count()} errors)"
            )
            return default()

    async def _load_pity(self, user_id: int) -> PityState:
        return await self._load(user_id, StateKind.PITY, PityState, PityState)

    async def _load_quota(self, user_id: int) -> QuotaState:
        today = self.today()
        quota = await self._load(
            user_id, StateKind.QUOTA, QuotaState, lambda: self.quota.fresh(today)
        )
        if not self.quota.is_consistent(quota):
            logger.warning(
                f"Discarding inconsistent quota_state of user {user_id} "
                f"({quota.remaining} left after {len(quota.draws)} draws, "
                f"limit {self.quota.daily_limit})"
            )
            return self.quota.fresh(today)
        return quota

    async def _load_collection(self, user_id: int) -> CollectionState:
        return await self._load(user_id, StateKind.COLLECTION, CollectionState, CollectionState)

    async def _save(self, user_id: int, kind: StateKind, state: BaseModel) -> None:
        await self.store.save(user_id, kind, state.model_dump(mode="json"))

    async def draw(
        self, user_id: int, category: RewardCategory = RewardCategory.TRADITIONAL
    ) -> DrawOutcome | QuotaExhausted:
        """Perform one draw for a user.

        Returns:
            DrawOutcome, or QuotaExhausted when today's draws are used up.

        Raises:
            EmptyRewardPoolError: If the catalog has no reward for the resolved tier.
                Nothing is persisted in that case.
        """
        async with self.locks.hold(user_id):
            today = self.today()
            quota = await self._load_quota(user_id)
            ok, quota = self.quota.try_consume(quota, today)
            if not ok:
                logger.info(f"User {user_id} has no draws left for {today}")
                return QuotaExhausted(
                    limit=self.quota.daily_limit, resets_on=today + datetime.timedelta(days=1)
                )

            pity = await self._load_pity(user_id)
            weights = self.drawer.weights_for_draw(self.weights, len(quota.draws))
            resolution = self.pity.resolve(pity, weights)

            pool = self.catalog.pool(category, resolution.tier)
            if not pool:
                logger.error(f"Reward pool is empty: {category.value} - {resolution.tier.value}")
                raise EmptyRewardPoolError(category, resolution.tier)
            reward = self.rng.choice(pool)

            collection = await self._load_collection(user_id)
            collection, entry = self.collection.record(collection, reward)
            quota = self.quota.record(quota, reward.id, category, resolution.tier)

            await self._save(user_id, StateKind.PITY, resolution.state)
            await self._save(user_id, StateKind.COLLECTION, collection)
            await self._save(user_id, StateKind.QUOTA, quota)
            await self.store.commit()

        if resolution.forced:
            logger.info(f"User {user_id} hit the {resolution.tier.value} guarantee")
        logger.info(
            f"User {user_id} drew {reward.id} ({resolution.tier.value}) from {category.value}, "
            f"{quota.remaining} left today"
        )

        return DrawOutcome(
            reward=reward,
            tier=resolution.tier,
            pity_triggered=resolution.forced,
            pity_type=resolution.pity_type,
            is_new=entry.first_obtain_is_unseen,
            remaining=quota.remaining,
        )

    async def get_pity_progress(self, user_id: int) -> PityProgress:
        return self.pity.progress(await self._load_pity(user_id))

    async def get_quota_status(self, user_id: int) -> QuotaStatus:
        return self.quota.status(await self._load_quota(user_id), self.today())

    async def get_collection_progress(self, user_id: int) -> CollectionProgress:
        return self.collection.progress(await self._load_collection(user_id))

    async def get_collection(
        self, user_id: int, category: RewardCategory | None = None
    ) -> list[CollectionEntry]:
        return self.collection.entries(await self._load_collection(user_id), category)

    async def mark_seen(self, user_id: int, category: RewardCategory, reward_id: str) -> bool:
        """Acknowledge a new card.

        Returns:
            Whether the user owns the card.
        """
        async with self.locks.hold(user_id):
            collection = await self._load_collection(user_id)
            if collection.get(category, reward_id) is None:
                return False

            collection = self.collection.mark_seen(collection, category, reward_id)
            await self._save(user_id, StateKind.COLLECTION, collection)
            await self.store.commit()
            return True

    async def clear_all(self, user_id: int) -> None:
        async with self.locks.hold(user_id):
            await self.store.delete(user_id)
            await self.store.commit()
        logger.info(f"Cleared all card data of user {user_id}")

    async def export_state(self, user_id: int) -> StateBundle:
        async with self.locks.hold(user_id):
            return StateBundle(
                pity=await self._load_pity(user_id),
                quota=await self._load_quota(user_id),
                collection=await self._load_collection(user_id),
                exported_at=self.clock(),
            )

    async def import_state(self, user_id: int, bundle: StateBundle) -> None:
        """Replace every record of a user with a backup.

        Raises:
            InconsistentStateError: If the quota record does not match the daily limit.
                Nothing is saved in that case.
        """
        if not self.quota.is_consistent(bundle.quota):
            msg = (
                f"Quota record has {bundle.quota.remaining} draws left after "
                f"{len(bundle.quota.draws)} draws, expected a daily limit of "
                f"{self.quota.daily_limit}"
            )
            raise InconsistentStateError(msg)

        async with self.locks.hold(user_id):
            await self._save(user_id, StateKind.PITY, bundle.pity)
            await self._save(user_id, StateKind.QUOTA, bundle.quota)
            await self._save(user_id, StateKind.COLLECTION, bundle.collection)
            await self.store.commit()
        logger.info(f"Imported card data of user {user_id}")


def get_state_store(db: Annotated[AsyncSession, Depends(get_db)]) -> StateStore:
    return DatabaseStateStore(db)


def get_draw_service(store: Annotated[StateStore, Depends(get_state_store)]) -> DrawService:
    return DrawService(store)
