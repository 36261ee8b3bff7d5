import asyncio
import datetime

import pytest

from app.core.catalog import CATALOG, RewardCatalog
from app.core.enums import RarityTier, RewardCategory, StateKind
from app.core.exceptions import EmptyRewardPoolError, InconsistentStateError
from app.core.store import MemoryStateStore
from app.schemas.draw import DrawOutcome, QuotaExhausted
from app.services.draw import DrawService

USER_ID = 42
BASE_ONLY = {RarityTier.BASE: 1, RarityTier.MID: 0, RarityTier.TOP: 0}
GARBAGE = {"mid_streak": "lots", "remaining": -4, "entries": [1]}


async def test_three_draws_then_quota_exhausted(make_service) -> None:
    service: DrawService = make_service()

    outcomes = [await service.draw(USER_ID) for _ in range(3)]
    assert all(isinstance(outcome, DrawOutcome) for outcome in outcomes)
    assert [outcome.remaining for outcome in outcomes] == [2, 1, 0]

    exhausted = await service.draw(USER_ID)
    assert isinstance(exhausted, QuotaExhausted)
    assert exhausted.remaining == 0
    assert exhausted.limit == 3
    assert exhausted.resets_on == datetime.date(2026, 10, 19)

    status = await service.get_quota_status(USER_ID)
    assert status.remaining == 0
    assert len(status.todays_draws) == 3


async def test_quota_resets_on_next_local_day(make_service, clock) -> None:
    service: DrawService = make_service()
    for _ in range(3):
        await service.draw(USER_ID)
    assert isinstance(await service.draw(USER_ID), QuotaExhausted)

    # 16:00 UTC is already the next day at UTC+8
    clock.advance(hours=12)
    assert service.today() == datetime.date(2026, 10, 19)

    outcome = await service.draw(USER_ID)
    assert isinstance(outcome, DrawOutcome)
    assert outcome.remaining == 2


async def test_draw_updates_every_ledger(make_service, store: MemoryStateStore) -> None:
    service: DrawService = make_service()

    outcome = await service.draw(USER_ID, RewardCategory.HEXAGRAM)

    assert isinstance(outcome, DrawOutcome)
    assert outcome.reward.category is RewardCategory.HEXAGRAM
    assert outcome.reward.rarity is outcome.tier
    assert outcome.is_new

    collection = await service.get_collection(USER_ID)
    assert [entry.reward_id for entry in collection] == [outcome.reward.id]

    quota = await service.get_quota_status(USER_ID)
    assert quota.todays_draws[0].reward_id == outcome.reward.id
    assert quota.todays_draws[0].tier is outcome.tier

    assert set(store.records) == {(USER_ID, kind) for kind in StateKind}


async def test_pity_persists_across_draws(make_service) -> None:
    service: DrawService = make_service(daily_draw_limit=100, draw_weights=BASE_ONLY)

    for _ in range(10):
        outcome = await service.draw(USER_ID)
        assert isinstance(outcome, DrawOutcome)
        assert not outcome.pity_triggered

    progress = await service.get_pity_progress(USER_ID)
    assert progress.mid.current == 10
    assert progress.mid.next_guaranteed

    outcome = await service.draw(USER_ID)
    assert isinstance(outcome, DrawOutcome)
    assert outcome.pity_triggered
    assert outcome.pity_type is RarityTier.MID
    assert outcome.tier is RarityTier.MID

    progress = await service.get_pity_progress(USER_ID)
    assert progress.mid.current == 0
    assert progress.top.current == 10


async def test_duplicate_reward_is_not_new(make_service) -> None:
    catalog = RewardCatalog(CATALOG.pool(RewardCategory.TRADITIONAL, RarityTier.BASE)[:1])
    service: DrawService = make_service(catalog=catalog, draw_weights=BASE_ONLY)

    first = await service.draw(USER_ID)
    second = await service.draw(USER_ID)

    assert isinstance(first, DrawOutcome) and isinstance(second, DrawOutcome)
    assert first.is_new
    assert not second.is_new
    entries = await service.get_collection(USER_ID)
    assert entries[0].times_obtained == 2


@pytest.mark.parametrize(
    "kind",
    [StateKind.PITY, StateKind.QUOTA, StateKind.COLLECTION],
)
async def test_corrupt_record_is_replaced_by_defaults(
    make_service, store: MemoryStateStore, kind: StateKind
) -> None:
    await store.save(USER_ID, kind, GARBAGE)
    service: DrawService = make_service()

    outcome = await service.draw(USER_ID)

    assert isinstance(outcome, DrawOutcome)
    assert outcome.remaining == 2
    assert store.records[USER_ID, kind] != GARBAGE


async def test_inconsistent_collection_entry_is_treated_as_corrupt(
    make_service, store: MemoryStateStore
) -> None:
    await store.save(
        USER_ID,
        StateKind.COLLECTION,
        {
            "entries": {
                "traditional": {
                    "zodiac-01": {
                        "reward_id": "zodiac-01",
                        "name": "鼠",
                        "rarity": "R",
                        "category": "traditional",
                        "times_obtained": 3,
                        "obtained_timestamps": ["2026-10-01T00:00:00Z"],
                        "first_obtain_is_unseen": False,
                    }
                }
            }
        },
    )
    service: DrawService = make_service()

    progress = await service.get_collection_progress(USER_ID)

    assert progress.collected == 0


async def test_inflated_quota_record_is_replaced(make_service, store: MemoryStateStore) -> None:
    await store.save(USER_ID, StateKind.QUOTA, {"date": "2026-10-18", "remaining": 50, "draws": []})
    service: DrawService = make_service()

    results = [await service.draw(USER_ID) for _ in range(5)]

    assert sum(isinstance(result, DrawOutcome) for result in results) == 3
    assert isinstance(results[-1], QuotaExhausted)
    assert store.records[USER_ID, StateKind.QUOTA]["remaining"] == 0


async def test_import_rejects_inconsistent_quota(make_service, store: MemoryStateStore) -> None:
    service: DrawService = make_service()
    bundle = await service.export_state(USER_ID)
    bundle.quota.remaining = 50

    with pytest.raises(InconsistentStateError):
        await service.import_state(USER_ID, bundle)

    assert store.records == {}
    assert (await service.get_quota_status(USER_ID)).remaining == 3


async def test_empty_pool_raises_and_persists_nothing(
    make_service, store: MemoryStateStore
) -> None:
    catalog = RewardCatalog(CATALOG.pool(RewardCategory.TRADITIONAL, RarityTier.BASE))
    service: DrawService = make_service(catalog=catalog, draw_weights={RarityTier.TOP: 1})

    with pytest.raises(EmptyRewardPoolError) as exc_info:
        await service.draw(USER_ID)

    assert exc_info.value.tier is RarityTier.TOP
    assert store.records == {}
    assert (await service.get_quota_status(USER_ID)).remaining == 3


async def test_mark_seen(make_service) -> None:
    service: DrawService = make_service()
    outcome = await service.draw(USER_ID)
    assert isinstance(outcome, DrawOutcome)

    assert await service.mark_seen(USER_ID, outcome.reward.category, outcome.reward.id)
    entries = await service.get_collection(USER_ID)
    assert not entries[0].first_obtain_is_unseen

    assert not await service.mark_seen(USER_ID, RewardCategory.HEXAGRAM, "hexagram-99")


async def test_clear_all(make_service, store: MemoryStateStore) -> None:
    service: DrawService = make_service()
    await service.draw(USER_ID)
    await service.draw(USER_ID + 1)

    await service.clear_all(USER_ID)

    assert all(user_id != USER_ID for user_id, _ in store.records)
    assert (await service.get_quota_status(USER_ID)).remaining == 3
    assert (await service.get_collection_progress(USER_ID)).collected == 0


async def test_export_then_import_into_another_user(make_service) -> None:
    service: DrawService = make_service()
    await service.draw(USER_ID)
    await service.draw(USER_ID, RewardCategory.HEXAGRAM)

    bundle = await service.export_state(USER_ID)
    await service.import_state(USER_ID + 1, bundle)

    assert await service.get_collection(USER_ID + 1) == await service.get_collection(USER_ID)
    assert await service.get_quota_status(USER_ID + 1) == await service.get_quota_status(USER_ID)
    assert await service.get_pity_progress(USER_ID + 1) == await service.get_pity_progress(USER_ID)


class YieldingStore(MemoryStateStore):
    """Gives control back to the event loop on every call."""

    async def load(self, user_id: int, kind: StateKind) -> dict | None:
        await asyncio.sleep(0)
        return await super().load(user_id, kind)

    async def save(self, user_id: int, kind: StateKind, payload: dict) -> None:
        await asyncio.sleep(0)
        await super().save(user_id, kind, payload)


async def test_concurrent_draws_never_exceed_quota(make_service) -> None:
    service: DrawService = make_service(state_store=YieldingStore())

    results = await asyncio.gather(*(service.draw(USER_ID) for _ in range(10)))

    assert sum(isinstance(result, DrawOutcome) for result in results) == 3
    assert sum(isinstance(result, QuotaExhausted) for result in results) == 7
    status = await service.get_quota_status(USER_ID)
    assert status.remaining == 0
    assert len(status.todays_draws) == 3
    assert len(service.locks) == 0
