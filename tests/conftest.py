import datetime
import os
import random

import pytest

os.environ["DB_URL"] = "sqlite+aiosqlite://"
os.environ["ADMIN_TOKEN"] = "test-admin-token"
os.environ["ENV"] = "dev"

from app.core.catalog import CATALOG, RewardCatalog  # noqa: E402
from app.core.config import settings  # noqa: E402
from app.core.store import MemoryStateStore, StateStore  # noqa: E402
from app.services.draw import DrawService  # noqa: E402
from app.utils.locks import UserLocks  # noqa: E402


class FakeClock:
    def __init__(self, now: datetime.datetime) -> None:
        self.now = now

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += datetime.timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    # 12:00 at UTC+8
    return FakeClock(datetime.datetime(2026, 10, 18, 4, 0, tzinfo=datetime.UTC))


@pytest.fixture
def store() -> MemoryStateStore:
    return MemoryStateStore()


@pytest.fixture
def make_service(store: MemoryStateStore, clock: FakeClock):
    def factory(
        seed: int = 7,
        *,
        catalog: RewardCatalog = CATALOG,
        state_store: StateStore | None = None,
        **overrides,
    ) -> DrawService:
        config = settings.model_copy(update=overrides)
        return DrawService(
            state_store or store,
            config=config,
            catalog=catalog,
            rng=random.Random(seed),
            clock=clock,
            locks=UserLocks(),
        )

    return factory
