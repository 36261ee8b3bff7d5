import datetime
from collections.abc import Callable

from app.core.enums import RarityTier, RewardCategory
from app.schemas.draw import QuotaStatus
from app.schemas.state import DrawRecord, QuotaState
from app.utils.misc import get_utc_now


class QuotaLedger:
    """Daily draw allowance.

    The stored state belongs to a single calendar day and is replaced by a fresh
    one as soon as it is read on any other day.
    """

    def __init__(
        self,
        *,
        daily_limit: int = 3,
        clock: Callable[[], datetime.datetime] = get_utc_now,
    ) -> None:
        self.daily_limit = daily_limit
        self.clock = clock

    def fresh(self, today: datetime.date) -> QuotaState:
        return QuotaState(date=today, remaining=self.daily_limit, draws=[])

    def is_consistent(self, state: QuotaState) -> bool:
        """Whether ``remaining`` equals the daily limit minus the draws already made."""
        return state.remaining + len(state.draws) == self.daily_limit

    def check_and_reset(self, state: QuotaState, today: datetime.date) -> QuotaState:
        if state.date != today:
            return self.fresh(today)
        return state

    def try_consume(self, state: QuotaState, today: datetime.date) -> tuple[bool, QuotaState]:
        """Take one draw from today's allowance.

        Returns:
            Tuple of (ok, updated state). The state is returned unchanged when
            nothing is left.
        """
        state = self.check_and_reset(state, today)
        if state.remaining <= 0:
            return False, state
        return True, state.model_copy(update={"remaining": state.remaining - 1})

    def record(
        self, state: QuotaState, reward_id: str, category: RewardCategory, tier: RarityTier
    ) -> QuotaState:
        """Append a draw record. ``remaining`` is left to ``try_consume``."""
        record = DrawRecord(
            reward_id=reward_id, category=category, tier=tier, timestamp=self.clock()
        )
        return state.model_copy(update={"draws": [*state.draws, record]})

    def status(self, state: QuotaState, today: datetime.date) -> QuotaStatus:
        state = self.check_and_reset(state, today)
        return QuotaStatus(
            date=state.date,
            remaining=state.remaining,
            limit=self.daily_limit,
            todays_draws=list(state.draws),
        )
