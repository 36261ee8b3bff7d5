from app.core.enums import RarityTier, RewardCategory


class DrawEngineError(Exception):
    """Base class for errors raised by the draw engine."""


class EmptyRewardPoolError(DrawEngineError):
    """The catalog has no reward for a resolved tier and category."""

    def __init__(self, category: RewardCategory, tier: RarityTier) -> None:
        super().__init__(f"Reward pool is empty: {category.value} - {tier.value}")
        self.category = category
        self.tier = tier


class InconsistentStateError(DrawEngineError):
    """A state record passes validation but breaks an engine invariant."""
