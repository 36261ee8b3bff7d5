from pydantic import BaseModel, ConfigDict

from app.core.enums import RarityTier, RewardCategory


class RewardDefinition(BaseModel):
    """A catalog card. Catalog entries never change after load."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    english_name: str
    rarity: RarityTier
    category: RewardCategory
