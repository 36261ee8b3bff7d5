from collections.abc import Iterable, Iterator, Sequence

from app.core.enums import RarityTier, RewardCategory
from app.schemas.catalog import RewardDefinition

SOLAR_TERMS: Sequence[tuple[str, str]] = (
    ("立春", "Beginning of Spring"),
    ("雨水", "Rain Water"),
    ("惊蛰", "Awakening of Insects"),
    ("春分", "Spring Equinox"),
    ("清明", "Clear and Bright"),
    ("谷雨", "Grain Rain"),
    ("立夏", "Beginning of Summer"),
    ("小满", "Grain Buds"),
    ("芒种", "Grain in Ear"),
    ("夏至", "Summer Solstice"),
    ("小暑", "Minor Heat"),
    ("大暑", "Major Heat"),
    ("立秋", "Beginning of Autumn"),
    ("处暑", "End of Heat"),
    ("白露", "White Dew"),
    ("秋分", "Autumn Equinox"),
    ("寒露", "Cold Dew"),
    ("霜降", "Frost's Descent"),
    ("立冬", "Beginning of Winter"),
    ("小雪", "Minor Snow"),
    ("大雪", "Major Snow"),
    ("冬至", "Winter Solstice"),
    ("小寒", "Minor Cold"),
    ("大寒", "Major Cold"),
)

ZODIAC_ANIMALS: Sequence[tuple[str, str]] = (
    ("鼠", "Rat"),
    ("牛", "Ox"),
    ("虎", "Tiger"),
    ("兔", "Rabbit"),
    ("龙", "Dragon"),
    ("蛇", "Snake"),
    ("马", "Horse"),
    ("羊", "Goat"),
    ("猴", "Monkey"),
    ("鸡", "Rooster"),
    ("狗", "Dog"),
    ("猪", "Pig"),
)

TRIGRAMS: Sequence[tuple[str, str]] = (
    ("乾", "Heaven"),
    ("兑", "Lake"),
    ("离", "Fire"),
    ("震", "Thunder"),
    ("巽", "Wind"),
    ("坎", "Water"),
    ("艮", "Mountain"),
    ("坤", "Earth"),
)

FIVE_ELEMENTS: Sequence[tuple[str, str]] = (
    ("金", "Metal"),
    ("木", "Wood"),
    ("水", "Water"),
    ("火", "Fire"),
    ("土", "Earth"),
)

THREE_POWERS: Sequence[tuple[str, str]] = (
    ("天", "Heaven"),
    ("地", "Earth"),
    ("人", "Humanity"),
)

# King Wen sequence
HEXAGRAMS: Sequence[tuple[str, str]] = (
    ("乾为天", "The Creative"),
    ("坤为地", "The Receptive"),
    ("水雷屯", "Difficulty at the Beginning"),
    ("山水蒙", "Youthful Folly"),
    ("水天需", "Waiting"),
    ("天水讼", "Conflict"),
    ("地水师", "The Army"),
    ("水地比", "Holding Together"),
    ("风天小畜", "Small Taming"),
    ("天泽履", "Treading"),
    ("地天泰", "Peace"),
    ("天地否", "Standstill"),
    ("天火同人", "Fellowship"),
    ("火天大有", "Great Possession"),
    ("地山谦", "Modesty"),
    ("雷地豫", "Enthusiasm"),
    ("泽雷随", "Following"),
    ("山风蛊", "Work on the Decayed"),
    ("地泽临", "Approach"),
    ("风地观", "Contemplation"),
    ("火雷噬嗑", "Biting Through"),
    ("山火贲", "Grace"),
    ("山地剥", "Splitting Apart"),
    ("地雷复", "Return"),
    ("天雷无妄", "Innocence"),
    ("山天大畜", "Great Taming"),
    ("山雷颐", "Nourishment"),
    ("泽风大过", "Great Exceeding"),
    ("坎为水", "The Abysmal"),
    ("离为火", "The Clinging"),
    ("泽山咸", "Influence"),
    ("雷风恒", "Duration"),
    ("天山遁", "Retreat"),
    ("雷天大壮", "Great Power"),
    ("火地晋", "Progress"),
    ("地火明夷", "Darkening of the Light"),
    ("风火家人", "The Family"),
    ("火泽睽", "Opposition"),
    ("水山蹇", "Obstruction"),
    ("雷水解", "Deliverance"),
    ("山泽损", "Decrease"),
    ("风雷益", "Increase"),
    ("泽天夬", "Breakthrough"),
    ("天风姤", "Coming to Meet"),
    ("泽地萃", "Gathering Together"),
    ("地风升", "Pushing Upward"),
    ("泽水困", "Oppression"),
    ("水风井", "The Well"),
    ("泽火革", "Revolution"),
    ("火风鼎", "The Cauldron"),
    ("震为雷", "The Arousing"),
    ("艮为山", "Keeping Still"),
    ("风山渐", "Development"),
    ("雷泽归妹", "The Marrying Maiden"),
    ("雷火丰", "Abundance"),
    ("火山旅", "The Wanderer"),
    ("巽为风", "The Gentle"),
    ("兑为泽", "The Joyous"),
    ("风水涣", "Dispersion"),
    ("水泽节", "Limitation"),
    ("风泽中孚", "Inner Truth"),
    ("雷山小过", "Small Exceeding"),
    ("水火既济", "After Completion"),
    ("火水未济", "Before Completion"),
)

TOP_HEXAGRAMS = frozenset({1, 2, 63, 64})
MID_HEXAGRAMS = frozenset({11, 12, 29, 30, 31, 32, 51, 52, 57, 58, 61, 62})


class RewardCatalog:
    """Read-only index of reward definitions by category and rarity."""

    def __init__(self, rewards: Iterable[RewardDefinition]) -> None:
        self._by_key: dict[tuple[RewardCategory, str], RewardDefinition] = {}

        pools: dict[tuple[RewardCategory, RarityTier], list[RewardDefinition]] = {}
        for reward in rewards:
            key = (reward.category, reward.id)
            if key in self._by_key:
                msg = f"Duplicate reward id {reward.id!r} in {reward.category.value}"
                raise ValueError(msg)
            self._by_key[key] = reward
            pools.setdefault((reward.category, reward.rarity), []).append(reward)

        self._pools = {key: tuple(pool) for key, pool in pools.items()}

    def __len__(self) -> int:
        return len(self._by_key)

    def __iter__(self) -> Iterator[RewardDefinition]:
        return iter(self._by_key.values())

    def get(self, category: RewardCategory, reward_id: str) -> RewardDefinition | None:
        return self._by_key.get((category, reward_id))

    def pool(self, category: RewardCategory, tier: RarityTier) -> Sequence[RewardDefinition]:
        return self._pools.get((category, tier), ())

    def size(self, category: RewardCategory | None = None) -> int:
        if category is None:
            return len(self._by_key)
        return sum(1 for cat, _ in self._by_key if cat == category)


def _build(
    prefix: str,
    category: RewardCategory,
    rarity: RarityTier,
    entries: Sequence[tuple[str, str]],
) -> list[RewardDefinition]:
    return [
        RewardDefinition(
            id=f"{prefix}-{index:02d}",
            name=name,
            english_name=english_name,
            rarity=rarity,
            category=category,
        )
        for index, (name, english_name) in enumerate(entries, start=1)
    ]


def _hexagram_rarity(number: int) -> RarityTier:
    if number in TOP_HEXAGRAMS:
        return RarityTier.TOP
    if number in MID_HEXAGRAMS:
        return RarityTier.MID
    return RarityTier.BASE


def build_default_catalog() -> RewardCatalog:
    traditional = RewardCategory.TRADITIONAL
    rewards = [
        *_build("solar-term", traditional, RarityTier.BASE, SOLAR_TERMS),
        *_build("zodiac", traditional, RarityTier.BASE, ZODIAC_ANIMALS),
        *_build("trigram", traditional, RarityTier.MID, TRIGRAMS),
        *_build("element", traditional, RarityTier.MID, FIVE_ELEMENTS),
        *_build("power", traditional, RarityTier.TOP, THREE_POWERS),
    ]
    rewards.extend(
        RewardDefinition(
            id=f"hexagram-{number:02d}",
            name=name,
            english_name=english_name,
            rarity=_hexagram_rarity(number),
            category=RewardCategory.HEXAGRAM,
        )
        for number, (name, english_name) in enumerate(HEXAGRAMS, start=1)
    )
    return RewardCatalog(rewards)


CATALOG = build_default_catalog()
