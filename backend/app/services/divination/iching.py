"""I Ching casting with the three-coin method.

Lines are listed bottom to top. A line is ``1`` for yang and ``0`` for yin.
A hexagram's structure is the six lines joined into a string, so the lower
trigram is the first three characters and the upper trigram the last three.
"""

import random
from dataclasses import asdict, dataclass
from typing import Any

from app.services.divination.errors import DivinationInputError

# Coin face values; three coins give totals 6..9
COIN_VALUES = (2, 3)

OLD_YIN = 6
YOUNG_YANG = 7
YOUNG_YIN = 8
OLD_YANG = 9

LINE_NAMES = {
    OLD_YIN: "old yin",
    YOUNG_YANG: "young yang",
    YOUNG_YIN: "young yin",
    OLD_YANG: "old yang",
}


@dataclass(frozen=True)
class Trigram:
    key: str
    chinese: str
    name: str
    image: str
    lines: str  # bottom to top


TRIGRAMS: dict[str, Trigram] = {
    t.key: t
    for t in (
        Trigram("qian", "乾", "Heaven", "creative strength", "111"),
        Trigram("dui", "兑", "Lake", "joy and openness", "110"),
        Trigram("li", "离", "Fire", "clarity and attachment", "101"),
        Trigram("zhen", "震", "Thunder", "arousing movement", "100"),
        Trigram("xun", "巽", "Wind", "gentle penetration", "011"),
        Trigram("kan", "坎", "Water", "danger and depth", "010"),
        Trigram("gen", "艮", "Mountain", "stillness", "001"),
        Trigram("kun", "坤", "Earth", "receptive devotion", "000"),
    )
}

# King Wen number indexed by (upper, lower)
_KING_WEN_ORDER = ("qian", "zhen", "kan", "gen", "kun", "xun", "li", "dui")
_KING_WEN_GRID = (
    (1, 25, 6, 33, 12, 44, 13, 10),
    (34, 51, 40, 62, 16, 32, 55, 54),
    (5, 3, 29, 39, 8, 48, 63, 60),
    (26, 27, 4, 52, 23, 18, 22, 41),
    (11, 24, 7, 15, 2, 46, 36, 19),
    (9, 42, 59, 53, 20, 57, 37, 61),
    (14, 21, 64, 56, 35, 50, 30, 38),
    (43, 17, 47, 31, 45, 28, 49, 58),
)

# number -> (chinese, pinyin, english, judgement)
_HEXAGRAM_TEXTS: dict[int, tuple[str, str, str, str]] = {
    1: ("乾", "Qián", "The Creative", "Sublime success through perseverance. Act with strength and integrity."),
    2: ("坤", "Kūn", "The Receptive", "Success through devotion. Follow rather than lead, and remain steady."),
    3: ("屯", "Zhūn", "Difficulty at the Beginning", "Growth is tangled at first. Gather helpers and do not rush forward."),
    4: ("蒙", "Méng", "Youthful Folly", "Inexperience seeks guidance. Ask sincerely and learn with patience."),
    5: ("需", "Xū", "Waiting", "Nourish yourself while you wait. Confidence in the outcome brings success."),
    6: ("讼", "Sòng", "Conflict", "Dispute is blocked. Seek a fair mediator and avoid pressing to the end."),
    7: ("师", "Shī", "The Army", "Discipline and a worthy leader are needed to bring order."),
    8: ("比", "Bǐ", "Holding Together", "Union brings good fortune. Join others while the time is right."),
    9: ("小畜", "Xiǎo Chù", "The Taming Power of the Small", "Small restraints accumulate. Gentle influence works better than force."),
    10: ("履", "Lǚ", "Treading", "Tread carefully and courteously, even near danger, and no harm follows."),
    11: ("泰", "Tài", "Peace", "Heaven and earth unite. The small departs and the great approaches."),
    12: ("否", "Pǐ", "Standstill", "Heaven and earth are apart. Withdraw and keep your integrity."),
    13: ("同人", "Tóng Rén", "Fellowship with Men", "Open fellowship succeeds. Common goals overcome great obstacles."),
    14: ("大有", "Dà Yǒu", "Possession in Great Measure", "Supreme success. Abundance is held with modesty and clarity."),
    15: ("谦", "Qiān", "Modesty", "Modesty brings success and carries things through to the end."),
    16: ("豫", "Yù", "Enthusiasm", "Enthusiasm moves others. Prepare well and set things in motion."),
    17: ("随", "Suí", "Following", "Adapt to the time and follow what is right. No blame."),
    18: ("蛊", "Gǔ", "Work on What Has Been Spoiled", "Repair what was neglected. Careful thought before and after acting."),
    19: ("临", "Lín", "Approach", "Good things draw near. Use the favorable season wisely."),
    20: ("观", "Guān", "Contemplation", "Observe deeply and let sincerity be seen by others."),
    21: ("噬嗑", "Shì Kè", "Biting Through", "Obstacles must be bitten through. Clear judgment brings success."),
    22: ("贲", "Bì", "Grace", "Beauty adorns form. Grace helps in small matters."),
    23: ("剥", "Bō", "Splitting Apart", "Decay undermines the structure. It does not further to go anywhere."),
    24: ("复", "Fù", "Return", "The turning point arrives. Light returns and movement begins anew."),
    25: ("无妄", "Wú Wàng", "Innocence", "Act without hidden motives. Sincerity brings supreme success."),
    26: ("大畜", "Dà Chù", "The Taming Power of the Great", "Hold firm and store up strength. Crossing great water is favored."),
    27: ("颐", "Yí", "The Corners of the Mouth", "Attend to what you nourish, in body and in word."),
    28: ("大过", "Dà Guò", "Preponderance of the Great", "The ridgepole sags. Extraordinary times call for decisive action."),
    29: ("坎", "Kǎn", "The Abysmal", "Danger repeats. Keep your heart true and flow on like water."),
    30: ("离", "Lí", "The Clinging", "Clarity depends on what it clings to. Care for the docile brings fortune."),
    31: ("咸", "Xián", "Influence", "Mutual attraction. Receptiveness and sincerity bring success."),
    32: ("恒", "Héng", "Duration", "Endurance without blame. Persevere in a steady course."),
    33: ("遯", "Dùn", "Retreat", "Withdraw in time. Retreat is not defeat."),
    34: ("大壮", "Dà Zhuàng", "The Power of the Great", "Great strength calls for restraint and rightness."),
    35: ("晋", "Jìn", "Progress", "Rapid, easy advance. Recognition comes to the one who is bright."),
    36: ("明夷", "Míng Yí", "Darkening of the Light", "Hide your light in hard times and stay true within."),
    37: ("家人", "Jiā Rén", "The Family", "Each in their proper place. Order at home brings order abroad."),
    38: ("睽", "Kuí", "Opposition", "Estrangement. Small matters still succeed."),
    39: ("蹇", "Jiǎn", "Obstruction", "An obstacle ahead. Turn inward and seek good counsel."),
    40: ("解", "Xiè", "Deliverance", "Tension dissolves. Return to normal life quickly."),
    41: ("损", "Sǔn", "Decrease", "Decrease with sincerity brings good fortune. Simplicity suffices."),
    42: ("益", "Yì", "Increase", "Gain for all. It furthers one to undertake something."),
    43: ("夬", "Guài", "Break-through", "Resolve is needed. Declare the truth openly but without force."),
    44: ("姤", "Gòu", "Coming to Meet", "An unexpected encounter. Be wary of what arrives too easily."),
    45: ("萃", "Cuì", "Gathering Together", "People gather around a shared center. Offerings bring fortune."),
    46: ("升", "Shēng", "Pushing Upward", "Steady upward growth. Seek out the great person."),
    47: ("困", "Kùn", "Oppression", "Exhaustion and constraint. Words are not believed, so act."),
    48: ("井", "Jǐng", "The Well", "The source stays constant. Keep the rope long and the bucket whole."),
    49: ("革", "Gé", "Revolution", "Change is due. When the day comes, you are believed."),
    50: ("鼎", "Dǐng", "The Caldron", "Nourishment and culture. Supreme good fortune."),
    51: ("震", "Zhèn", "The Arousing", "Shock comes, then laughter. Composure through the storm."),
    52: ("艮", "Gèn", "Keeping Still", "Rest at the right time. Stillness of the back brings no blame."),
    53: ("渐", "Jiàn", "Development", "Gradual progress like a tree on a mountain. Perseverance furthers."),
    54: ("归妹", "Guī Mèi", "The Marrying Maiden", "A subordinate position. Act with tact and know the limits."),
    55: ("丰", "Fēng", "Abundance", "Fullness at its peak. Be like the sun at midday."),
    56: ("旅", "Lǚ", "The Wanderer", "Travel lightly. Caution and correct conduct bring success."),
    57: ("巽", "Xùn", "The Gentle", "Penetrating influence. Small success through persistence."),
    58: ("兑", "Duì", "The Joyous", "Shared joy. Perseverance furthers."),
    59: ("涣", "Huàn", "Dispersion", "Dissolve what divides. Crossing great water is favored."),
    60: ("节", "Jié", "Limitation", "Set healthy limits. Galling limits cannot be kept."),
    61: ("中孚", "Zhōng Fú", "Inner Truth", "Sincerity moves even pigs and fishes. Good fortune."),
    62: ("小过", "Xiǎo Guò", "Preponderance of the Small", "Small things may be done, not great ones. Stay low."),
    63: ("既济", "Jì Jì", "After Completion", "Success in small matters. Order now, but disorder looms at the end."),
    64: ("未济", "Wèi Jì", "Before Completion", "Not yet across. Careful effort brings success."),
}


@dataclass(frozen=True)
class Hexagram:
    number: int
    chinese: str
    pinyin: str
    name: str
    judgement: str
    structure: str
    upper: str
    lower: str

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["upper_trigram"] = asdict(TRIGRAMS[self.upper])
        data["lower_trigram"] = asdict(TRIGRAMS[self.lower])
        return data


def _build_hexagrams() -> dict[int, Hexagram]:
    table: dict[int, Hexagram] = {}
    for row, upper in enumerate(_KING_WEN_ORDER):
        for col, lower in enumerate(_KING_WEN_ORDER):
            number = _KING_WEN_GRID[row][col]
            chinese, pinyin, name, judgement = _HEXAGRAM_TEXTS[number]
            table[number] = Hexagram(
                number=number,
                chinese=chinese,
                pinyin=pinyin,
                name=name,
                judgement=judgement,
                structure=TRIGRAMS[lower].lines + TRIGRAMS[upper].lines,
                upper=upper,
                lower=lower,
            )
    return table


HEXAGRAMS: dict[int, Hexagram] = _build_hexagrams()
HEXAGRAMS_BY_STRUCTURE: dict[str, Hexagram] = {h.structure: h for h in HEXAGRAMS.values()}


def get_hexagram(number: int) -> Hexagram:
    if number not in HEXAGRAMS:
        raise DivinationInputError("Hexagram number must be between 1 and 64")
    return HEXAGRAMS[number]


def get_hexagram_by_lines(lines: list[int]) -> Hexagram:
    """Look up a hexagram from six 0/1 lines, bottom to top."""
    if len(lines) != 6 or any(line not in (0, 1) for line in lines):
        raise DivinationInputError("A hexagram needs exactly six lines of 0 or 1")
    return HEXAGRAMS_BY_STRUCTURE["".join(str(line) for line in lines)]


def toss_line(rng: random.Random) -> int:
    """Total of three coins: 6, 7, 8 or 9."""
    return sum(rng.choice(COIN_VALUES) for _ in range(3))


def line_value(total: int) -> int:
    """Yang (1) for odd totals, yin (0) for even."""
    if total not in LINE_NAMES:
        raise DivinationInputError(f"Invalid line total: {total}")
    return 1 if total in (YOUNG_YANG, OLD_YANG) else 0


def is_changing(total: int) -> bool:
    return total in (OLD_YIN, OLD_YANG)


def cast_from_totals(totals: list[int]) -> dict[str, Any]:
    """Build a reading from six coin totals, bottom line first."""
    if len(totals) != 6:
        raise DivinationInputError("A cast needs exactly six line totals")

    lines = [line_value(total) for total in totals]
    changing = [index + 1 for index, total in enumerate(totals) if is_changing(total)]
    primary = get_hexagram_by_lines(lines)

    relating = None
    if changing:
        changed_lines = [
            1 - line if index + 1 in changing else line
            for index, line in enumerate(lines)
        ]
        relating = get_hexagram_by_lines(changed_lines)

    return {
        "lines": [
            {"position": index + 1, "total": total, "type": LINE_NAMES[total], "value": lines[index]}
            for index, total in enumerate(totals)
        ],
        "changing_lines": changing,
        "hexagram": primary.to_dict(),
        "changed_hexagram": relating.to_dict() if relating else None,
        "interpretation": _summarize(primary, relating, changing),
    }


def cast_hexagram(rng: random.Random | None = None) -> dict[str, Any]:
    """Cast six lines with three coins each."""
    rng = rng or random.SystemRandom()
    return cast_from_totals([toss_line(rng) for _ in range(6)])


def interpret_hexagram(number: int) -> dict[str, Any]:
    """Interpretation of a single hexagram by its King Wen number."""
    hexagram = get_hexagram(number)
    upper = TRIGRAMS[hexagram.upper]
    lower = TRIGRAMS[hexagram.lower]
    return {
        **hexagram.to_dict(),
        "interpretation": (
            f"{hexagram.name} ({hexagram.chinese}): {upper.name} above {lower.name}. "
            f"{hexagram.judgement} The image joins {upper.image} over {lower.image}."
        ),
    }


def _summarize(primary: Hexagram, relating: Hexagram | None, changing: list[int]) -> str:
    text = f"Hexagram {primary.number}, {primary.name} ({primary.chinese}). {primary.judgement}"
    if relating is None:
        return text + " With no changing lines, the situation is stable."
    positions = ", ".join(str(p) for p in changing)
    return (
        f"{text} Changing lines at {positions} point toward hexagram "
        f"{relating.number}, {relating.name} ({relating.chinese}). {relating.judgement}"
    )
