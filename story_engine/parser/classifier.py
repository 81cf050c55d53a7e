"""Category normalisation and sub-type inference.

A namespaced key is "<category>.<subtype>". The category comes from the
author's own label ("Hair", "the left foot") after normalisation; the
sub-type is inferred from the descriptor values by walking an ordered table
of (label, keywords) pairs for the attribute type. The first table with any
keyword occurring in the joined values wins, so table order is the
tie-break ("long brown" is a color before it is a length).

Keyword membership is a plain substring test on the lowercased values, and
sentence inference uses the same test on the lowercased sentence. Keywords
therefore also match inside longer words: "handsome" counts as hands,
"elegant" as legs and "warmly" as arms.
"""

import re

from story_engine.models import AttributeType

SubTypeTable = tuple[tuple[str, tuple[str, ...]], ...]

# ── Sub-type tables ─────────────────────────────────────────

APPEARANCE_SUBTYPES: SubTypeTable = (
    ("color", (
        "red", "blue", "green", "yellow", "black", "white", "brown", "blonde",
        "brunette", "gray", "grey", "pink", "purple", "orange", "silver",
        "golden", "dark", "light", "pale", "tan", "olive", "fair",
    )),
    ("length", (
        "long", "short", "medium", "shoulder", "waist", "ankle", "floor",
        "chin", "ear", "neck", "length",
    )),
    ("style", (
        "ponytail", "bob", "pixie", "bangs", "layers", "braids", "curls",
        "waves", "straight", "updo", "bun", "pigtails", "buzz", "crew", "fade",
    )),
    ("texture", (
        "smooth", "rough", "soft", "hard", "silky", "coarse", "fine", "thick",
        "thin", "bumpy", "wrinkled", "glossy", "matte", "shiny", "dull",
        "curly", "wavy",
    )),
    ("size", (
        "big", "small", "large", "tiny", "huge", "massive", "petite", "giant",
        "mini", "enormous", "tall", "wide", "narrow", "broad", "slim",
    )),
    ("shape", (
        "round", "square", "oval", "circular", "angular", "curved", "pointed",
        "blunt", "sharp", "flat", "rounded",
    )),
)

PERSONALITY_SUBTYPES: SubTypeTable = (
    ("emotions", (
        "happy", "sad", "angry", "excited", "nervous", "anxious", "calm",
        "peaceful", "joyful", "melancholy", "furious", "content", "worried",
        "relaxed", "stressed",
    )),
    ("quirks", (
        "twitches", "hums", "talks", "collects", "always", "never", "habit",
        "tends", "obsessed", "compulsive", "repetitive",
    )),
    ("fears", (
        "afraid", "scared", "terrified", "phobic", "fearful", "panicked",
        "frightened", "timid", "cowardly", "dreads",
    )),
    ("desires", (
        "wants", "wishes", "dreams", "hopes", "longs", "craves", "yearns",
        "desires", "seeks", "pursues", "ambitious",
    )),
    ("motivations", (
        "driven", "motivated", "determined", "goal-oriented", "focused",
        "dedicated", "committed", "passionate", "inspired",
    )),
)

SCENT_SUBTYPES: SubTypeTable = (
    ("fragrance", (
        "floral", "sweet", "vanilla", "rose", "jasmine", "lavender", "citrus",
        "fresh", "clean", "perfumed", "pleasant", "lovely", "delicate", "subtle",
    )),
    ("aroma", (
        "spicy", "warm", "rich", "deep", "intense", "strong", "distinctive",
        "exotic", "earthy", "woody", "herbal",
    )),
    ("scents", (
        "sweaty", "musky", "sour", "tangy", "cheesy", "stinky", "funky", "ripe",
        "pungent", "acrid", "bitter", "sharp", "smelly",
    )),
)

LOCATION_SUBTYPES: SubTypeTable = (
    ("structures", (
        "building", "structure", "tower", "wall", "bridge", "gate", "door",
        "window", "roof", "floor", "stairs", "pillar", "column", "arch",
    )),
    ("natural", (
        "river", "mountain", "hill", "forest", "tree", "lake", "ocean",
        "valley", "cave", "rock", "stone", "grass", "flower", "plant", "garden",
    )),
    ("atmosphere", (
        "dark", "bright", "quiet", "loud", "peaceful", "chaotic", "mysterious",
        "welcoming", "threatening", "ancient", "modern", "magical",
    )),
    ("resources", (
        "gold", "silver", "metal", "wood", "stone", "crystal", "gem", "water",
        "food", "treasure", "artifact", "weapon", "tool",
    )),
)

SETTING_SUBTYPES: SubTypeTable = (
    ("genre", (
        "fantasy", "medieval", "modern", "futuristic", "sci-fi", "cyberpunk",
        "steampunk", "victorian", "ancient", "prehistoric", "magical",
        "technological",
    )),
    ("political", (
        "kingdom", "empire", "republic", "democracy", "monarchy",
        "dictatorship", "guild", "clan", "tribe", "government", "ruler", "law",
    )),
    ("cultural", (
        "tradition", "custom", "ritual", "ceremony", "festival", "religion",
        "belief", "language", "art", "music", "dance", "cuisine",
    )),
    ("economic", (
        "trade", "merchant", "market", "currency", "gold", "silver", "barter",
        "wealth", "poor", "rich", "resource", "mining", "farming",
    )),
    ("history", (
        "war", "battle", "conflict", "peace", "alliance", "treaty", "legend",
        "myth", "prophecy", "ancient", "past", "history",
    )),
)

# attribute type → (ordered tables, default sub-type)
SUBTYPE_TABLES: dict[str, tuple[SubTypeTable, str]] = {
    "appearance": (APPEARANCE_SUBTYPES, "appearance"),
    "personality": (PERSONALITY_SUBTYPES, "traits"),
    "scents_aromas": (SCENT_SUBTYPES, "aroma"),
    "location_features": (LOCATION_SUBTYPES, "features"),
    "setting_elements": (SETTING_SUBTYPES, "elements"),
}

# Sub-types the renderer leaves implicit
DEFAULT_SUBTYPES = frozenset({"appearance", "traits", "scents"})

# ── Category keyword maps (sentence-level inference) ────────

CATEGORY_KEYWORDS: dict[str, dict[str, tuple[str, ...]]] = {
    "appearance": {
        "body": ("body", "build", "frame", "physique", "figure", "torso", "trunk"),
        "face": ("face", "facial", "visage", "countenance"),
        "eyes": ("eyes", "eye", "gaze", "irises"),
        "hair": ("hair", "locks", "mane", "tresses"),
        "hair_color": ("hair color", "hair colour"),
        "hair_style": ("hair style", "hairstyle", "hair cut", "haircut"),
        "skin": ("skin", "complexion", "flesh"),
        "feet": ("feet", "foot", "toes"),
        "hands": ("hands", "hand", "fingers", "palms"),
        "legs": ("legs", "leg", "thighs", "calves"),
        "arms": ("arms", "arm", "biceps", "forearms"),
        "weight": ("weight", "body weight"),
        "height": ("height", "stature"),
        "breast_size": ("breast size", "chest size", "bust size"),
        "feet_size": ("feet size", "foot size"),
    },
    "personality": {
        "personality": ("personality", "character", "nature", "disposition", "temperament"),
    },
    "scents_aromas": {
        "feet": ("feet", "foot", "toes", "soles"),
        "hair": ("hair", "locks", "mane", "scalp"),
        "body": ("body", "skin", "flesh"),
        "breath": ("breath", "mouth", "lips"),
        "armpits": ("armpits", "underarms", "pits"),
        "hands": ("hands", "fingers", "palms"),
        "neck": ("neck", "nape"),
        "clothes": ("clothes", "clothing", "fabric", "shirt", "dress"),
    },
}

FALLBACK_KEYS: dict[str, str] = {
    "appearance": "general.appearance",
    "personality": "personality.traits",
    "scents_aromas": "general.scents",
}
GENERIC_FALLBACK_KEY = "general.attribute"

# ── Category normalisation ──────────────────────────────────

_ARTICLE = re.compile(r"^(the|a|an)\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")
_REDUNDANT_SUFFIXES = ("_size", "_style", "_color", "_colour")

SINGULAR_TO_PLURAL = {
    "foot": "feet",
    "hand": "hands",
    "eye": "eyes",
    "arm": "arms",
    "leg": "legs",
    "toe": "toes",
    "finger": "fingers",
}


def normalize_category(raw: str) -> str:
    """Lowercase snake_case category with articles, noise and redundant suffixes removed.

    "The Hair Color" → "hair", "foot" → "feet", "!!!" → "general"
    """
    normalized = raw.strip().lower()
    normalized = _ARTICLE.sub("", normalized)
    normalized = _NON_ALNUM.sub("", normalized)
    normalized = _WHITESPACE.sub("_", normalized)
    normalized = normalized.strip("_")

    # Applied in sequence, each at most once
    for suffix in _REDUNDANT_SUFFIXES:
        if normalized.endswith(suffix):
            normalized = normalized[: -len(suffix)]

    normalized = SINGULAR_TO_PLURAL.get(normalized, normalized)
    return normalized or "general"


def infer_sub_type(values: list[str], attribute_type: AttributeType | str) -> str:
    """Return the sub-type label of the first keyword table matching the values."""
    entry = SUBTYPE_TABLES.get(attribute_type)
    if entry is None:
        return "general"
    tables, default = entry
    haystack = " ".join(values).lower()
    for label, keywords in tables:
        if any(keyword in haystack for keyword in keywords):
            return label
    return default


def create_namespaced_key(
    category: str, values: list[str], attribute_type: AttributeType | str
) -> str:
    """Build "<category>.<subtype>" for a category label and its descriptors."""
    return f"{normalize_category(category)}.{infer_sub_type(values, attribute_type)}"


def category_keywords(attribute_type: AttributeType | str) -> dict[str, tuple[str, ...]]:
    """Sentence-inference keyword map for an attribute type ({} when none is defined)."""
    return CATEGORY_KEYWORDS.get(attribute_type, {})


def fallback_key(attribute_type: AttributeType | str) -> str:
    return FALLBACK_KEYS.get(attribute_type, GENERIC_FALLBACK_KEY)
