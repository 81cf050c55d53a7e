"""Value list parsing: "brown, long; wavy" → ["Brown", "Long", "Wavy"]."""

import re

from story_engine.tags import format_tag_name

_SEPARATORS = re.compile(r"[,;]")

# Filler nouns that add nothing once the value sits under a scent key
_FILLER_WORDS = re.compile(r"\b(scent|smell|aroma|fragrance|odor|perfume)\b", re.IGNORECASE)


def parse_values(raw: str) -> list[str]:
    """Split a comma/semicolon separated string into normalised descriptors.

    Order is preserved; pieces that are empty before or after filler
    stripping are dropped.
    """
    result: list[str] = []
    for piece in _SEPARATORS.split(raw):
        piece = piece.strip()
        if not piece:
            continue
        piece = _FILLER_WORDS.sub("", piece).strip()
        if not piece:
            continue
        result.append(format_tag_name(piece))
    return result
