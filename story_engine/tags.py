"""Tag normalisation for descriptors and category names."""


def _capitalize(word: str) -> str:
    head = word[:1].title()
    # "ß" → "Ss" survives a second pass, "ŉ" → "ʼN" would not; such heads stay lowercase
    lowered = head.lower()
    if lowered[:1].title() + lowered[1:] != head:
        head = word[:1]
    return head + word[1:]


def format_tag_name(tag: str) -> str:
    """Canonical display form: trimmed, lowercased, each word capitalised.

    "  LONG brown " → "Long Brown". Applying it twice gives the same result
    as applying it once, including for characters whose title case expands.
    """
    words = tag.strip().lower().split(" ")
    return " ".join(_capitalize(word) for word in words)


def parse_tags_from_string(tags: str) -> list[str]:
    """Split a comma-separated tag string into normalised tags. Returns [] for blank input."""
    if not tags or not tags.strip():
        return []
    result = []
    for tag in tags.split(","):
        formatted = format_tag_name(tag)
        if formatted:
            result.append(formatted)
    return result
