"""Lexing helpers for attribute text.

Key markers are located first and value spans sliced between them in a
second pass. A single greedy "key: values" regex would swallow the next
key whenever a value contains commas or a hyphenated word.
"""

import re
from dataclasses import dataclass

# "Hair:", "eye colour —", "feet -"; the phrase must start and end with a letter.
# A hyphen is a marker only after whitespace, so "light-brown" stays one value
_KEY_MARKER = re.compile(r"\b([a-z][a-z\s]*[a-z])(?:\s*[:—]|\s+-)", re.IGNORECASE | re.ASCII)
_LEADING_NOISE = re.compile(r"^\s*,?\s*")
_TRAILING_NOISE = re.compile(r"\s*,?\s*$")
_PARENTHETICAL = re.compile(r"([^()]+)\s*\(([^)]+)\)")


@dataclass(frozen=True)
class KeyToken:
    key: str
    start: int  # index of the first key character
    end: int  # index just past the marker punctuation


def find_key_tokens(text: str) -> list[KeyToken]:
    """Return every key marker in order of appearance."""
    return [
        KeyToken(key=m.group(1).strip(), start=m.start(), end=m.end())
        for m in _KEY_MARKER.finditer(text)
    ]


def _clean_span(span: str) -> str:
    span = _LEADING_NOISE.sub("", span, count=1)
    span = _TRAILING_NOISE.sub("", span, count=1)
    return span.strip()


def slice_value_spans(text: str, tokens: list[KeyToken]) -> list[tuple[str, str]]:
    """Pair each key with the text between its marker and the next key.

    Spans that are empty after trimming commas and whitespace are dropped.
    """
    pairs: list[tuple[str, str]] = []
    for i, token in enumerate(tokens):
        value_end = tokens[i + 1].start if i + 1 < len(tokens) else len(text)
        value_text = _clean_span(text[token.end:value_end])
        if value_text:
            pairs.append((token.key, value_text))
    return pairs


def find_key_value_pairs(text: str) -> list[tuple[str, str]]:
    return slice_value_spans(text, find_key_tokens(text))


def find_parenthetical_hints(text: str) -> list[tuple[str, str]]:
    """Return (values, category) for every "values (category)" occurrence."""
    return [(m.group(1), m.group(2)) for m in _PARENTHETICAL.finditer(text)]
