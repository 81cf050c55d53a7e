"""Attribute text parsing and rendering.

Turns author free text into namespaced attribute maps and back:

  tokenizer   — key-marker and parenthetical-hint lexing
  values      — comma/semicolon value lists with filler-word stripping
  classifier  — category normalisation and sub-type keyword tables
  unified     — the strategy cascade, renderer and attribute merge
"""

from .classifier import (  # noqa: F401
    create_namespaced_key,
    infer_sub_type,
    normalize_category,
)
from .unified import (  # noqa: F401
    appearance_to_text,
    attribute_to_text,
    merge_attributes,
    parse_appearance_text,
    parse_attribute_text,
    parse_location_text,
    parse_personality_text,
    parse_scents_text,
    parse_setting_text,
    personality_to_text,
    scents_to_text,
)
from .values import parse_values  # noqa: F401
