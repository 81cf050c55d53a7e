"""Tests for category normalisation and sub-type inference."""

import pytest

from story_engine.parser.classifier import (
    SUBTYPE_TABLES,
    create_namespaced_key,
    fallback_key,
    infer_sub_type,
    normalize_category,
)


# ── normalize_category ──────────────────────────────────────


@pytest.mark.parametrize("raw, expected", [
    ("Hair", "hair"),
    ("The Hair Color", "hair"),
    ("eye colour", "eyes"),
    ("foot", "feet"),
    ("Finger", "fingers"),
    ("Left Foot", "left_foot"),
    ("Skin-Tone", "skintone"),
    ("  a  mane ", "mane"),
    ("body size", "body"),
    ("!!!", "general"),
    ("", "general"),
])
def test_normalize_category(raw, expected):
    assert normalize_category(raw) == expected


def test_normalize_category_keeps_article_prefixed_words():
    assert normalize_category("another") == "another"


# ── infer_sub_type ──────────────────────────────────────────


def test_appearance_color():
    assert infer_sub_type(["Brown"], "appearance") == "color"


def test_appearance_color_wins_over_length():
    """Table order breaks ties: color is checked before length."""
    assert infer_sub_type(["Brown", "Long"], "appearance") == "color"
    assert infer_sub_type(["Long Brown"], "appearance") == "color"


def test_appearance_length_before_texture():
    assert infer_sub_type(["Long", "Wavy"], "appearance") == "length"


def test_appearance_default():
    assert infer_sub_type(["Muscular"], "appearance") == "appearance"
    assert infer_sub_type(["Smelly", "Stinky"], "appearance") == "appearance"


def test_personality_default_and_emotions():
    assert infer_sub_type(["Brave", "Curious"], "personality") == "traits"
    assert infer_sub_type(["Anxious"], "personality") == "emotions"
    assert infer_sub_type(["Terrified Of Spiders"], "personality") == "fears"


def test_scent_subtypes():
    assert infer_sub_type(["Vanilla"], "scents_aromas") == "fragrance"
    assert infer_sub_type(["Earthy"], "scents_aromas") == "aroma"
    assert infer_sub_type(["Smelly", "Stinky"], "scents_aromas") == "scents"
    assert infer_sub_type(["Neutral"], "scents_aromas") == "aroma"


def test_location_and_setting_subtypes():
    assert infer_sub_type(["Crumbling Tower"], "location_features") == "structures"
    assert infer_sub_type(["Misty"], "location_features") == "features"
    assert infer_sub_type(["Medieval Kingdom"], "setting_elements") == "genre"
    assert infer_sub_type(["Nothing Notable"], "setting_elements") == "elements"


def test_unknown_attribute_type():
    assert infer_sub_type(["Brown"], "weather") == "general"


def test_matching_is_substring_based():
    # "tired" contains "red"
    assert infer_sub_type(["Tired"], "appearance") == "color"


def test_tables_are_ordered_data():
    tables, default = SUBTYPE_TABLES["appearance"]
    assert [label for label, _ in tables] == ["color", "length", "style", "texture", "size", "shape"]
    assert default == "appearance"


# ── create_namespaced_key / fallback_key ────────────────────


def test_create_namespaced_key():
    assert create_namespaced_key("Hair", ["Brown", "Long"], "appearance") == "hair.color"
    assert create_namespaced_key("foot", ["Smelly"], "scents_aromas") == "feet.scents"


def test_fallback_keys():
    assert fallback_key("appearance") == "general.appearance"
    assert fallback_key("personality") == "personality.traits"
    assert fallback_key("scents_aromas") == "general.scents"
    assert fallback_key("location_features") == "general.attribute"
