"""Tests de la tabla de decisión VA y del clasificador."""

import pytest

from avatar_emotion.emotion.schema import EMOTION_LABELS, EmotionReading, format_reading
from avatar_emotion.va import (
    DEFAULT_RULES,
    Bound,
    Comparison,
    EmotionRule,
    OffsetParams,
    apply_offsets,
    classify,
    discrete_emotion,
    match_rule,
)
from avatar_emotion.va.rules import rules_from_config, rules_to_config


@pytest.mark.parametrize("valence,arousal,expected", [
    (0.0, 0.0, "neutral"),
    (0.05, -0.05, "neutral"),
    (0.5, 0.5, "happy"),
    (0.2, 0.3, "happy"),
    (-0.5, 0.5, "angry"),
    (-0.2, 0.15, "angry"),
    (-0.5, -0.5, "sad"),
    (0.5, -0.5, "pleased"),
])
def test_default_table(valence, arousal, expected):
    assert discrete_emotion(valence, arousal) == expected


def test_boundary_falls_to_default():
    # Comparaciones estrictas: ninguna regla cumple
    assert match_rule(0.1, 0.1) == "neutral"
    assert match_rule(0.5, 0.15) == "neutral"
    assert match_rule(0.5, 0.2) == "neutral"


def test_first_matching_rule_wins():
    rules = (
        EmotionRule("sad", Bound(Comparison.GT, 0.0), Bound(Comparison.GT, 0.0)),
        EmotionRule("happy", Bound(Comparison.GT, 0.0), Bound(Comparison.GT, 0.0)),
    )
    assert match_rule(0.5, 0.5, rules) == "sad"
    assert match_rule(0.5, 0.5, tuple(reversed(rules))) == "happy"


def test_custom_default_label():
    rules = (EmotionRule("happy", Bound(Comparison.GT, 0.9), Bound(Comparison.GT, 0.9)),)
    assert match_rule(0.0, 0.0, rules, default="sad") == "sad"


def test_classification_is_total_and_deterministic():
    values = [x / 10.0 for x in range(-10, 11)]
    for v in values:
        for a in values:
            first = discrete_emotion(v, a)
            assert first in EMOTION_LABELS
            assert discrete_emotion(v, a) == first


def test_apply_offsets():
    assert apply_offsets(0.1, -0.2, OffsetParams(valence=0.1, arousal=0.3)) == pytest.approx((0.2, 0.1))


def test_offsets_shift_classification():
    reading = classify(0.05, 0.25, OffsetParams(valence=0.1))
    assert reading.label == "happy"
    assert reading.valence == pytest.approx(0.15)
    assert reading.arousal == pytest.approx(0.25)

    assert classify(0.05, 0.25).label == "neutral"


def test_classify_without_expression():
    reading = classify(-0.5, -0.5)
    assert reading == EmotionReading(-0.5, -0.5, "sad")
    assert reading.expression is None
    assert reading.expression_scores is None


def test_classify_with_expression_scores():
    reading = classify(0.0, 0.0, expression_scores=[0.1, 0.7, 0.1, 0.0, 0.0, 0.0, 0.05, 0.05])
    assert reading.label == "neutral"
    assert reading.expression == "happy"
    assert len(reading.expression_scores) == 8


def test_expression_ties_pick_first_index():
    reading = classify(0.0, 0.0, expression_scores=[0.5, 0.5, 0.0, 0.0, 0.0])
    assert reading.expression == "neutral"


def test_unknown_expression_head_size_uses_generic_names():
    reading = classify(0.0, 0.0, expression_scores=[0.0, 1.0, 0.0])
    assert reading.expression == "class_1"


def test_format_reading():
    reading = EmotionReading(0.123, -0.3, "sad")
    assert format_reading(reading) == "Valence: 0.12\nArousal: -0.30\nEmotion: sad"
    assert reading.format_display() == format_reading(reading)


def test_reading_to_dict():
    reading = EmotionReading(0.12345, 0.6789, "happy", expression="happy")
    assert reading.to_dict(decimals=2) == {
        'emotion': 'happy', 'valence': 0.12, 'arousal': 0.68, 'expression': 'happy'
    }
    assert 'expression' not in EmotionReading(0.0, 0.0, "neutral").to_dict()


def test_rules_config_round_trip():
    config = rules_to_config(DEFAULT_RULES)
    assert config[0] == {
        'label': 'neutral',
        'valence': {'op': 'abs_lt', 'threshold': 0.1},
        'arousal': {'op': 'abs_lt', 'threshold': 0.1},
    }
    assert rules_from_config(config) == DEFAULT_RULES


def test_bound_accepts_pair():
    assert Bound.from_value(["gt", 0.2]) == Bound(Comparison.GT, 0.2)


@pytest.mark.parametrize("value", [
    {"op": "ge", "threshold": 0.1},
    ["gt", "0.1"],
    ["gt", True],
    "gt",
])
def test_bound_rejects_invalid_values(value):
    with pytest.raises(ValueError):
        Bound.from_value(value)


def test_rule_rejects_unknown_label():
    with pytest.raises(ValueError):
        EmotionRule("surprised", Bound(Comparison.GT, 0.0), Bound(Comparison.GT, 0.0))


def test_rules_from_config_validation():
    with pytest.raises(ValueError):
        rules_from_config([])
    with pytest.raises(ValueError):
        rules_from_config([{"label": "happy", "valence": ["gt", 0.1]}])


@pytest.mark.parametrize("valence,arousal,expected", [
    (0.0, 0.0, "neutral"),
    (0.2, 0.3, "happy"),
    (-0.2, 0.2, "angry"),
    (-0.2, -0.2, "sad"),
    (0.2, -0.2, "pleased"),
])
def test_classify_reference_vectors(valence, arousal, expected):
    reading = classify(valence, arousal, OffsetParams(0.0, 0.0))
    assert reading.label == expected
    assert (reading.valence, reading.arousal) == (valence, arousal)
