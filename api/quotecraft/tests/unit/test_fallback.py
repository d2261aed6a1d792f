"""Unit tests for the rule-based fallback generator."""

import random

import pytest

from quotecraft.models.schemas import BackgroundSuggestion
from quotecraft.services.fallback import (
    DEFAULT_IMAGE_IDEAS,
    PALETTES,
    SENTIMENT_BACKGROUNDS,
    TOPIC_BACKGROUNDS,
    FallbackGenerator,
)


class TestSentiment:
    def test_positive_scenario(self, generator):
        result = generator.sentiment("I love this beautiful sunny day, what a wonderful success!")

        assert result.sentiment == "positive"
        assert result.score == pytest.approx(0.8)
        assert result.emotions.joy == pytest.approx(0.9)
        assert result.emotions.sadness == pytest.approx(0.1)
        assert result.emotions.joy > result.emotions.sadness

    def test_negative_text(self, generator):
        result = generator.sentiment("This is a terrible, awful day")

        assert result.sentiment == "negative"
        assert result.score == pytest.approx(-0.4)
        assert result.emotions.sadness == pytest.approx(0.7)

    def test_neutral_text(self, generator):
        result = generator.sentiment("The sky is blue")

        assert result.sentiment == "neutral"
        assert result.score == 0.0

    def test_three_hits_cross_positive_threshold(self, generator):
        assert generator.sentiment("good great excellent").sentiment == "positive"

    def test_score_is_clamped(self, generator):
        result = generator.sentiment("good great excellent amazing wonderful happy joy")

        assert result.score == 1.0
        assert result.emotions.joy == 1.0
        assert result.emotions.sadness == 0.0

    def test_ranges_hold_for_many_inputs(self, generator):
        texts = ["", "hate hate hate hate hate hate hate", "love", "sad but good", "worst ugly failure"]
        for text in texts:
            result = generator.sentiment(text)
            assert -1.0 <= result.score <= 1.0
            for value in result.emotions.model_dump().values():
                assert 0.0 <= value <= 1.0

    def test_surprise_comes_from_rng(self):
        a = FallbackGenerator(random.Random(5)).sentiment("hello there")
        b = FallbackGenerator(random.Random(5)).sentiment("hello there")

        assert a == b
        assert 0.2 <= a.emotions.surprise <= 0.7

    def test_rate_limited_sentiment_is_neutral(self, generator):
        result = generator.rate_limited_sentiment()

        assert result.sentiment == "neutral"
        assert result.score == 0.0


class TestEnhance:
    def test_adds_terminal_punctuation(self, generator):
        assert generator.enhance("Stay hungry").enhanced_quote == "Stay hungry."

    def test_keeps_existing_punctuation(self, generator):
        assert generator.enhance("Stay hungry!").enhanced_quote == "Stay hungry!"

    def test_variations(self, generator):
        assert generator.enhance("Stay hungry").variations == [
            "In truth, Stay hungry",
            "Stay hungry Indeed, this is the way forward.",
            "Remember: Stay hungry",
        ]

    @pytest.mark.parametrize("text,theme,tone", [
        ("Success is a journey", "Achievement", "Motivational"),
        ("Love conquers all", "Relationships", "Emotional"),
        ("I think therefore I am", "Wisdom", "Philosophical"),
        ("Keep going", "Personal growth", "Inspirational"),
    ])
    def test_theme_buckets(self, generator, text, theme, tone):
        insights = generator.enhance(text).insights

        assert insights.theme == theme
        assert insights.tone == tone

    def test_style_advice_by_length(self):
        assert "larger typography" in FallbackGenerator.style_advice("short")
        assert "minimalist" in FallbackGenerator.style_advice("x" * 100)
        assert "compact layout" in FallbackGenerator.style_advice("x" * 151)

    def test_rate_limited_enhance(self, generator):
        result = generator.rate_limited_enhance("Stay hungry")

        assert result.enhanced_quote == "Stay hungry"
        assert result.variations == []
        assert result.insights.theme == "Unknown (AI service unavailable)"


class TestImageIdeas:
    def test_defaults_without_keywords_or_theme(self, generator):
        ideas = generator.image_ideas("Go on")

        assert [i.model_dump() for i in ideas] == list(DEFAULT_IMAGE_IDEAS)

    def test_keyword_replaces_one_slot(self, generator):
        ideas = generator.image_ideas("Courage grows in silence")

        conceptual = [i for i in ideas if i.style == "Conceptual art"]
        assert len(ideas) == 4
        assert len(conceptual) == 1
        assert any(w in conceptual[0].description for w in ("courage", "grows", "silence"))

    def test_theme_replaces_one_slot(self, generator):
        ideas = generator.image_ideas("Go on", theme="Perseverance")

        thematic = [i for i in ideas if i.style == "Thematic artwork"]
        assert len(thematic) == 1
        assert "Perseverance" in thematic[0].prompt

    def test_unknown_theme_is_ignored(self, generator):
        ideas = generator.image_ideas("Go on", theme="Unknown")

        assert all(i.style != "Thematic artwork" for i in ideas)

    def test_seeded_determinism(self):
        a = FallbackGenerator(random.Random(9)).image_ideas("Courage grows in silence", theme="Grit")
        b = FallbackGenerator(random.Random(9)).image_ideas("Courage grows in silence", theme="Grit")

        assert a == b


class TestBackgrounds:
    def test_four_from_sentiment_table(self, generator):
        backgrounds = generator.backgrounds("Keep going", "negative")
        allowed = {bg["value"] for bg in SENTIMENT_BACKGROUNDS["negative"]}

        assert len(backgrounds) == 4
        assert {bg.value for bg in backgrounds} == allowed

    def test_topic_extras_join_the_pool(self, generator):
        pool = {bg["value"] for bg in SENTIMENT_BACKGROUNDS["positive"]}
        pool |= {bg["value"] for words, bg in TOPIC_BACKGROUNDS if "love" in words or "ocean" in words}

        for _ in range(10):
            backgrounds = generator.backgrounds("I love the ocean", "positive")
            assert len(backgrounds) == 4
            assert {bg.value for bg in backgrounds} <= pool

    def test_unknown_sentiment_uses_neutral(self, generator):
        backgrounds = generator.backgrounds("Keep going", "furious")

        assert {bg.value for bg in backgrounds} == {bg["value"] for bg in SENTIMENT_BACKGROUNDS["neutral"]}

    def test_tables_are_not_mutated(self, generator):
        before = [dict(bg) for bg in SENTIMENT_BACKGROUNDS["positive"]]
        for _ in range(5):
            generator.backgrounds("love", "positive")

        assert [dict(bg) for bg in SENTIMENT_BACKGROUNDS["positive"]] == before

    @pytest.mark.parametrize("seed", range(25))
    def test_general_mix_quotas(self, seed):
        backgrounds = FallbackGenerator(random.Random(seed)).general_backgrounds("Stay curious", "neutral")
        kinds = [bg.type for bg in backgrounds]

        assert len(backgrounds) == 8
        assert 1 <= kinds.count("color") <= 2
        assert 2 <= kinds.count("gradient") <= 3
        assert kinds.count("image") == 8 - kinds.count("color") - kinds.count("gradient")
        assert len({bg.value for bg in backgrounds}) == 8

    def test_general_mix_prefers_fetched_images(self, generator):
        fetched = [
            BackgroundSuggestion(type="image", value="https://images.example.com/a.jpg", description="a"),
            BackgroundSuggestion(type="image", value="https://images.example.com/b.jpg", description="b"),
        ]
        backgrounds = generator.general_backgrounds("Stay curious", "positive", images=fetched)
        values = {bg.value for bg in backgrounds}

        assert len(backgrounds) == 8
        assert "https://images.example.com/a.jpg" in values
        assert "https://images.example.com/b.jpg" in values

    def test_general_mix_is_deterministic_for_a_seed(self):
        a = FallbackGenerator(random.Random(3)).general_backgrounds("Stay curious", "positive")
        b = FallbackGenerator(random.Random(3)).general_backgrounds("Stay curious", "positive")

        assert a == b


class TestPalettes:
    def test_returns_all_curated_palettes(self, generator):
        palettes = generator.palettes()

        assert len(palettes) == len(PALETTES)
        assert sorted(p.primary for p in palettes) == sorted(p["primary"] for p in PALETTES)
