"""Unit tests for keyword extraction."""

from quotecraft.services.keywords import (
    extract_keywords,
    get_sentiment_keywords,
    tokenize,
)


class TestTokenize:
    def test_splits_on_non_word_characters(self):
        assert tokenize("Hello, World! It's  fine.") == ["hello", "world", "it", "s", "fine"]

    def test_empty_text(self):
        assert tokenize("") == []


class TestExtractKeywords:
    def test_drops_short_and_stop_words(self):
        keywords = extract_keywords("The journey of a thousand miles begins with one step")
        assert keywords == ["journey", "thousand", "miles", "begins", "step"]

    def test_dedupes_in_first_seen_order(self):
        assert extract_keywords("Dream dream DREAM bigger dreams") == ["dream", "bigger", "dreams"]

    def test_pads_with_sentiment_keywords(self):
        assert extract_keywords("Be you", sentiment="positive") == ["happy", "sunshine"]

    def test_pads_only_up_to_two_sentiment_keywords(self):
        assert extract_keywords("Courage now", sentiment="negative") == ["courage", "moody", "rain"]

    def test_unknown_sentiment_pads_with_neutral(self):
        assert extract_keywords("Go", sentiment="ecstatic") == ["calm", "balance"]

    def test_padding_can_be_disabled(self):
        assert extract_keywords("Go on", min_keywords=0) == []


class TestSentimentKeywords:
    def test_returns_copy(self):
        words = get_sentiment_keywords("positive")
        words.clear()
        assert get_sentiment_keywords("positive")[0] == "happy"

    def test_none_is_neutral(self):
        assert get_sentiment_keywords(None) == get_sentiment_keywords("neutral")
