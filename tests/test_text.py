"""Tests for keyword-set text similarity."""

import pytest

from feature_graph.overlap.text import (
    calculate_text_similarity,
    extract_keywords,
    jaccard_similarity,
    trigrams,
)


class TestKeywords:
    """Test keyword extraction."""

    def test_lowercase_long_tokens_without_stop_words(self):
        keywords = extract_keywords("Customers cannot PAY for items in their cart!")
        assert keywords == {"customers", "cannot", "items", "cart"}

    def test_punctuation_splits_tokens(self):
        assert extract_keywords("self-service/onboarding") == {"self", "service", "onboarding"}

    def test_empty(self):
        assert extract_keywords("") == set()
        assert extract_keywords(None) == set()


class TestJaccard:
    """Test Jaccard similarity."""

    def test_partial_overlap(self):
        assert jaccard_similarity({"a", "b", "c"}, {"b", "c", "d"}) == 0.5

    def test_both_empty(self):
        assert jaccard_similarity(set(), set()) == 0.0


class TestTextSimilarity:
    """Test calculate_text_similarity()."""

    def test_identical_texts_capped_at_one(self):
        text = "Customers cannot pay for items in their shopping cart"
        assert calculate_text_similarity(text, text) == 1.0

    def test_unrelated_texts(self):
        assert calculate_text_similarity("invoice export to spreadsheet", "dark mode theme") == 0.0

    def test_shared_phrase_bonus(self):
        score = calculate_text_similarity(
            "users reset forgotten password quickly",
            "admins reset forgotten password slowly",
        )
        # keywords: 3 shared of 7, plus one shared three-word phrase
        assert score == pytest.approx(3 / 7 + 0.1)

    def test_phrase_bonus_capped(self):
        # Only short words, so no keywords; four shared phrases
        text = "the cat sat on a mat"
        assert len(trigrams(text)) == 4
        assert calculate_text_similarity(text, text) == pytest.approx(0.3)

    def test_symmetric(self):
        a = "track parcel delivery status in real time"
        b = "customers want delivery status updates"
        assert calculate_text_similarity(a, b) == calculate_text_similarity(b, a)
