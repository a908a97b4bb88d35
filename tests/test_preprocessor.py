# FILE: tests/test_preprocessor.py
"""
Tests for assistant_hub/scoring/preprocessor.py
Normalization, spelling correction and synonym expansion.
"""

from assistant_hub.scoring.preprocessor import (
    QueryPreprocessor,
    levenshtein_distance,
    normalize_basic,
)


class TestNormalizeBasic:

    def test_case_and_whitespace(self):
        assert normalize_basic("  Show   MY\tNotes ") == "show my notes"

    def test_curly_quotes_and_apostrophe_spacing(self):
        assert normalize_basic("Don’t  stop") == "don't stop"
        assert normalize_basic("don ' t") == "don't"

    def test_ellipsis_and_hyphens(self):
        assert normalize_basic("wait… pomo - timer") == "wait... pomo-timer"

    def test_none_and_empty(self):
        assert normalize_basic("") == ""
        assert normalize_basic(None) == ""


class TestLevenshtein:

    def test_known_distances(self):
        assert levenshtein_distance("kitten", "sitting") == 3
        assert levenshtein_distance("teh", "the") == 2
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("same", "same") == 0


class TestPreprocess:

    def test_spelling_corrected(self):
        result = QueryPreprocessor().preprocess("Show my pomadoro  stats")
        assert result.normalized == "show my pomodoro stats"
        assert [(c.original, c.corrected) for c in result.corrections] == [("pomadoro", "pomodoro")]
        assert result.original == "Show my pomadoro  stats"

    def test_contractions_corrected(self):
        result = QueryPreprocessor().preprocess("whats my streak")
        assert result.normalized == "what's my streak"

    def test_phrase_corrections(self):
        result = QueryPreprocessor().preprocess("start a pomo doro and open my check list")
        assert result.normalized == "start a pomodoro and open my checklist"
        assert [c.original for c in result.corrections] == ["pomo doro", "check list"]

    def test_real_words_left_alone(self):
        result = QueryPreprocessor().preprocess("its raining and we were out")
        assert result.normalized == "its raining and we were out"
        assert result.corrections == []

    def test_expansions_are_capped(self):
        result = QueryPreprocessor().preprocess("show my notes")
        assert len(result.expansions) == 5
        assert "display my notes" in result.expansions
        assert "show my notes" not in result.expansions

    def test_phrase_synonyms(self):
        result = QueryPreprocessor().preprocess("how many notes")
        assert "count notes" in result.expansions

    def test_unchanged_query(self):
        result = QueryPreprocessor().preprocess("xyzzy")
        assert result.normalized == "xyzzy"
        assert result.changed is False

    def test_empty_query_never_raises(self):
        result = QueryPreprocessor().preprocess("")
        assert result.normalized == ""
        assert result.expansions == []

    def test_custom_tables(self):
        pre = QueryPreprocessor(corrections={"fooo": "foo"}, synonyms={}, max_expansions=2)
        result = pre.preprocess("fooo bar")
        assert result.normalized == "foo bar"
        assert result.expansions == []


class TestSpellingHelpers:

    def test_is_misspelled(self):
        pre = QueryPreprocessor()
        assert pre.is_misspelled("teh") is True
        assert pre.is_misspelled("Calender") is True
        assert pre.is_misspelled("the") is False

    def test_suggestions_deduplicated(self):
        suggestions = QueryPreprocessor().get_suggestions("pomodor")
        assert "pomodoro" in suggestions
        assert len(suggestions) == len(set(suggestions))

    def test_suggestions_limit(self):
        assert len(QueryPreprocessor().get_suggestions("adn", limit=1)) <= 1

    def test_no_suggestions_for_distant_word(self):
        assert QueryPreprocessor().get_suggestions("zzzzzzzzzz") == []
