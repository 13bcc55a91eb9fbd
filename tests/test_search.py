"""
Tests for fuzzy matching.
"""
from passvault.search import fuzzy_filter, fuzzy_score


class TestFuzzyScore:
    """Tests for fuzzy_score."""

    def test_empty_query_matches(self):
        assert fuzzy_score("anything", "") == 0

    def test_substring_matches(self):
        assert fuzzy_score("id | github | a@b.com", "github") > 0

    def test_subsequence_matches(self):
        assert fuzzy_score("github", "gthb") > 0

    def test_order_matters(self):
        assert fuzzy_score("github", "bhtig") is None

    def test_missing_character(self):
        assert fuzzy_score("github", "gitlab") is None

    def test_smart_case(self):
        """Lowercase queries ignore case; a query with capitals respects it."""
        assert fuzzy_score("GitHub", "github") is not None
        assert fuzzy_score("github", "GitHub") is None
        assert fuzzy_score("GitHub", "GitHub") is not None

    def test_titlecase_letters(self):
        """Titlecase letters are neither upper nor lower case but still fold."""
        assert fuzzy_score("ǅemal-bank", "ǅemal") is not None
        assert fuzzy_score("ǅemal-bank", "ǆemal") is not None
        assert fuzzy_score("DŽEMAL-BANK", "ǆemal") is not None

    def test_casefold_expansions(self):
        assert fuzzy_score("Straße", "strasse") is not None
        assert fuzzy_score("Straße", "straße") is not None

    def test_contiguous_scores_higher(self):
        assert fuzzy_score("xx github", "git") > fuzzy_score("g x i x t", "git")

    def test_scattered_match_stays_positive(self):
        assert fuzzy_score("a" + "-" * 100 + "b", "ab") > 0


class TestFuzzyFilter:
    """Tests for fuzzy_filter."""

    def test_keeps_original_order(self):
        items = ["zeta git", "alpha", "git beta", "github"]
        assert fuzzy_filter(items, "git") == ["zeta git", "git beta", "github"]

    def test_empty_query_keeps_all(self):
        assert fuzzy_filter(["a", "b"], "") == ["a", "b"]
