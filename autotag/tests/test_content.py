"""Tests for note text cleanup and content analysis helpers."""

from autotag.content.models import ContentAnalysis
from autotag.content.tools import (
    analyze_content,
    calculate_complexity,
    extract_keywords,
    extract_topics,
    normalize_content,
    sanitize_tag,
    truncate_content,
)

# =============================================================================
# Normalize Content Tests
# =============================================================================


class TestNormalizeContent:
    """Tests for markdown and metadata stripping."""

    def test_strips_frontmatter_and_hashtags(self) -> None:
        """Test that the leading block and hashtags are removed."""
        raw = "---\ntitle: x\ntags: [a]\n---\n# Heading\n\nSome **bold** text #tag"
        assert normalize_content(raw) == "Heading\n\nSome bold text"

    def test_links_keep_label_images_dropped(self) -> None:
        """Test that links keep their label and images disappear."""
        raw = "See [the docs](http://example.com) and ![diagram](img.png)"
        assert normalize_content(raw) == "See the docs and"

    def test_code_removed(self) -> None:
        """Test that fenced and inline code are removed."""
        raw = "Before\n```python\nx = 1\n```\nAfter `secret()` end"
        result = normalize_content(raw)

        assert "x = 1" not in result
        assert "secret" not in result
        assert result.startswith("Before")
        assert result.endswith("end")

    def test_emphasis_markers_removed(self) -> None:
        """Test that italic, underscore and strikethrough markers go, text stays."""
        raw = "*italic* and _under_ and ~~gone~~ and __strong__"
        assert normalize_content(raw) == "italic and under and gone and strong"

    def test_list_and_quote_prefixes_removed(self) -> None:
        """Test that list bullets, numbers and quote markers are dropped."""
        raw = "- one\n* two\n1. three\n> quote"
        assert normalize_content(raw) == "one\ntwo\nthree\nquote"

    def test_excess_newlines_collapsed(self) -> None:
        """Test that three or more newlines become two."""
        assert normalize_content("a\n\n\n\nb") == "a\n\nb"

    def test_unclosed_frontmatter_left_as_text(self) -> None:
        """Test that an unclosed leading block is not treated as metadata."""
        result = normalize_content("---\ntitle: x\nbody")
        assert result.startswith("---")
        assert "title: x" in result

    def test_snake_case_words_untouched(self) -> None:
        """Test that underscores inside words are not read as italics."""
        assert normalize_content("use snake_case_names here") == "use snake_case_names here"

    def test_empty_input(self) -> None:
        """Test empty text stays empty."""
        assert normalize_content("") == ""


# =============================================================================
# Keyword and Topic Tests
# =============================================================================


class TestExtractKeywords:
    """Tests for keyword extraction helper function."""

    def test_frequency_ordering(self) -> None:
        """Test that keywords are ordered by frequency."""
        keywords = extract_keywords("python python python code code java")
        assert keywords == ["python", "code", "java"]

    def test_stopwords_filtered(self) -> None:
        """Test that stopwords are filtered out."""
        keywords = extract_keywords("there would have been their which about")
        assert keywords == []

    def test_custom_min_length_and_limit(self) -> None:
        """Test custom min_length and limit parameters."""
        keywords = extract_keywords("api api sdk cli", min_length=3, limit=2)
        assert keywords == ["api", "sdk"]


class TestExtractTopics:
    """Tests for topic cue extraction."""

    def test_research_cue(self) -> None:
        """Test that 'research on X' yields X."""
        topics = extract_topics("Research on machine learning. Nothing else.")
        assert "machine learning" in topics

    def test_no_cues(self) -> None:
        """Test that text without cues yields nothing."""
        assert extract_topics("Plain words only") == []


# =============================================================================
# Analysis Tests
# =============================================================================


class TestAnalyzeContent:
    """Tests for the content summary."""

    def test_analysis_fields(self) -> None:
        """Test that the analysis reports keywords, counts and complexity."""
        analysis = analyze_content("Research on machine learning. Learning models learn patterns.")

        assert isinstance(analysis, ContentAnalysis)
        assert "learning" in analysis.keywords
        assert "machine learning" in analysis.topics
        assert analysis.word_count == 7
        assert 0.0 < analysis.complexity <= 1.0

    def test_complexity_empty(self) -> None:
        """Test that empty text has zero complexity."""
        assert calculate_complexity("") == 0.0

    def test_complexity_capped(self) -> None:
        """Test that very long sentences are capped at 1.0."""
        assert calculate_complexity("extraordinarily " * 200) == 1.0


# =============================================================================
# Truncate and Sanitize Tests
# =============================================================================


class TestTruncateContent:
    """Tests for prompt-length truncation."""

    def test_short_text_unchanged(self) -> None:
        assert truncate_content("short", 100) == "short"

    def test_cut_at_sentence_end(self) -> None:
        """Test that a period near the end of the window is used."""
        assert truncate_content("One. Two. Three.", 9) == "One. Two."

    def test_hard_cut_with_ellipsis(self) -> None:
        """Test that text without a late period is hard-cut."""
        assert truncate_content("abcdefghijklmnop", 5) == "abcde..."


class TestSanitizeTag:
    """Tests for tag sanitizing."""

    def test_spaces_and_punctuation(self) -> None:
        assert sanitize_tag("  Machine Learning! ") == "machine-learning"

    def test_nested_tag_kept(self) -> None:
        assert sanitize_tag("Projects/Q3 Plan") == "projects/q3-plan"

    def test_length_capped(self) -> None:
        assert len(sanitize_tag("x" * 80)) == 50
