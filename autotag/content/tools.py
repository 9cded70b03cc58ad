"""Note text cleanup before it is sent to a tag provider.

The main entry point is `normalize_content`, which strips markdown and
metadata noise so the backend sees prose only. The remaining helpers
are small text utilities used around generation: keyword and topic
analysis, content truncation and tag sanitizing.

Example:
    >>> normalize_content("---\\ntitle: x\\n---\\n# Heading\\n\\nSome **bold** text #tag")
    'Heading\\n\\nSome bold text'
"""

import re
from collections import Counter

from autotag.content.models import ContentAnalysis
from autotag.formats.codecs import HASHTAG_PATTERN, split_frontmatter

IMAGE_PATTERN = re.compile(r"!\[[^\]]*\]\([^)]*\)")
LINK_PATTERN = re.compile(r"\[([^\]]*)\]\([^)]*\)")
FENCED_CODE_PATTERN = re.compile(r"```[\s\S]*?```|~~~[\s\S]*?~~~")
INLINE_CODE_PATTERN = re.compile(r"`[^`\n]*`")
BOLD_PATTERN = re.compile(r"(\*\*|__)(?=\S)(.+?)(?<=\S)\1")
STAR_ITALIC_PATTERN = re.compile(r"(?<!\*)\*(?=[^\s*])([^*\n]+?)(?<=\S)\*(?!\*)")
UNDERSCORE_ITALIC_PATTERN = re.compile(r"(?<!\w)_(?=\S)([^_\n]+?)(?<=\S)_(?!\w)")
STRIKETHROUGH_PATTERN = re.compile(r"~~(?=\S)(.+?)(?<=\S)~~")
HEADING_PATTERN = re.compile(r"^[ \t]*#{1,6}[ \t]+", re.MULTILINE)
LIST_ITEM_PATTERN = re.compile(r"^[ \t]*[-*+][ \t]+", re.MULTILINE)
NUMBERED_ITEM_PATTERN = re.compile(r"^[ \t]*\d+\.[ \t]+", re.MULTILINE)
BLOCKQUOTE_PATTERN = re.compile(r"^[ \t]*(?:>[ \t]?)+", re.MULTILINE)
EXCESS_NEWLINES_PATTERN = re.compile(r"\n{3,}")

TOPIC_PATTERNS = [
    re.compile(r"(?:about|regarding|concerning)\s+([a-zA-Z\s]{3,20})", re.IGNORECASE),
    re.compile(r"(?:study|research|analysis)\s+(?:of|on)\s+([a-zA-Z\s]{3,20})", re.IGNORECASE),
    re.compile(r"([A-Z][a-zA-Z\s]{3,20})\s+(?:theory|concept|principle)", re.IGNORECASE),
]

STOPWORDS = {
    "the",
    "and",
    "for",
    "are",
    "but",
    "not",
    "you",
    "all",
    "can",
    "had",
    "was",
    "one",
    "our",
    "has",
    "have",
    "been",
    "this",
    "that",
    "with",
    "they",
    "from",
    "will",
    "would",
    "there",
    "their",
    "what",
    "about",
    "which",
    "when",
    "make",
    "like",
    "time",
    "just",
    "know",
}

MAX_TAG_LENGTH = 50


def normalize_content(raw: str) -> str:
    """Strip metadata and markdown syntax from note text.

    Steps, in order: leading frontmatter block, hashtags, images, links
    (label kept), fenced and inline code, bold/italic/strikethrough
    markers (inner text kept), heading markers, list/numbered/blockquote
    prefixes. Runs of three or more newlines collapse to two and the
    result is trimmed. An unclosed frontmatter block is left as text.

    Args:
        raw: Note content as stored in the vault

    Returns:
        Plain text suitable for a prompt
    """
    _, text = split_frontmatter(raw)
    text = HASHTAG_PATTERN.sub("", text)
    text = IMAGE_PATTERN.sub("", text)
    text = LINK_PATTERN.sub(r"\1", text)
    text = FENCED_CODE_PATTERN.sub("", text)
    text = INLINE_CODE_PATTERN.sub("", text)
    text = BOLD_PATTERN.sub(r"\2", text)
    text = STAR_ITALIC_PATTERN.sub(r"\1", text)
    text = UNDERSCORE_ITALIC_PATTERN.sub(r"\1", text)
    text = STRIKETHROUGH_PATTERN.sub(r"\1", text)
    text = HEADING_PATTERN.sub("", text)
    text = LIST_ITEM_PATTERN.sub("", text)
    text = NUMBERED_ITEM_PATTERN.sub("", text)
    text = BLOCKQUOTE_PATTERN.sub("", text)
    text = EXCESS_NEWLINES_PATTERN.sub("\n\n", text)
    return text.strip()


def extract_keywords(content: str, min_length: int = 4, limit: int = 20) -> list[str]:
    """Extract keywords from content, filtered by length and stopwords.

    Args:
        content: Note content to analyze
        min_length: Minimum word length to consider
        limit: Maximum number of keywords returned

    Returns:
        List of keywords sorted by frequency (most common first)
    """
    words = re.findall(r"\b[^\W\d_][\w-]*\b", content.lower())
    filtered = [w for w in words if len(w) >= min_length and w not in STOPWORDS]
    return [word for word, _ in Counter(filtered).most_common(limit)]


def extract_topics(content: str, limit: int = 5) -> list[str]:
    """Find short phrases introduced by topic cues such as 'about' or 'theory'."""
    topics: list[str] = []
    for pattern in TOPIC_PATTERNS:
        for match in pattern.finditer(content):
            topic = " ".join(match.group(1).split()).lower()
            if 3 < len(topic) < 30 and topic not in topics:
                topics.append(topic)
    return topics[:limit]


def calculate_complexity(content: str) -> float:
    """Score text from 0.0 (simple) to 1.0 by sentence and word length."""
    sentences = [s for s in re.split(r"[.!?]+", content) if s.strip()]
    words = content.split()
    if not sentences or not words:
        return 0.0

    avg_words_per_sentence = len(words) / len(sentences)
    avg_chars_per_word = sum(len(w) for w in words) / len(words)
    return min(1.0, (avg_words_per_sentence * avg_chars_per_word) / 100)


def analyze_content(content: str) -> ContentAnalysis:
    """Summarize cleaned note text.

    Args:
        content: Normalized note text

    Returns:
        ContentAnalysis with top keywords, topics, word count and complexity
    """
    words = [w for w in content.lower().split() if len(w) > 2]
    return ContentAnalysis(
        keywords=extract_keywords(content, limit=10),
        topics=extract_topics(content),
        word_count=len(words),
        complexity=calculate_complexity(content),
    )


def truncate_content(content: str, max_length: int = 4000) -> str:
    """Shorten text for a prompt, preferring to cut at a sentence end.

    Args:
        content: Text to shorten
        max_length: Maximum number of characters to keep

    Returns:
        The text unchanged if short enough; otherwise cut at the last
        period in the final fifth of the window, or hard-cut with '...'

    Examples:
        >>> truncate_content("One. Two. Three.", 9)
        'One. Two.'
    """
    if len(content) <= max_length:
        return content

    truncated = content[:max_length]
    last_sentence = truncated.rfind(".")
    if last_sentence > max_length * 0.8:
        return truncated[: last_sentence + 1]
    return truncated + "..."


def sanitize_tag(tag: str) -> str:
    """Turn free text into a tag token.

    Examples:
        >>> sanitize_tag("  Machine Learning! ")
        'machine-learning'
        >>> sanitize_tag("Projects/Q3 Plan")
        'projects/q3-plan'
    """
    tag = re.sub(r"[^\w\s\-/]", "", tag.lower())
    tag = re.sub(r"\s+", "-", tag.strip())
    tag = tag.strip("-")
    return tag[:MAX_TAG_LENGTH]
