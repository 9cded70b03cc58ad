"""Reconcile newly approved tags with the tags already in a note.

    >>> merge_tags("Hello #old\\n\\nBody text.", ["new"], "hashtag", "smart")
    'Hello Body text.\\n\\n#old #new'
    >>> merge_tags("", ["a", "b"], "yaml", "append")
    '---\\ntags: ["a", "b"]\\n---\\n\\n'

All functions here are pure: the caller reads the note, merges, and
writes the result back. Tags bound for a hashtag line are sanitized first
(lowercase, whitespace runs become "-"), since a space would end the
token and the tag could not be read back.
"""

from autotag.content.tools import sanitize_tag
from autotag.formats.codecs import get_codec
from autotag.merge.models import MergeMode, MergeResult

HASHTAG_FORMATS = {"hashtag", "both"}


def clean_tags(tags: list[str]) -> list[str]:
    """Trim tags and drop empty ones, keeping order."""
    return [tag.strip() for tag in tags if tag and tag.strip()]


def compute_final_tags(existing: list[str], new_tags: list[str], mode: MergeMode) -> list[str]:
    """Combine existing and new tags according to a merge mode.

    Args:
        existing: Tags already on the note, in document order
        new_tags: Tags to add
        mode: 'append' keeps everything (duplicates allowed), 'replace'
              uses only `new_tags`, 'smart' appends new tags that are not
              already present ignoring case

    Returns:
        The tag list to write

    Raises:
        ValueError: If `mode` is not a known merge mode
    """
    if mode == "append":
        return [*existing, *new_tags]
    if mode == "replace":
        return list(new_tags)
    if mode == "smart":
        seen = {tag.casefold() for tag in existing}
        merged = list(existing)
        for tag in new_tags:
            key = tag.casefold()
            if key not in seen:
                seen.add(key)
                merged.append(tag)
        return merged
    raise ValueError(f"Unknown merge mode: {mode}. Valid: append, replace, smart")


def prepare_tags(tags: list[str], tag_format: str) -> list[str]:
    """Clean new tags, sanitizing them where the format is a hashtag line.

    Examples:
        >>> prepare_tags(["Machine Learning", " "], "hashtag")
        ['machine-learning']
        >>> prepare_tags([" Machine Learning "], "yaml")
        ['Machine Learning']
    """
    tags = clean_tags(tags)
    if tag_format in HASHTAG_FORMATS:
        tags = clean_tags([sanitize_tag(tag) for tag in tags])
    return tags


def apply_merge(content: str, new_tags: list[str], tag_format: str, mode: MergeMode) -> MergeResult:
    """Merge tags into note text and report what happened.

    Args:
        content: Current note text
        new_tags: Approved tags, cleaned with prepare_tags
        tag_format: One of 'hashtag', 'yaml', 'inline', 'both'
        mode: One of 'append', 'replace', 'smart'

    Returns:
        MergeResult with the updated text and the before/after tag lists.
        When the text is left unchanged, `final_tags` equals the existing
        tags.
    """
    codec = get_codec(tag_format)
    existing = codec.extract_existing(content)
    final_tags = compute_final_tags(existing, prepare_tags(new_tags, tag_format), mode)
    updated = codec.inject(content, final_tags)
    if updated == content:
        final_tags = existing
    return MergeResult(
        content=updated,
        changed=updated != content,
        existing_tags=existing,
        final_tags=final_tags,
        tag_format=tag_format,
        merge_mode=mode,
    )


def merge_tags(content: str, new_tags: list[str], tag_format: str, mode: MergeMode) -> str:
    """Return `content` with `new_tags` merged in; see apply_merge."""
    return apply_merge(content, new_tags, tag_format, mode).content
