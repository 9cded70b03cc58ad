"""Readers and writers for the on-document tag syntaxes.

Each codec owns one token grammar and offers two operations:

    extract_existing(text) -> list of tags found in the note
    inject(text, tags)     -> note text carrying exactly `tags`

Grammars:
    hashtag  '#' followed by word characters, '-', '_', '/' or CJK ideographs,
             anywhere in the note body
    yaml     a 'tags:' field inside the leading '---' frontmatter block,
             read with python-frontmatter and written as tags: ["a", "b"]
    inline   '[[name]]' tokens (no nested brackets) in the note body
    both     yaml, then hashtag

The note body is everything after a closed leading frontmatter block.
Body-only codecs never touch that block, and keep the separator between
the block and the body as it was.
"""

import json
import re
from typing import Any, Literal, Protocol

import frontmatter

TagFormat = Literal["hashtag", "yaml", "inline", "both"]

FRONTMATTER_PATTERN = re.compile(
    r"\A---[ \t]*\r?\n(?:(?P<inner>.*?)\r?\n)??---[ \t]*(?P<close_nl>\r?\n|\Z)",
    re.DOTALL,
)
HASHTAG_PATTERN = re.compile(r"#([\w\-/\u4e00-\u9fff]+)")
INLINE_TAG_PATTERN = re.compile(r"\[\[([^\[\]]+)\]\]")
YAML_TAGS_FIELD = re.compile(r"^tags:\s*(.*?)\s*$")
YAML_LIST_ITEM = re.compile(r"^\s*-\s")
WHITESPACE_RUN = re.compile(r"\s+")


def split_frontmatter(text: str) -> tuple[str, str]:
    """Split note text into (frontmatter block, body).

    The block includes both '---' delimiter lines and the newline after
    the closing one. Text without a closed leading block returns an
    empty block and the text unchanged as body.

    Examples:
        >>> split_frontmatter("---\\ntitle: x\\n---\\nBody")
        ('---\\ntitle: x\\n---\\n', 'Body')
        >>> split_frontmatter("---\\nunclosed")
        ('', '---\\nunclosed')
    """
    match = FRONTMATTER_PATTERN.match(text)
    if not match:
        return "", text
    return match.group(0), text[match.end() :]


def _join(head: str, body: str, original_body: str) -> str:
    """Reattach a rewritten body, keeping the blank lines that followed the block."""
    if not head or not body:
        return head or body
    if not head.endswith("\n"):
        head += "\n"
    separator = original_body[: len(original_body) - len(original_body.lstrip("\r\n"))]
    return f"{head}{separator}{body}"


def tag_values(value: Any) -> list[str]:
    """Turn a YAML `tags` value into a list of tag strings.

    A string is read as a comma-separated list; any other scalar becomes
    a single tag.

    Examples:
        >>> tag_values(["a", 2024])
        ['a', '2024']
        >>> tag_values("a, b")
        ['a', 'b']
        >>> tag_values(None)
        []
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    elif not isinstance(value, list):
        value = [value]
    return [str(v).strip() for v in value if v is not None and str(v).strip()]


def format_yaml_tags(tags: list[str]) -> str:
    """Render the frontmatter field line, e.g. tags: ["a", "b"]."""
    return "tags: [" + ", ".join(json.dumps(tag, ensure_ascii=False) for tag in tags) + "]"


class TagCodec(Protocol):
    """Serializer/deserializer pair for one tag syntax."""

    def extract_existing(self, text: str) -> list[str]: ...

    def inject(self, text: str, tags: list[str]) -> str: ...


class HashtagCodec:
    """`#tag` tokens in the note body, rewritten as one trailing line."""

    def extract_existing(self, text: str) -> list[str]:
        _, body = split_frontmatter(text)
        return HASHTAG_PATTERN.findall(body)

    def inject(self, text: str, tags: list[str]) -> str:
        """Remove every hashtag from the body and append `tags` as a final line.

        Whitespace runs in the body collapse to single spaces. With no
        tags, the cleaned body is returned without a tag line.
        """
        head, original = split_frontmatter(text)
        body = WHITESPACE_RUN.sub(" ", HASHTAG_PATTERN.sub("", original)).strip()
        if tags:
            line = " ".join(f"#{tag}" for tag in tags)
            body = f"{body}\n\n{line}" if body else line
        return _join(head, body, original)


class YamlCodec:
    """`tags:` field in the leading frontmatter block.

    The block is read with python-frontmatter. Writing replaces the field's
    own lines (block list items or a flow list spread over several lines)
    with a single `tags: [...]` line. When that cannot be done without
    changing the rest of the block, for example a block scalar or a block
    that is not valid YAML, the note is left as is.
    """

    @staticmethod
    def _load(lines: list[str]) -> dict[str, Any] | None:
        """Parse block lines as YAML metadata, or None if they do not parse."""
        try:
            post = frontmatter.loads("---\n" + "\n".join(lines) + "\n---\n")
        except Exception:
            return None
        return dict(post.metadata)

    @staticmethod
    def _find_field(lines: list[str]) -> tuple[int, int] | None:
        """Locate the tags field as (first line, end line exclusive)."""
        for index, line in enumerate(lines):
            match = YAML_TAGS_FIELD.match(line)
            if not match:
                continue
            value = match.group(1)
            end = index + 1
            if not value:
                while end < len(lines) and YAML_LIST_ITEM.match(lines[end]):
                    end += 1
            elif value.startswith("[") and not value.endswith("]"):
                # flow list continued on the following lines
                while end < len(lines) and not lines[end - 1].rstrip().endswith("]"):
                    end += 1
            return index, end
        return None

    @staticmethod
    def _block_lines(match: re.Match[str] | None) -> list[str] | None:
        if not match:
            return None
        inner = match.group("inner")
        return inner.splitlines() if inner is not None else []

    def extract_existing(self, text: str) -> list[str]:
        lines = self._block_lines(FRONTMATTER_PATTERN.match(text))
        if not lines:
            return []
        metadata = self._load(lines)
        if metadata is None:
            return []
        return tag_values(metadata.get("tags"))

    def inject(self, text: str, tags: list[str]) -> str:
        """Write `tags` into the frontmatter, creating or removing it as needed.

        An existing field is rewritten in place; a missing one is added at
        the end of the block. Without a block, one is created in front of
        the text. Empty `tags` deletes the field and drops the block if it
        is left empty.
        """
        match = FRONTMATTER_PATTERN.match(text)
        lines = self._block_lines(match)

        if lines is None:
            if not tags:
                return text
            return f"---\n{format_yaml_tags(tags)}\n---\n\n{text}"

        metadata = self._load(lines)
        if metadata is None:
            return text

        field = self._find_field(lines)
        updated = list(lines)
        if field is not None:
            start, end = field
            updated[start:end] = [format_yaml_tags(tags)] if tags else []
        elif tags:
            updated.append(format_yaml_tags(tags))
        else:
            return text

        if not self._rewrite_is_faithful(metadata, updated, tags):
            return text
        if not tags and not any(line.strip() for line in updated):
            return text[match.end() :].lstrip("\r\n")
        block = "---\n" + "\n".join(updated) + "\n---" + match.group("close_nl")
        return block + text[match.end() :]

    def _rewrite_is_faithful(
        self, before: dict[str, Any], lines: list[str], tags: list[str]
    ) -> bool:
        """Check the rewritten block changes the tags field and nothing else."""
        after = self._load(lines)
        if after is None:
            return False
        if tag_values(after.pop("tags", None)) != tags:
            return False
        return after == {key: value for key, value in before.items() if key != "tags"}


class InlineCodec:
    """`[[tag]]` tokens in the note body, rewritten as one trailing line."""

    _strip_pattern = re.compile(r"[ \t]*" + INLINE_TAG_PATTERN.pattern)

    def extract_existing(self, text: str) -> list[str]:
        _, body = split_frontmatter(text)
        return INLINE_TAG_PATTERN.findall(body)

    def inject(self, text: str, tags: list[str]) -> str:
        head, original = split_frontmatter(text)
        body = self._strip_pattern.sub("", original).strip()
        if tags:
            line = " ".join(f"[[{tag}]]" for tag in tags)
            body = f"{body}\n\n{line}" if body else line
        return _join(head, body, original)


class BothCodec:
    """Frontmatter field plus hashtag line, applied in that order."""

    def __init__(self) -> None:
        self.yaml = YamlCodec()
        self.hashtag = HashtagCodec()

    def extract_existing(self, text: str) -> list[str]:
        """Frontmatter tags then body hashtags, keeping the first of any
        case-insensitive duplicates (the two syntaxes mirror each other)."""
        seen: set[str] = set()
        tags = []
        for tag in self.yaml.extract_existing(text) + self.hashtag.extract_existing(text):
            key = tag.casefold()
            if key not in seen:
                seen.add(key)
                tags.append(tag)
        return tags

    def inject(self, text: str, tags: list[str]) -> str:
        return self.hashtag.inject(self.yaml.inject(text, tags), tags)


CODECS: dict[str, TagCodec] = {
    "hashtag": HashtagCodec(),
    "yaml": YamlCodec(),
    "inline": InlineCodec(),
    "both": BothCodec(),
}


def get_codec(tag_format: str) -> TagCodec:
    """Return the codec for a tag format.

    Raises:
        ValueError: If the format is not one of hashtag, yaml, inline, both
    """
    try:
        return CODECS[tag_format]
    except KeyError:
        raise ValueError(
            f"Unknown tag format: {tag_format}. Valid: {', '.join(CODECS)}"
        ) from None
