"""In-memory record of which generated tags users applied or rejected.

The history lives only as long as the process; `export_history` and
`import_history` let a host persist it elsewhere as JSON.
"""

import re
from collections import Counter

from pydantic import TypeAdapter, ValidationError

from autotag.dependencies import logger
from autotag.providers.models import TagSuggestion
from autotag.tags.models import PopularTag, TagHistoryEntry, TagPerformance

MAX_HISTORY_SIZE = 1000

_entries_adapter = TypeAdapter(list[TagHistoryEntry])


class TagHistory:
    """Bounded, newest-first list of tagging decisions."""

    def __init__(self, max_size: int = MAX_HISTORY_SIZE) -> None:
        self.max_size = max_size
        self.entries: list[TagHistoryEntry] = []

    def add_entry(
        self, path: str, applied: list[TagSuggestion], rejected: list[TagSuggestion]
    ) -> TagHistoryEntry:
        """Record a decision; confidence is the mean over applied suggestions."""
        confidence = sum(s.confidence for s in applied) / len(applied) if applied else 0.0
        entry = TagHistoryEntry(
            file=path,
            applied_tags=[s.tag for s in applied],
            rejected_tags=[s.tag for s in rejected],
            confidence=confidence,
        )
        self.entries.insert(0, entry)
        del self.entries[self.max_size :]
        return entry

    def get_recommendations(self, content: str, limit: int = 10) -> list[str]:
        """Suggest previously applied tags for notes whose path resembles `content`.

        Similarity is the share of content words that overlap a word of
        the recorded note path, weighted by the entry's confidence.
        """
        keywords = [k for k in content.lower().split() if k]
        if not keywords:
            return []

        scores: Counter[str] = Counter()
        for entry in self.entries:
            entry_keywords = [k for k in re.split(r"[\s/\-.]", entry.file.lower()) if k]
            common = [k for k in keywords if any(ek in k or k in ek for ek in entry_keywords)]
            if not common:
                continue
            similarity = len(common) / max(len(keywords), len(entry_keywords))
            for tag in entry.applied_tags:
                scores[tag] += similarity * entry.confidence

        return [tag for tag, _ in scores.most_common(limit)]

    def get_popular_tags(self, limit: int = 20) -> list[PopularTag]:
        counts = Counter(tag for entry in self.entries for tag in entry.applied_tags)
        return [PopularTag(tag=tag, count=count) for tag, count in counts.most_common(limit)]

    def get_tag_performance(self) -> list[TagPerformance]:
        """Acceptance rate per tag, best first; never-accepted tags are omitted."""
        applied: Counter[str] = Counter()
        rejected: Counter[str] = Counter()
        for entry in self.entries:
            applied.update(entry.applied_tags)
            rejected.update(entry.rejected_tags)

        performance = [
            TagPerformance(tag=tag, success_rate=applied[tag] / (applied[tag] + rejected[tag]))
            for tag in applied.keys() | rejected.keys()
            if applied[tag] > 0
        ]
        performance.sort(key=lambda p: (-p.success_rate, p.tag))
        return performance

    def export_history(self) -> str:
        return _entries_adapter.dump_json(self.entries, indent=2).decode()

    def import_history(self, data: str) -> bool:
        """Replace the history with JSON produced by export_history.

        Returns:
            True on success, False if `data` is not a valid history list
        """
        try:
            entries = _entries_adapter.validate_json(data)
        except ValidationError as e:
            logger.warning("history_import_failed", extra={"error": str(e)})
            return False
        self.entries = entries[: self.max_size]
        return True

    def clear(self) -> None:
        self.entries = []


tag_history = TagHistory()
