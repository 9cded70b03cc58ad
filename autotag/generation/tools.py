"""Post-processing of provider suggestions: confidence filter and hierarchy."""

from autotag.providers.models import TagSuggestion

PARENT_CONFIDENCE_FACTOR = 0.9
DEFAULT_CATEGORY = "general"

# Order matters: the first category with a matching keyword wins.
CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "technology": ("programming", "software", "computer", "tech", "digital", "ai", "ml", "data"),
    "science": ("research", "study", "analysis", "experiment", "theory", "hypothesis"),
    "business": ("management", "strategy", "marketing", "finance", "economics", "startup"),
    "personal": ("life", "health", "fitness", "hobby", "travel", "family", "relationship"),
    "education": ("learning", "course", "tutorial", "knowledge", "skill", "training"),
    "creative": ("art", "design", "music", "writing", "photography", "creative"),
}


def filter_by_confidence(
    suggestions: list[TagSuggestion], min_confidence: float
) -> list[TagSuggestion]:
    """Keep suggestions scoring at least `min_confidence`, in order."""
    return [s for s in suggestions if s.confidence >= min_confidence]


def infer_category(tag: str) -> str:
    """Map a tag to a broad category by keyword substring.

    Examples:
        >>> infer_category("Machine-Learning")
        'education'
        >>> infer_category("python-programming")
        'technology'
        >>> infer_category("recipes")
        'general'
    """
    lower_tag = tag.lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in lower_tag for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def build_hierarchy(suggestions: list[TagSuggestion]) -> list[TagSuggestion]:
    """Regroup suggestions under inferred category parents.

    Suggestions are grouped by `infer_category` (groups in first-seen
    order). A group with several members yields a synthesized parent
    suggestion followed by each member renamed to 'category/tag'. A
    group with one member is passed through as is.

    Args:
        suggestions: Flat suggestions, typically already filtered

    Returns:
        Regrouped suggestions; the input list is not modified
    """
    groups: dict[str, list[TagSuggestion]] = {}
    for suggestion in suggestions:
        groups.setdefault(infer_category(suggestion.tag), []).append(suggestion)

    hierarchical: list[TagSuggestion] = []
    for category, members in groups.items():
        if len(members) == 1:
            hierarchical.extend(members)
            continue

        hierarchical.append(
            TagSuggestion(
                tag=category,
                confidence=max(m.confidence for m in members) * PARENT_CONFIDENCE_FACTOR,
                category="parent",
                source="keyword",
            )
        )
        hierarchical.extend(
            m.model_copy(update={"tag": f"{category}/{m.tag}", "category": "child"})
            for m in members
        )
    return hierarchical
