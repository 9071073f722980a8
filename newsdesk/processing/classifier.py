"""
Category Classifier
===================

Keyword-taxonomy classifier assigning topical categories to articles.

Source-provided category labels are trusted first; keyword counting over
title and description is used only when no source label maps onto the
taxonomy. Every article gets at least one category.
"""

from typing import Dict, Iterable, List, Optional

from ..database.models import DEFAULT_CATEGORY
from ..utils.logging import get_logger_for_component


# Canonical category name -> case-insensitive keyword triggers
TAXONOMY: Dict[str, List[str]] = {
    "Technology": [
        "tech", "software", "programming", "code", "developer", "AI",
        "machine learning", "startup", "silicon valley", "gadget", "iPhone",
        "android", "app", "digital", "cyber", "data", "algorithm",
    ],
    "Sports": [
        "football", "basketball", "baseball", "soccer", "tennis", "golf",
        "olympics", "championship", "league", "team", "player", "game",
        "match", "score", "tournament",
    ],
    "Politics": [
        "election", "government", "congress", "senate", "president",
        "political", "policy", "law", "legislation", "vote", "campaign",
        "democracy", "republican", "democrat",
    ],
    "Business": [
        "economy", "market", "stock", "finance", "investment", "business",
        "company", "corporate", "profit", "revenue", "CEO", "startup",
        "entrepreneur", "trade", "commerce",
    ],
    "Health": [
        "health", "medical", "medicine", "doctor", "hospital", "disease",
        "treatment", "vaccine", "fitness", "nutrition", "wellness",
        "mental health", "therapy",
    ],
    "Science": [
        "research", "study", "science", "scientific", "discovery",
        "experiment", "climate", "environment", "space", "nasa", "biology",
        "chemistry", "physics",
    ],
    "Entertainment": [
        "movie", "film", "tv", "television", "celebrity", "music", "album",
        "concert", "hollywood", "netflix", "streaming", "entertainment", "show",
    ],
    "World News": [
        "international", "world", "global", "country", "nation", "diplomatic",
        "embassy", "foreign", "overseas", "continent", "refugee", "conflict",
        "peace",
    ],
    "Lifestyle": [
        "travel", "food", "recipe", "fashion", "style", "home", "garden",
        "family", "relationship", "culture", "art", "hobby", "lifestyle",
    ],
}

# A single keyword hit only counts when the keyword is longer than this
MIN_SINGLE_KEYWORD_LENGTH = 3


class CategoryClassifier:
    """Maps article text and source labels onto the topic taxonomy."""

    def __init__(self, taxonomy: Optional[Dict[str, List[str]]] = None):
        """Initialize classifier.

        Args:
            taxonomy: Category -> keywords mapping, defaults to TAXONOMY
        """
        source = taxonomy if taxonomy is not None else TAXONOMY
        self.taxonomy = {
            category: [keyword.lower() for keyword in keywords]
            for category, keywords in source.items()
        }
        self.logger = get_logger_for_component("classifier")

    @property
    def category_names(self) -> List[str]:
        return list(self.taxonomy.keys())

    def classify(
        self,
        title: Optional[str],
        description: Optional[str],
        raw_categories: Optional[Iterable[str]] = None,
    ) -> List[str]:
        """Classify an article.

        Args:
            title: Article title
            description: Plain-text description
            raw_categories: Source-provided category labels

        Returns:
            Non-empty list of canonical categories in first-match order
        """
        categories = self.classify_source_labels(raw_categories or [])

        if not categories:
            categories = self.classify_content(f"{title or ''} {description or ''}")

        if not categories:
            return [DEFAULT_CATEGORY]

        return categories

    def classify_source_labels(self, labels: Iterable[str]) -> List[str]:
        """Map source labels onto the taxonomy by substring match.

        A label matches a category when it contains one of its keywords or
        the category name itself.
        """
        matched: List[str] = []

        for label in labels:
            if not isinstance(label, str):
                continue
            label_lower = label.lower()

            for category, keywords in self.taxonomy.items():
                if category in matched:
                    continue
                if category.lower() in label_lower or any(
                    keyword in label_lower for keyword in keywords
                ):
                    matched.append(category)

        if matched:
            self.logger.debug(f"Source labels {list(labels)} mapped to {matched}")

        return matched

    def classify_content(self, text: str) -> List[str]:
        """Keyword-count classification over free text.

        A category is assigned on two or more keyword hits, or on a single
        hit by a keyword longer than three characters.
        """
        content = text.lower()
        matched: List[str] = []

        for category, keywords in self.taxonomy.items():
            hits = [keyword for keyword in keywords if keyword in content]
            if len(hits) >= 2 or (
                len(hits) == 1 and len(hits[0]) > MIN_SINGLE_KEYWORD_LENGTH
            ):
                matched.append(category)

        return matched


_classifier: Optional[CategoryClassifier] = None


def get_classifier() -> CategoryClassifier:
    """Get the shared classifier instance."""
    global _classifier

    if _classifier is None:
        _classifier = CategoryClassifier()

    return _classifier
