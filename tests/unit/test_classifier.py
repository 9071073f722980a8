"""
Unit tests for the keyword taxonomy classifier.
"""

import pytest

from newsdesk.processing.classifier import CategoryClassifier, TAXONOMY, get_classifier


class TestCategoryClassifier:
    """Test source-label and content classification passes."""

    def setup_method(self):
        self.classifier = CategoryClassifier()

    def test_source_label_keyword_match(self):
        assert self.classifier.classify("Any title", "Any text", ["Football Finals"]) == ["Sports"]

    def test_source_labels_take_precedence_over_content(self):
        result = self.classifier.classify(
            "New iPhone released", "Apple's latest gadget and software", ["Football Finals"]
        )
        assert result == ["Sports"]

    def test_source_label_matches_category_name(self):
        assert self.classifier.classify("", "", ["Health & Science"]) == ["Health", "Science"]

    def test_source_labels_without_taxonomy_match_fall_back_to_content(self):
        assert self.classifier.classify("The election is near", "", ["Misc"]) == ["Politics"]

    def test_no_duplicate_categories(self):
        assert self.classifier.classify("", "", ["Football", "Soccer league"]) == ["Sports"]

    def test_content_pass_multiple_keywords(self):
        result = self.classifier.classify("New iPhone released", "Apple's latest gadget", [])
        assert result == ["Technology"]

    def test_content_pass_is_case_insensitive(self):
        assert self.classifier.classify("IPHONE", "GADGET", None) == ["Technology"]

    def test_single_long_keyword_assigns(self):
        assert self.classifier.classify("The election is near", "", []) == ["Politics"]

    def test_single_short_keyword_ignored(self):
        assert self.classifier.classify("I watched tv", "", []) == ["General"]

    @pytest.mark.parametrize("title,description,labels", [
        ("", "", []),
        (None, None, None),
        ("Nothing relevant here", "just words", []),
        ("", "", ["", "zzz"]),
    ])
    def test_never_empty(self, title, description, labels):
        result = self.classifier.classify(title, description, labels)
        assert result == ["General"]

    def test_result_never_empty_for_any_category(self):
        for category, keywords in TAXONOMY.items():
            result = self.classifier.classify(" ".join(keywords), "", [])
            assert category in result
            assert len(result) == len(set(result))

    def test_custom_taxonomy(self):
        classifier = CategoryClassifier({"Cooking": ["recipe", "kitchen"]})
        assert classifier.category_names == ["Cooking"]
        assert classifier.classify("Kitchen tips", "a recipe", []) == ["Cooking"]
        assert classifier.classify("Football", "", ["Football"]) == ["General"]

    def test_shared_instance(self):
        assert get_classifier() is get_classifier()
