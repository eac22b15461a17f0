"""Tests for folio.site.filters -- the pure project filter."""

import pytest

from folio.site.filters import FilterState, apply_filters, count_label, haystack, matches, normalize_search


class TestApplyFilters:
    def test_wildcards_return_everything_newest_first(self, sample_projects):
        result = apply_filters(sample_projects, FilterState())
        assert [p.id for p in result] == ["p2", "p1", "p3"]

    def test_search_brand(self, sample_projects):
        """A search for 'brand' finds only Brand System Refresh."""
        state = FilterState().with_search("brand")
        result = apply_filters(sample_projects, state)

        assert [p.title for p in result] == ["Brand System Refresh"]
        assert count_label(len(result)) == "1 projects"

    def test_collection(self, sample_projects):
        result = apply_filters(sample_projects, FilterState(collection="featured"))
        assert [p.id for p in result] == ["p1", "p3"]

    def test_type(self, sample_projects):
        assert [p.id for p in apply_filters(sample_projects, FilterState(type="lab"))] == ["p2"]

    def test_combined_filters_are_anded(self, sample_projects):
        state = FilterState(collection="engineering", type="template").with_search("tailwind")
        assert [p.id for p in apply_filters(sample_projects, state)] == ["p3"]

    def test_no_match(self, sample_projects):
        assert apply_filters(sample_projects, FilterState().with_search("zzz")) == []

    def test_pure(self, sample_projects):
        """Same input and state, same output; the input list is left alone."""
        before = [p.id for p in sample_projects]
        state = FilterState(collection="featured")

        assert apply_filters(sample_projects, state) == apply_filters(sample_projects, state)
        assert [p.id for p in sample_projects] == before

    def test_wildcard_is_not_a_tag(self, sample_projects):
        sample_projects[0].collections.append("all")
        assert len(apply_filters(sample_projects, FilterState(collection="all"))) == 3


class TestSearchText:
    @pytest.mark.parametrize("raw, expected", [(None, ""), ("  ", ""), (" BrAnD ", "brand")])
    def test_normalize(self, raw, expected):
        assert normalize_search(raw) == expected

    def test_haystack_covers_tags_and_tools(self, sample_projects):
        text = haystack(sample_projects[1])
        assert "grafana" in text
        assert "cdn" in text

    def test_matches_tool(self, sample_projects):
        assert matches(sample_projects[0], FilterState().with_search("figma"))


def test_count_label():
    assert count_label(0) == "0 projects"
    assert count_label(3) == "3 projects"
