"""
Unit tests for the Hierarchy Builder.

Covers sponsor tree construction (depth limits, levels, cycles,
self-sponsorship, unresolved sponsors), root discovery and the flat
network view used by the graph endpoint.
"""

import pytest

from network_insights.services.hierarchy import (
    build_forest,
    build_hierarchy,
    build_network_view,
    count_nodes,
    find_roots,
    flatten_tree,
    index_by_code,
    iter_nodes,
    tree_depth,
)
from network_insights.models import LicenseeStatus

from network_insights.tests.factories import make_chain, make_record


# =============================================================================
# TREE BUILDING TESTS
# =============================================================================


class TestBuildHierarchy:
    """Tests for build_hierarchy."""

    def test_depth_one_stops_before_grandchildren(self):
        """Root A sponsors B and C, B sponsors D; depth 1 shows only B and C."""
        records = [
            make_record(1, None, 'A'),
            make_record(2, 1, 'B'),
            make_record(3, 1, 'C'),
            make_record(4, 2, 'D'),
        ]

        tree = build_hierarchy(records, root_code=1, max_depth=1)

        assert tree is not None
        assert [child.code for child in tree.children] == [2, 3]
        assert all(child.children == [] for child in tree.children)
        assert count_nodes(tree) == 3

    def test_depth_zero_returns_lone_root(self, sample_records):
        tree = build_hierarchy(sample_records, root_code=1, max_depth=0)

        assert tree.children == []
        assert tree_depth(tree) == 0

    def test_unbounded_depth_reaches_every_descendant(self, sample_records):
        tree = build_hierarchy(sample_records, root_code=1)

        codes = sorted(node.code for node in iter_nodes(tree))
        assert codes == [1, 2, 3, 4, 5]
        assert tree_depth(tree) == 2

    def test_child_level_is_parent_level_plus_one(self, sample_records):
        tree = build_hierarchy(sample_records, root_code=1)

        assert tree.level == 0
        for node in iter_nodes(tree):
            for child in node.children:
                assert child.level == node.level + 1

    def test_children_keep_source_order(self):
        records = [
            make_record(10, None),
            make_record(13, 10),
            make_record(11, 10),
            make_record(12, 10),
        ]

        tree = build_hierarchy(records, root_code=10)

        assert [child.code for child in tree.children] == [13, 11, 12]

    def test_node_count_never_exceeds_record_count(self, sample_records):
        for root_code in (1, 2, 6):
            tree = build_hierarchy(sample_records, root_code=root_code)
            assert count_nodes(tree) <= len(sample_records)

    def test_node_count_equals_record_count_when_all_sponsors_resolve(self, sample_records):
        # Drop the licensee whose sponsor lies outside the dataset
        connected = [r for r in sample_records if r.code != 6]

        tree = build_hierarchy(connected, root_code=1)

        assert count_nodes(tree) == len(connected)

    def test_self_sponsor_has_no_children(self):
        records = [make_record(7, 7, 'Self'), make_record(8, None)]

        tree = build_hierarchy(records, root_code=7)

        assert tree is not None
        assert tree.children == []
        assert count_nodes(tree) == 1

    def test_multi_hop_cycle_terminates(self):
        """10 -> 11 -> 12 -> 10: each node is placed once."""
        records = [
            make_record(10, 12),
            make_record(11, 10),
            make_record(12, 11),
        ]

        tree = build_hierarchy(records, root_code=10)

        assert count_nodes(tree) == 3
        assert [node.code for node in iter_nodes(tree)] == [10, 11, 12]
        assert tree_depth(tree) == 2

    def test_unknown_root_returns_none(self, sample_records):
        tree = build_hierarchy(sample_records, root_code=404)

        assert tree is None
        assert count_nodes(tree) == 0
        assert tree_depth(tree) == -1

    def test_negative_depth_raises(self, sample_records):
        with pytest.raises(ValueError, match="max_depth"):
            build_hierarchy(sample_records, root_code=1, max_depth=-1)

    def test_nodes_carry_record_fields(self, sample_records):
        tree = build_hierarchy(sample_records, root_code=1, max_depth=1)

        bruno = tree.children[0]
        assert bruno.name == 'Bruno'
        assert bruno.active_clients == 60
        assert bruno.sponsor_code == 1


# =============================================================================
# INDEX AND ROOT TESTS
# =============================================================================


class TestIndexesAndRoots:
    """Tests for index_by_code and find_roots."""

    def test_duplicate_codes_keep_first_occurrence(self):
        records = [make_record(1, None, 'First'), make_record(1, None, 'Second')]

        by_code = index_by_code(records)

        assert len(by_code) == 1
        assert by_code[1].name == 'First'

    def test_find_roots_includes_unresolved_sponsor(self, sample_records):
        roots = find_roots(sample_records)

        assert [r.code for r in roots] == [1, 6]

    def test_find_roots_treats_zero_sponsor_as_root(self):
        records = [make_record(1, 0), make_record(2, 1)]

        assert [r.code for r in find_roots(records)] == [1]

    def test_find_roots_includes_self_sponsor(self):
        records = [make_record(1, 1), make_record(2, 1)]

        assert [r.code for r in find_roots(records)] == [1]


# =============================================================================
# FOREST AND FLATTENING TESTS
# =============================================================================


class TestForest:
    """Tests for build_forest and flatten_tree."""

    def test_one_tree_per_root(self, sample_records):
        forest = build_forest(sample_records)

        assert [tree.code for tree in forest] == [1, 6]
        assert [count_nodes(tree) for tree in forest] == [5, 1]

    def test_forest_covers_every_record_without_cycles(self, sample_records):
        forest = build_forest(sample_records)

        assert sum(count_nodes(tree) for tree in forest) == len(sample_records)

    def test_forest_depth_limit(self, sample_records):
        forest = build_forest(sample_records, max_depth=1)

        assert [tree_depth(tree) for tree in forest] == [1, 0]

    def test_forest_negative_depth_raises(self, sample_records):
        with pytest.raises(ValueError):
            build_forest(sample_records, max_depth=-1)

    def test_cycle_without_root_is_left_out(self):
        records = [make_record(1), make_record(2, 3), make_record(3, 2)]

        assert [tree.code for tree in build_forest(records)] == [1]

    def test_flatten_keeps_levels_and_sponsors(self, sample_records):
        rows = flatten_tree(build_hierarchy(sample_records, root_code=1))

        assert [(r.code, r.level, r.sponsor_code) for r in rows] == [
            (1, 0, None), (2, 1, 1), (4, 2, 2), (5, 2, 2), (3, 1, 1),
        ]
        assert [r.is_root for r in rows] == [True, False, False, False, False]

    def test_long_chain_is_built_and_flattened(self):
        tree = build_hierarchy(make_chain(300), root_code=1)

        assert count_nodes(tree) == 300
        assert tree_depth(tree) == 299
        assert [r.code for r in flatten_tree(tree)] == list(range(1, 301))

    def test_flatten_empty_tree(self):
        assert flatten_tree(None) == []


# =============================================================================
# NETWORK VIEW TESTS
# =============================================================================


class TestBuildNetworkView:
    """Tests for build_network_view."""

    def test_root_parent_then_descendants(self, sample_records):
        members = build_network_view(sample_records, root_code=2)

        assert [(m.code, m.level) for m in members] == [(2, 0), (1, -1), (4, 1)]
        assert members[0].is_root is True
        assert members[1].is_root is False

    def test_inactive_members_included_when_requested(self, sample_records):
        members = build_network_view(sample_records, root_code=2, active_only=False)

        assert [m.code for m in members] == [2, 1, 4, 5]
        assert members[-1].status == LicenseeStatus.INACTIVE

    def test_parent_can_be_excluded(self, sample_records):
        members = build_network_view(sample_records, root_code=2, include_parent=False)

        assert [m.code for m in members] == [2, 4]

    def test_levels_zero_keeps_root_and_parent(self, sample_records):
        members = build_network_view(sample_records, root_code=2, levels=0)

        assert [m.code for m in members] == [2, 1]

    def test_limit_caps_member_count(self, sample_records):
        members = build_network_view(sample_records, root_code=1, limit=2)

        assert [m.code for m in members] == [1, 2]

    def test_descendants_listed_level_by_level(self, sample_records):
        members = build_network_view(sample_records, root_code=1, levels=2)

        assert [(m.code, m.level) for m in members] == [(1, 0), (2, 1), (3, 1), (4, 2)]

    def test_unknown_root_returns_none(self, sample_records):
        assert build_network_view(sample_records, root_code=404) is None

    def test_invalid_arguments_raise(self, sample_records):
        with pytest.raises(ValueError):
            build_network_view(sample_records, root_code=1, levels=-1)
        with pytest.raises(ValueError):
            build_network_view(sample_records, root_code=1, limit=0)
