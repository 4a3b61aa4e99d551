"""
Hierarchy Builder: sponsor trees from the flat licensee list.

Each licensee names at most one sponsor by code, so the records form a forest.
A tree is built in two O(n) passes (code index, then sponsor -> children index)
followed by a breadth-first attach from the requested root, which keeps the
whole build O(n) and avoids recursion limits on deep chains.

Invariants:
- A child's level is its sponsor's level + 1; the root is level 0
- Children keep source order
- A node appears at most once per tree, even if the data contains
  self-sponsorship or multi-hop sponsor cycles
- A sponsor code that resolves to no record makes the record an extra root

Usage:
    tree = build_hierarchy(records, root_code=1001, max_depth=3)
    total = count_nodes(tree)
"""

import logging
from collections import deque
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from network_insights.models.schemas import HierarchyNode, LicenseeRecord, NetworkMember

logger = logging.getLogger(__name__)

# Deepest tree the API returns nested; pydantic-core refuses to serialize
# recursive models much past 250 levels.
MAX_NESTED_DEPTH = 200


# =============================================================================
# INDEXES
# =============================================================================


def index_by_code(records: Iterable[LicenseeRecord]) -> Dict[int, LicenseeRecord]:
    """
    Map code -> record. On duplicate codes the first occurrence wins.
    """
    by_code: Dict[int, LicenseeRecord] = {}
    duplicates = 0
    for record in records:
        if record.code in by_code:
            duplicates += 1
            continue
        by_code[record.code] = record

    if duplicates:
        logger.warning(f"Ignored {duplicates} records with duplicate codes")
    return by_code


def build_children_index(by_code: Dict[int, LicenseeRecord]) -> Dict[int, List[LicenseeRecord]]:
    """
    Map sponsor code -> direct children, in source order.

    Self-sponsoring records are never listed as their own child. Records whose
    sponsor does not resolve are left out and logged; they are roots.
    """
    children: Dict[int, List[LicenseeRecord]] = {}
    unresolved = 0

    for record in by_code.values():
        if not record.has_sponsor or record.sponsor_code == record.code:
            continue
        if record.sponsor_code not in by_code:
            unresolved += 1
            continue
        children.setdefault(record.sponsor_code, []).append(record)

    if unresolved:
        logger.info(f"{unresolved} records reference a sponsor outside the dataset")
    return children


def _to_node(record: LicenseeRecord, level: int) -> HierarchyNode:
    return HierarchyNode(**record.model_dump(), level=level)


# =============================================================================
# TREE BUILDING
# =============================================================================


def _attach_descendants(
    root: HierarchyNode,
    children_index: Dict[int, List[LicenseeRecord]],
    max_depth: Optional[int],
) -> HierarchyNode:
    """Breadth-first attach below root; each code is placed at most once."""
    visited = {root.code}
    queue = deque([root])

    while queue:
        node = queue.popleft()
        if max_depth is not None and node.level >= max_depth:
            continue

        for child_record in children_index.get(node.code, []):
            if child_record.code in visited:
                logger.warning(
                    f"Sponsor cycle detected: {child_record.code} already placed in tree of {root.code}"
                )
                continue
            visited.add(child_record.code)

            child = _to_node(child_record, level=node.level + 1)
            node.children.append(child)
            queue.append(child)

    return root


def build_hierarchy(
    records: Sequence[LicenseeRecord],
    root_code: int,
    max_depth: Optional[int] = None,
) -> Optional[HierarchyNode]:
    """
    Build the sponsor tree rooted at root_code.

    Args:
        records: Normalized licensee records
        root_code: Code of the tree root
        max_depth: Deepest level to attach (0 = root only). None = unbounded.

    Returns:
        The root HierarchyNode, or None when root_code is not in the dataset.

    Raises:
        ValueError: If max_depth is negative
    """
    if max_depth is not None and max_depth < 0:
        raise ValueError(f"max_depth must be >= 0, got {max_depth}")

    by_code = index_by_code(records)
    root_record = by_code.get(root_code)
    if root_record is None:
        logger.info(f"Hierarchy root {root_code} not found")
        return None

    children_index = build_children_index(by_code)
    return _attach_descendants(_to_node(root_record, level=0), children_index, max_depth)


def build_forest(
    records: Sequence[LicenseeRecord],
    max_depth: Optional[int] = None,
) -> List[HierarchyNode]:
    """
    One sponsor tree per root (see find_roots), in source order.

    The code and children indexes are built once and shared by every tree.
    Records that only sit on a sponsor cycle have no root and are left out.

    Raises:
        ValueError: If max_depth is negative
    """
    if max_depth is not None and max_depth < 0:
        raise ValueError(f"max_depth must be >= 0, got {max_depth}")

    by_code = index_by_code(records)
    children_index = build_children_index(by_code)

    return [
        _attach_descendants(_to_node(record, level=0), children_index, max_depth)
        for record in _roots_of(by_code)
    ]


def iter_nodes(tree: Optional[HierarchyNode]) -> Iterator[HierarchyNode]:
    """Yield every node of the tree in pre-order."""
    if tree is None:
        return
    stack = [tree]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def count_nodes(tree: Optional[HierarchyNode]) -> int:
    return sum(1 for _ in iter_nodes(tree))


def tree_depth(tree: Optional[HierarchyNode]) -> int:
    """Deepest level present in the tree (0 for a lone root, -1 for no tree)."""
    return max((node.level for node in iter_nodes(tree)), default=-1)


def _roots_of(by_code: Dict[int, LicenseeRecord]) -> List[LicenseeRecord]:
    return [
        record for record in by_code.values()
        if not record.has_sponsor
        or record.sponsor_code == record.code
        or record.sponsor_code not in by_code
    ]


def find_roots(records: Sequence[LicenseeRecord]) -> List[LicenseeRecord]:
    """
    Records that start a tree: no sponsor, the sentinel 0, a sponsor outside
    the dataset, or a self-sponsor.
    """
    return _roots_of(index_by_code(records))


# =============================================================================
# FLAT NETWORK VIEW
# =============================================================================


def _to_member(record: LicenseeRecord, level: int, is_root: bool = False) -> NetworkMember:
    return NetworkMember(
        code=record.code,
        name=record.name,
        level=level,
        sponsor_code=record.sponsor_code,
        status=record.status,
        graduation=record.graduation,
        graduation_tier=record.graduation_tier,
        active_clients=record.active_clients,
        telecom_clients=record.telecom_clients,
        city=record.city,
        state_code=record.state_code,
        is_root=is_root,
    )


def flatten_tree(tree: Optional[HierarchyNode]) -> List[NetworkMember]:
    """
    The tree as pre-order NetworkMember rows. Each row keeps its level and
    sponsor_code, so the nesting can be rebuilt client-side.
    """
    return [_to_member(node, level=node.level, is_root=node.level == 0) for node in iter_nodes(tree)]


def build_network_view(
    records: Sequence[LicenseeRecord],
    root_code: int,
    levels: int = 3,
    include_parent: bool = True,
    limit: int = 200,
    active_only: bool = True,
) -> Optional[List[NetworkMember]]:
    """
    Flat neighbourhood of a licensee for the network graph.

    The list holds the root (level 0), optionally its sponsor (level -1), then
    descendants level by level down to `levels`, capped at `limit` members.
    With active_only, inactive descendants and everything below them are
    skipped.

    Returns:
        Members in that order, or None when root_code is not in the dataset.
    """
    if levels < 0:
        raise ValueError(f"levels must be >= 0, got {levels}")
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")

    by_code = index_by_code(records)
    root = by_code.get(root_code)
    if root is None:
        return None

    members = [_to_member(root, level=0, is_root=True)]
    visited = {root_code}

    if include_parent and root.has_sponsor and root.sponsor_code != root_code:
        parent = by_code.get(root.sponsor_code)
        if parent is not None and len(members) < limit:
            visited.add(parent.code)
            members.append(_to_member(parent, level=-1))

    children_index = build_children_index(by_code)
    frontier = [root]

    for level in range(1, levels + 1):
        next_frontier = []
        for sponsor in frontier:
            for child in children_index.get(sponsor.code, []):
                if len(members) >= limit:
                    return members
                if child.code in visited:
                    continue
                if active_only and not child.is_active:
                    continue
                visited.add(child.code)
                members.append(_to_member(child, level=level))
                next_frontier.append(child)
        frontier = next_frontier

    return members
