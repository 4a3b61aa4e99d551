"""
FastAPI router module for sponsor network endpoints.

Endpoints:
- GET /network/roots: Every sponsor tree, one per root licensee
- GET /network/{code}/tree: Nested sponsor tree rooted at code
- GET /network/{code}: Flat neighbourhood for the force-directed graph

An unknown root is not an error: both per-licensee endpoints answer 200 with
found=false and an empty payload. Trees deeper than MAX_NESTED_DEPTH are
returned as flat pre-order rows (flattened=true) instead of nested children.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from network_insights.core.dependencies import RecordsDep
from network_insights.models import (
    HierarchyNode,
    HierarchyResponse,
    NetworkForestResponse,
    NetworkViewResponse,
)
from network_insights.services.hierarchy import (
    MAX_NESTED_DEPTH,
    build_forest,
    build_hierarchy,
    build_network_view,
    count_nodes,
    flatten_tree,
    tree_depth,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/network", tags=["network"])


def _tree_response(code: int, tree: HierarchyNode) -> HierarchyResponse:
    depth = tree_depth(tree)
    summary = dict(root_code=code, found=True, depth=depth, total_nodes=count_nodes(tree))

    if depth > MAX_NESTED_DEPTH:
        logger.info(f"Tree of {code} is {depth} levels deep, returning flat rows")
        return HierarchyResponse(**summary, flattened=True, nodes=flatten_tree(tree))
    return HierarchyResponse(**summary, tree=tree)


@router.get("/roots", response_model=NetworkForestResponse)
async def get_network_roots(
    records: RecordsDep,
    depth: Optional[int] = Query(
        default=None,
        ge=0,
        description="Deepest level to include in each tree; omit for full trees",
    ),
) -> NetworkForestResponse:
    """
    Build the whole sponsor forest.

    Roots are licensees without a sponsor, with the sentinel 0, with a sponsor
    outside the dataset, or sponsoring themselves.
    """
    try:
        forest = build_forest(records, max_depth=depth)
        trees = [_tree_response(tree.code, tree) for tree in forest]
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error building sponsor forest: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error building sponsor forest: {str(e)}",
        )

    return NetworkForestResponse(
        total_roots=len(trees),
        total_nodes=sum(tree.total_nodes for tree in trees),
        trees=trees,
    )


@router.get("/{code}/tree", response_model=HierarchyResponse)
async def get_network_tree(
    code: int,
    records: RecordsDep,
    depth: Optional[int] = Query(
        default=None,
        ge=0,
        description="Deepest level to include (0 = root only); omit for the full tree",
    ),
) -> HierarchyResponse:
    """
    Build the sponsor tree below a licensee.

    Returns:
        HierarchyResponse with the tree (nested, or flat rows past
        MAX_NESTED_DEPTH levels), the total node count and the deepest level
        reached
    """
    try:
        tree = build_hierarchy(records, root_code=code, max_depth=depth)
        if tree is None:
            return HierarchyResponse(root_code=code, found=False)
        return _tree_response(code, tree)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error building hierarchy for {code}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error building hierarchy: {str(e)}",
        )


@router.get("/{code}", response_model=NetworkViewResponse)
async def get_network_view(
    code: int,
    records: RecordsDep,
    levels: int = Query(default=3, ge=0, le=10),
    include_parent: bool = Query(default=True),
    limit: int = Query(default=200, ge=1, le=1000),
    active_only: bool = Query(default=True),
) -> NetworkViewResponse:
    """
    Flat member list around a licensee: root, optional sponsor at level -1,
    and active descendants down to `levels`.
    """
    try:
        members = build_network_view(
            records,
            root_code=code,
            levels=levels,
            include_parent=include_parent,
            limit=limit,
            active_only=active_only,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error building network view for {code}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error building network view: {str(e)}",
        )

    if members is None:
        return NetworkViewResponse(root_code=code, found=False, levels=levels, total=0)

    return NetworkViewResponse(
        root_code=code,
        found=True,
        levels=levels,
        total=len(members),
        members=members,
    )
