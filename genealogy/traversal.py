"""
GENEALOGY TRAVERSAL - The Bounded Traversal Engine

Answers "which codes are above / below these codes?" on a DAG where a code
may have several parents and be reachable from several roots.

Depth semantics are per path, not per graph distance: with max_depth=k,
a code is kept when it lies among the k codes immediately preceding (for
ancestors) or following (for descendants) a target on at least one
root-to-leaf path. In a DAG every path from a code to a target extends
to a root, so this is exactly "reachable from a target in at most k hops",
which a layered BFS computes without ever materializing paths:

    Layer 0: targets
    Layer 1: parents (or children) of layer 0
    ...
    Layer k: stop

Without a bound the engine only needs reachability, delegated to the
Rust-native rx.ancestors / rx.descendants in O(V+E) per expansion.

Multi-target unbounded queries are processed from the highest target
(closest to a root) down for descendants, and from the lowest up for
ancestors. A target already covered by an earlier expansion is skipped:
its own expansion is a subset of the one that covered it.
"""
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Union

import rustworkx as rx

from genealogy.graph_db import GenealogyDB, GraphInvariantError
from genealogy.ontology import Direction, OutputShape
from genealogy.query import (
    Targets,
    parse_output_shape,
    render_subgraph,
    resolve_targets,
    validate_max_depth,
)

logger = logging.getLogger(__name__)


# =============================================================================
# SET-LEVEL ENGINE (targets already validated)
# =============================================================================

def collect_ancestors(
    db: GenealogyDB,
    targets: Iterable[str],
    max_depth: Optional[int] = None,
) -> Set[str]:
    """
    Proper ancestors of the targets.

    Args:
        db: Graph to traverse
        targets: Codes known to be in db
        max_depth: None for every ancestor, k to keep the k nearest
                   predecessors along each path

    Returns:
        Set of codes. Unbounded results never contain a target; a bounded
        result contains a target that lies within max_depth of another one.
    """
    return expand(db, targets, Direction.UP, max_depth)


def collect_descendants(
    db: GenealogyDB,
    targets: Iterable[str],
    max_depth: Optional[int] = None,
) -> Set[str]:
    """Proper descendants of the targets. Mirror of collect_ancestors."""
    return expand(db, targets, Direction.DOWN, max_depth)


def expand(
    db: GenealogyDB,
    targets: Iterable[str],
    direction: Direction,
    max_depth: Optional[int] = None,
) -> Set[str]:
    """Reachable set from targets in one direction, optionally depth-bounded."""
    target_codes = list(dict.fromkeys(targets))
    if not target_codes:
        return set()

    indices = [db.index_of(code) for code in target_codes]

    if max_depth is None:
        found = _unbounded_expansion(db, indices, direction)
        found.difference_update(indices)
    else:
        found = _bounded_expansion(db, indices, direction, max_depth)

    return {db.code_at(idx) for idx in found}


def _bounded_expansion(
    db: GenealogyDB,
    indices: List[int],
    direction: Direction,
    max_depth: int,
) -> Set[int]:
    graph = db.rx_graph
    hop: Callable = (
        graph.predecessor_indices if direction is Direction.UP else graph.successor_indices
    )

    found: Set[int] = set()
    visited: Set[int] = set(indices)
    frontier = list(indices)

    for _ in range(max_depth):
        next_frontier: List[int] = []
        for idx in frontier:
            for neighbor in hop(idx):
                found.add(neighbor)
                # First visit is at the shortest distance; no need to expand twice
                if neighbor not in visited:
                    visited.add(neighbor)
                    next_frontier.append(neighbor)
        if not next_frontier:
            break
        frontier = next_frontier

    return found


def _unbounded_expansion(
    db: GenealogyDB,
    indices: List[int],
    direction: Direction,
) -> Set[int]:
    graph = db.rx_graph
    reach: Callable = rx.ancestors if direction is Direction.UP else rx.descendants

    if len(indices) > 1:
        rank = _topological_rank(db)
        indices = sorted(indices, key=rank.__getitem__, reverse=direction is Direction.UP)

    found: Set[int] = set()
    pending = set(indices)
    expansions = 0
    for idx in indices:
        if idx not in pending:
            continue
        reached = reach(graph, idx)
        found.update(reached)
        pending.difference_update(reached)
        expansions += 1

    logger.debug(
        "Unbounded %s expansion: %d target(s), %d traversal(s), %d code(s) reached",
        direction.value, len(indices), expansions, len(found),
    )
    return found


def _topological_rank(db: GenealogyDB) -> Dict[int, int]:
    """Index -> position in a topological order (roots first)."""
    try:
        order = rx.topological_sort(db.rx_graph)
    except rx.DAGHasCycle:
        raise GraphInvariantError("Cannot order targets: graph has cycles")
    return {idx: position for position, idx in enumerate(order)}


# =============================================================================
# PUBLIC QUERIES
# =============================================================================

def get_ancestors(
    db: GenealogyDB,
    codes: Targets,
    output: Union[OutputShape, str] = OutputShape.CODES_ONLY,
    max_depth: Optional[int] = None,
) -> Any:
    """
    Ancestors of one or several codes.

    Args:
        db: Classification graph to query
        codes: A code or an iterable of codes
        output: "codes_only", "edgelist" or "graph"
        max_depth: None for all ancestors, 1 for parents, 2 for parents and
                   grandparents, ...

    Returns:
        codes_only: set of ancestor codes (empty if none)
        edgelist: relations of the subgraph induced by codes and ancestors
        graph: that induced subgraph as a GenealogyDB
        None if none of the given codes belongs to db

    Raises:
        InvalidArgumentError: Bad output token, max_depth < 1, or no codes
    """
    shape = parse_output_shape(output)
    max_depth = validate_max_depth(max_depth)
    targets = resolve_targets(db, codes)
    if not targets:
        return None

    found = collect_ancestors(db, targets, max_depth)
    return render_subgraph(db, targets, found, shape)


def get_descendants(
    db: GenealogyDB,
    codes: Targets,
    output: Union[OutputShape, str] = OutputShape.CODES_ONLY,
    max_depth: Optional[int] = None,
) -> Any:
    """
    Descendants of one or several codes. See get_ancestors for arguments
    and result shapes; max_depth=1 gives the children.
    """
    shape = parse_output_shape(output)
    max_depth = validate_max_depth(max_depth)
    targets = resolve_targets(db, codes)
    if not targets:
        return None

    found = collect_descendants(db, targets, max_depth)
    return render_subgraph(db, targets, found, shape)
