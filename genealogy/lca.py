"""
GENEALOGY LCA - Lowest Common Ancestors on a DAG

Unlike a tree, a DAG may give a set of codes several incomparable lowest
common ancestors: two codes classified under two independent branches
meet in two different places. The result is an antichain: every returned
code is a common ancestor of all targets (or a target itself, when it is
an ancestor of the others) and no returned code is an ancestor of another.

Algorithm:
1. Work graph = ancestor subgraph U descendant subgraph of the targets
2. Attach a virtual super-root above every root of the work graph, on a
   private copy, so each target is reached by root-originated paths
3. Enumerate every simple path super-root -> target, for each target
4. For every combination of one path per target, the apparent LCA is the
   deepest node shared by all chosen paths (scanning the first path from
   the target back to the root)
5. Keep the apparent LCAs that reach no other apparent LCA
6. Strip the super-root

Step 3 is exponential in the number of root-to-target paths on dense
graphs. Step 5 uses a reachability index (one descendant set per
candidate) instead of pairwise path searches.
"""
import itertools
import logging
import math
from typing import Dict, List, Optional, Sequence, Set

import rustworkx as rx

from genealogy.algebra import merge_graphs
from genealogy.graph_db import GenealogyDB
from genealogy.query import Targets, resolve_targets
from genealogy.traversal import collect_ancestors, collect_descendants

logger = logging.getLogger(__name__)

# Payload of the virtual root. Never mapped back to a code.
_SUPER_ROOT = object()


class SuperRootedGraph:
    """
    Transient copy of a graph with one virtual root above all its roots.

    The caller's graph is never touched: the super-root only exists on the
    private rustworkx copy held here, under an index no code can take.
    """

    def __init__(self, db: GenealogyDB):
        self.db = db
        self.graph: rx.PyDiGraph = db.rx_graph.copy()
        roots = [idx for idx in self.graph.node_indices() if self.graph.in_degree(idx) == 0]
        self.super_root: int = self.graph.add_node(_SUPER_ROOT)
        self.graph.add_edges_from_no_data([(self.super_root, idx) for idx in roots])

    def paths_to(self, code: str) -> List[List[int]]:
        """Every simple path super-root -> code, as index lists."""
        target = self.db.index_of(code)
        return [list(path) for path in rx.all_simple_paths(self.graph, self.super_root, target)]

    def reachability(self, indices: Set[int]) -> Dict[int, Set[int]]:
        """Index -> set of its descendants, for the given indices only."""
        return {idx: set(rx.descendants(self.graph, idx)) for idx in indices}

    def codes(self, indices: Set[int]) -> Set[str]:
        return {self.db.code_at(idx) for idx in indices if idx != self.super_root}


def apparent_lca(paths: Sequence[List[int]]) -> Optional[int]:
    """
    Deepest node common to all paths, depth being the position along the
    first path. None when the paths share nothing.
    """
    common = set(paths[0]).intersection(*paths[1:])
    for idx in reversed(paths[0]):
        if idx in common:
            return idx
    return None


def lowest_common_ancestors_of(db: GenealogyDB, targets: List[str]) -> Set[str]:
    """
    LCAs of codes known to be in db.

    Returns:
        The antichain of lowest common ancestors; empty when the targets
        share no ancestor (e.g. they live in disconnected hierarchies).
    """
    ancestors = collect_ancestors(db, targets)
    descendants = collect_descendants(db, targets)
    work = merge_graphs([
        db.induced_subgraph([*targets, *ancestors]),
        db.induced_subgraph([*targets, *descendants]),
    ])
    rooted = SuperRootedGraph(work)

    paths_per_target = [rooted.paths_to(code) for code in targets]
    logger.debug(
        "LCA search over %d target(s), %d path combination(s)",
        len(targets), math.prod(len(paths) for paths in paths_per_target),
    )

    candidates: Set[int] = set()
    for combination in itertools.product(*paths_per_target):
        lca = apparent_lca(combination)
        if lca is not None:
            candidates.add(lca)

    # A candidate reaching another candidate is not a lowest one
    reach = rooted.reachability(candidates)
    lowest = {
        a for a in candidates
        if not any(b in reach[a] for b in candidates if b != a)
    }
    return rooted.codes(lowest)


def get_lcas(db: GenealogyDB, codes: Targets) -> Optional[Set[str]]:
    """
    Lowest common ancestors of a set of codes.

    Args:
        db: Classification graph to query
        codes: A code or an iterable of codes

    Returns:
        Set of LCA codes, possibly with several elements when the targets
        belong to independent branches; empty set when they share no
        ancestor; None if none of the codes belongs to db.

    Raises:
        InvalidArgumentError: If no code is given
    """
    targets = resolve_targets(db, codes)
    if not targets:
        return None
    return lowest_common_ancestors_of(db, targets)
