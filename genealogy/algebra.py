"""
Graph algebra over GenealogyDB node and edge sets.

- merge_graphs: deduplicated union of any number of graphs
- intersect_graphs: relations present in both graphs

Inputs are never mutated; results are fresh graphs.
"""
from typing import Iterable, Optional

from genealogy.graph_db import GenealogyDB


def merge_graphs(graphs: Iterable[Optional[GenealogyDB]]) -> Optional[GenealogyDB]:
    """
    Merge a collection of graphs into a single graph.

    Node and edge sets are deduplicated unions. None entries are ignored;
    if nothing is left to merge, None is returned.
    """
    present = [g for g in graphs if g is not None]
    if not present:
        return None

    merged = GenealogyDB()
    for graph in present:
        # Codes first so isolated codes survive the merge
        merged.add_codes_batch(graph.codes())
        merged.add_relations_batch(graph.relations())
    return merged


def intersect_graphs(
    g1: GenealogyDB,
    g2: GenealogyDB,
    keep_all_vertices: bool = False,
) -> GenealogyDB:
    """
    Intersection of two graphs.

    Args:
        g1, g2: Graphs to intersect
        keep_all_vertices: If False, the node set is made of the endpoints
            of the surviving relations. If True, it is the union of both
            node sets, whether or not their relations survive.

    Returns:
        A new GenealogyDB whose relations are those present in both graphs,
        in g1's order
    """
    result = GenealogyDB()
    if keep_all_vertices:
        result.add_codes_batch(g1.codes())
        result.add_codes_batch(g2.codes())

    result.add_relations_batch(
        r for r in g1.relations() if g2.has_edge(r.parent, r.child)
    )
    return result
