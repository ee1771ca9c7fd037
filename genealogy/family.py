"""
Family and in-between subgraphs.

complete_family widens a set of codes upwards by a few generations, then
takes everything below: parents, siblings, cousins and all descendants down
to the leaves.

in_between_graph keeps only the connective tissue between codes: what lies
both in their ancestor cone and in their descendant cone.
"""
from typing import Any, Union

from genealogy.algebra import intersect_graphs
from genealogy.graph_db import GenealogyDB, InvalidArgumentError
from genealogy.ontology import OutputShape
from genealogy.query import (
    Targets,
    parse_output_shape,
    render_subgraph,
    resolve_targets,
    validate_max_depth,
)
from genealogy.traversal import collect_ancestors, collect_descendants


def complete_family(
    db: GenealogyDB,
    codes: Targets,
    output: Union[OutputShape, str] = OutputShape.CODES_ONLY,
    max_depth: int = 1,
) -> Any:
    """
    Codes, their ancestors up to max_depth, and every descendant of those.

    Args:
        db: Classification graph to query
        codes: A code or an iterable of codes
        output: "codes_only", "edgelist" or "graph"
        max_depth: Generations to climb before descending. 0 climbs none,
                   so the family is the codes and their descendants.

    Returns:
        codes_only: every code of the family, the given codes included
        edgelist / graph: the subgraph induced by the family
        None if none of the codes belongs to db

    Raises:
        InvalidArgumentError: Bad output token, max_depth not an integer >= 0
    """
    shape = parse_output_shape(output)
    if max_depth is None:
        raise InvalidArgumentError("`max_depth` must be an integer >= 0 for complete_family")
    max_depth = validate_max_depth(max_depth, minimum=0)
    targets = resolve_targets(db, codes)
    if not targets:
        return None

    extended = set(targets)
    if max_depth > 0:
        extended |= collect_ancestors(db, targets, max_depth)

    family = collect_descendants(db, extended) | extended
    return render_subgraph(db, extended, family, shape)


def in_between_graph(
    db: GenealogyDB,
    codes: Targets,
    output: Union[OutputShape, str] = OutputShape.GRAPH,
) -> Any:
    """
    Subgraph connecting the given codes, excluding unrelated branches.

    It is the intersection of the ancestor subgraph and the descendant
    subgraph of the codes. Its roots and leaves are among the given codes.

    Returns:
        graph (default): the connecting GenealogyDB
        edgelist: its relations
        codes_only: its codes
        None if none of the codes belongs to db
    """
    shape = parse_output_shape(output)
    targets = resolve_targets(db, codes)
    if not targets:
        return None

    ancestor_graph = db.induced_subgraph([*targets, *collect_ancestors(db, targets)])
    descendant_graph = db.induced_subgraph([*targets, *collect_descendants(db, targets)])
    between = intersect_graphs(ancestor_graph, descendant_graph, keep_all_vertices=False)

    if shape is OutputShape.CODES_ONLY:
        return set(between.codes())
    if shape is OutputShape.EDGELIST:
        return between.relations()
    return between
