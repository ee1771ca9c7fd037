"""
Direct relations of a single code: parents, children and siblings.

These are one-hop lookups. get_parents(db, x) gives the same codes as
get_ancestors(db, x, max_depth=1) without running the traversal engine.
"""
from typing import Any, List, Set, Union

from genealogy.graph_db import GenealogyDB
from genealogy.ontology import Direction, OutputShape
from genealogy.query import parse_output_shape, render_relations, resolve_targets
from genealogy.schemas import CodeLike, Relation


def _one_hop(db: GenealogyDB, code: CodeLike, direction: Direction, output) -> Any:
    shape = parse_output_shape(output)
    targets = resolve_targets(db, [code], stacklevel=4)
    if not targets:
        return None

    relations = db.incident_relations(targets[0], direction)
    if direction is Direction.UP:
        found = {r.parent for r in relations}
    else:
        found = {r.child for r in relations}
    return render_relations(relations, found, shape)


def get_parents(
    db: GenealogyDB,
    code: CodeLike,
    output: Union[OutputShape, str] = OutputShape.CODES_ONLY,
) -> Any:
    """
    Parents of a code.

    Returns:
        codes_only: set of parent codes (empty for a root)
        edgelist: the parent -> code relations
        graph: a GenealogyDB made of those relations
        None if the code does not belong to db (UnknownCodeWarning issued)
    """
    return _one_hop(db, code, Direction.UP, output)


def get_children(
    db: GenealogyDB,
    code: CodeLike,
    output: Union[OutputShape, str] = OutputShape.CODES_ONLY,
) -> Any:
    """Children of a code. Mirror of get_parents."""
    return _one_hop(db, code, Direction.DOWN, output)


def get_siblings(
    db: GenealogyDB,
    code: CodeLike,
    output: Union[OutputShape, str] = OutputShape.CODES_ONLY,
) -> Any:
    """
    Codes sharing at least one parent with the given code.

    The code itself is never part of the result. A code without parents
    has no siblings (empty result, not an error).

    Returns:
        codes_only: set of sibling codes
        edgelist: the parent -> sibling relations
        graph: a GenealogyDB made of those relations
        None if the code does not belong to db
    """
    shape = parse_output_shape(output)
    targets = resolve_targets(db, [code])
    if not targets:
        return None
    code = targets[0]

    # Parents are looked up in the same graph the query runs against
    parents = get_parents(db, code, output=OutputShape.CODES_ONLY)

    relations: List[Relation] = []
    for parent in sorted(parents):
        relations.extend(
            r for r in db.incident_relations(parent, Direction.DOWN) if r.child != code
        )
    siblings: Set[str] = {r.child for r in relations}
    return render_relations(relations, siblings, shape)
