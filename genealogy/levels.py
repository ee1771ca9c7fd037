"""
Upper classification levels.

Some questions need per-code metadata ("is this code a group of
disorders?"). The engine does not hold metadata: the caller supplies it
as a predicate over codes, and these helpers walk the hierarchy with it.

    is_group = lambda code: metadata[code].level == "group"
    get_lowest_matching_ancestors(db, "158676", is_group)
"""
from typing import Callable, Dict, Optional, Set

from genealogy.graph_db import GenealogyDB
from genealogy.query import Targets, resolve_targets
from genealogy.schemas import CodeLike
from genealogy.traversal import collect_ancestors, collect_descendants

CodePredicate = Callable[[str], bool]


def get_matching_ancestors(
    db: GenealogyDB,
    codes: Targets,
    predicate: CodePredicate,
) -> Optional[Dict[str, Set[str]]]:
    """
    For each code, the code itself if it matches, otherwise its matching
    ancestors (e.g. the disorder a subtype belongs to).

    Returns:
        {code: set of matching codes}, an empty set when nothing matches;
        None if none of the codes belongs to db
    """
    targets = resolve_targets(db, codes)
    if not targets:
        return None

    result: Dict[str, Set[str]] = {}
    for code in targets:
        if predicate(code):
            result[code] = {code}
        else:
            result[code] = {a for a in collect_ancestors(db, [code]) if predicate(a)}
    return result


def get_lowest_matching_ancestors(
    db: GenealogyDB,
    code: CodeLike,
    predicate: CodePredicate,
) -> Optional[Set[str]]:
    """
    Closest matching levels above a code.

    The code itself if it matches; otherwise the matching ancestors that
    have no matching descendant among the matching ancestors.
    """
    targets = resolve_targets(db, [code])
    if not targets:
        return None
    code = targets[0]

    if predicate(code):
        return {code}

    matching = {a for a in collect_ancestors(db, [code]) if predicate(a)}
    return {
        m for m in matching
        if not collect_descendants(db, [m]) & matching
    }
