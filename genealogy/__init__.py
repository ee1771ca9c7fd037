"""
GENEALOGY - Central exports for the classification query engine.

This package provides:
- The graph store (GenealogyDB) and the classification repository
- Traversal queries (ancestors, descendants, parents, children, siblings)
- Lowest common ancestors, complete family and in-between subgraphs
- Graph algebra (merge, intersection) and opt-in diagnostics
"""

# Graph store and errors
from genealogy.graph_db import (
    GenealogyDB,
    GraphError,
    CodeNotFoundError,
    ClassificationNotFoundError,
    InvalidArgumentError,
    GraphInvariantError,
    UnknownCodeWarning,
    find_roots,
    find_leaves,
)
from genealogy.ontology import Direction, OutputShape
from genealogy.schemas import Classification, Relation, normalize_code
from genealogy.repository import ClassificationRepository, load_edge_table

# Queries
from genealogy.traversal import (
    get_ancestors,
    get_descendants,
    collect_ancestors,
    collect_descendants,
)
from genealogy.relations import get_parents, get_children, get_siblings
from genealogy.lca import get_lcas
from genealogy.family import complete_family, in_between_graph
from genealogy.algebra import merge_graphs, intersect_graphs
from genealogy.levels import get_matching_ancestors, get_lowest_matching_ancestors
from genealogy.graph_invariants import validate_graph, is_valid_dag

__all__ = [
    # Store
    "GenealogyDB",
    "ClassificationRepository",
    "Classification",
    "Relation",
    "Direction",
    "OutputShape",
    "normalize_code",
    "load_edge_table",
    "find_roots",
    "find_leaves",
    # Errors
    "GraphError",
    "CodeNotFoundError",
    "ClassificationNotFoundError",
    "InvalidArgumentError",
    "GraphInvariantError",
    "UnknownCodeWarning",
    # Queries
    "get_ancestors",
    "get_descendants",
    "collect_ancestors",
    "collect_descendants",
    "get_parents",
    "get_children",
    "get_siblings",
    "get_lcas",
    "complete_family",
    "in_between_graph",
    "get_matching_ancestors",
    "get_lowest_matching_ancestors",
    # Algebra and diagnostics
    "merge_graphs",
    "intersect_graphs",
    "validate_graph",
    "is_valid_dag",
]
