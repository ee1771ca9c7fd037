"""
GENEALOGY ONTOLOGY - The Vocabulary of Queries

If schemas.py is the Grammar (how relations are structured),
ontology.py is the Dictionary (the words a query may use).

This module defines:
- Direction: which way a traversal walks (towards roots or towards leaves)
- OutputShape: the three result shapes every query can be rendered into

Key Principle: a classification is a DAG of parent -> child relations.
"Up" always means towards the more general codes, "down" towards the more
specific ones. Nothing else is assumed about a code.
"""
from enum import Enum
from typing import Tuple


# =============================================================================
# ENUMS (The Vocabulary)
# =============================================================================

class Direction(str, Enum):
    """Direction of a one-hop lookup or a traversal."""
    UP = "up"          # child -> parent (ancestors)
    DOWN = "down"      # parent -> child (descendants)


class OutputShape(str, Enum):
    """Shapes a query result can be rendered into."""
    CODES_ONLY = "codes_only"  # set of codes
    EDGELIST = "edgelist"      # ordered, deduplicated list of Relations
    GRAPH = "graph"            # induced subgraph (GenealogyDB)


OUTPUT_SHAPES: Tuple[str, ...] = tuple(shape.value for shape in OutputShape)
