"""
Pytest configuration and shared fixtures for the genealogy test suite.
"""
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


DIAMOND_RELATIONS = [("A", "B"), ("A", "C"), ("B", "D"), ("C", "D"), ("D", "E")]
FOREST_RELATIONS = [("X", "Y"), ("Z", "W")]


@pytest.fixture
def fresh_db():
    """Provide an empty GenealogyDB instance."""
    from genealogy.graph_db import GenealogyDB
    return GenealogyDB()


@pytest.fixture
def diamond_db():
    """
    A -> B, A -> C, B -> D, C -> D, D -> E

    D has two parents, so E is reached from A along two paths.
    """
    from genealogy.graph_db import GenealogyDB
    return GenealogyDB.from_relations(DIAMOND_RELATIONS)


@pytest.fixture
def forest_db():
    """Two disconnected trees: X -> Y and Z -> W."""
    from genealogy.graph_db import GenealogyDB
    return GenealogyDB.from_relations(FOREST_RELATIONS)


@pytest.fixture
def uneven_db():
    """
    R -> P -> Q -> T and R -> T.

    T is one hop from R along one path and three hops along the other.
    """
    from genealogy.graph_db import GenealogyDB
    return GenealogyDB.from_relations([("R", "P"), ("P", "Q"), ("Q", "T"), ("R", "T")])


@pytest.fixture
def repository():
    """Two overlapping classifications sharing the code "D"."""
    from genealogy.repository import ClassificationRepository
    return ClassificationRepository.from_relations({
        "diamond": DIAMOND_RELATIONS,
        "extra": [("K", "D"), ("K", "L")],
    })
