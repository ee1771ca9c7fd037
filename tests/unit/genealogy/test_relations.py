"""
Unit tests for genealogy/relations.py - parents, children and siblings.
"""
import pytest

from genealogy.graph_db import GenealogyDB, InvalidArgumentError, UnknownCodeWarning
from genealogy.relations import get_children, get_parents, get_siblings
from genealogy.schemas import Relation


@pytest.fixture
def family_db():
    """
    P1 -> A, P1 -> S1, P2 -> A, P2 -> S2, A -> K
    """
    return GenealogyDB.from_relations([
        ("P1", "A"), ("P1", "S1"), ("P2", "A"), ("P2", "S2"), ("A", "K"),
    ])


# =============================================================================
# PARENTS / CHILDREN
# =============================================================================

def test_parents_of_multi_parent_code(diamond_db):
    assert get_parents(diamond_db, "D") == {"B", "C"}


def test_children(diamond_db):
    assert get_children(diamond_db, "A") == {"B", "C"}
    assert get_children(diamond_db, "E") == set()


def test_parents_of_root_is_empty(diamond_db):
    assert get_parents(diamond_db, "A") == set()


def test_parents_edgelist(diamond_db):
    """
    Validate that the parents edge list holds exactly the parent -> code
    relations.
    """
    assert get_parents(diamond_db, "D", output="edgelist") == [
        Relation(parent="B", child="D"),
        Relation(parent="C", child="D"),
    ]


def test_children_graph(diamond_db):
    sub = get_children(diamond_db, "A", output="graph")

    assert set(sub.codes()) == {"A", "B", "C"}
    assert sub.edge_count == 2


def test_parents_unknown_code_returns_none(diamond_db):
    with pytest.warns(UnknownCodeWarning):
        assert get_parents(diamond_db, "nope") is None


def test_parents_invalid_output_fails(diamond_db):
    with pytest.raises(InvalidArgumentError):
        get_parents(diamond_db, "D", output="tree")


# =============================================================================
# SIBLINGS
# =============================================================================

def test_siblings_through_every_parent(family_db):
    """
    Validate that siblings are gathered through each parent.

    Verifies:
    - S1 (via P1) and S2 (via P2) are both siblings of A
    - A itself is excluded
    """
    assert get_siblings(family_db, "A") == {"S1", "S2"}


def test_siblings_when_parents_have_single_child(diamond_db):
    """
    D's parents are B and C, whose only child is D: no siblings.
    """
    assert get_siblings(diamond_db, "D") == set()


def test_siblings_of_root_is_empty(diamond_db):
    assert get_siblings(diamond_db, "A") == set()


def test_siblings_never_contain_code(diamond_db):
    for code in diamond_db.codes():
        assert code not in get_siblings(diamond_db, code)


def test_siblings_edgelist(family_db):
    edges = get_siblings(family_db, "A", output="edgelist")

    assert [r.as_tuple() for r in edges] == [("P1", "S1"), ("P2", "S2")]


def test_siblings_graph(family_db):
    sub = get_siblings(family_db, "A", output="graph")

    assert set(sub.codes()) == {"P1", "S1", "P2", "S2"}
    assert not sub.has_node("A")


def test_siblings_unknown_code_returns_none(diamond_db):
    with pytest.warns(UnknownCodeWarning):
        assert get_siblings(diamond_db, "nope") is None


@pytest.mark.parametrize("query", [get_parents, get_children, get_siblings])
def test_unknown_code_warning_points_at_caller(diamond_db, query):
    """
    Validate that the unknown-code warning is attributed to the code calling
    the query, not to a frame inside the package.

    Verifies:
    - One-hop lookups routed through a shared helper report the caller
    - Siblings, which resolve directly, report the caller too
    """
    with pytest.warns(UnknownCodeWarning) as record:
        query(diamond_db, "nope")

    assert record[0].filename == __file__
