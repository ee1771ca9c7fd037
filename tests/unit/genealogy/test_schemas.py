"""
Unit tests for genealogy/schemas.py - codes, relations and classifications.
"""
import msgspec
import pytest

from genealogy.schemas import (
    Classification,
    Relation,
    coerce_relation,
    deserialize_classification,
    deserialize_relations,
    deserialize_relations_msgpack,
    normalize_code,
    serialize_classification,
    serialize_relations,
    serialize_relations_msgpack,
)


@pytest.mark.parametrize("raw,expected", [
    ("303", "303"),
    (303, "303"),
    (303.0, "303"),
    (" 303 ", "303"),
    ("0303", "0303"),
    (3.5, "3.5"),
])
def test_normalize_code(raw, expected):
    assert normalize_code(raw) == expected


def test_normalize_none_fails():
    with pytest.raises(TypeError):
        normalize_code(None)


def test_relation_is_hashable_value():
    """
    Validate that equal relations hash equal, so they deduplicate in sets.
    """
    a = Relation.create(1, 2)
    b = Relation(parent="1", child="2")

    assert a == b
    assert len({a, b}) == 1
    assert a.as_tuple() == ("1", "2")


def test_relation_is_frozen():
    relation = Relation.create("A", "B")

    with pytest.raises(AttributeError):
        relation.parent = "C"


def test_relation_is_keyword_only():
    with pytest.raises(TypeError):
        Relation("A", "B")


def test_coerce_relation_accepts_pairs_and_relations():
    relation = Relation.create("A", "B")

    assert coerce_relation(relation) is relation
    assert coerce_relation(("A", "B")) == relation
    assert coerce_relation(["A", "B"]) == relation


def test_classification_codes_and_membership():
    classification = Classification.create("demo", [("A", "B"), ("B", "C"), ("A", "B")])

    assert classification.codes() == ["A", "B", "C"]
    assert "C" in classification
    assert "Z" not in classification
    assert len(classification) == 3


def test_relations_json_format():
    """
    Validate the JSON layout of a relation list: one object per relation
    with parent and child keys.
    """
    data = serialize_relations([Relation.create("A", "B")])

    assert msgspec.json.decode(data) == [{"parent": "A", "child": "B"}]
    assert deserialize_relations(b'[{"parent": "X", "child": "Y"}]') == [
        Relation(parent="X", child="Y"),
    ]


def test_classification_json_and_msgpack():
    classification = Classification.create("demo", [("A", "B")])

    restored = deserialize_classification(serialize_classification(classification))
    assert restored == classification

    relations = deserialize_relations_msgpack(serialize_relations_msgpack(classification.relations))
    assert relations == classification.relations


def test_deserialize_rejects_missing_field():
    with pytest.raises(msgspec.ValidationError):
        deserialize_relations(b'[{"parent": "X"}]')
