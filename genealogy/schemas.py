"""
GENEALOGY SCHEMAS - The Grammar of Classifications

This module defines the data structures that flow through the graph:
- Relation: the payload attached to every edge (parent -> child)
- Classification: one named hierarchy, i.e. a list of Relations
- Code normalization and serialization helpers for persistence and IPC

Design Principles:
1. CODES ARE OPAQUE: a code is compared by its normalized string value only
2. RELATIONS ARE VALUES: frozen msgspec.Struct, hashable, deduplicated by value
3. KW_ONLY where a positional mix-up would silently invert a hierarchy

Performance Characteristics:
- msgspec.Struct uses ~3x less memory than dict
- Frozen structs hash in O(1), so edge deduplication is a set lookup
"""
from typing import Any, Iterable, List, Tuple, Union

import msgspec


# =============================================================================
# CODE NORMALIZATION
# =============================================================================

CodeLike = Union[str, int, float]


def normalize_code(code: Any) -> str:
    """
    Normalize a code to its canonical string form.

    Codes often come out of spreadsheets as numbers. "303", 303 and 303.0
    must all designate the same node, while "0303" stays distinct.

    Raises:
        TypeError: If code is None
    """
    if code is None:
        raise TypeError("A code cannot be None")
    if isinstance(code, float) and code.is_integer():
        code = int(code)
    return str(code).strip()


# =============================================================================
# RELATION (The Edge Payload)
# =============================================================================

class Relation(msgspec.Struct, frozen=True, kw_only=True):
    """
    A parent -> child relation. The parent is strictly more general.

    Stored directly as the edge payload of the rustworkx graph, so an
    edge list can be read back without translating indices.
    """
    parent: str
    child: str

    @classmethod
    def create(cls, parent: CodeLike, child: CodeLike) -> "Relation":
        """Factory method normalizing both endpoints."""
        return cls(parent=normalize_code(parent), child=normalize_code(child))

    def as_tuple(self) -> Tuple[str, str]:
        return (self.parent, self.child)


RelationLike = Union[Relation, Tuple[CodeLike, CodeLike]]


def coerce_relation(item: RelationLike) -> Relation:
    """Accept a Relation or any (parent, child) pair."""
    if isinstance(item, Relation):
        return item
    parent, child = item
    return Relation.create(parent, child)


# =============================================================================
# CLASSIFICATION (A Named Hierarchy)
# =============================================================================

class Classification(msgspec.Struct, kw_only=True):
    """
    One named hierarchy among codes.

    The same code may appear in several classifications with different
    neighbors in each. Relations are kept as given; deduplication happens
    when a GenealogyDB is built from them.
    """
    name: str
    relations: List[Relation] = msgspec.field(default_factory=list)

    @classmethod
    def create(cls, name: str, relations: Iterable[RelationLike]) -> "Classification":
        return cls(name=name, relations=[coerce_relation(r) for r in relations])

    def codes(self) -> List[str]:
        """All codes appearing as an endpoint, in first-seen order."""
        seen = {}
        for rel in self.relations:
            seen.setdefault(rel.parent, None)
            seen.setdefault(rel.child, None)
        return list(seen)

    def __contains__(self, code: object) -> bool:
        code = normalize_code(code)
        return any(rel.parent == code or rel.child == code for rel in self.relations)

    def __len__(self) -> int:
        return len(self.relations)


# =============================================================================
# SERIALIZATION HELPERS
# =============================================================================

# Pre-compiled encoders/decoders, reused across the application
_json_encoder = msgspec.json.Encoder()
_relation_list_decoder = msgspec.json.Decoder(type=List[Relation])
_classification_decoder = msgspec.json.Decoder(type=Classification)

_msgpack_encoder = msgspec.msgpack.Encoder()
_msgpack_relation_list_decoder = msgspec.msgpack.Decoder(type=List[Relation])


def serialize_relations(relations: List[Relation]) -> bytes:
    """Serialize a list of Relations to JSON bytes."""
    return _json_encoder.encode(relations)


def deserialize_relations(data: bytes) -> List[Relation]:
    """Deserialize JSON bytes to a list of Relations."""
    return _relation_list_decoder.decode(data)


def serialize_classification(classification: Classification) -> bytes:
    return _json_encoder.encode(classification)


def deserialize_classification(data: bytes) -> Classification:
    return _classification_decoder.decode(data)


def serialize_relations_msgpack(relations: List[Relation]) -> bytes:
    """Serialize Relations to msgpack bytes (more compact than JSON)."""
    return _msgpack_encoder.encode(relations)


def deserialize_relations_msgpack(data: bytes) -> List[Relation]:
    return _msgpack_relation_list_decoder.decode(data)
