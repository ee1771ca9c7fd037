"""
GENEALOGY GRAPH DATABASE - The Rust-Accelerated Hierarchy Store

This module bridges opaque code strings with rustworkx's integer indices,
enabling:
- O(1) node lookup by code
- Rust-native graph algorithms (ancestors, descendants, topological sort)
- Deduplicated merging of several independently maintained hierarchies

Architecture (The Bridge Pattern):
  Python Layer (Query Logic)
  - Uses codes: "303", "158676"
  - Calls: db.neighbors("303", Direction.UP), db.induced_subgraph(codes)

  Bridge Layer (This File)
  - _node_map: Dict[str, int]  (code -> index)
  - _inv_map: Dict[int, str]   (index -> code)
  - _edge_map: Dict[Tuple[str, str], int]  ((parent, child) -> edge index)

  Rust Layer (rustworkx.PyDiGraph)
  - Node payload: the code string
  - Edge payload: the Relation struct

A GenealogyDB is built once from immutable relation lists and then treated
as read-only by every query. Acyclicity is a caller guarantee: it is not
checked at build time (see graph_invariants.validate_graph for an opt-in
check).
"""
import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple, Union

import msgspec
import polars as pl
import rustworkx as rx

from genealogy.ontology import Direction
from genealogy.schemas import (
    Classification,
    CodeLike,
    Relation,
    RelationLike,
    coerce_relation,
    normalize_code,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================

class GraphError(Exception):
    """Base exception for genealogy graph operations."""
    pass


class CodeNotFoundError(GraphError, KeyError):
    """Raised by strict lookups when a code is not in the graph."""
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Code not found: {code}")

    def __str__(self) -> str:
        return f"Code not found: {self.code}"


class ClassificationNotFoundError(GraphError, KeyError):
    """Raised when a classification name is not in the repository."""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Classification not found: {name}")

    def __str__(self) -> str:
        return f"Classification not found: {self.name}"


class InvalidArgumentError(GraphError, ValueError):
    """Raised for malformed query arguments. Aborts before any traversal."""
    pass


class GraphInvariantError(GraphError):
    """Raised when a structural invariant is violated (self-loop, cycle)."""
    pass


class UnknownCodeWarning(UserWarning):
    """Issued when supplied codes do not belong to the queried graph."""
    pass


# =============================================================================
# GENEALOGY DATABASE (The Graph Store)
# =============================================================================

class GenealogyDB:
    """
    In-memory classification graph backed by rustworkx.

    All public methods accept/return codes; translation to/from integer
    indices is handled internally.

    Usage:
        db = GenealogyDB.from_relations([("A", "B"), ("A", "C"), ("B", "D")])

        db.neighbors("D", Direction.UP)   # {"B"}
        db.roots()                        # ["A"]
        sub = db.induced_subgraph(["A", "B"])

    Thread Safety:
        Safe for concurrent reads once built. Building is not thread-safe.
    """

    def __init__(self):
        self._graph: rx.PyDiGraph = rx.PyDiGraph(multigraph=False)

        # The Bridge: bidirectional code <-> index mapping
        self._node_map: Dict[str, int] = {}
        self._inv_map: Dict[int, str] = {}

        # (parent, child) -> edge index, also the deduplication set
        self._edge_map: Dict[Tuple[str, str], int] = {}

    # =========================================================================
    # CONSTRUCTION
    # =========================================================================

    @classmethod
    def from_relations(cls, relations: Iterable[RelationLike]) -> "GenealogyDB":
        """
        Build a graph from (parent, child) pairs or Relations.

        Identical pairs are merged into a single edge.
        """
        db = cls()
        added = db.add_relations_batch(relations)
        logger.debug("Built %r (%d distinct relations added)", db, added)
        return db

    @classmethod
    def from_classifications(cls, classifications: Iterable[Classification]) -> "GenealogyDB":
        """Build the unified graph of several classifications."""
        db = cls()
        for classification in classifications:
            db.add_relations_batch(classification.relations)
        return db

    @classmethod
    def from_polars(
        cls,
        df: pl.DataFrame,
        from_col: str = "from",
        to_col: str = "to",
    ) -> "GenealogyDB":
        """
        Build a graph from a from/to edge table.

        Rows with a missing endpoint are ignored.

        Raises:
            InvalidArgumentError: If a column is missing from the table
        """
        missing = [c for c in (from_col, to_col) if c not in df.columns]
        if missing:
            raise InvalidArgumentError(
                f"Edge table is missing column(s): {', '.join(missing)}"
            )
        rows = df.select([from_col, to_col]).drop_nulls().iter_rows()
        return cls.from_relations(rows)

    def add_code(self, code: CodeLike) -> int:
        """
        Add an isolated code. Returns the existing index if already present.
        """
        code = normalize_code(code)
        if code in self._node_map:
            return self._node_map[code]

        idx = self._graph.add_node(code)
        self._node_map[code] = idx
        self._inv_map[idx] = code
        return idx

    def add_codes_batch(self, codes: Iterable[CodeLike]) -> List[int]:
        """
        Add multiple codes in a single Rust call.

        Existing codes are skipped (their index is returned).
        """
        codes = [normalize_code(code) for code in codes]
        new_codes = [c for c in dict.fromkeys(codes) if c not in self._node_map]

        if new_codes:
            # Single Rust call for all new codes
            indices = self._graph.add_nodes_from(new_codes)
            for code, idx in zip(new_codes, indices):
                self._node_map[code] = idx
                self._inv_map[idx] = code

        return [self._node_map[code] for code in codes]

    def add_relation(self, parent: CodeLike, child: CodeLike) -> int:
        """
        Add a parent -> child relation, creating endpoints as needed.

        Returns:
            The rustworkx edge index (existing index for a duplicate pair)

        Raises:
            GraphInvariantError: If parent and child are the same code
        """
        relation = Relation.create(parent, child)
        return self._add_relation(relation)

    def add_relations_batch(self, relations: Iterable[RelationLike]) -> int:
        """
        Add many relations. Duplicates (within the batch or against the
        existing graph) are skipped.

        Returns:
            Number of new edges created
        """
        before = self.edge_count
        for item in relations:
            self._add_relation(coerce_relation(item))
        return self.edge_count - before

    def _add_relation(self, relation: Relation) -> int:
        key = relation.as_tuple()
        if key in self._edge_map:
            return self._edge_map[key]

        if relation.parent == relation.child:
            raise GraphInvariantError(
                f"Cannot add self-loop relation {relation.parent} -> {relation.child}"
            )

        src_idx = self.add_code(relation.parent)
        tgt_idx = self.add_code(relation.child)
        edge_idx = self._graph.add_edge(src_idx, tgt_idx, relation)
        self._edge_map[key] = edge_idx
        return edge_idx

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def node_count(self) -> int:
        """Number of codes in the graph."""
        return self._graph.num_nodes()

    @property
    def edge_count(self) -> int:
        """Number of distinct relations in the graph."""
        return self._graph.num_edges()

    @property
    def is_empty(self) -> bool:
        return self.node_count == 0

    @property
    def rx_graph(self) -> rx.PyDiGraph:
        """
        The underlying rustworkx graph.

        Read-only by contract: queries work on indices through this view
        and never mutate it. Use copy() for a private working graph.
        """
        return self._graph

    # =========================================================================
    # LOOKUP
    # =========================================================================

    def has_node(self, code: CodeLike) -> bool:
        """Check if a code appears as an endpoint of any relation."""
        return normalize_code(code) in self._node_map

    def has_edge(self, parent: CodeLike, child: CodeLike) -> bool:
        return (normalize_code(parent), normalize_code(child)) in self._edge_map

    def index_of(self, code: CodeLike) -> int:
        """
        Strict lookup of a code's rustworkx index.

        Raises:
            CodeNotFoundError: If the code is not in the graph
        """
        code = normalize_code(code)
        if code not in self._node_map:
            raise CodeNotFoundError(code)
        return self._node_map[code]

    def code_at(self, idx: int) -> str:
        """Code stored at a rustworkx index."""
        if idx not in self._inv_map:
            raise GraphError(f"Invalid index: {idx}")
        return self._inv_map[idx]

    def codes(self) -> List[str]:
        """All codes, in insertion order."""
        return [self._inv_map[idx] for idx in self._graph.node_indices()]

    def relations(self) -> List[Relation]:
        """All distinct relations, in insertion order."""
        return list(self._graph.edges())

    def neighbors(self, code: CodeLike, direction: Union[Direction, str]) -> Set[str]:
        """
        Codes one hop away: parents for Direction.UP, children for DOWN.

        Returns an empty set (never raises) when the code has no such
        neighbors or is not in the graph.
        """
        direction = _coerce_direction(direction)
        code = normalize_code(code)
        if code not in self._node_map:
            return set()

        idx = self._node_map[code]
        if direction is Direction.UP:
            hop = self._graph.predecessor_indices(idx)
        else:
            hop = self._graph.successor_indices(idx)
        return {self._inv_map[i] for i in hop}

    def incident_relations(self, code: CodeLike, direction: Union[Direction, str]) -> List[Relation]:
        """
        Relations linking a code to its one-hop neighbors: parent -> code
        for Direction.UP, code -> child for DOWN. Ordered by edge index.
        """
        direction = _coerce_direction(direction)
        code = normalize_code(code)
        if code not in self._node_map:
            return []

        idx = self._node_map[code]
        if direction is Direction.UP:
            keys = [(self._inv_map[i], code) for i in self._graph.predecessor_indices(idx)]
        else:
            keys = [(code, self._inv_map[i]) for i in self._graph.successor_indices(idx)]
        edge_indices = sorted(self._edge_map[key] for key in keys)
        return [self._graph.get_edge_data_by_index(i) for i in edge_indices]

    # =========================================================================
    # EXTREMA (Roots and Leaves)
    # =========================================================================

    def roots(self) -> List[str]:
        """Codes with no parent (in-degree 0)."""
        return [
            self._inv_map[idx]
            for idx in self._graph.node_indices()
            if self._graph.in_degree(idx) == 0
        ]

    def leaves(self) -> List[str]:
        """Codes with no child (out-degree 0)."""
        return [
            self._inv_map[idx]
            for idx in self._graph.node_indices()
            if self._graph.out_degree(idx) == 0
        ]

    # =========================================================================
    # SUBGRAPHS
    # =========================================================================

    def induced_subgraph(self, codes: Iterable[CodeLike]) -> "GenealogyDB":
        """
        Subgraph made of the given codes and every relation of this graph
        whose two endpoints are among them.

        Codes absent from this graph are ignored. Node and edge insertion
        order follow this graph's order.
        """
        keep: Set[int] = set()
        for code in codes:
            idx = self._node_map.get(normalize_code(code))
            if idx is not None:
                keep.add(idx)

        sub = GenealogyDB()
        sub.add_codes_batch(
            self._inv_map[idx] for idx in self._graph.node_indices() if idx in keep
        )
        for src, tgt, relation in self._graph.weighted_edge_list():
            if src in keep and tgt in keep:
                sub._add_relation(relation)
        return sub

    def copy(self) -> "GenealogyDB":
        """Independent copy sharing no mutable state with this graph."""
        clone = GenealogyDB()
        clone._graph = self._graph.copy()
        clone._node_map = dict(self._node_map)
        clone._inv_map = dict(self._inv_map)
        clone._edge_map = dict(self._edge_map)
        return clone

    def topological_order(self) -> List[str]:
        """
        Codes in topological order (every parent before its children).

        Raises:
            GraphInvariantError: If the graph has cycles
        """
        try:
            order = rx.topological_sort(self._graph)
        except rx.DAGHasCycle:
            raise GraphInvariantError("Cannot topologically sort: graph has cycles")
        return [self._inv_map[idx] for idx in order]

    # =========================================================================
    # INTERCHANGE (Polars / builtins)
    # =========================================================================

    def to_polars_edges(self, from_col: str = "from", to_col: str = "to") -> pl.DataFrame:
        """Export relations as a from/to DataFrame."""
        relations = self.relations()
        return pl.DataFrame(
            {
                from_col: [r.parent for r in relations],
                to_col: [r.child for r in relations],
            },
            schema={from_col: pl.Utf8, to_col: pl.Utf8},
        )

    def to_polars_nodes(self) -> pl.DataFrame:
        return pl.DataFrame({"code": self.codes()}, schema={"code": pl.Utf8})

    def to_builtins(self) -> Dict[str, Any]:
        """Plain dict form: {"nodes": [...], "edges": [{"parent", "child"}, ...]}."""
        return {
            "nodes": self.codes(),
            "edges": msgspec.to_builtins(self.relations()),
        }

    # =========================================================================
    # DUNDER
    # =========================================================================

    def __len__(self) -> int:
        return self.node_count

    def __contains__(self, code: object) -> bool:
        if code is None:
            return False
        return self.has_node(code)

    def __iter__(self) -> Iterator[str]:
        return iter(self.codes())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GenealogyDB):
            return NotImplemented
        return (
            self._node_map.keys() == other._node_map.keys()
            and self._edge_map.keys() == other._edge_map.keys()
        )

    def __repr__(self) -> str:
        return f"GenealogyDB(nodes={self.node_count}, edges={self.edge_count})"


# =============================================================================
# EXTREMUM FINDER
# =============================================================================

def find_roots(db: GenealogyDB) -> List[str]:
    """Codes without any parent: the heads of the classification."""
    return db.roots()


def find_leaves(db: GenealogyDB) -> List[str]:
    """Codes without any child: usually the most specific entries."""
    return db.leaves()


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================

def create_empty_db() -> GenealogyDB:
    """Create an empty GenealogyDB instance."""
    return GenealogyDB()


def create_db_from_relations(
    relations: Iterable[RelationLike],
    codes: Optional[Iterable[CodeLike]] = None,
) -> GenealogyDB:
    """
    Create a GenealogyDB from relations, plus optional isolated codes.
    """
    db = GenealogyDB()
    if codes is not None:
        db.add_codes_batch(codes)
    db.add_relations_batch(relations)
    return db


def _coerce_direction(direction: Union[Direction, str]) -> Direction:
    try:
        return Direction(direction)
    except ValueError:
        raise InvalidArgumentError(
            f"Invalid direction {direction!r}: expected 'up' or 'down'"
        ) from None
