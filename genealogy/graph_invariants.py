"""
GENEALOGY GRAPH INVARIANTS - Opt-in Diagnostics

Queries assume the caller's relations form a DAG and never check it. This
module is where the check lives, for callers that want to vet a freshly
loaded classification before exposing it.

Invariants Implemented:
1. Handshaking Lemma: sum(in_degree) == sum(out_degree) == |E|
2. DAG Acyclicity: No cycles (query results are undefined otherwise)

Metrics Reported:
- node/edge counts, roots, leaves
- codes with several parents (the graph is not a tree)
- weakly connected components (independent hierarchies)
- longest root-to-leaf path length

All checks are O(V+E) using rustworkx primitives.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import rustworkx as rx

from genealogy.graph_db import GenealogyDB, GraphInvariantError


# =============================================================================
# INVARIANT RESULTS
# =============================================================================

class InvariantSeverity(Enum):
    """Severity levels for invariant violations."""
    ERROR = "error"      # Query results would be undefined
    WARNING = "warning"  # Should be investigated
    INFO = "info"        # For metrics/diagnostics


@dataclass
class InvariantViolation:
    """A specific invariant violation."""
    invariant: str
    severity: InvariantSeverity
    message: str
    codes_involved: List[str] = field(default_factory=list)
    relations_involved: List[Tuple[str, str]] = field(default_factory=list)


@dataclass
class InvariantReport:
    """Complete invariant validation report."""
    valid: bool
    violations: List[InvariantViolation]
    metrics: Dict[str, Any]

    @property
    def errors(self) -> List[InvariantViolation]:
        return [v for v in self.violations if v.severity == InvariantSeverity.ERROR]

    @property
    def warnings(self) -> List[InvariantViolation]:
        return [v for v in self.violations if v.severity == InvariantSeverity.WARNING]

    def to_builtins(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "violations": [
                {
                    "invariant": v.invariant,
                    "severity": v.severity.value,
                    "message": v.message,
                    "codes_involved": v.codes_involved,
                    "relations_involved": [list(r) for r in v.relations_involved],
                }
                for v in self.violations
            ],
            "metrics": self.metrics,
        }


# =============================================================================
# GRAPH INVARIANTS (Rustworkx-Native)
# =============================================================================

class GraphInvariants:
    """
    Graph-theoretic validators over a GenealogyDB.

    All methods are static. None of them mutates the graph.
    """

    @staticmethod
    def validate_handshaking_lemma(db: GenealogyDB) -> Tuple[bool, Optional[InvariantViolation]]:
        """
        Handshaking Lemma: sum(in_degree) == sum(out_degree) == |E|

        Catches a corrupted edge state in the store.
        """
        graph = db.rx_graph
        node_indices = list(graph.node_indices())
        total_in = sum(graph.in_degree(idx) for idx in node_indices)
        total_out = sum(graph.out_degree(idx) for idx in node_indices)

        if total_in != total_out or total_in != graph.num_edges():
            return False, InvariantViolation(
                invariant="handshaking_lemma",
                severity=InvariantSeverity.ERROR,
                message=(
                    f"sum(in_degree)={total_in}, sum(out_degree)={total_out}, "
                    f"|E|={graph.num_edges()}"
                ),
            )
        return True, None

    @staticmethod
    def validate_dag_acyclicity(db: GenealogyDB) -> Tuple[bool, Optional[InvariantViolation]]:
        """
        DAG Invariant: the relations must not form a cycle.

        Reports one cycle found with rx.digraph_find_cycle.
        """
        graph = db.rx_graph
        if rx.is_directed_acyclic_graph(graph):
            return True, None

        cycle_edges = [
            (db.code_at(src), db.code_at(tgt)) for src, tgt in rx.digraph_find_cycle(graph)
        ]
        cycle_codes = list(dict.fromkeys(code for edge in cycle_edges for code in edge))
        return False, InvariantViolation(
            invariant="dag_acyclicity",
            severity=InvariantSeverity.ERROR,
            message=f"Cycle detected involving {len(cycle_codes)} codes",
            codes_involved=cycle_codes[:10],
            relations_involved=cycle_edges[:10],
        )

    @staticmethod
    def compute_metrics(db: GenealogyDB) -> Dict[str, Any]:
        graph = db.rx_graph
        is_dag = rx.is_directed_acyclic_graph(graph)
        metrics: Dict[str, Any] = {
            "node_count": db.node_count,
            "edge_count": db.edge_count,
            "root_count": len(db.roots()),
            "leaf_count": len(db.leaves()),
            "multi_parent_count": sum(
                1 for idx in graph.node_indices() if graph.in_degree(idx) > 1
            ),
            "weakly_connected_components": (
                rx.number_weakly_connected_components(graph) if db.node_count else 0
            ),
            "is_dag": is_dag,
        }
        if is_dag and db.node_count:
            metrics["longest_path_length"] = rx.dag_longest_path_length(graph)
        return metrics

    @staticmethod
    def validate_all(db: GenealogyDB, raise_on_error: bool = False) -> InvariantReport:
        """
        Run all invariant validations and return a report.

        Args:
            db: Graph to validate
            raise_on_error: If True, raise GraphInvariantError on the first ERROR
        """
        violations: List[InvariantViolation] = []

        for check in (
            GraphInvariants.validate_handshaking_lemma,
            GraphInvariants.validate_dag_acyclicity,
        ):
            _, violation = check(db)
            if violation:
                if raise_on_error and violation.severity == InvariantSeverity.ERROR:
                    raise GraphInvariantError(violation.message)
                violations.append(violation)

        is_valid = all(v.severity != InvariantSeverity.ERROR for v in violations)
        return InvariantReport(
            valid=is_valid,
            violations=violations,
            metrics=GraphInvariants.compute_metrics(db),
        )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def validate_graph(db: GenealogyDB, raise_on_error: bool = False) -> InvariantReport:
    """Convenience function to validate a graph."""
    return GraphInvariants.validate_all(db, raise_on_error=raise_on_error)


def is_valid_dag(db: GenealogyDB) -> bool:
    """Quick check if the graph is a valid DAG."""
    return rx.is_directed_acyclic_graph(db.rx_graph)


def get_graph_metrics(db: GenealogyDB) -> Dict[str, Any]:
    """Basic graph metrics without full validation."""
    return GraphInvariants.compute_metrics(db)
