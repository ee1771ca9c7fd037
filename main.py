"""
GENEALOGY MAIN - Command-Line Entry Point

Commands:
    ancestors    - Ancestors of codes (optionally depth-bounded)
    descendants  - Descendants of codes (optionally depth-bounded)
    parents      - Parents of a code
    children     - Children of a code
    siblings     - Codes sharing a parent with a code
    lca          - Lowest common ancestors of codes
    family       - Codes, their ancestors up to a depth, and all descendants
    between      - Subgraph connecting codes
    roots        - Codes without parents
    leaves       - Codes without children
    validate     - Acyclicity check and graph metrics
    history      - Last queries recorded in the query log file

Usage:
    # Ancestors of a code in the unified graph of two classifications
    python main.py ancestors 303 --classif cardiac.csv --classif skin.csv

    # Parents and grandparents, as an edge list
    python main.py ancestors 303 --classif cardiac.csv --max-depth 2 --output edgelist

    # Lowest common ancestors within one classification only
    python main.py lca 303 158676 --classif cardiac.csv --classif skin.csv --scope cardiac

Edge tables are CSV, Parquet or Arrow files with "from" and "to" columns
(names configurable in config/genealogy.toml). The file stem names the
classification. Results are printed as JSON.

Exit status: 0 on success, 1 on a missing, empty or malformed edge table or a
failed validation, 2 on invalid arguments or an invalid configuration.
"""
import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Any, List, Optional

import msgspec
import polars as pl

# Add the project root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from genealogy import (  # noqa: E402
    ClassificationRepository,
    GenealogyDB,
    GraphError,
    InvalidArgumentError,
    complete_family,
    get_ancestors,
    get_children,
    get_descendants,
    get_lcas,
    get_parents,
    get_siblings,
    in_between_graph,
    validate_graph,
)
from genealogy.ontology import OUTPUT_SHAPES  # noqa: E402
from infrastructure.config import GenealogyConfig, load_config  # noqa: E402
from infrastructure.logger import (  # noqa: E402
    LoggerConfig,
    QueryLogger,
    configure_logging,
    read_query_log,
)

logger = logging.getLogger("genealogy.cli")


# =============================================================================
# HELPERS
# =============================================================================

def to_jsonable(result: Any) -> Any:
    """Query result -> JSON-ready builtins. Code sets become sorted lists."""
    if result is None:
        return None
    if isinstance(result, GenealogyDB):
        return result.to_builtins()
    if isinstance(result, (set, frozenset)):
        return sorted(result)
    return msgspec.to_builtins(result)


def emit(result: Any) -> None:
    sys.stdout.write(msgspec.json.format(msgspec.json.encode(to_jsonable(result))).decode())
    sys.stdout.write("\n")


def load_graph(args, config: GenealogyConfig) -> GenealogyDB:
    repo = ClassificationRepository.from_files(
        args.classif, from_col=config.from_column, to_col=config.to_column
    )
    db = repo.graph(args.scope)
    logger.info("Querying %r (scope=%s)", db, args.scope or "unified")
    return db


def run_query(args, operation: str, func, *func_args, **func_kwargs) -> int:
    """Load the graph, run one query, record it, print the result."""
    db = load_graph(args, args.config_obj)
    started = time.perf_counter()
    result = func(db, *func_args, **func_kwargs)
    duration_ms = (time.perf_counter() - started) * 1000

    codes = args.codes if hasattr(args, "codes") else [args.code]
    args.query_logger.log_query(
        operation, codes, result, duration_ms, output=func_kwargs.get("output")
    )
    emit(result)
    return 0


def _output(args) -> str:
    return args.output or args.config_obj.default_output


# =============================================================================
# COMMANDS
# =============================================================================

def cmd_ancestors(args) -> int:
    return run_query(
        args, "ancestors", get_ancestors, args.codes,
        output=_output(args), max_depth=args.max_depth,
    )


def cmd_descendants(args) -> int:
    return run_query(
        args, "descendants", get_descendants, args.codes,
        output=_output(args), max_depth=args.max_depth,
    )


def cmd_parents(args) -> int:
    return run_query(args, "parents", get_parents, args.code, output=_output(args))


def cmd_children(args) -> int:
    return run_query(args, "children", get_children, args.code, output=_output(args))


def cmd_siblings(args) -> int:
    return run_query(args, "siblings", get_siblings, args.code, output=_output(args))


def cmd_lca(args) -> int:
    return run_query(args, "lca", get_lcas, args.codes)


def cmd_family(args) -> int:
    max_depth = args.max_depth
    if max_depth is None:
        max_depth = args.config_obj.family_max_depth
    return run_query(
        args, "family", complete_family, args.codes,
        output=_output(args), max_depth=max_depth,
    )


def cmd_between(args) -> int:
    return run_query(
        args, "between", in_between_graph, args.codes, output=args.output or "graph"
    )


def cmd_roots(args) -> int:
    emit(sorted(load_graph(args, args.config_obj).roots()))
    return 0


def cmd_leaves(args) -> int:
    emit(sorted(load_graph(args, args.config_obj).leaves()))
    return 0


def cmd_validate(args) -> int:
    report = validate_graph(load_graph(args, args.config_obj))
    emit(report.to_builtins())
    return 0 if report.valid else 1


def cmd_history(args) -> int:
    log_path = args.query_log or args.config_obj.query_log_path
    if not log_path:
        raise InvalidArgumentError(
            "No query log to read: pass --query-log or set query_log_path"
        )
    events = read_query_log(Path(log_path))
    emit(events[-args.last:] if args.last > 0 else [])
    return 0


# =============================================================================
# PARSER
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="genealogy",
        description="Genealogy queries over classification hierarchies",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    # Options shared by every command
    settings = argparse.ArgumentParser(add_help=False)
    settings.add_argument("--config", help="Path to a genealogy.toml file")
    settings.add_argument("--query-log", help="JSON-lines file of query events")

    # Options shared by every command reading classifications
    common = argparse.ArgumentParser(add_help=False, parents=[settings])
    common.add_argument(
        "--classif", action="append", required=True, metavar="PATH",
        help="Edge table of a classification (repeatable)",
    )
    common.add_argument("--scope", help="Query one classification instead of the unified graph")

    shaped = argparse.ArgumentParser(add_help=False)
    shaped.add_argument("--output", "-o", choices=OUTPUT_SHAPES, help="Result shape")

    depth = argparse.ArgumentParser(add_help=False)
    depth.add_argument("--max-depth", type=int, help="Depth bound along each path")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Available commands")

    # multi-code queries
    for name, func, helptext, parents in (
        ("ancestors", cmd_ancestors, "Ancestors of codes", [common, shaped, depth]),
        ("descendants", cmd_descendants, "Descendants of codes", [common, shaped, depth]),
        ("lca", cmd_lca, "Lowest common ancestors of codes", [common]),
        ("family", cmd_family, "Complete family of codes", [common, shaped, depth]),
        ("between", cmd_between, "Subgraph connecting codes", [common, shaped]),
    ):
        sub = subparsers.add_parser(name, help=helptext, parents=parents)
        sub.add_argument("codes", nargs="+", help="Codes to query")
        sub.set_defaults(func=func)

    # single-code queries
    for name, func, helptext in (
        ("parents", cmd_parents, "Parents of a code"),
        ("children", cmd_children, "Children of a code"),
        ("siblings", cmd_siblings, "Siblings of a code"),
    ):
        sub = subparsers.add_parser(name, help=helptext, parents=[common, shaped])
        sub.add_argument("code", help="Code to query")
        sub.set_defaults(func=func)

    # whole-graph commands
    for name, func, helptext in (
        ("roots", cmd_roots, "Codes without parents"),
        ("leaves", cmd_leaves, "Codes without children"),
        ("validate", cmd_validate, "Check acyclicity and report metrics"),
    ):
        sub = subparsers.add_parser(name, help=helptext, parents=[common])
        sub.set_defaults(func=func)

    # history command
    history_parser = subparsers.add_parser(
        "history", help="Last queries recorded in the query log", parents=[settings]
    )
    history_parser.add_argument("--last", type=int, default=20, help="Number of events")
    history_parser.set_defaults(func=cmd_history)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with subcommands. Returns the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        configure_logging(config.log_level)
    except (msgspec.ValidationError, ValueError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    log_path = args.query_log or config.query_log_path
    args.config_obj = config
    args.query_logger = QueryLogger(LoggerConfig(
        buffer_size=config.query_buffer_size,
        log_path=Path(log_path) if log_path else None,
    ))

    try:
        return args.func(args)
    except GraphError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except (OSError, pl.exceptions.PolarsError) as e:
        # Missing, empty or malformed edge table
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        args.query_logger.close()


if __name__ == "__main__":
    sys.exit(main())
