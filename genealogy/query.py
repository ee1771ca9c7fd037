"""
Query plumbing shared by every genealogy operation.

Validation happens here, before any traversal starts:
1. output shape token
2. max_depth bound
3. target resolution (unknown codes are warned about and dropped)

Rendering turns a set of found codes into one of the three output shapes.
"""
import logging
import warnings
from typing import Any, Iterable, List, Optional, Set, Union

from genealogy.graph_db import GenealogyDB, InvalidArgumentError, UnknownCodeWarning
from genealogy.ontology import OUTPUT_SHAPES, OutputShape
from genealogy.schemas import CodeLike, Relation, normalize_code

logger = logging.getLogger(__name__)

Targets = Union[CodeLike, Iterable[CodeLike]]


def parse_output_shape(output: Union[OutputShape, str]) -> OutputShape:
    """
    Raises:
        InvalidArgumentError: If output is not a known shape token
    """
    if isinstance(output, OutputShape):
        return output
    try:
        return OutputShape(output)
    except ValueError:
        raise InvalidArgumentError(
            f"Invalid output format {output!r}: should be one of {', '.join(OUTPUT_SHAPES)}"
        ) from None


def validate_max_depth(max_depth: Optional[int], minimum: int = 1) -> Optional[int]:
    """
    Check a depth bound. None means unbounded.

    Raises:
        InvalidArgumentError: If max_depth is not an integer >= minimum
    """
    if max_depth is None:
        return None
    if isinstance(max_depth, bool) or not isinstance(max_depth, int):
        raise InvalidArgumentError(
            f"`max_depth` must be None or an integer, got {max_depth!r}"
        )
    if max_depth < minimum:
        raise InvalidArgumentError(
            f"`max_depth` argument must be None or greater than {minimum - 1}, got {max_depth}"
        )
    return max_depth


def resolve_targets(db: GenealogyDB, codes: Targets, stacklevel: int = 3) -> List[str]:
    """
    Normalize and deduplicate the requested codes, keeping only those
    present in the graph.

    Codes absent from the graph are reported through UnknownCodeWarning and
    dropped. The returned list may therefore be empty even though codes
    were given; callers turn that into the absent (None) result.

    stacklevel points the warning at the caller of the public query; helpers
    one frame deeper pass 4.

    Raises:
        InvalidArgumentError: If no code was given at all
    """
    if codes is None:
        raise InvalidArgumentError("At least one code is required")
    if isinstance(codes, (str, int, float)):
        codes = [codes]

    requested = list(dict.fromkeys(normalize_code(code) for code in codes))
    if not requested:
        raise InvalidArgumentError("At least one code is required")

    missing = [code for code in requested if code not in db]
    if missing:
        warnings.warn(
            f"The following codes do not belong to the classification: {', '.join(missing)}",
            UnknownCodeWarning,
            stacklevel=stacklevel,
        )
        logger.debug("Dropped %d unknown code(s) from query", len(missing))

    return [code for code in requested if code in db]


def render_subgraph(
    db: GenealogyDB,
    targets: Iterable[str],
    found: Set[str],
    shape: OutputShape,
) -> Any:
    """
    Render a traversal result.

    codes_only is the found set itself; edgelist and graph are the induced
    subgraph of targets and found codes together.
    """
    if shape is OutputShape.CODES_ONLY:
        return set(found)

    subgraph = db.induced_subgraph([*targets, *found])
    if shape is OutputShape.EDGELIST:
        return subgraph.relations()
    return subgraph


def render_relations(relations: List[Relation], codes: Set[str], shape: OutputShape) -> Any:
    """
    Render a result described by explicit relations rather than an
    induced subgraph (parents, children, siblings).
    """
    if shape is OutputShape.CODES_ONLY:
        return set(codes)

    relations = list(dict.fromkeys(relations))
    if shape is OutputShape.EDGELIST:
        return relations
    return GenealogyDB.from_relations(relations)
