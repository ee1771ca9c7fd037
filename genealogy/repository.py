"""
Classification repository: an explicit handle on named hierarchies.

Queries never consult a process-wide "active classification". The caller
builds a repository, picks one classification's graph or the unified graph
of all of them, and passes that graph to the query functions.

Usage:
    repo = ClassificationRepository.from_files(["cardiac.csv", "skin.csv"])

    db = repo.unified()               # every hierarchy merged
    db = repo.graph("cardiac")        # a single hierarchy
    repo.classifications_of("303")    # ["cardiac", ...]
"""
import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Union

import polars as pl

from genealogy.graph_db import ClassificationNotFoundError, GenealogyDB, InvalidArgumentError
from genealogy.schemas import Classification, CodeLike, RelationLike, normalize_code

logger = logging.getLogger(__name__)


# =============================================================================
# EDGE TABLES
# =============================================================================

_READERS = {
    ".csv": lambda path: pl.read_csv(path, infer_schema_length=0),
    ".parquet": pl.read_parquet,
    ".arrow": pl.read_ipc,
    ".ipc": pl.read_ipc,
}


def load_edge_table(path: Union[str, Path]) -> pl.DataFrame:
    """
    Read a from/to edge table from CSV, Parquet or Arrow IPC.

    CSV columns are read as strings so codes keep their leading zeros.

    Raises:
        InvalidArgumentError: If the file extension is not supported
    """
    path = Path(path)
    reader = _READERS.get(path.suffix.lower())
    if reader is None:
        raise InvalidArgumentError(
            f"Unsupported edge table format {path.suffix!r}: expected one of {', '.join(_READERS)}"
        )
    return reader(path)


def classification_from_frame(
    name: str,
    df: pl.DataFrame,
    from_col: str = "from",
    to_col: str = "to",
) -> Classification:
    missing = [c for c in (from_col, to_col) if c not in df.columns]
    if missing:
        raise InvalidArgumentError(
            f"Classification {name!r} is missing column(s): {', '.join(missing)}"
        )
    rows = df.select([from_col, to_col]).drop_nulls().iter_rows()
    return Classification.create(name, rows)


# =============================================================================
# REPOSITORY
# =============================================================================

class ClassificationRepository:
    """
    Named classifications plus their graphs, built lazily and cached.

    Graphs handed out are shared between callers and must be treated as
    read-only, like every graph passed to a query.
    """

    def __init__(self, classifications: Optional[Iterable[Classification]] = None):
        self._classifications: Dict[str, Classification] = {}
        self._graphs: Dict[str, GenealogyDB] = {}
        self._unified: Optional[GenealogyDB] = None
        for classification in classifications or []:
            self.add(classification)

    @classmethod
    def from_relations(cls, relations: Mapping[str, Iterable[RelationLike]]) -> "ClassificationRepository":
        """Build from {name: [(parent, child), ...]}."""
        return cls(Classification.create(name, rels) for name, rels in relations.items())

    @classmethod
    def from_frames(
        cls,
        frames: Mapping[str, pl.DataFrame],
        from_col: str = "from",
        to_col: str = "to",
    ) -> "ClassificationRepository":
        """Build from {name: from/to DataFrame}."""
        return cls(
            classification_from_frame(name, df, from_col, to_col)
            for name, df in frames.items()
        )

    @classmethod
    def from_files(
        cls,
        paths: Iterable[Union[str, Path]],
        from_col: str = "from",
        to_col: str = "to",
    ) -> "ClassificationRepository":
        """Build from edge table files; each file stem names a classification.

        Raises:
            InvalidArgumentError: If two files share a stem
        """
        frames = {}
        for path in paths:
            path = Path(path)
            if path.stem in frames:
                raise InvalidArgumentError(
                    f"Duplicate classification name {path.stem!r} from {path}"
                )
            frames[path.stem] = load_edge_table(path)
            logger.info("Loaded classification %r from %s", path.stem, path)
        return cls.from_frames(frames, from_col, to_col)

    def add(self, classification: Classification) -> None:
        """
        Register a classification. An existing one with the same name is
        replaced and cached graphs are invalidated.
        """
        self._classifications[classification.name] = classification
        self._graphs.pop(classification.name, None)
        self._unified = None

    @property
    def names(self) -> List[str]:
        return list(self._classifications)

    def classification(self, name: str) -> Classification:
        if name not in self._classifications:
            raise ClassificationNotFoundError(name)
        return self._classifications[name]

    def graph(self, name: Optional[str] = None) -> GenealogyDB:
        """
        Graph of one classification, or the unified graph when name is None.

        Raises:
            ClassificationNotFoundError: If name is unknown
        """
        if name is None:
            return self.unified()
        if name not in self._graphs:
            self._graphs[name] = GenealogyDB.from_classifications([self.classification(name)])
        return self._graphs[name]

    def unified(self) -> GenealogyDB:
        """Deduplicated union of every classification."""
        if self._unified is None:
            self._unified = GenealogyDB.from_classifications(self._classifications.values())
            logger.debug(
                "Unified %d classification(s) into %r", len(self._classifications), self._unified
            )
        return self._unified

    def is_in_classification(self, code: CodeLike, name: str) -> bool:
        """True if the code is an endpoint of a relation of that classification."""
        return self.graph(name).has_node(code)

    def classifications_of(self, code: CodeLike) -> List[str]:
        """Names of the classifications containing the code."""
        code = normalize_code(code)
        return [name for name in self._classifications if self.graph(name).has_node(code)]

    def __contains__(self, name: object) -> bool:
        return name in self._classifications

    def __iter__(self) -> Iterator[Classification]:
        return iter(self._classifications.values())

    def __len__(self) -> int:
        return len(self._classifications)

    def __repr__(self) -> str:
        return f"ClassificationRepository(classifications={len(self)})"
