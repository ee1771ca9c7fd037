"""
Integration tests for main.py - the genealogy command line.

Each test writes edge tables to a temporary directory, runs main() with an
argument list, and decodes the JSON printed on stdout.
"""
import json

import pytest

from infrastructure.config import CONFIG_ENV_VAR
from infrastructure.logger import read_query_log
from main import main


@pytest.fixture(autouse=True)
def default_config(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


@pytest.fixture
def tables(tmp_path):
    diamond = tmp_path / "diamond.csv"
    diamond.write_text("from,to\nA,B\nA,C\nB,D\nC,D\nD,E\n")
    extra = tmp_path / "extra.csv"
    extra.write_text("from,to\nK,D\nK,L\n")
    return ["--classif", str(diamond), "--classif", str(extra)]


def run(capsys, argv):
    status = main(argv)
    out = capsys.readouterr().out
    return status, (json.loads(out) if out.strip() else None)


def test_ancestors_unified(capsys, tables):
    status, result = run(capsys, ["ancestors", "E", *tables])

    assert status == 0
    assert result == ["A", "B", "C", "D", "K"]


def test_ancestors_scoped_and_bounded(capsys, tables):
    status, result = run(capsys, ["ancestors", "E", "--max-depth", "2", "--scope", "diamond", *tables])

    assert status == 0
    assert result == ["B", "C", "D"]


def test_descendants_edgelist(capsys, tables):
    status, result = run(capsys, ["descendants", "B", "--output", "edgelist", *tables])

    assert status == 0
    assert result == [{"parent": "B", "child": "D"}, {"parent": "D", "child": "E"}]


def test_parents_graph(capsys, tables):
    status, result = run(capsys, ["parents", "D", "-o", "graph", *tables])

    assert status == 0
    assert sorted(result["nodes"]) == ["B", "C", "D", "K"]
    assert len(result["edges"]) == 3


def test_children_and_siblings(capsys, tables):
    assert run(capsys, ["children", "K", *tables]) == (0, ["D", "L"])
    assert run(capsys, ["siblings", "L", *tables]) == (0, ["D"])


def test_lca(capsys, tables):
    assert run(capsys, ["lca", "B", "C", "--scope", "diamond", *tables]) == (0, ["A"])


def test_family_uses_configured_depth(capsys, tables):
    status, result = run(capsys, ["family", "B", "--scope", "diamond", *tables])

    assert status == 0
    assert result == ["A", "B", "C", "D", "E"]


def test_between_defaults_to_graph(capsys, tables):
    status, result = run(capsys, ["between", "B", "E", *tables])

    assert status == 0
    assert sorted(result["nodes"]) == ["B", "D", "E"]


def test_roots_and_leaves(capsys, tables):
    assert run(capsys, ["roots", *tables]) == (0, ["A", "K"])
    assert run(capsys, ["leaves", *tables]) == (0, ["E", "L"])


def test_validate(capsys, tables):
    status, result = run(capsys, ["validate", *tables])

    assert status == 0
    assert result["valid"] is True
    assert result["metrics"]["node_count"] == 7


def test_validate_cycle_exits_one(capsys, tmp_path):
    cyclic = tmp_path / "cyclic.csv"
    cyclic.write_text("from,to\nA,B\nB,A\n")

    status, result = run(capsys, ["validate", "--classif", str(cyclic)])

    assert status == 1
    assert result["valid"] is False


def test_unknown_codes_give_null(capsys, tables):
    with pytest.warns(UserWarning, match="nope"):
        status, result = run(capsys, ["ancestors", "nope", *tables])

    assert status == 0
    assert result is None


def test_invalid_max_depth_exits_two(capsys, tables):
    status = main(["ancestors", "E", "--max-depth", "0", *tables])

    assert status == 2
    assert "max_depth" in capsys.readouterr().err


def test_unknown_scope_exits_two(capsys, tables):
    status = main(["roots", "--scope", "nope", *tables])

    assert status == 2
    assert "nope" in capsys.readouterr().err


def test_missing_file_exits_one(capsys, tmp_path):
    status = main(["roots", "--classif", str(tmp_path / "absent.csv")])

    assert status == 1


def test_invalid_output_is_rejected_by_parser(tables):
    with pytest.raises(SystemExit) as exc_info:
        main(["ancestors", "E", "--output", "table", *tables])

    assert exc_info.value.code == 2


def test_query_log_file(capsys, tables, tmp_path):
    log_path = tmp_path / "queries.jsonl"

    run(capsys, ["ancestors", "E", "--query-log", str(log_path), *tables])

    events = read_query_log(log_path)
    assert [e.operation for e in events] == ["ancestors"]
    assert events[0].targets == ["E"]
    assert events[0].result_size == 5


def test_config_file_default_output(capsys, tables, tmp_path):
    config = tmp_path / "genealogy.toml"
    config.write_text('[genealogy]\ndefault_output = "edgelist"\n')

    status, result = run(capsys, ["parents", "E", "--config", str(config), *tables])

    assert status == 0
    assert result == [{"parent": "D", "child": "E"}]


def test_invalid_config_exits_two(capsys, tables, tmp_path):
    config = tmp_path / "genealogy.toml"
    config.write_text('[genealogy]\nfamily_max_depth = "two"\n')

    assert main(["roots", "--config", str(config), *tables]) == 2


def test_empty_edge_table_exits_one(capsys, tmp_path):
    blank = tmp_path / "blank.csv"
    blank.write_text("")

    status = main(["roots", "--classif", str(blank)])

    assert status == 1
    assert "Error" in capsys.readouterr().err


def test_unknown_log_level_exits_two(capsys, tables, tmp_path):
    config = tmp_path / "genealogy.toml"
    config.write_text('[genealogy]\nlog_level = "LOUD"\n')

    status = main(["roots", "--config", str(config), *tables])

    assert status == 2
    assert "Invalid configuration" in capsys.readouterr().err


def test_duplicate_classification_names_exit_two(capsys, tmp_path):
    paths = []
    for folder in ("a", "b"):
        (tmp_path / folder).mkdir()
        path = tmp_path / folder / "cardiac.csv"
        path.write_text("from,to\nA,B\n")
        paths += ["--classif", str(path)]

    status = main(["roots", *paths])

    assert status == 2
    assert "cardiac" in capsys.readouterr().err


# =============================================================================
# HISTORY
# =============================================================================

def test_history_reads_query_log(capsys, tables, tmp_path):
    """
    Validate that history prints the queries recorded by earlier runs.

    Verifies:
    - Events come back in the order they were run
    - --last keeps only the most recent events
    """
    log_path = str(tmp_path / "queries.jsonl")
    run(capsys, ["ancestors", "E", "--query-log", log_path, *tables])
    run(capsys, ["lca", "B", "C", "--query-log", log_path, *tables])

    status, events = run(capsys, ["history", "--query-log", log_path])
    assert status == 0
    assert [e["operation"] for e in events] == ["ancestors", "lca"]
    assert events[1]["targets"] == ["B", "C"]

    status, events = run(capsys, ["history", "--last", "1", "--query-log", log_path])
    assert status == 0
    assert [e["operation"] for e in events] == ["lca"]


def test_history_without_query_log_exits_two(capsys):
    status = main(["history"])

    assert status == 2
    assert "query log" in capsys.readouterr().err
