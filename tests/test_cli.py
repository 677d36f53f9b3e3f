from pathlib import Path

import pytest

from taskscheduler import cli


def _run(db_path: Path, *args: str) -> int:
    return cli.main(["--db", str(db_path), *args])


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "cli.db"
    assert _run(path, "init") == 0
    assert _run(path, "user-add", "alice@example.com", "pw") == 0
    assert _run(path, "user-add", "bob@example.com", "pw") == 0
    assert _run(path, "category-add", "work") == 0
    assert _run(path, "add", "write report", "--owner", "1", "--cost", "10", "--category", "1") == 0
    assert _run(path, "add", "write reports", "--owner", "1", "--cost", "20", "-p", "3") == 0
    assert _run(path, "add", "review", "--owner", "2", "--category", "1") == 0
    return path


def test_flow_all_algorithms(db_path: Path, capsys):
    capsys.readouterr()
    for name in ("ford-fulkerson", "edmonds-karp", "dinic"):
        assert _run(db_path, "flow", "--owner", "1", "-a", name) == 0
        assert f"Max flow ({name}): 30" in capsys.readouterr().out


def test_flow_unknown_algorithm(db_path: Path, capsys):
    assert _run(db_path, "flow", "--owner", "1", "-a", "simplex") == 1
    assert "Unknown flow algorithm" in capsys.readouterr().err


def test_mst(db_path: Path, capsys):
    capsys.readouterr()
    assert _run(db_path, "mst", "--owner", "1", "--seed", "7") == 0
    out = capsys.readouterr().out
    assert "#1 write report -- #2 write reports" in out
    assert "Total weight:" in out

    assert _run(db_path, "mst", "--owner", "2") == 1
    assert "Not enough tasks" in capsys.readouterr().err


def test_similar_users(db_path: Path, capsys):
    capsys.readouterr()
    assert _run(db_path, "similar-users", "1", "-m", "dfs") == 0
    out = capsys.readouterr().out
    assert "alice@example.com" in out and "bob@example.com" in out

    assert _run(db_path, "similar-users", "42") == 0
    assert "No similar users found." in capsys.readouterr().out


def test_similar_tasks(db_path: Path, capsys):
    capsys.readouterr()
    assert _run(db_path, "similar-tasks", "--owner", "1") == 0
    assert "#1 write report ~ #2 write reports: 0.92" in capsys.readouterr().out


def test_huffman(db_path: Path, capsys):
    capsys.readouterr()
    assert _run(db_path, "huffman", "--text", "aaaa") == 0
    assert "Encoded: 0000" in capsys.readouterr().out
    assert _run(db_path, "huffman") == 0
    assert "Encoded: " in capsys.readouterr().out


def test_task_updates_and_list(db_path: Path, capsys):
    assert _run(db_path, "deadline", "3", "2030-12-24") == 0
    assert _run(db_path, "priority", "3", "1") == 0
    assert _run(db_path, "categorize", "2", "1") == 0
    assert _run(db_path, "categorize", "2", "9") == 1
    capsys.readouterr()
    assert _run(db_path, "list", "--owner", "2") == 0
    out = capsys.readouterr().out
    assert "2030-12-24" in out and "review" in out


def test_rejects_unknown_owner_and_bad_priority(db_path: Path, capsys):
    assert _run(db_path, "add", "x", "--owner", "9") == 1
    assert "User #9 not found." in capsys.readouterr().err
    with pytest.raises(SystemExit):
        _run(db_path, "add", "x", "--owner", "1", "-p", "9")


def test_duplicate_email_is_reported(db_path: Path, capsys):
    assert _run(db_path, "user-add", "alice@example.com", "pw") == 1
    assert "Rejected by the database" in capsys.readouterr().err


def test_remind_sleeps_then_prints(db_path: Path, capsys, monkeypatch):
    slept = []
    monkeypatch.setattr(cli.time, "sleep", slept.append)
    assert _run(db_path, "remind", "1", "--seconds", "2") == 0
    assert slept == [2.0]
    assert "Reminder: write report" in capsys.readouterr().out


def test_export_import(db_path: Path, tmp_path: Path, capsys):
    out = tmp_path / "dump.json"
    assert _run(db_path, "export", "--out", str(out)) == 0
    other = tmp_path / "other.db"
    assert _run(other, "import", str(out)) == 0
    capsys.readouterr()
    assert _run(other, "list") == 0
    assert "write reports" in capsys.readouterr().out
